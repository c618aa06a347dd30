"""Persistence gateway: one interface, a PostgreSQL and a SQLite backend.

The backend is picked once by ``create_gateway`` from the database URL.
Callers only ever see ``PersistenceGateway``. Boolean and NULL handling is
left to the ORM column types so both backends read back identical values.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine

from follow_alpha.decision.models import AlphaSignal
from follow_alpha.errors import ConfigError
from follow_alpha.storage.database import create_engine, create_session_factory, init_db
from follow_alpha.storage.models import AlphaAnalysisRow, FollowEdgeRow
from follow_alpha.tracker.models import FollowEdge

logger = logging.getLogger(__name__)

# Keeps each INSERT under SQLite's bound-parameter limit
_EDGE_CHUNK = 500

# Written on insert only; upserts never touch them
_INSERT_ONLY_FIELDS = {"token_mint", "tweeted", "tweeted_at", "added_at"}


class PersistenceGateway(ABC):
    @abstractmethod
    async def init_schema(self) -> None:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    @abstractmethod
    async def get_stored_following_ids(self, handle: str) -> set[str]:
        ...

    @abstractmethod
    async def bulk_upsert_follow_edges(self, edges: Iterable[FollowEdge]) -> int:
        """Insert edges, ignoring ones already stored. Returns rows attempted."""
        ...

    @abstractmethod
    async def upsert_alpha_signal(self, signal: AlphaSignal) -> None:
        ...

    @abstractmethod
    async def get_alpha_signal(self, token_mint: str) -> AlphaSignal | None:
        ...

    @abstractmethod
    async def get_unposted_signals(self, limit: int = 50) -> list[AlphaSignal]:
        ...

    @abstractmethod
    async def mark_signal_tweeted(self, token_mint: str) -> bool:
        """Flip ``tweeted`` to true. Returns False if it was already set or absent."""
        ...


class SqlGateway(PersistenceGateway):
    """Shared SQLAlchemy implementation; subclasses supply the dialect insert."""

    backend_name = "sql"

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session = create_session_factory(engine)

    @staticmethod
    @abstractmethod
    def _insert(table):
        ...

    async def init_schema(self) -> None:
        await init_db(self._engine)

    async def close(self) -> None:
        await self._engine.dispose()

    # --- follow edges ---

    def edge_insert_stmt(self, rows: list[dict]):
        return (
            self._insert(FollowEdgeRow)
            .values(rows)
            .on_conflict_do_nothing(index_elements=["username", "following_id"])
        )

    async def get_stored_following_ids(self, handle: str) -> set[str]:
        async with self._session() as session:
            result = await session.execute(
                select(FollowEdgeRow.following_id).where(FollowEdgeRow.username == handle)
            )
            return set(result.scalars().all())

    async def bulk_upsert_follow_edges(self, edges: Iterable[FollowEdge]) -> int:
        now = datetime.utcnow()
        rows = [
            {
                "username": e.observer_handle,
                "following_id": e.followed_id,
                "following_username": e.followed_handle,
                "bio": e.bio,
                "first_seen": e.first_seen or now,
            }
            for e in edges
        ]
        if not rows:
            return 0

        async with self._session() as session:
            for i in range(0, len(rows), _EDGE_CHUNK):
                await session.execute(self.edge_insert_stmt(rows[i:i + _EDGE_CHUNK]))
            await session.commit()
        return len(rows)

    # --- alpha signals ---

    def signal_upsert_stmt(self, signal: AlphaSignal):
        values = signal.model_dump(exclude={"tweeted", "tweeted_at", "added_at"})
        values["added_at"] = signal.added_at or datetime.utcnow()
        values["tweeted"] = False
        stmt = self._insert(AlphaAnalysisRow).values(**values)
        overwrite = {
            col: stmt.excluded[col] for col in values if col not in _INSERT_ONLY_FIELDS
        }
        return stmt.on_conflict_do_update(index_elements=["token_mint"], set_=overwrite)

    async def upsert_alpha_signal(self, signal: AlphaSignal) -> None:
        async with self._session() as session:
            await session.execute(self.signal_upsert_stmt(signal))
            await session.commit()
        logger.info("Alpha analysis stored for token: %s", signal.token_mint)

    async def get_alpha_signal(self, token_mint: str) -> AlphaSignal | None:
        async with self._session() as session:
            row = await session.get(AlphaAnalysisRow, token_mint)
            return AlphaSignal.model_validate(row) if row else None

    async def get_unposted_signals(self, limit: int = 50) -> list[AlphaSignal]:
        async with self._session() as session:
            result = await session.execute(
                select(AlphaAnalysisRow)
                .where(AlphaAnalysisRow.tweeted == False)  # noqa: E712
                .order_by(AlphaAnalysisRow.added_at.desc())
                .limit(limit)
            )
            return [AlphaSignal.model_validate(r) for r in result.scalars().all()]

    async def mark_signal_tweeted(self, token_mint: str) -> bool:
        async with self._session() as session:
            result = await session.execute(
                update(AlphaAnalysisRow)
                .where(
                    AlphaAnalysisRow.token_mint == token_mint,
                    AlphaAnalysisRow.tweeted == False,  # noqa: E712
                )
                .values(tweeted=True, tweeted_at=datetime.utcnow())
            )
            await session.commit()
        flipped = result.rowcount > 0
        if flipped:
            logger.info("Marked alpha signal for token %s as tweeted", token_mint)
        return flipped


class PostgresGateway(SqlGateway):
    backend_name = "postgresql"

    @staticmethod
    def _insert(table):
        return postgresql.insert(table)


class SqliteGateway(SqlGateway):
    backend_name = "sqlite"

    @staticmethod
    def _insert(table):
        return sqlite.insert(table)


def create_gateway(database_url: str, echo: bool = False) -> PersistenceGateway:
    """Pick the backend for ``database_url``. The only place backends are named."""
    if database_url.startswith("postgresql://") or database_url.startswith("postgres://"):
        database_url = "postgresql+asyncpg://" + database_url.split("://", 1)[1]

    if database_url.startswith("postgresql+"):
        gateway: PersistenceGateway = PostgresGateway(create_engine(database_url, echo))
    elif database_url.startswith("sqlite"):
        if not database_url.startswith("sqlite+aiosqlite"):
            database_url = "sqlite+aiosqlite" + database_url[len("sqlite"):]
        gateway = SqliteGateway(create_engine(database_url, echo))
    else:
        raise ConfigError(f"Unsupported database URL: {database_url.split('://', 1)[0]}")

    logger.info("Persistence backend: %s", gateway.backend_name)
    return gateway
