from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class FollowEdgeRow(Base):
    __tablename__ = "twitter_following"

    username: Mapped[str] = mapped_column(String(64), primary_key=True)
    following_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    following_username: Mapped[str] = mapped_column(String(64), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    first_seen: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_following_username", "username"),
        Index("ix_following_id", "following_id"),
    )


class AlphaAnalysisRow(Base):
    __tablename__ = "alpha_analysis"

    token_mint: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    followers_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    following_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tweets_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    account_created: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    is_mintable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_pool: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    wsol_pool_age: Mapped[float | None] = mapped_column(Float, nullable=True)
    usdc_pool_age: Mapped[float | None] = mapped_column(Float, nullable=True)
    wsol_pool_tvl: Mapped[float | None] = mapped_column(Float, nullable=True)
    usdc_pool_tvl: Mapped[float | None] = mapped_column(Float, nullable=True)
    wsol_pool_volume_24h: Mapped[float | None] = mapped_column(Float, nullable=True)
    usdc_pool_volume_24h: Mapped[float | None] = mapped_column(Float, nullable=True)
    wsol_pool_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    usdc_pool_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    tweeted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tweeted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_alpha_username", "username"),
        Index("ix_alpha_added_at", "added_at"),
        Index("ix_alpha_tweeted", "tweeted"),
    )
