"""Pull a pump.fun-style token mint out of free-text bio content."""

import re

# Base58 body (no 0, O, I, l) of 32-44 chars, anchored on the "pump" suffix
# that pump.fun vanity mints carry. Narrow on purpose: missed signals over
# false positives.
_PUMP_MINT_RE = re.compile(r"\b[1-9A-HJ-NP-Za-km-z]{32,44}pump\b")


def extract_token_mint(bio: str | None) -> str | None:
    """Return the first suffix-anchored mint in ``bio``, or None."""
    if not bio:
        return None
    match = _PUMP_MINT_RE.search(bio)
    return match.group(0) if match else None
