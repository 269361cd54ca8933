"""Schema versioning for the persisted store document.

A document carries an integer ``version``. Loading an older document runs
each registered step in order until it reaches ``CURRENT_VERSION``.
"""

import logging
from collections.abc import Callable
from typing import Any

from ..llm.models import DEFAULT_MAX_TOKENS
from .errors import StoreVersionError

logger = logging.getLogger(__name__)

CURRENT_VERSION = 1

Migration = Callable[[dict[str, Any]], dict[str, Any]]


def _add_max_tokens(state: dict[str, Any]) -> dict[str, Any]:
    """Version 0 configs predate ``max_tokens``."""
    config = dict(state.get("config") or {})
    config.setdefault("max_tokens", DEFAULT_MAX_TOKENS)
    return {**state, "config": config}


# Maps a version to the step upgrading it to version + 1
MIGRATIONS: dict[int, Migration] = {
    0: _add_max_tokens,
}


def migrate(state: dict[str, Any], version: int) -> dict[str, Any]:
    """Bring a persisted state up to the current schema.

    Args:
        state: Persisted state as loaded from the backend
        version: Schema version the state was written with

    Returns:
        State in the current schema

    Raises:
        StoreVersionError: If the state is newer than this code understands,
            or no migration step exists for an intermediate version
    """
    if version > CURRENT_VERSION:
        raise StoreVersionError(
            f"Stored schema version {version} is newer than supported version {CURRENT_VERSION}"
        )

    while version < CURRENT_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise StoreVersionError(f"No migration from schema version {version}")
        logger.info("Migrating store document from version %d to %d", version, version + 1)
        state = step(state)
        version += 1

    return state
