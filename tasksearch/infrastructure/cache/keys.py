"""Redis key builders for search history. Single place for key format.

Key components must not contain CACHE_KEY_SEP to avoid ambiguous or
colliding keys.
"""

from tasksearch.core.constants import (
    CACHE_KEY_SEP,
    CACHE_PREFIX_SEARCH_HISTORY,
    SEARCH_POPULAR_TERMS_KEY,
)


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value contains the key separator.

    Args:
        value: String component used in a key.
        name: Name of the component (for error message).

    Raises:
        ValueError: If value contains CACHE_KEY_SEP.
    """
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def search_history_key(user_id: int | str) -> str:
    """Sorted set of a user's recent search terms (score = epoch ms)."""
    user = str(user_id)
    _validate_key_component(user, "user_id")
    return f"{CACHE_PREFIX_SEARCH_HISTORY}{CACHE_KEY_SEP}user{CACHE_KEY_SEP}{user}"


def popular_terms_key() -> str:
    """Global sorted set of search term counts."""
    return SEARCH_POPULAR_TERMS_KEY
