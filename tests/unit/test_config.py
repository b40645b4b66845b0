"""Settings validation."""

import pytest
from pydantic import ValidationError

from tasksearch.core.config import Settings


def test_secret_key_is_required() -> None:
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(secret_key="")


@pytest.mark.parametrize(
    "overrides",
    [
        {"search_backend": "solr"},
        {"source_backend": "grpc"},
        {"elasticsearch_refresh": "sometimes"},
        {"search_stream_partitions": 0},
        {"search_bulk_chunk_size": 0},
    ],
)
def test_invalid_backend_and_sizing_values_are_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        Settings(secret_key="k", **overrides)


def test_defaults_from_environment() -> None:
    """conftest points both backends at the in-process implementations."""
    settings = Settings()
    assert settings.search_backend == "memory"
    assert settings.source_backend == "memory"
    assert settings.redis_enabled is False
    assert settings.search_history_max_size == 50
    assert settings.search_dead_letter_enabled is False
