"""Tests for database helpers."""

import pytest
from sqlalchemy.exc import OperationalError

from catalog_api.domain.exceptions import StorageError
from catalog_api.infrastructure import database
from catalog_api.infrastructure.database import get_session_factory, storage_errors


def test_session_factory_dependency() -> None:
    """The query endpoint's only session dependency is the factory."""
    assert get_session_factory() is database.async_session_factory
    assert not hasattr(database, "get_session")


def test_storage_errors_wraps_engine_failures() -> None:
    with pytest.raises(StorageError) as exc_info:
        with storage_errors("get_products"):
            raise OperationalError("SELECT 1", {}, Exception("connection lost"))
    assert exc_info.value.code == "STORAGE_FAILURE"
    assert isinstance(exc_info.value.__cause__, OperationalError)


def test_storage_errors_passes_other_exceptions() -> None:
    with pytest.raises(ValueError):
        with storage_errors("get_products"):
            raise ValueError("not a storage failure")
