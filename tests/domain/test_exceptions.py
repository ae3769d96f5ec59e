"""Tests for domain exceptions and paging."""

import pytest

from catalog_api.domain.exceptions import (
    CatalogValidationError,
    DomainError,
    DuplicateEntityError,
    EntityNotFoundError,
    InsufficientStockError,
    OperationNotAllowedError,
    StorageError,
)
from catalog_api.domain.paging import PageRequest


class TestDomainErrors:
    """Tests for error codes, classifications and messages."""

    def test_entity_not_found(self) -> None:
        """Not found errors carry the entity type and id."""
        error = EntityNotFoundError("Brand", 7)
        assert error.code == "ENTITY_NOT_FOUND"
        assert error.classification == "NOT_FOUND"
        assert error.message == "Brand not found with ID: 7"
        assert error.details == {"entity_type": "Brand", "entity_id": 7}

    def test_duplicate_entity(self) -> None:
        """Duplicate errors are business errors."""
        error = DuplicateEntityError("Brand", "name", "nike")
        assert error.code == "DUPLICATE_ENTITY"
        assert error.classification == "BUSINESS_ERROR"
        assert "nike" in error.message

    def test_insufficient_stock_reports_quantities(self) -> None:
        """The message includes available and requested quantities."""
        error = InsufficientStockError(1, available=3, requested=5)
        assert error.code == "INSUFFICIENT_STOCK"
        assert "Available: 3" in error.message
        assert "Requested: 5" in error.message

    def test_validation_error_field(self) -> None:
        """Validation errors name the offending field."""
        error = CatalogValidationError("Quantity must be positive", field="quantity")
        assert error.code == "CONSTRAINT_VIOLATION"
        assert error.classification == "VALIDATION_ERROR"
        assert error.details == {"field": "quantity"}

    def test_storage_error_is_internal(self) -> None:
        """Storage failures use a generic message."""
        error = StorageError("fetch_product")
        assert error.classification == "INTERNAL_ERROR"
        assert error.message == "A storage failure occurred"

    @pytest.mark.parametrize(
        "error",
        [
            EntityNotFoundError("Product", 1),
            DuplicateEntityError("Product", "slug", "x"),
            InsufficientStockError(1, 0, 1),
            OperationNotAllowedError("nope"),
            CatalogValidationError("bad"),
            StorageError("save"),
        ],
    )
    def test_all_are_domain_errors(self, error: DomainError) -> None:
        """Every error can be caught as DomainError."""
        assert isinstance(error, DomainError)


class TestPageRequest:
    """Tests for PageRequest."""

    def test_offset_and_limit(self) -> None:
        """Offset is page index times page size."""
        page = PageRequest(page_index=2, page_size=20)
        assert page.offset == 40
        assert page.limit == 20

    def test_defaults(self) -> None:
        """Default page is the first page of twenty."""
        page = PageRequest()
        assert page.offset == 0
        assert page.limit == 20

    def test_negative_index_rejected(self) -> None:
        """Negative page indexes are rejected."""
        with pytest.raises(CatalogValidationError) as exc_info:
            PageRequest(page_index=-1)
        assert exc_info.value.field == "pageIndex"

    def test_zero_size_rejected(self) -> None:
        """Page size must be positive."""
        with pytest.raises(CatalogValidationError) as exc_info:
            PageRequest(page_size=0)
        assert exc_info.value.field == "pageSize"
