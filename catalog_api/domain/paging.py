"""Paging value object shared by listings and the category tree."""

from dataclasses import dataclass

from catalog_api.domain.exceptions import CatalogValidationError


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page of a listing.

    Attributes:
        page_index: Page number, starting at 0.
        page_size: Items per page, at least 1.

    Raises:
        CatalogValidationError: If either value is out of range.
    """

    page_index: int = 0
    page_size: int = 20

    def __post_init__(self) -> None:
        if self.page_index < 0:
            raise CatalogValidationError(
                "Page index cannot be negative", field="pageIndex"
            )
        if self.page_size <= 0:
            raise CatalogValidationError(
                "Page size must be positive", field="pageSize"
            )

    @property
    def offset(self) -> int:
        """Calculate offset from page index."""
        return self.page_index * self.page_size

    @property
    def limit(self) -> int:
        """Get limit (alias for page_size)."""
        return self.page_size
