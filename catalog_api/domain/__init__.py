"""Domain layer - catalog exceptions and shared value rules.

Example usage:
    from catalog_api.domain import EntityNotFoundError, generate_slug

    generate_slug("Home & Garden!!")  # "home-garden"
"""

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
from catalog_api.domain.slug import generate_slug

__all__ = [
    "CatalogValidationError",
    "DomainError",
    "DuplicateEntityError",
    "EntityNotFoundError",
    "InsufficientStockError",
    "OperationNotAllowedError",
    "PageRequest",
    "StorageError",
    "generate_slug",
]
