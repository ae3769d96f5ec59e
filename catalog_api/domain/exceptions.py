"""Domain exceptions.

All domain-level errors that represent business rule violations.
These exceptions are raised by services and the hierarchy engine at the
point of violation and propagate unmodified to the API boundary, which
reports ``code`` and ``classification`` without altering them.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.

    Attributes:
        code: Machine-readable error code.
        classification: Coarse error category reported to callers.
    """

    code: str = "BUSINESS_RULE_VIOLATION"
    classification: str = "BUSINESS_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Lookup Errors
# ============================================================================


class EntityNotFoundError(DomainError):
    """Raised when a referenced id does not resolve to a row."""

    code = "ENTITY_NOT_FOUND"
    classification = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        """Initialize entity not found error.

        Args:
            entity_type: Type of entity (e.g., "Brand", "Category").
            entity_id: Identity that failed to resolve.
        """
        super().__init__(
            f"{entity_type} not found with ID: {entity_id}",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


# ============================================================================
# Business Rule Errors
# ============================================================================


class DuplicateEntityError(DomainError):
    """Raised when a uniqueness invariant (name, slug, SKU) is violated."""

    code = "DUPLICATE_ENTITY"

    def __init__(self, entity_type: str, field: str, value: Any) -> None:
        """Initialize duplicate entity error.

        Args:
            entity_type: Type of entity.
            field: Unique field that collided.
            value: The colliding value.
        """
        super().__init__(
            f"{entity_type} with {field} '{value}' already exists",
            details={"entity_type": entity_type, "field": field, "value": value},
        )


class InsufficientStockError(DomainError):
    """Raised when a stock reduction exceeds the available quantity."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, available: int, requested: int) -> None:
        """Initialize insufficient stock error.

        Args:
            product_id: ID of the product.
            available: Quantity currently in stock.
            requested: Quantity the caller tried to remove.
        """
        super().__init__(
            f"Insufficient stock. Available: {available}, Requested: {requested}",
            details={
                "product_id": product_id,
                "available": available,
                "requested": requested,
            },
        )


class OperationNotAllowedError(DomainError):
    """Raised on structural invariant violations.

    Deleting a category with active children, moving a category under its
    own descendant, corrupt (cyclic) hierarchy data, or mutating stock on a
    product that does not track inventory.
    """

    code = "OPERATION_NOT_ALLOWED"


# ============================================================================
# Validation & Storage Errors
# ============================================================================


class CatalogValidationError(DomainError):
    """Raised when an input constraint owned by the core is violated."""

    code = "CONSTRAINT_VIOLATION"
    classification = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Human-readable error message.
            field: Name of the offending input field, if any.
        """
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class StorageError(DomainError):
    """Raised when the persistence engine fails unrecoverably.

    The message is generic; the original exception is chained.
    """

    code = "STORAGE_FAILURE"
    classification = "INTERNAL_ERROR"

    def __init__(self, operation: str) -> None:
        """Initialize storage error.

        Args:
            operation: Short name of the storage operation that failed.
        """
        super().__init__(
            "A storage failure occurred",
            details={"operation": operation},
        )
