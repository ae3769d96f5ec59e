"""Mapping of operation failures to error entries.

Domain errors keep their code, classification and message. Pydantic
validation failures become constraint violations with one entry per
offending field. Anything else is reported with a fixed message so that
internals never leak to callers.
"""

import structlog
from pydantic import ValidationError

from catalog_api.api.schemas import OperationError
from catalog_api.domain.exceptions import DomainError, StorageError

logger = structlog.get_logger()

INTERNAL_ERROR_MESSAGE = "An internal error occurred"


class UnknownOperationError(DomainError):
    """Raised when a request names an operation that does not exist."""

    code = "UNKNOWN_OPERATION"
    classification = "VALIDATION_ERROR"

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown operation: {name}", details={"name": name})


def error_for(alias: str, exc: Exception) -> OperationError:
    """Build the error entry for a failed operation.

    Args:
        alias: Result key of the operation.
        exc: Exception raised while executing it.

    Returns:
        Error entry for the response.
    """
    if isinstance(exc, StorageError):
        return OperationError(
            path=[alias],
            code=exc.code,
            classification=exc.classification,
            message=exc.message,
        )

    if isinstance(exc, DomainError):
        logger.info(
            "Operation rejected",
            operation=alias,
            code=exc.code,
            message=exc.message,
        )
        return OperationError(
            path=[alias],
            code=exc.code,
            classification=exc.classification,
            message=exc.message,
            details=exc.details,
        )

    if isinstance(exc, ValidationError):
        violations = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return OperationError(
            path=[alias],
            code="CONSTRAINT_VIOLATION",
            classification="VALIDATION_ERROR",
            message="Validation failed",
            details={"violations": violations},
        )

    logger.exception(
        "Unhandled exception in operation",
        operation=alias,
        error=str(exc),
        exc_info=exc,
    )
    return OperationError(
        path=[alias],
        code="INTERNAL_ERROR",
        classification="INTERNAL_ERROR",
        message=INTERNAL_ERROR_MESSAGE,
    )
