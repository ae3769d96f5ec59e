"""Query endpoint.

A request carries a batch of named operations, each with its own
arguments and requested output shape. Operations run independently: a
failed operation yields ``null`` data and an error entry while the others
still return their results.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_api.api.errors import error_for
from catalog_api.api.operations import execute_operation
from catalog_api.api.schemas import QueryRequest, QueryResponse
from catalog_api.infrastructure.database import get_session_factory

logger = structlog.get_logger()

router = APIRouter(tags=["Query"])


@router.post(
    "/query",
    response_model=QueryResponse,
    summary="Execute catalog operations",
    description="Run brand, category and product operations with caller-chosen output fields.",
)
async def execute_query(
    body: QueryRequest,
    session_factory: Annotated[
        async_sessionmaker[AsyncSession], Depends(get_session_factory)
    ],
) -> QueryResponse:
    """Execute every operation of the request.

    Args:
        body: Operations to run.
        session_factory: Factory for per-operation sessions.

    Returns:
        Results keyed by alias plus errors for failed operations.
    """
    response = QueryResponse()
    for request in body.operations:
        key = request.key
        try:
            response.data[key] = await execute_operation(session_factory, request)
        except Exception as e:
            response.data[key] = None
            response.errors.append(error_for(key, e))

    logger.info(
        "Query executed",
        operations=[request.name for request in body.operations],
        failed=len(response.errors),
    )
    return response
