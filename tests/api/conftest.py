"""Shared fixtures for API tests."""

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

Runner = Callable[..., dict[str, Any]]


@pytest.fixture
def run(client: TestClient) -> Runner:
    """Post a single operation and return the response body."""

    def run_operation(
        name: str,
        arguments: dict[str, Any] | None = None,
        fields: list[Any] | None = None,
        alias: str | None = None,
    ) -> dict[str, Any]:
        operation: dict[str, Any] = {
            "name": name,
            "arguments": arguments or {},
            "fields": fields or [],
        }
        if alias is not None:
            operation["alias"] = alias
        response = client.post("/query", json={"operations": [operation]})
        assert response.status_code == 200
        return response.json()

    return run_operation
