"""
Integration tests for OpenAPI documentation.

Verifies OpenAPI schema is correctly generated for all endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from src.api.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client for the application."""
    return TestClient(app)


@pytest.fixture
def schema(client: TestClient) -> dict:
    response = client.get("/openapi.json")
    assert response.status_code == 200
    return response.json()


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    def test_openapi_title_and_version(self, schema: dict) -> None:
        assert schema["info"]["title"] == "blindmatch"
        assert schema["info"]["version"] == "0.1.0"

    @pytest.mark.parametrize(
        ("path", "method"),
        [
            ("/v1/register", "post"),
            ("/v1/verify-otp", "post"),
            ("/v1/resend-otp", "post"),
            ("/v1/create-order", "post"),
            ("/v1/verify-payment", "post"),
            ("/v1/users/{user_id}", "get"),
            ("/v1/slots/{gender}", "get"),
            ("/health", "get"),
        ],
    )
    def test_endpoint_documented(self, schema: dict, path: str, method: str) -> None:
        assert method in schema["paths"][path]

    def test_register_summary(self, schema: dict) -> None:
        assert schema["paths"]["/v1/register"]["post"]["summary"] == "Register a new user"

    def test_register_request_uses_camel_case(self, schema: dict) -> None:
        properties = schema["components"]["schemas"]["RegisterRequest"]["properties"]
        assert {"interestedIn", "relationshipGoal", "email", "age"} <= set(properties)

    def test_register_documents_error_responses(self, schema: dict) -> None:
        responses = schema["paths"]["/v1/register"]["post"]["responses"]
        assert {"201", "200", "400", "409", "429"} <= set(responses)
