"""
Integration tests for the health and readiness probes and the published API schema.
"""

from api.schemas.common import ErrorResponse
from conftest import API


class TestProbes:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "0.1.0"}

    def test_ready_checks_database(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready"}

    def test_request_id_header(self, client):
        response = client.get(f"{API}/jobs", headers={"x-request-id": "abc-123"})

        assert response.headers["x-request-id"] == "abc-123"


class TestApiSchema:

    def test_error_envelope_is_documented_on_v1_routes(self, client):
        schema = client.get("/openapi.json").json()

        assert "ErrorResponse" in schema["components"]["schemas"]
        refused = schema["paths"][f"{API}/ats/jobs"]["post"]["responses"]["403"]
        assert refused["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")

    def test_error_bodies_match_the_documented_envelope(self, client):
        response = client.get(f"{API}/auth/me")

        envelope = ErrorResponse.model_validate(response.json())
        assert envelope.error.code == "UNAUTHORIZED"
        assert envelope.error.path == f"{API}/auth/me"
