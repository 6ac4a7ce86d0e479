"""Tests for AWS Lambda handler."""

import base64
import json

from lambda_handler import lambda_handler

PAYLOAD = {
    "payment": {"payment_id": 10, "case_id": 1, "amount": "1000000", "reference": "ENC-2025-0010"},
    "roles": {
        "assignments": [
            {"agent_id": 1, "role": "CHEF"},
            {"agent_id": 2, "role": "CHEF"},
            {"agent_id": 3, "role": "SAISISSANT"},
        ],
    },
}


class TestLambdaHandler:
    """Test the Lambda handler routes and responses."""

    def test_health_check(self):
        """GET /health returns healthy status."""
        event = {"httpMethod": "GET", "path": "/health"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "healthy"

    def test_api_info(self):
        """GET /api returns API information."""
        event = {"httpMethod": "GET", "path": "/api"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "ok"
        assert body["rule_set"] == "reference v1"
        assert "endpoints" in body

    def test_cors_preflight(self):
        """OPTIONS requests return CORS headers."""
        event = {"httpMethod": "OPTIONS", "path": "/repartition"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        assert "Access-Control-Allow-Origin" in response["headers"]
        assert "Access-Control-Allow-Methods" in response["headers"]

    def test_not_found(self):
        """Unknown paths return 404."""
        event = {"httpMethod": "GET", "path": "/unknown"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 404

    def test_repartition_success(self):
        """POST /repartition distributes a valid payment."""
        event = {"httpMethod": "POST", "path": "/repartition", "body": json.dumps(PAYLOAD)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["equilibrium"]["equilibre"] is True
        assert body["equilibrium"]["total_reparti"] == "1000000"
        assert body["tiers"]["part_chefs"]["value"] == "129600"

    def test_repartition_base64_body(self):
        """API Gateway may deliver the body base64 encoded."""
        encoded = base64.b64encode(json.dumps(PAYLOAD).encode("utf-8")).decode("ascii")
        event = {"httpMethod": "POST", "path": "/repartition", "body": encoded, "isBase64Encoded": True}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200

    def test_repartition_empty_body(self):
        """POST /repartition with empty body returns 400."""
        event = {"httpMethod": "POST", "path": "/repartition", "body": ""}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert "error" in body

    def test_repartition_invalid_json(self):
        """POST /repartition with invalid JSON returns 400."""
        event = {"httpMethod": "POST", "path": "/repartition", "body": "not valid json"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert "error" in body

    def test_repartition_validation_error(self):
        """Non-positive amounts are rejected with the failing context."""
        payload = {"payment": {"payment_id": 10, "case_id": 1, "amount": "-5"}}

        event = {"httpMethod": "POST", "path": "/repartition", "body": json.dumps(payload)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["status"] == "validation_failed"
        assert body["type"] == "InvalidAmount"
        assert body["payment_id"] == 10

    def test_repartition_unknown_role(self):
        """Unknown roles are a malformed payload."""
        payload = {
            "payment": {"payment_id": 10, "case_id": 1, "amount": "1000"},
            "roles": {"assignments": [{"agent_id": 1, "role": "STAGIAIRE"}]},
        }

        event = {"httpMethod": "POST", "path": "/repartition", "body": json.dumps(payload)}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["status"] == "validation_failed"

    def test_http_api_format(self):
        """Supports HTTP API v2 event format."""
        event = {"requestContext": {"http": {"method": "GET"}}, "rawPath": "/health"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
