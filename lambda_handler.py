"""
AWS Lambda handler for the Repartition Engine API.

This is the production entry point for AWS Lambda deployments.
For local development, use main.py (Flask app) instead.
"""

import json
import logging
import os
from pathlib import Path

from repartition import DistributionEngine, load_rule_set
from repartition.exceptions import RepartitionError

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Environment (dev, staging, prod)
ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")

# Rule set used when a request does not carry its own
RULES_PATH = os.environ.get("REPARTITION_RULES_PATH", str(Path(__file__).parent / "rules" / "reference.json"))

# Initialize engine and rules (reused across warm invocations)
engine = DistributionEngine()
default_rule_set = load_rule_set(RULES_PATH)

# CORS headers for API Gateway
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
}


def _response(status_code: int, body: dict) -> dict:
    return {"statusCode": status_code, "headers": CORS_HEADERS, "body": json.dumps(body)}


def lambda_handler(event, context):
    """
    Main Lambda entry point.

    Handles API Gateway events for:
    - GET /health
    - GET /api
    - POST /repartition
    - OPTIONS (CORS preflight)
    """
    # Handle CORS preflight
    http_method = event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")
    if http_method == "OPTIONS":
        return {"statusCode": 200, "headers": CORS_HEADERS, "body": ""}

    # Get path (supports both REST API and HTTP API formats)
    path = event.get("path") or event.get("rawPath", "")

    if path == "/health" and http_method == "GET":
        return handle_health()
    elif path == "/repartition" and http_method == "POST":
        return handle_repartition(event)
    elif path == "/api" and http_method == "GET":
        return handle_api_info()
    else:
        return _response(404, {"error": "Not found", "path": path})


def handle_health():
    """Health check endpoint."""
    return _response(200, {"status": "healthy", "environment": ENVIRONMENT})


def handle_api_info():
    """API information endpoint."""
    return _response(
        200,
        {
            "status": "ok",
            "message": "Repartition Engine API",
            "version": "1.0",
            "environment": ENVIRONMENT,
            "runtime": "AWS Lambda",
            "rule_set": default_rule_set.label,
            "endpoints": {"repartition": "/repartition [POST]", "health": "/health [GET]"},
        },
    )


def handle_repartition(event):
    """Distribute a payment through the repartition engine."""
    try:
        body = event.get("body", "")
        if isinstance(body, str):
            if not body:
                return _response(400, {"error": "No input data provided", "status": "failed"})
            # Handle base64 encoded body (API Gateway)
            if event.get("isBase64Encoded"):
                import base64

                body = base64.b64decode(body).decode("utf-8")
            input_data = json.loads(body)
        else:
            input_data = body

        payment_id = input_data.get("payment", {}).get("payment_id", "Unknown")
        logger.info(f"Distributing payment: {payment_id}")

        result = engine.process_from_dict(input_data, default_rule_set)

        logger.info(f"Payment distributed successfully: {payment_id}")

        return _response(200, result)

    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error: {str(e)}")
        return _response(400, {"error": f"Invalid JSON: {str(e)}", "status": "failed"})

    except RepartitionError as e:
        logger.error(f"Validation error: {e}")
        return _response(400, {**e.to_dict(), "status": "validation_failed"})

    except (ValueError, KeyError, TypeError) as e:
        # Malformed payloads (missing fields, unknown roles, etc.)
        logger.error(f"Validation error: {str(e)}")
        return _response(400, {"error": f"Validation error: {str(e)}", "status": "validation_failed"})

    except Exception as e:
        # Unexpected errors - log details but return generic message to avoid information disclosure
        logger.error(f"Unexpected processing error: {str(e)}", exc_info=True)
        return _response(500, {"error": "An unexpected error occurred during processing", "status": "failed"})
