from flask import Flask, request, jsonify
from flask_cors import CORS
from pathlib import Path
from repartition import DistributionEngine, load_rule_set
from repartition.exceptions import RepartitionError
import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes
CORS(app)

# Rule set used when a request does not carry its own
RULES_PATH = os.environ.get(
    "REPARTITION_RULES_PATH", str(Path(__file__).parent / "rules" / "reference.json")
)
default_rule_set = load_rule_set(RULES_PATH)

# Initialize the distribution engine
engine = DistributionEngine()


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Repartition Engine API",
        "version": "1.0",
        "rule_set": default_rule_set.label,
        "endpoints": {
            "repartition": "/repartition [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


@app.route("/repartition", methods=["POST"])
def repartition():
    """
    Distribute a payment across funds and case participants
    """
    try:
        input_data = request.get_json(force=True, silent=True)

        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        payment_id = input_data.get("payment", {}).get("payment_id", "Unknown")
        logger.info(f"Distributing payment: {payment_id}")

        result = engine.process_from_dict(input_data, default_rule_set)

        logger.info(f"Payment distributed successfully: {payment_id}")

        return jsonify(result), 200

    except RepartitionError as e:
        logger.error(f"Validation error: {e}")
        return jsonify({**e.to_dict(), "status": "validation_failed"}), 400

    except (ValueError, KeyError, TypeError) as e:
        # Malformed payloads (missing fields, unknown roles, etc.)
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": f"Validation error: {str(e)}",
            "status": "validation_failed"
        }), 400

    except Exception as e:
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during processing",
            "status": "failed"
        }), 500


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
