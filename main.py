from flask import Flask, request, jsonify
from flask_cors import CORS
from royalty_engine import RoyaltyProcessor
import os
import logging

# Configure logging
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

ENVIRONMENT = os.environ.get("ENVIRONMENT", "dev")

app = Flask(__name__)

# Enable CORS for all routes (statement preview UI calls the API cross-origin)
CORS(app)

# The processor is stateless and shared across requests
processor = RoyaltyProcessor()


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Royalty Calculation Engine API",
        "version": "1.0",
        "environment": ENVIRONMENT,
        "endpoints": {
            "calculate": "/calculate [POST]",
            "statements_preview": "/statements/preview [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


def _run(handler):
    """Parse the request body, run handler on it and map errors to responses."""
    try:
        input_data = request.get_json(force=True, silent=True)

        if not input_data or not isinstance(input_data, dict):
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        title_id = input_data.get("title_id", "Unknown")
        logger.info(f"Calculating royalties for title: {title_id}")

        result = handler(input_data)

        logger.info(f"Royalties calculated for title: {title_id}")

        return jsonify(result), 200

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "validation_failed"
        }), 400

    except Exception as e:
        # Unexpected errors
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": str(e),
            "status": "failed"
        }), 500


@app.route("/calculate", methods=["POST"])
def calculate():
    """
    Dry-run royalty calculation: nothing is persisted
    """
    return _run(processor.process_from_dict)


@app.route("/statements/preview", methods=["POST"])
def statements_preview():
    """
    Per-author statement calculations, as they would be stored
    """
    return _run(lambda data: {"statements": processor.preview_statements_from_dict(data)})


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port)
