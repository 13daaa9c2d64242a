"""
Quit Service REST API Application Entry Point.
Sets up the Flask app, configuration, CORS, database,
error handlers and registers the challenge blueprint."""

import os
import logging
from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS
from config import get_config
from db.database import init_db
from routes.challenge_routes import challenge_bp
from utils.error_handling import register_error_handlers
from utils.security_utils import add_security_headers, parse_cors_origins


# Load environment variables from .env file
load_dotenv()

# Load configuration
app = Flask(__name__)
config_class = get_config()
app.config.from_object(config_class)

# Initialize CORS for the desktop client and local dev servers
CORS(app, resources={
    r"/*": {
        "origins": parse_cors_origins(config_class.CORS_ORIGINS),
        "methods": ["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        "allow_headers": ["Content-Type", "Authorization"],
    }
}, supports_credentials=True)

# Initialize database
init_db(app)

logging.basicConfig(
    level=getattr(logging, config_class.LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=config_class.LOG_FILE,
)
logging.info(
    "Quit service starting (env: %s)",
    os.environ.get("FLASK_ENV", "development")
)

# Register blueprints and JSON error handlers
app.register_blueprint(challenge_bp)
register_error_handlers(app)


@app.route("/health")
def health():
    return jsonify({"status": "ok", "env": os.environ.get("FLASK_ENV", "development")})


# Add security headers to all responses
@app.after_request
def after_request(response):
    return add_security_headers(response)


# This block allows the app to be run directly for development purposes
if __name__ == "__main__":
    app.run(host=config_class.HOST, port=config_class.PORT)
