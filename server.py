"""
Development server for the Narathia backend.
Reads configuration from the environment (or .env) and serves the API with uvicorn.
Usage: python server.py   (PORT defaults to 5000)
"""

import os

import uvicorn

from backend.api.main import create_app
from backend.config import ConfigError

PORT = int(os.environ.get("PORT", "5000"))

if __name__ == "__main__":
    try:
        app = create_app()
    except ConfigError as e:
        raise SystemExit(f"Error: {e}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
