import os
import logging

import uvicorn
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

PORT = int(os.getenv('PORT', 5050))
DEBUG = os.getenv('DEBUG', 'False').lower() == 'true'
LOG_LEVEL = os.getenv('LOG_LEVEL', 'info').lower()

# Import FastAPI app
from app import app

# Expose application for Gunicorn
application = app

logger = logging.getLogger("maxpulse")

if __name__ == "__main__":
    logger.info(f"🚀 Starting server on port {PORT}, debug={DEBUG}")

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=PORT,
        log_level=LOG_LEVEL,
        reload=DEBUG,
        timeout_keep_alive=120,
    )
