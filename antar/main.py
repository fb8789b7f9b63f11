"""Main entry point for the habit tracker API"""
import logging
import uvicorn

from antar.api.server import create_api_application
from antar.config import API_HOST, API_PORT

logger = logging.getLogger(__name__)

app = create_api_application()


def main() -> None:
    """Run the API server"""
    logger.info(f"Starting API on {API_HOST}:{API_PORT}")
    uvicorn.run(app, host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
