"""Main entry point for the treasury API."""

import logging
import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from api.main import create_app
from config import TreasuryConfig
from core.errors import ConfigurationError
from service import TreasuryService


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("treasury-api.log"),
        ],
    )


def main() -> None:
    """Main entry point."""
    # Load environment variables; .env is optional on hosted platforms
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger = logging.getLogger(__name__)
    logger.info("Starting treasury API...")

    try:
        config = TreasuryConfig.load()
        config.validate()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    if not config.private_key:
        logger.warning("TREASURY_PRIVATE_KEY not set; running in read-only mode")

    app = create_app(TreasuryService(config))
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
