import sys
import logging
from sqlite_eda.app import create_app

# Load and validate configuration
try:
    app = create_app()
except Exception as e:
    # Basic logger for startup errors
    logging.basicConfig(level=logging.ERROR)
    logger = logging.getLogger(__name__)
    logger.error(f"Failed to start application: {e}")
    sys.exit(1)
