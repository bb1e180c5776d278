# route_engine/core/logger.py
from loguru import logger

from route_engine.core.config import settings
from route_engine.core.logging_config import setup_logging

# Configure once on first import; main.create_app() may reconfigure.
setup_logging(settings.LOG_LEVEL)

__all__ = ["logger"]
