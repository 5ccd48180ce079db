"""
Logging configuration for USPS order tracking.
Uses loguru for enhanced logging capabilities.
"""

import sys
from pathlib import Path
from loguru import logger

from usps_tracking.config import TrackingConfig


def setup_logging(config: TrackingConfig, console: bool = True) -> None:
    """
    Configure logging for the tracking service.
    
    Args:
        config: Tracking configuration
        console: Whether to output to console (disable when embedded)
    """
    
    # Remove default handler
    logger.remove()
    
    # Log format
    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )
    
    simple_format = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    
    # Console output (for development)
    if console:
        logger.add(
            sys.stderr,
            format=log_format,
            level=config.log_level,
            colorize=True,
        )
    
    # File output
    log_path = Path(config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    
    logger.add(
        str(log_path),
        format=simple_format,
        level=config.log_level,
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        enqueue=True,  # Thread-safe
    )
    
    # Error file (separate file for errors only)
    error_log_path = log_path.parent / "error.log"
    logger.add(
        str(error_log_path),
        format=simple_format,
        level="ERROR",
        rotation="10 MB",
        retention="60 days",
        compression="zip",
        enqueue=True,
    )
    
    logger.info(f"Logging initialized - Level: {config.log_level}, File: {log_path}")


class RequestLogger:
    """Context logger for a single tracking request."""
    
    def __init__(self, action: str, order_id: str):
        self.action = action
        self.order_id = order_id
        self._logger = logger.bind(action=action, order_id=order_id)
    
    def _prefix(self, message: str) -> str:
        return f"[{self.action}:{self.order_id}] {message}"
    
    def info(self, message: str, **kwargs):
        self._logger.info(self._prefix(message), **kwargs)
    
    def debug(self, message: str, **kwargs):
        self._logger.debug(self._prefix(message), **kwargs)
    
    def warning(self, message: str, **kwargs):
        self._logger.warning(self._prefix(message), **kwargs)
    
    def error(self, message: str, **kwargs):
        self._logger.error(self._prefix(message), **kwargs)
    
    def exception(self, message: str, **kwargs):
        self._logger.exception(self._prefix(message), **kwargs)
