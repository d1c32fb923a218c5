"""
Logging configuration for Smart Trading Bot
Handles log formatting, file output, and logging levels
"""

import os
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler

def setup_logging(
    log_level: str = "INFO",
    log_format: str = '%(asctime)s UTC | %(levelname)s | %(message)s',
    date_format: str = '%Y-%m-%d %H:%M:%S',
    log_dir: str = "logs"
) -> logging.Logger:
    """
    Setup logging configuration with both console and file handlers

    Parameters:
    -----------
    log_level : str
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_format : str
        Format string for log messages
    date_format : str
        Format string for timestamps
    log_dir : str
        Directory receiving the rotating log files

    Returns:
    --------
    logging.Logger
        Configured root logger
    """
    os.makedirs(log_dir, exist_ok=True)

    current_time = datetime.utcnow()
    log_filename = os.path.join(
        log_dir,
        f"smart_trading_bot_{current_time.strftime('%Y%m%d')}.log"
    )

    level = getattr(logging, str(log_level).upper(), logging.INFO)
    formatter = logging.Formatter(log_format, datefmt=date_format)

    logger = logging.getLogger()
    logger.setLevel(level)

    # Replace handlers from a previous setup
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = RotatingFileHandler(
        log_filename,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.info("="*50)
    logger.info("Smart Trading Bot - Logging Initialized")
    logger.info(f"Log Level: {logging.getLevelName(level)}")
    logger.info(f"Log File: {log_filename}")
    logger.info(f"Current Time (UTC): {current_time.strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info("="*50)

    return logger

def get_logger(name: str) -> logging.Logger:
    """Get a named logger, typically for __name__"""
    return logging.getLogger(name)
