import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

def setup_logger(log_file: str = "logs/taskly.log", max_bytes: int = 10_000_000, backup_count: int = 5,
                 level: int = logging.INFO):
    Path(log_file).parent.mkdir(exist_ok=True, parents=True)
    logger = logging.getLogger("taskly")
    logger.setLevel(level)
    handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
