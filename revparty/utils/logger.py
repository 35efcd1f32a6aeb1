import logging
import os
from typing import Optional

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str, logs_dir: Optional[str] = None, run_id: Optional[str] = None) -> logging.Logger:
    """
    Named logger with a console handler, plus a per-run file handler
    when a logs directory is given.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:  # prevent duplicate handlers
        logger.setLevel(logging.DEBUG)
        formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

        if logs_dir:
            os.makedirs(logs_dir, exist_ok=True)
            log_path = os.path.join(logs_dir, f"run_{run_id or name}.log")
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        console = logging.StreamHandler()
        console.setLevel(logging.INFO)
        console.setFormatter(formatter)
        logger.addHandler(console)

    return logger
