"""
Logging for the server: the 'mathgpt' logger writes to stdout and,
when LOG_FILE is set, to that file as well.
"""
import logging
import sys
from typing import List, Optional, Union

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATEFMT = '%H:%M:%S'


def resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    level = resolve_level(level)
    logger = logging.getLogger("mathgpt")
    logger.setLevel(level)

    # uvicorn --reload imports the app again; don't stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='a', encoding='utf-8'))

    formatter = logging.Formatter(FORMAT, datefmt=DATEFMT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug("Logging to stdout%s", f" and {log_file}" if log_file else "")
    return logger
