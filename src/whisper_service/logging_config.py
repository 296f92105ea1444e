import logging
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO", fmt: Optional[str] = None) -> logging.Logger:
    """
    Configures the root logger and routes uvicorn's loggers through it.
    """
    log_format = fmt or DEFAULT_FORMAT
    logging.basicConfig(level=level.upper(), format=log_format, force=True)

    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        u_logger = logging.getLogger(logger_name)
        u_logger.setLevel(level.upper())
        u_logger.handlers = []
        u_logger.propagate = True

    return logging.getLogger("whisper_service")
