import logging
from logging.handlers import RotatingFileHandler

from .config import settings


def configure_logging(log_file: str | None = None) -> None:
    logger = logging.getLogger()
    logger.setLevel(logging.INFO)

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating file (the panel can run for days on a Pi)
    fh = RotatingFileHandler(
        log_file or settings.log_file, maxBytes=2_000_000, backupCount=5
    )
    fh.setFormatter(fmt)
    logger.addHandler(fh)

    # websockets logs every frame at DEBUG and handshake noise at INFO
    logging.getLogger("websockets").setLevel(logging.WARNING)
