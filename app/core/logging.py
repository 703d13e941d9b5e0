# app/core/logging.py
import logging
import logging.config

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def setup_logging(level: str | None = None) -> None:
    level = (level or settings.LOG_LEVEL).upper()
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
        },
        "loggers": {
            "app": {"handlers": ["console"], "level": level, "propagate": False},
            # uvicorn já tem handlers próprios; só alinhamos o nível
            "uvicorn": {"level": level},
        },
    })
    logging.getLogger(__name__).debug("logging configured (level=%s)", level)
