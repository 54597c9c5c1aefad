"""
assocly-api/logging_config.py
Configuration du logging
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers tiers qui n'héritent pas du root logger
MANAGED_LOGGERS = ["uvicorn", "uvicorn.access", "uvicorn.error", "celery", "assocly"]


class ColoredFormatter(logging.Formatter):
    """Formatter avec couleurs pour le terminal"""

    COLORS = {
        'DEBUG': '\033[0;36m',    # Cyan
        'INFO': '\033[0;32m',     # Vert
        'WARNING': '\033[0;33m',  # Jaune
        'ERROR': '\033[0;31m',    # Rouge
        'CRITICAL': '\033[1;31m', # Rouge gras
    }
    RESET = '\033[0m'

    def format(self, record):
        # Copie pour ne pas polluer le handler fichier
        record = logging.makeLogRecord(record.__dict__)
        if record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        return super().format(record)


def _configure(console_formatter: logging.Formatter, log_level: str, log_file: Optional[str]):
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(console_formatter)
    handlers.append(console_handler)

    # Handler fichier (optionnel, jamais coloré)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True
    )

    for logger_name in MANAGED_LOGGERS:
        log = logging.getLogger(logger_name)
        log.setLevel(numeric_level)
        log.handlers.clear()
        for handler in handlers:
            log.addHandler(handler)
        log.propagate = False

    # Réduire la verbosité des bibliothèques bavardes
    logging.getLogger("watchfiles").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return logging.getLogger("assocly")


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Configure le logging standard"""
    logger = _configure(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT), log_level, log_file)
    logger.info("✅ Logging configured")
    return logger


def setup_colored_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Configure le logging avec couleurs"""
    logger = _configure(ColoredFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT), log_level, log_file)
    logger.info("✅ Colored logging configured")
    return logger


def configure_from(config):
    """Configure le logging à partir d'un objet Config"""
    log_file = config.log_file_path if config.log_file_enabled else None
    if config.log_colored:
        return setup_colored_logging(log_level=config.log_level, log_file=log_file)
    return setup_logging(log_level=config.log_level, log_file=log_file)


def get_uvicorn_log_config(log_level: str = "INFO"):
    """Configuration de logging pour Uvicorn"""
    level = log_level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": LOG_FORMAT,
                "datefmt": LOG_DATE_FORMAT,
            },
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            name: {"handlers": ["default"], "level": level, "propagate": False}
            for name in ("uvicorn", "uvicorn.error", "uvicorn.access")
        } | {
            "watchfiles": {"handlers": ["default"], "level": "WARNING", "propagate": False},
        },
    }
