import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from tpcli.core.config import settings
from tpcli.ui.log_buffer import general_buffer, error_buffer

PACKAGE_LOGGER = "tpcli"


class PrefixFormatter(logging.Formatter):
    LEVEL_PREFIX = {
        logging.DEBUG: "[i]",
        logging.INFO: "[+]",
        logging.WARNING: "[-]",
        logging.ERROR: "[!]",
        logging.CRITICAL: "[!]",
    }

    def format(self, record):
        record.prefix = self.LEVEL_PREFIX.get(record.levelno, "[ ]")
        return super().format(record)


class UILogHandler(logging.Handler):
    """
    Send logs to the prompt_toolkit panels instead of stdout.
    Warnings and errors go to the error panel unless it was swapped
    for the command history panel.
    """

    def __init__(self, level=logging.NOTSET):
        super().__init__(level)
        self.errors_to_error_panel = True

    def emit(self, record):
        msg = self.format(record)

        if record.levelno >= logging.WARNING and self.errors_to_error_panel:
            error_buffer.write(msg)
        else:
            general_buffer.write(msg)


ui_handler = UILogHandler()
ui_handler.setLevel(logging.INFO)
ui_handler.setFormatter(
    PrefixFormatter(
        "%(asctime)s - %(prefix)s %(message)s",
        datefmt="%H:%M:%S"
    )
)


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if ui_handler in logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.addHandler(ui_handler)

    if settings.debug_log_file:
        enable_debug_log(settings.debug_log_file)

    return logger


def get_logger(name: str) -> logging.Logger:
    _package_logger()

    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"

    return logging.getLogger(name)


def enable_debug_log(log_file: Path) -> RotatingFileHandler:
    """Attach a rotating debug file handler to the package logger"""
    logger = logging.getLogger(PACKAGE_LOGGER)
    log_file = Path(log_file)

    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == log_file.resolve():
            return handler

    log_file.parent.mkdir(parents=True, exist_ok=True)

    fh = RotatingFileHandler(
        log_file,
        maxBytes=2_000_000,
        backupCount=5,
        encoding="utf-8"
    )
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(
        PrefixFormatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    )
    logger.addHandler(fh)

    return fh


def route_errors_to_general_panel(enabled: bool = True):
    ui_handler.errors_to_error_panel = not enabled
