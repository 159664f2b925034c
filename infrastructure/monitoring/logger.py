import json
import logging
import sys
import traceback
from datetime import datetime
from decimal import Decimal
from logging.handlers import RotatingFileHandler
from pathlib import Path

from config.settings import Settings

PROVIDER_LOGGER_NAME = 'infrastructure.providers'


class CustomJSONEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


class JSONFormatter(logging.Formatter):
    """
    Custom formatter that outputs structured JSON logs.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            'timestamp': datetime.now().isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info and record.exc_info[0] is not None:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        if hasattr(record, 'extra_data'):
            log_entry['data'] = record.extra_data

        return json.dumps(log_entry, ensure_ascii=False, cls=CustomJSONEncoder)


class AppLogger:
    """
    Centralized logging configuration for the application.

    Layout under `log_directory`:
        system/app.log          everything at file_level and above
        errors/errors.log       warnings and errors only
        providers/calls.log     rate source calls, kept out of the main log
    """
    def __init__(self,
                 log_directory: str = "logs",
                 console_level: str = "INFO",
                 file_level: str = "DEBUG",
                 max_file_size: int = 10 * 1024 * 1024,
                 backup_count: int = 5):
        self.log_directory = Path(log_directory)
        self.console_level = getattr(logging, console_level.upper())
        self.file_level = getattr(logging, file_level.upper())
        self.max_file_size = max_file_size
        self.backup_count = backup_count

        self.log_directory.mkdir(parents=True, exist_ok=True)
        self._setup_logging()

    def _setup_logging(self) -> None:
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(logging.DEBUG)

        logging.getLogger("httpx").setLevel(logging.WARNING)

        self._setup_console_handler(root_logger)
        self._setup_main_file_handler(root_logger)
        self._setup_error_file_handler(root_logger)
        self._setup_provider_log_handler()

    def _rotating_handler(self, subdirectory: str, filename: str) -> RotatingFileHandler:
        log_dir = self.log_directory / subdirectory
        log_dir.mkdir(exist_ok=True)

        handler = RotatingFileHandler(
            log_dir / filename,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding='utf-8'
        )
        handler.setFormatter(JSONFormatter())
        return handler

    def _setup_console_handler(self, logger: logging.Logger) -> None:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.console_level)
        console_format = '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s'
        console_handler.setFormatter(logging.Formatter(console_format, datefmt='%H:%M:%S'))
        logger.addHandler(console_handler)

    def _setup_main_file_handler(self, logger: logging.Logger) -> None:
        file_handler = self._rotating_handler("system", "app.log")
        file_handler.setLevel(self.file_level)
        logger.addHandler(file_handler)

    def _setup_error_file_handler(self, logger: logging.Logger) -> None:
        error_handler = self._rotating_handler("errors", "errors.log")
        error_handler.setLevel(logging.WARNING)
        logger.addHandler(error_handler)

    def _setup_provider_log_handler(self) -> None:
        provider_logger = logging.getLogger(PROVIDER_LOGGER_NAME)
        provider_logger.handlers.clear()

        provider_handler = self._rotating_handler("providers", "calls.log")
        provider_handler.setLevel(logging.DEBUG)
        provider_logger.propagate = False
        provider_logger.addHandler(provider_handler)

        # Failed calls still need to show up on the console
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(max(self.console_level, logging.WARNING))
        console_format = '%(asctime)s | SOURCE | %(levelname)-8s | %(message)s'
        console_handler.setFormatter(logging.Formatter(console_format, datefmt='%H:%M:%S'))
        provider_logger.addHandler(console_handler)


app_logger: AppLogger | None = None


def setup_logging(settings: Settings) -> AppLogger:
    global app_logger
    if app_logger is None:
        app_logger = AppLogger(
            log_directory=settings.LOG_DIRECTORY,
            console_level=settings.LOG_CONSOLE_LEVEL,
            file_level=settings.LOG_FILE_LEVEL,
        )
    return app_logger
