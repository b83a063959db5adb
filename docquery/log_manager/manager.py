#!/usr/bin/env python3
"""
Centralized Logging Manager for docquery

Provides file-only logging so that filter rejections and issued queries are
recorded without writing to the host service's console.
All output goes to log files in ~/.docquery/logs/ unless DOCQUERY_LOG_DIR is set.
"""

import os
import json
import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Dict, Any


DEFAULT_LOG_DIR = Path.home() / '.docquery' / 'logs'


def _env_debug() -> bool:
    return os.environ.get('DOCQUERY_DEBUG', '').lower() in ('1', 'true', 'yes')


def _env_log_dir() -> Path:
    log_dir = os.environ.get('DOCQUERY_LOG_DIR')
    return Path(log_dir).expanduser() if log_dir else DEFAULT_LOG_DIR


class LoggingManager:
    """
    Manages file-based logging for all docquery components.

    Features:
    - File-only output (no console interference)
    - Component-specific log files
    - Automatic rotation
    - Debug mode support via DOCQUERY_DEBUG
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the logging manager (singleton)"""
        if not self._initialized:
            self.log_dir = _env_log_dir()
            self.debug_mode = _env_debug()
            self.loggers: Dict[str, logging.Logger] = {}
            self._initialized = True

    def configure(self, log_dir: Optional[str] = None, debug: Optional[bool] = None):
        """
        Re-target the manager. Existing loggers are rebuilt on next access.

        Args:
            log_dir: Directory for log files (default: environment / ~/.docquery/logs)
            debug: Enable debug output (default: environment)
        """
        self.log_dir = Path(log_dir).expanduser() if log_dir else _env_log_dir()
        self.debug_mode = _env_debug() if debug is None else debug
        for logger in self.loggers.values():
            for handler in logger.handlers[:]:
                handler.close()
                logger.removeHandler(handler)
        self.loggers = {}

    def get_logger(self, name: str, component: Optional[str] = None) -> logging.Logger:
        """
        Get or create a logger for a specific component.

        Args:
            name: Logger name (e.g., 'FilterParser')
            component: Component category ('filters', 'executor', None for main)

        Returns:
            Configured logger instance
        """
        logger_key = f"{component}.{name}" if component else name

        if logger_key in self.loggers:
            return self.loggers[logger_key]

        logger = logging.getLogger(f"docquery.{logger_key}")
        logger.setLevel(logging.DEBUG if self.debug_mode else logging.INFO)

        # Remove any inherited handlers
        logger.handlers = []
        logger.propagate = False

        target_dir = self.log_dir / component if component else self.log_dir
        target_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            target_dir / f"{name.lower()}.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )

        if self.debug_mode:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        if self.debug_mode:
            debug_handler = logging.handlers.RotatingFileHandler(
                self.log_dir / 'debug.log',
                maxBytes=50 * 1024 * 1024,  # 50MB for debug
                backupCount=3,
                encoding='utf-8'
            )
            debug_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            debug_handler.setLevel(logging.DEBUG)
            logger.addHandler(debug_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / 'error.log',
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        error_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d]\n%(message)s\n',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        error_handler.setLevel(logging.ERROR)
        logger.addHandler(error_handler)

        self.loggers[logger_key] = logger
        return logger

    def log_with_context(self, logger: logging.Logger, level: int, message: str,
                         context: Optional[Dict[str, Any]] = None):
        """
        Log a message with additional context.

        Args:
            logger: Logger instance
            level: Log level
            message: Log message
            context: Additional context dict, serialized as JSON
        """
        if context:
            context_str = json.dumps(context, default=str)
            full_message = f"{message} | Context: {context_str}"
        else:
            full_message = message

        logger.log(level, full_message)


_logging_manager = None


def get_logging_manager() -> LoggingManager:
    """Get the singleton LoggingManager instance"""
    global _logging_manager
    if _logging_manager is None:
        _logging_manager = LoggingManager()
    return _logging_manager


def get_logger(name: str, component: Optional[str] = None) -> logging.Logger:
    """
    Convenience function to get a logger.

    Args:
        name: Logger name
        component: Component type ('filters', 'executor', or None)

    Returns:
        Configured logger
    """
    return get_logging_manager().get_logger(name, component)


def configure_logging(log_dir: Optional[str] = None, debug: Optional[bool] = None) -> LoggingManager:
    """Initialize or re-target the logging system."""
    manager = get_logging_manager()
    manager.configure(log_dir=log_dir, debug=debug)
    return manager
