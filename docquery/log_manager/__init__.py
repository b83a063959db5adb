"""
Logging Package for docquery

Provides centralized file-only logging.
All logs are written to ~/.docquery/logs/ unless DOCQUERY_LOG_DIR is set.
"""

from .manager import LoggingManager, get_logger, configure_logging, get_logging_manager

__all__ = ['LoggingManager', 'get_logger', 'configure_logging', 'get_logging_manager']
