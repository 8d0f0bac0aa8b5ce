"""Error types and logging setup for the activity export pipeline."""

import json
import logging
import sys
from datetime import datetime
from enum import Enum
from typing import Optional


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class ErrorCategory(Enum):
    """Error categories for classification"""
    NETWORK = "network"
    RESPONSE_STATUS = "response_status"
    PROVIDER = "provider"
    DATA_VALIDATION = "data_validation"
    CONFIGURATION = "configuration"


class Plaid2CsvError(Exception):
    """Base error with the item, stream and identifier it concerns.

    Context is appended to the message so a failure can be diagnosed from the
    log line alone, e.g. ``unknown account (item: Bank, stream: transactions,
    identifier: acc-1)``.
    """

    category = ErrorCategory.DATA_VALIDATION

    def __init__(
        self,
        message: str,
        item: Optional[str] = None,
        stream: Optional[str] = None,
        identifier: Optional[str] = None
    ):
        self.message = message
        self.item = item
        self.stream = stream
        self.identifier = identifier

        context_parts = []
        if item:
            context_parts.append(f"item: {item}")
        if stream:
            context_parts.append(f"stream: {stream}")
        if identifier:
            context_parts.append(f"identifier: {identifier}")

        context = f" ({', '.join(context_parts)})" if context_parts else ""
        super().__init__(f"{message}{context}")


class ConfigurationError(Plaid2CsvError):
    """Missing or malformed configuration, raised before any network call"""
    category = ErrorCategory.CONFIGURATION


class TransportError(Plaid2CsvError):
    """Request could not be sent or its response body could not be decoded"""
    category = ErrorCategory.NETWORK


class ResponseStatusError(Plaid2CsvError):
    """Provider answered with a non-200 status"""
    category = ErrorCategory.RESPONSE_STATUS

    def __init__(self, status_code: int, reason: str, **context):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"bad response: {status_code} {reason}".rstrip(), **context)


class ProviderError(Plaid2CsvError):
    """Error object embedded in an otherwise successful provider response"""
    category = ErrorCategory.PROVIDER

    def __init__(
        self,
        error_type: str,
        error_code: str = "",
        error_message: str = "",
        display_message: str = "",
        **context
    ):
        self.error_type = error_type
        self.error_code = error_code
        self.error_message = error_message
        self.display_message = display_message

        message = f"response error: {error_type} {error_code} {error_message}".rstrip()
        if display_message:
            message = f"{message} [{display_message}]"
        super().__init__(message, **context)


class UnresolvedReferenceError(Plaid2CsvError):
    """Account or security identifier missing from the lookup tables"""
    category = ErrorCategory.DATA_VALIDATION


class JSONFormatter(logging.Formatter):
    """Format records as one JSON object per line"""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add extra fields if present
        if hasattr(record, 'item'):
            log_entry['item'] = record.item
        if hasattr(record, 'stream'):
            log_entry['stream'] = record.stream
        if hasattr(record, 'category'):
            log_entry['category'] = record.category
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Set up console logging and an optional JSON-lines log file.

    Args:
        verbose: Log at DEBUG instead of INFO
        log_file: Path of a file to receive JSON-formatted records
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in [h for h in root.handlers if getattr(h, '_plaid2csv', False)]:
        root.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    console_handler._plaid2csv = True
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        file_handler._plaid2csv = True
        root.addHandler(file_handler)


def log_error(logger: logging.Logger, error: Plaid2CsvError) -> None:
    """Log a pipeline error with its context as structured extras"""
    logger.error(
        str(error),
        extra={
            'item': error.item,
            'stream': error.stream,
            'category': error.category.value
        }
    )
