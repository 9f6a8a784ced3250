"""
Services package - Signing channels and logging for the keybase.

Contains:
- SigningRequest and the watch-only signature channels
- configure_logging: Application logging setup
"""

from .signing import (
    SigningRequest,
    SignatureChannel,
    AsyncSignatureChannel,
    StreamChannel,
    PendingRequestChannel,
    AsyncPendingRequestChannel,
)
from .logging import configure_logging, cleanup_old_logs, get_log_file_path

__all__ = [
    "SigningRequest",
    "SignatureChannel",
    "AsyncSignatureChannel",
    "StreamChannel",
    "PendingRequestChannel",
    "AsyncPendingRequestChannel",
    "configure_logging",
    "cleanup_old_logs",
    "get_log_file_path",
]
