"""
Models package - Key records and their persistence.

Contains:
- LocalInfo, HardwareInfo, WatchOnlyInfo: Key info record variants
- InfoCodec: Versioned record serialization
- KeyValueStore, MemoryDB, FileDB: Ordered key-value persistence
"""

from .info import (
    Info,
    KeyType,
    LocalInfo,
    HardwareInfo,
    WatchOnlyInfo,
    InfoCodec,
    info_key,
    name_from_key,
    validate_name,
    INFO_SUFFIX,
)
from .store import KeyValueStore, MemoryDB, FileDB

__all__ = [
    "Info",
    "KeyType",
    "LocalInfo",
    "HardwareInfo",
    "WatchOnlyInfo",
    "InfoCodec",
    "info_key",
    "name_from_key",
    "validate_name",
    "INFO_SUFFIX",
    "KeyValueStore",
    "MemoryDB",
    "FileDB",
]
