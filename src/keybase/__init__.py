"""
keybase - Named cryptographic identities backed by a key-value store.

    from keybase import Keybase, MemoryDB

    kb = Keybase(MemoryDB())
    info, mnemonic = kb.create_mnemonic("alice", passphrase="pw1")
    signature, pub_key = kb.sign("alice", "pw1", b"hello")
"""

from .keybase import Keybase, open_keybase
from .config import KeybaseConfig, load_settings
from .errors import (
    KeybaseError,
    ValidationError,
    UnsupportedLanguage,
    UnsupportedAlgorithm,
    InvalidMnemonic,
    InvalidMnemonicLength,
    InvalidPath,
    InvalidPublicKey,
    MalformedSignature,
    ConfirmationRequired,
    KeyNotFound,
    KeyAlreadyExists,
    WrongKeyType,
    NoPrivateKeyMaterial,
    DecryptionFailed,
    WrongPassphrase,
    MalformedArmor,
    DeviceUnavailable,
    DeviceTimeout,
    SigningCancelled,
    SigningTimeout,
    StorageError,
)
from .models import (
    Info,
    KeyType,
    LocalInfo,
    HardwareInfo,
    WatchOnlyInfo,
    InfoCodec,
    KeyValueStore,
    MemoryDB,
    FileDB,
)
from .services import (
    SigningRequest,
    SignatureChannel,
    AsyncSignatureChannel,
    StreamChannel,
    PendingRequestChannel,
    AsyncPendingRequestChannel,
    configure_logging,
)
from .wallet import (
    Argon2Params,
    BIP44Params,
    FUNDRAISER_PATH,
    Language,
    SigningAlgo,
    Secp256k1Provider,
    SigningDevice,
    DeviceManager,
)

__version__ = "0.1.0"

__all__ = [
    "Keybase",
    "open_keybase",
    "KeybaseConfig",
    "load_settings",
    "Info",
    "KeyType",
    "LocalInfo",
    "HardwareInfo",
    "WatchOnlyInfo",
    "InfoCodec",
    "KeyValueStore",
    "MemoryDB",
    "FileDB",
    "SigningRequest",
    "SignatureChannel",
    "AsyncSignatureChannel",
    "StreamChannel",
    "PendingRequestChannel",
    "AsyncPendingRequestChannel",
    "configure_logging",
    "Argon2Params",
    "BIP44Params",
    "FUNDRAISER_PATH",
    "Language",
    "SigningAlgo",
    "Secp256k1Provider",
    "SigningDevice",
    "DeviceManager",
    # Errors
    "KeybaseError",
    "ValidationError",
    "UnsupportedLanguage",
    "UnsupportedAlgorithm",
    "InvalidMnemonic",
    "InvalidMnemonicLength",
    "InvalidPath",
    "InvalidPublicKey",
    "MalformedSignature",
    "ConfirmationRequired",
    "KeyNotFound",
    "KeyAlreadyExists",
    "WrongKeyType",
    "NoPrivateKeyMaterial",
    "DecryptionFailed",
    "WrongPassphrase",
    "MalformedArmor",
    "DeviceUnavailable",
    "DeviceTimeout",
    "SigningCancelled",
    "SigningTimeout",
    "StorageError",
]
