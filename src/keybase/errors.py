"""
Keybase error hierarchy.

Every public keybase operation either returns its value or raises a
subclass of KeybaseError, so callers can catch one base class.
"""


class KeybaseError(Exception):
    """Base exception for all keybase errors."""


# ============================================
# Validation
# ============================================

class ValidationError(KeybaseError):
    """Caller supplied a value the keybase cannot accept."""


class UnsupportedLanguage(ValidationError):
    """Mnemonic language other than english."""

    def __init__(self, message: str = "unsupported language: only english is supported"):
        super().__init__(message)


class UnsupportedAlgorithm(ValidationError):
    """Signing algorithm other than secp256k1."""

    def __init__(self, message: str = "unsupported signing algo: only secp256k1 is supported"):
        super().__init__(message)


class InvalidMnemonic(ValidationError):
    """Mnemonic has unknown words or a bad checksum."""


class InvalidMnemonicLength(InvalidMnemonic):
    """Mnemonic has the wrong number of words."""


class InvalidPath(ValidationError):
    """HD derivation path cannot be parsed."""


class InvalidPublicKey(ValidationError):
    """Bytes are not a valid secp256k1 public key."""


class MalformedSignature(ValidationError):
    """An externally supplied signature could not be decoded."""


class ConfirmationRequired(ValidationError):
    """Deletion of a key without a passphrase needs the literal 'yes'."""


# ============================================
# Lookup
# ============================================

class KeyNotFound(KeybaseError):
    """No key is stored under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Key {name} not found")
        self.name = name


class KeyAlreadyExists(KeybaseError):
    """A key is already stored under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Cannot overwrite data for name {name}")
        self.name = name


class WrongKeyType(KeybaseError):
    """Operation requires a locally stored private key."""


class NoPrivateKeyMaterial(KeybaseError):
    """A local key record carries no encrypted private key."""


# ============================================
# Crypto / armor
# ============================================

class DecryptionFailed(KeybaseError):
    """
    Decryption or authentication failed.

    Raised for a wrong passphrase and for corrupted ciphertext alike; the
    message never says which.
    """

    def __init__(self, message: str = "decryption failed"):
        super().__init__(message)


# Wrong passphrase and tampering are deliberately indistinguishable.
WrongPassphrase = DecryptionFailed


class MalformedArmor(KeybaseError):
    """Armored text could not be parsed."""


# ============================================
# Devices and external signers
# ============================================

class DeviceUnavailable(KeybaseError):
    """The hardware signing device could not be reached or failed."""


class DeviceTimeout(DeviceUnavailable):
    """The hardware signing device did not answer in time."""


class SigningCancelled(KeybaseError):
    """The operator declined or cancelled an external signing request."""


class SigningTimeout(KeybaseError):
    """No external signature arrived before the deadline."""


# ============================================
# Storage
# ============================================

class StorageError(KeybaseError):
    """Persistence failed or a stored record is corrupt."""


__all__ = [
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
