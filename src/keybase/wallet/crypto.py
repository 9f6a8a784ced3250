"""
Wallet Crypto - Passphrase-based encryption of private keys.

Industry-standard security:
- Argon2id key derivation (memory-hard)
- AES-256-GCM authenticated encryption

Private keys never exist unencrypted on disk.
"""

import secrets
from dataclasses import dataclass

# Cryptography
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from argon2.low_level import hash_secret_raw, Type

from ..errors import DecryptionFailed, MalformedArmor


# ============================================
# Security Constants
# ============================================

# Argon2id parameters (OWASP recommendations for high-security)
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 65536  # 64 MB
ARGON2_PARALLELISM = 4
ARGON2_HASH_LEN = 32  # 256 bits for AES-256

# Argon2 requires at least 8 KiB per lane
ARGON2_MIN_MEMORY_PER_LANE = 8

# Upper bounds for parameters read back from armor headers
ARGON2_MAX_TIME_COST = 16
ARGON2_MAX_MEMORY_COST = 1048576  # 1 GiB
ARGON2_MAX_PARALLELISM = 64

SALT_SIZE = 16

# AES-GCM constants
AES_KEY_SIZE = 32
AES_IV_SIZE = 12  # 96 bits (recommended for GCM)
AES_TAG_SIZE = 16


@dataclass(frozen=True)
class Argon2Params:
    """Argon2id cost parameters. Stored with every encrypted key."""
    time_cost: int = ARGON2_TIME_COST
    memory_cost: int = ARGON2_MEMORY_COST  # KiB
    parallelism: int = ARGON2_PARALLELISM
    hash_len: int = ARGON2_HASH_LEN

    def __post_init__(self):
        if self.time_cost < 1 or self.parallelism < 1:
            raise ValueError("argon2 time_cost and parallelism must be positive")
        if (self.time_cost > ARGON2_MAX_TIME_COST or self.memory_cost > ARGON2_MAX_MEMORY_COST
                or self.parallelism > ARGON2_MAX_PARALLELISM):
            raise ValueError("argon2 parameters exceed the supported maximum")
        if self.memory_cost < ARGON2_MIN_MEMORY_PER_LANE * self.parallelism:
            raise ValueError("argon2 memory_cost must be at least 8 KiB per lane")
        if self.hash_len != AES_KEY_SIZE:
            raise ValueError(f"argon2 hash_len must be {AES_KEY_SIZE} for AES-256")

    def to_header(self) -> str:
        """Serialize as 't=3,m=65536,p=4' for the armor header."""
        return f"t={self.time_cost},m={self.memory_cost},p={self.parallelism}"

    @classmethod
    def from_header(cls, value: str) -> "Argon2Params":
        try:
            fields = dict(part.split("=", 1) for part in value.split(","))
            return cls(
                time_cost=int(fields["t"]),
                memory_cost=int(fields["m"]),
                parallelism=int(fields["p"]),
            )
        except (KeyError, ValueError) as e:
            raise MalformedArmor(f"invalid kdf-params header: {value!r}") from e


DEFAULT_ARGON2 = Argon2Params()


# ============================================
# Key Derivation
# ============================================

def derive_key(passphrase: str, salt: bytes, params: Argon2Params = DEFAULT_ARGON2) -> bytes:
    """
    Derive an encryption key from a passphrase using Argon2id.

    Argon2id is memory-hard, making brute-force attacks expensive.
    With the default parameters, each passphrase guess requires ~64MB RAM.
    """
    return hash_secret_raw(
        secret=passphrase.encode('utf-8'),
        salt=salt,
        time_cost=params.time_cost,
        memory_cost=params.memory_cost,
        parallelism=params.parallelism,
        hash_len=params.hash_len,
        type=Type.ID
    )


def new_salt() -> bytes:
    return secrets.token_bytes(SALT_SIZE)


# ============================================
# Encryption
# ============================================

def encrypt(plaintext: bytes, key: bytes, associated_data: bytes = None) -> tuple[bytes, bytes]:
    """
    Encrypt with AES-256-GCM under a fresh nonce.

    Returns: (nonce, ciphertext_and_tag)
    """
    nonce = secrets.token_bytes(AES_IV_SIZE)
    aesgcm = AESGCM(key)
    return nonce, aesgcm.encrypt(nonce, plaintext, associated_data)


def decrypt(nonce: bytes, ciphertext_and_tag: bytes, key: bytes,
            associated_data: bytes = None) -> bytes:
    """
    Decrypt and authenticate AES-256-GCM ciphertext.

    Raises: DecryptionFailed if the key is wrong or data is tampered.
    """
    if len(nonce) != AES_IV_SIZE or len(ciphertext_and_tag) < AES_TAG_SIZE:
        raise DecryptionFailed()
    aesgcm = AESGCM(key)
    try:
        return aesgcm.decrypt(nonce, ciphertext_and_tag, associated_data)
    except InvalidTag as e:
        raise DecryptionFailed() from e
