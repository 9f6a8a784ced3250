"""
HD derivation - mnemonic to private key.

    words -> seed -> (master key, chain code) -> child key at path

The pipeline is deterministic: the same words and path always yield the same
key. Seed, master key and chain code never leave derive_private_key.
"""

from dataclasses import dataclass
from enum import Enum

from ..errors import InvalidPath

# BIP-44 registered coin type used by the fundraiser path
COSMOS_COIN_TYPE = 118

HARDENED_OFFSET = 0x80000000

# Default ("fundraiser") path, hardened at every segment
FUNDRAISER_PATH = "m/44'/118'/0'/0'/0'"


class Language(Enum):
    """BIP-39 wordlist languages. Only english is supported."""
    ENGLISH = "english"
    JAPANESE = "japanese"
    KOREAN = "korean"
    SPANISH = "spanish"
    CHINESE_SIMPLIFIED = "chinese_simplified"
    CHINESE_TRADITIONAL = "chinese_traditional"
    FRENCH = "french"
    ITALIAN = "italian"


class SigningAlgo(Enum):
    """Signature schemes. Only secp256k1 is supported."""
    SECP256K1 = "secp256k1"
    ED25519 = "ed25519"


@dataclass(frozen=True)
class BIP44Params:
    """
    BIP-44 path components.

    Formats as m / purpose' / coin_type' / account' / change / address_index
    """
    purpose: int = 44
    coin_type: int = COSMOS_COIN_TYPE
    account: int = 0
    change: bool = False
    address_index: int = 0

    def __str__(self) -> str:
        change = 1 if self.change else 0
        return f"m/{self.purpose}'/{self.coin_type}'/{self.account}'/{change}/{self.address_index}"

    @classmethod
    def from_string(cls, path: str) -> "BIP44Params":
        segments = parse_path(path)
        if len(segments) != 5:
            raise InvalidPath(f"BIP-44 path needs 5 segments, got {len(segments)}: {path!r}")
        hardened = [h for _, h in segments]
        if hardened != [True, True, True, False, False]:
            raise InvalidPath(f"BIP-44 path must harden purpose, coin type and account only: {path!r}")
        (purpose, _), (coin_type, _), (account, _), (change, _), (index, _) = segments
        if change not in (0, 1):
            raise InvalidPath(f"BIP-44 change must be 0 or 1: {path!r}")
        return cls(purpose, coin_type, account, bool(change), index)


def parse_path(path: str) -> list[tuple[int, bool]]:
    """
    Parse an HD path into (index, hardened) segments.

    Accepts "m/44'/118'/0'/0/0" as well as the bare "44'/118'/0'/0/0" form;
    both ' and H mark a hardened segment.
    """
    if not isinstance(path, str) or not path.strip():
        raise InvalidPath("empty derivation path")

    parts = path.strip().split("/")
    if parts[0] in ("m", "M"):
        parts = parts[1:]
    if not parts:
        raise InvalidPath(f"derivation path has no segments: {path!r}")

    segments = []
    for part in parts:
        hardened = part.endswith("'") or part.endswith("H") or part.endswith("h")
        digits = part[:-1] if hardened else part
        if not digits.isdigit():
            raise InvalidPath(f"invalid path segment {part!r} in {path!r}")
        index = int(digits)
        if index >= HARDENED_OFFSET:
            raise InvalidPath(f"path segment {part!r} out of range")
        segments.append((index, hardened))
    return segments


def derive_private_key(provider, words: str, path: str) -> bytes:
    """Run the full pipeline: mnemonic words -> child private key at path."""
    seed = provider.mnemonic_to_seed(words)
    master, chain_code = provider.compute_master(seed)
    try:
        return provider.derive_child(master, chain_code, path)
    finally:
        del seed, master, chain_code
