"""
Key primitives - BIP-39 mnemonics, BIP-32 expansion and secp256k1 signing.

Secp256k1Provider is the cryptography provider injected into the keybase.
Mnemonics come from the `mnemonic` (Trezor) package, child keys from
eth_account's BIP-32 implementation, and signatures from eth_keys.
"""

import hashlib
import hmac

from mnemonic import Mnemonic
from eth_account.hdaccount.deterministic import HardNode, SoftNode, derive_child_key
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as EthKeysValidationError

from ..errors import InvalidMnemonicLength, InvalidPath, InvalidPublicKey
from .hd import Language, parse_path

# BIP-32 master key HMAC key
MASTER_SECRET = b"Bitcoin seed"

# Mnemonic word count -> entropy bits
WORD_COUNT_STRENGTH = {12: 128, 15: 160, 18: 192, 21: 224, 24: 256}

PRIVATE_KEY_SIZE = 32
COMPRESSED_PUBLIC_KEY_SIZE = 33


class Secp256k1Provider:
    """
    Cryptography provider for secp256k1 keys.

    Usage:
        provider = Secp256k1Provider()
        words = provider.generate_mnemonic(24)
        seed = provider.mnemonic_to_seed(words)
        master, chain_code = provider.compute_master(seed)
        priv = provider.derive_child(master, chain_code, "m/44'/118'/0'/0'/0'")
        sig = provider.sign(priv, b"message")
    """

    key_type = "secp256k1"

    def __init__(self, language: Language = Language.ENGLISH):
        self._mnemo = Mnemonic(language.value)

    # ============================================
    # Mnemonics
    # ============================================

    def generate_mnemonic(self, word_count: int = 24) -> str:
        """Generate a fresh mnemonic from OS entropy."""
        strength = WORD_COUNT_STRENGTH.get(word_count)
        if strength is None:
            raise InvalidMnemonicLength(f"unsupported mnemonic length: {word_count} words")
        return self._mnemo.generate(strength=strength)

    def validate_mnemonic(self, words: str) -> bool:
        """Check wordlist membership and checksum."""
        try:
            return bool(self._mnemo.check(words))
        except (LookupError, ValueError):
            return False

    def mnemonic_to_seed(self, words: str, passphrase: str = "") -> bytes:
        return Mnemonic.to_seed(words, passphrase=passphrase)

    # ============================================
    # BIP-32
    # ============================================

    def compute_master(self, seed: bytes) -> tuple[bytes, bytes]:
        """Expand a seed into (master key, chain code)."""
        digest = hmac.new(MASTER_SECRET, seed, hashlib.sha512).digest()
        return digest[:32], digest[32:]

    def derive_child(self, master: bytes, chain_code: bytes, path: str) -> bytes:
        """Derive the private key at path from a master key and chain code."""
        key = master
        for index, hardened in parse_path(path):
            node = HardNode(index) if hardened else SoftNode(index)
            try:
                key, chain_code = derive_child_key(key, chain_code, node)
            except Exception as e:
                raise InvalidPath(f"cannot derive {path!r}: {e}") from e
        return key

    # ============================================
    # Signing
    # ============================================

    def sign(self, priv_key: bytes, message: bytes) -> bytes:
        """Sign keccak256(message). Returns 65-byte signature (r + s + v)."""
        return keys.PrivateKey(priv_key).sign_msg(message).to_bytes()

    def public_key_of(self, priv_key: bytes) -> bytes:
        """Compressed 33-byte public key."""
        return keys.PrivateKey(priv_key).public_key.to_compressed_bytes()

    def parse_public_key(self, pub_key: bytes) -> keys.PublicKey:
        """
        Accept compressed (33), raw (64) or uncompressed (65) public key bytes.

        Raises: InvalidPublicKey
        """
        if not isinstance(pub_key, (bytes, bytearray)):
            raise InvalidPublicKey("public key must be bytes")
        pub_key = bytes(pub_key)
        try:
            if len(pub_key) == COMPRESSED_PUBLIC_KEY_SIZE and pub_key[0] in (2, 3):
                return keys.PublicKey.from_compressed_bytes(pub_key)
            if len(pub_key) == 64:
                return keys.PublicKey(pub_key)
            if len(pub_key) == 65 and pub_key[0] == 4:
                return keys.PublicKey(pub_key[1:])
        except (EthKeysValidationError, ValueError) as e:
            raise InvalidPublicKey(f"invalid secp256k1 public key: {e}") from e
        raise InvalidPublicKey(f"invalid secp256k1 public key length: {len(pub_key)}")

    def normalize_public_key(self, pub_key: bytes) -> bytes:
        """Validate and return the compressed form."""
        return self.parse_public_key(pub_key).to_compressed_bytes()

    def verify(self, pub_key: bytes, message: bytes, signature: bytes) -> bool:
        public_key = self.parse_public_key(pub_key)
        try:
            return public_key.verify_msg(message, keys.Signature(signature))
        except (BadSignature, EthKeysValidationError, ValueError):
            return False

    def address_of(self, pub_key: bytes) -> str:
        """0x checksum address of a public key."""
        return self.parse_public_key(pub_key).to_checksum_address()
