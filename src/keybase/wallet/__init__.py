"""
Wallet package - Key material for the keybase.

Contains:
- crypto: Argon2id key derivation and AES-256-GCM encryption
- armor: Banner-framed text encoding of private keys, public keys and records
- hd: BIP-44 paths and the mnemonic -> private key pipeline
- keys: Secp256k1Provider (mnemonics, BIP-32, signing)
- devices: Hardware signing devices with bounded calls
"""

from .crypto import (
    Argon2Params,
    DEFAULT_ARGON2,
    derive_key,
)
from .armor import (
    encode_armor,
    decode_armor,
    armor_info_bytes,
    unarmor_info_bytes,
    armor_pub_key_bytes,
    unarmor_pub_key_bytes,
    encrypt_armor_priv_key,
    unarmor_decrypt_priv_key,
    BLOCK_PRIV_KEY,
    BLOCK_PUB_KEY,
    BLOCK_KEY_INFO,
)
from .hd import (
    Language,
    SigningAlgo,
    BIP44Params,
    FUNDRAISER_PATH,
    parse_path,
    derive_private_key,
)
from .keys import Secp256k1Provider
from .devices import (
    SigningDevice,
    DeviceManager,
    call_device,
    DEFAULT_DEVICE_NAME,
)

__all__ = [
    # Crypto
    "Argon2Params",
    "DEFAULT_ARGON2",
    "derive_key",
    # Armor
    "encode_armor",
    "decode_armor",
    "armor_info_bytes",
    "unarmor_info_bytes",
    "armor_pub_key_bytes",
    "unarmor_pub_key_bytes",
    "encrypt_armor_priv_key",
    "unarmor_decrypt_priv_key",
    "BLOCK_PRIV_KEY",
    "BLOCK_PUB_KEY",
    "BLOCK_KEY_INFO",
    # HD
    "Language",
    "SigningAlgo",
    "BIP44Params",
    "FUNDRAISER_PATH",
    "parse_path",
    "derive_private_key",
    # Provider
    "Secp256k1Provider",
    # Devices
    "SigningDevice",
    "DeviceManager",
    "call_device",
    "DEFAULT_DEVICE_NAME",
]
