"""Shared fixtures for the keybase test suite."""

import pytest

from keybase import (
    Argon2Params,
    DeviceManager,
    Keybase,
    KeybaseConfig,
    MemoryDB,
    PendingRequestChannel,
    Secp256k1Provider,
)
from keybase.wallet.hd import derive_private_key

# BIP-39 test vectors (all-zero entropy)
MNEMONIC_12 = "abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon about"
MNEMONIC_24 = " ".join(["abandon"] * 23 + ["art"])

# Cheapest Argon2id cost accepted; keeps the suite fast
FAST_KDF = Argon2Params(time_cost=1, memory_cost=8, parallelism=1)


class FakeDevice:
    """In-memory signing device holding keys derived from a fixed mnemonic."""

    def __init__(self, words: str = MNEMONIC_12):
        self.provider = Secp256k1Provider()
        self.words = words
        self.calls = []

    def _key(self, path: str) -> bytes:
        return derive_private_key(self.provider, self.words, path)

    def get_public_key(self, path: str) -> bytes:
        self.calls.append(("get_public_key", path))
        return self.provider.public_key_of(self._key(path))

    def sign(self, path: str, message: bytes) -> bytes:
        self.calls.append(("sign", path))
        return self.provider.sign(self._key(path), message)


@pytest.fixture
def provider():
    return Secp256k1Provider()


@pytest.fixture
def device():
    return FakeDevice()


@pytest.fixture
def channel():
    return PendingRequestChannel()


@pytest.fixture
def config(device, channel):
    devices = DeviceManager()
    devices.register_device("default", device)
    return KeybaseConfig(
        devices=devices,
        offline_channel=channel,
        kdf=FAST_KDF,
        device_timeout=5.0,
        offline_timeout=5.0,
    )


@pytest.fixture
def kb(config):
    return Keybase(MemoryDB(), config)
