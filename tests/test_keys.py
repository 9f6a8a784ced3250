"""Tests for HD paths, derivation and the secp256k1 provider."""

import pytest

from keybase.errors import InvalidMnemonicLength, InvalidPath, InvalidPublicKey
from keybase.wallet.hd import (
    FUNDRAISER_PATH,
    BIP44Params,
    HARDENED_OFFSET,
    derive_private_key,
    parse_path,
)
from keybase.wallet.keys import Secp256k1Provider

from conftest import MNEMONIC_12, MNEMONIC_24

# BIP-39 reference seed for MNEMONIC_12 with an empty passphrase
MNEMONIC_12_SEED = (
    "5eb00bbddcf069084889a8ab9155568165f5c453ccb85e70811aaed6f6da5fc1"
    "9a5ac40b389cd370d086206dec8aa6c43daea6690f20ad3d8d48b2d2ce9e38e4"
)


class TestBIP44Params:

    def test_default_string(self):
        assert str(BIP44Params()) == "m/44'/118'/0'/0/0"

    def test_change_and_index(self):
        assert str(BIP44Params(account=2, change=True, address_index=7)) == "m/44'/118'/2'/1/7"

    def test_from_string_round_trip(self):
        params = BIP44Params(coin_type=60, account=1, change=True, address_index=3)
        assert BIP44Params.from_string(str(params)) == params

    @pytest.mark.parametrize("path", [
        "m/44'/118'/0'/0",
        "m/44/118'/0'/0/0",
        "m/44'/118'/0'/2/0",
        FUNDRAISER_PATH,
    ])
    def test_from_string_rejects(self, path):
        with pytest.raises(InvalidPath):
            BIP44Params.from_string(path)


class TestParsePath:

    def test_fundraiser_path_fully_hardened(self):
        segments = parse_path(FUNDRAISER_PATH)
        assert segments == [(44, True), (118, True), (0, True), (0, True), (0, True)]

    def test_without_prefix(self):
        assert parse_path("44'/118'/0'/0/0") == parse_path("m/44'/118'/0'/0/0")

    def test_h_marks_hardened(self):
        assert parse_path("m/44H/0h/1") == [(44, True), (0, True), (1, False)]

    @pytest.mark.parametrize("path", ["", "m", "m/x", "m/44'/-1", "m//0", f"m/{HARDENED_OFFSET}"])
    def test_invalid(self, path):
        with pytest.raises(InvalidPath):
            parse_path(path)


class TestMnemonics:

    def test_generate_24_words(self, provider):
        words = provider.generate_mnemonic(24)
        assert len(words.split()) == 24
        assert provider.validate_mnemonic(words)

    def test_generate_12_words(self, provider):
        assert len(provider.generate_mnemonic(12).split()) == 12

    def test_generate_fresh_entropy(self, provider):
        assert provider.generate_mnemonic(24) != provider.generate_mnemonic(24)

    def test_unsupported_length(self, provider):
        with pytest.raises(InvalidMnemonicLength):
            provider.generate_mnemonic(13)

    def test_validate(self, provider):
        assert provider.validate_mnemonic(MNEMONIC_12)
        assert provider.validate_mnemonic(MNEMONIC_24)
        # Bad checksum
        assert not provider.validate_mnemonic(" ".join(["abandon"] * 12))
        # Unknown word
        assert not provider.validate_mnemonic(MNEMONIC_12.replace("about", "zzzzz"))

    def test_seed_matches_bip39_vector(self, provider):
        assert provider.mnemonic_to_seed(MNEMONIC_12).hex() == MNEMONIC_12_SEED


class TestDerivation:

    def test_master_key_shape(self, provider):
        master, chain_code = provider.compute_master(provider.mnemonic_to_seed(MNEMONIC_12))
        assert len(master) == 32
        assert len(chain_code) == 32

    def test_deterministic(self, provider):
        first = derive_private_key(provider, MNEMONIC_12, FUNDRAISER_PATH)
        second = derive_private_key(provider, MNEMONIC_12, FUNDRAISER_PATH)
        assert first == second
        assert len(first) == 32

    def test_path_changes_key(self, provider):
        fundraiser = derive_private_key(provider, MNEMONIC_12, FUNDRAISER_PATH)
        soft = derive_private_key(provider, MNEMONIC_12, "m/44'/118'/0'/0/0")
        assert fundraiser != soft

    def test_words_change_key(self, provider):
        assert (derive_private_key(provider, MNEMONIC_12, FUNDRAISER_PATH)
                != derive_private_key(provider, MNEMONIC_24, FUNDRAISER_PATH))

    def test_matches_eth_account_for_ethereum_path(self, provider):
        """Soft and hardened steps agree with eth_account's own BIP-44 derivation."""
        from eth_account import Account
        Account.enable_unaudited_hdwallet_features()
        expected = Account.from_mnemonic(MNEMONIC_12, account_path="m/44'/60'/0'/0/0")
        priv = derive_private_key(provider, MNEMONIC_12, "m/44'/60'/0'/0/0")
        assert priv == bytes(expected.key)
        assert provider.address_of(provider.public_key_of(priv)) == expected.address

    def test_invalid_path(self, provider):
        with pytest.raises(InvalidPath):
            derive_private_key(provider, MNEMONIC_12, "m/44'/x")


class TestSigning:

    @pytest.fixture
    def priv_key(self, provider):
        return derive_private_key(provider, MNEMONIC_12, FUNDRAISER_PATH)

    def test_public_key_compressed(self, provider, priv_key):
        pub = provider.public_key_of(priv_key)
        assert len(pub) == 33
        assert pub[0] in (2, 3)

    def test_sign_and_verify(self, provider, priv_key):
        pub = provider.public_key_of(priv_key)
        signature = provider.sign(priv_key, b"message")
        assert len(signature) == 65
        assert provider.verify(pub, b"message", signature)
        assert not provider.verify(pub, b"other message", signature)

    def test_verify_garbage_signature(self, provider, priv_key):
        pub = provider.public_key_of(priv_key)
        assert not provider.verify(pub, b"message", b"\x00" * 10)

    def test_normalize_uncompressed(self, provider, priv_key):
        from eth_keys import keys
        public_key = keys.PrivateKey(priv_key).public_key
        compressed = provider.public_key_of(priv_key)
        assert provider.normalize_public_key(public_key.to_bytes()) == compressed
        assert provider.normalize_public_key(b"\x04" + public_key.to_bytes()) == compressed
        assert provider.normalize_public_key(compressed) == compressed

    @pytest.mark.parametrize("pub", [b"", b"\x02" * 10, b"\x05" + b"\x01" * 32, "02ab"])
    def test_invalid_public_key(self, provider, pub):
        with pytest.raises(InvalidPublicKey):
            provider.normalize_public_key(pub)

    def test_address(self, provider, priv_key):
        address = provider.address_of(provider.public_key_of(priv_key))
        assert address.startswith("0x")
        assert len(address) == 42
