"""
Keybase - Named identities over a key-value store.

Combines derivation, encryption and storage into a key manager:

    kb = Keybase(MemoryDB())
    info, mnemonic = kb.create_mnemonic("alice", passphrase="pw1")  # write the mnemonic down
    signature, pub_key = kb.sign("alice", "pw1", b"message")

Each record is one of three variants, and every operation that touches key
material handles all three explicitly:

- LocalInfo: private key stored encrypted under a passphrase
- HardwareInfo: private key on a signing device, addressed by path
- WatchOnlyInfo: public key only; signatures come from an operator channel

All derivation, validation and encryption happens before the single write of
a record, so a failed operation never leaves a partial record behind.
"""

import asyncio
import functools
import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable, Optional, Union

from .config import KeybaseConfig, load_settings
from .errors import (
    ConfirmationRequired,
    DecryptionFailed,
    DeviceUnavailable,
    InvalidMnemonic,
    InvalidMnemonicLength,
    InvalidPublicKey,
    KeybaseError,
    KeyAlreadyExists,
    KeyNotFound,
    MalformedArmor,
    NoPrivateKeyMaterial,
    StorageError,
    UnsupportedAlgorithm,
    UnsupportedLanguage,
    ValidationError,
    WrongKeyType,
)
from .models.info import (
    HardwareInfo,
    Info,
    LocalInfo,
    WatchOnlyInfo,
    INFO_SUFFIX,
    info_key,
    validate_name,
)
from .models.store import FileDB, KeyValueStore
from .services.signing import AsyncSignatureChannel, SigningRequest
from .utils import get_app_dir, get_keys_dir, get_settings_path
from .wallet.armor import (
    armor_info_bytes,
    armor_pub_key_bytes,
    encrypt_armor_priv_key,
    unarmor_decrypt_priv_key,
    unarmor_info_bytes,
    unarmor_pub_key_bytes,
)
from .wallet.devices import DEFAULT_DEVICE_NAME, call_device
from .wallet.hd import FUNDRAISER_PATH, BIP44Params, Language, SigningAlgo, derive_private_key, parse_path

logger = logging.getLogger(__name__)

# Words in a freshly generated mnemonic
DEFAULT_WORD_COUNT = 24

# Confirmation token for deleting keys that have no passphrase
DELETE_CONFIRMATION = "yes"

HDPath = Union[BIP44Params, str]


def _guard(fn):
    """Re-raise anything that is not a KeybaseError as one."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except KeybaseError:
            raise
        except Exception as e:
            # Only the exception type: messages from crypto libraries may echo inputs
            logger.error(f"Keybase {fn.__name__} failed: {type(e).__name__}")
            raise KeybaseError(f"{fn.__name__} failed: {type(e).__name__}") from e
    return wrapper


def _as_bytes(message: Union[bytes, str]) -> bytes:
    if isinstance(message, str):
        return message.encode('utf-8')
    return bytes(message)


class Keybase:
    """
    Key manager storing one record per name in a KeyValueStore.

    Not safe for concurrent writers: two creations of the same name race and
    the later write wins.
    """

    def __init__(self, db: KeyValueStore, config: Optional[KeybaseConfig] = None):
        self.db = db
        self.config = config or KeybaseConfig()

    @property
    def _provider(self):
        return self.config.provider

    @property
    def _codec(self):
        return self.config.codec

    # ============================================
    # Creation
    # ============================================

    @_guard
    def create_mnemonic(self, name: str, language: Language = Language.ENGLISH,
                        passphrase: str = "",
                        algo: SigningAlgo = SigningAlgo.SECP256K1) -> tuple[Info, str]:
        """
        Generate a new 24-word mnemonic and persist the key derived from it.

        With a passphrase the private key is stored encrypted (LocalInfo);
        without one only the public key is kept (WatchOnlyInfo).

        Returns:
            (info, mnemonic) - the mnemonic is not stored anywhere; this is
            the caller's only chance to record it.
        """
        if language != Language.ENGLISH:
            raise UnsupportedLanguage()
        if algo != SigningAlgo.SECP256K1:
            raise UnsupportedAlgorithm()
        self._ensure_free(name)

        mnemonic = self._provider.generate_mnemonic(DEFAULT_WORD_COUNT)
        info = self._persist_derived_key(name, mnemonic, passphrase, FUNDRAISER_PATH)
        return info, mnemonic

    @_guard
    def restore_from_mnemonic(self, name: str, mnemonic: str, passphrase: str = "") -> Info:
        """Recreate a key from a 12 or 24 word mnemonic at the fundraiser path."""
        words = self._check_mnemonic(
            mnemonic, (12, 24),
            "recovering only works with 12 word (fundraiser) or 24 word mnemonics")
        self._ensure_free(name)
        return self._persist_derived_key(name, words, passphrase, FUNDRAISER_PATH)

    @_guard
    def restore_fundraiser(self, name: str, mnemonic: str, passphrase: str = "") -> Info:
        """Recreate a fundraiser key; only 12 word mnemonics are accepted."""
        words = self._check_mnemonic(
            mnemonic, (12,), "recovering only works with 12 word (fundraiser) mnemonics")
        self._ensure_free(name)
        return self._persist_derived_key(name, words, passphrase, FUNDRAISER_PATH)

    @_guard
    def derive_at_path(self, name: str, mnemonic: str, passphrase: str, path: HDPath) -> Info:
        """Recreate a key from a mnemonic at an arbitrary HD path."""
        path = str(path)
        parse_path(path)
        words = self._check_mnemonic(mnemonic, None, "")
        self._ensure_free(name)
        return self._persist_derived_key(name, words, passphrase, path)

    @_guard
    def register_hardware(self, name: str, path: HDPath,
                          algo: SigningAlgo = SigningAlgo.SECP256K1,
                          device: str = DEFAULT_DEVICE_NAME) -> Info:
        """
        Store a reference to a key held by a signing device.

        The device is queried for its public key at path, so it must be
        connected even though nothing is signed.
        """
        if algo != SigningAlgo.SECP256K1:
            raise UnsupportedAlgorithm()
        path = str(path)
        parse_path(path)
        self._ensure_free(name)

        handle = self.config.devices.get_device(device)
        pub_key = call_device(handle.get_public_key, path, timeout=self.config.device_timeout)
        try:
            pub_key = self._provider.normalize_public_key(pub_key)
        except InvalidPublicKey as e:
            raise DeviceUnavailable(f"signing device '{device}' returned an invalid public key") from e

        info = HardwareInfo(name, pub_key, path, device)
        self._write_info(info)
        logger.info(f"Registered hardware key '{name}' on device '{device}' at {path}")
        return info

    @_guard
    def register_watch_only(self, name: str, pub_key: bytes) -> Info:
        """Store a public key with no private key on this host."""
        pub_key = self._provider.normalize_public_key(pub_key)
        self._ensure_free(name)
        info = WatchOnlyInfo(name, pub_key)
        self._write_info(info)
        logger.info(f"Registered watch-only key '{name}'")
        return info

    # ============================================
    # Lookup
    # ============================================

    @_guard
    def list_keys(self) -> list[Info]:
        """All keys, sorted by name. A fresh snapshot on every call."""
        infos = []
        for key, value in self.db.iterate():
            if key.endswith(INFO_SUFFIX.encode("utf-8")):
                infos.append(self._read_info(value))
        return sorted(infos, key=lambda info: info.name)

    @_guard
    def get(self, name: str) -> Info:
        """The key stored under name. Raises KeyNotFound."""
        raw = self.db.get(info_key(name))
        if not raw:
            raise KeyNotFound(name)
        return self._read_info(raw)

    def has(self, name: str) -> bool:
        return bool(self.db.get(info_key(name)))

    # ============================================
    # Signing
    # ============================================

    @_guard
    def sign(self, name: str, passphrase: str, message: Union[bytes, str]) -> tuple[bytes, bytes]:
        """
        Sign message with the named key.

        - Local: decrypts the private key with passphrase
        - Hardware: the device signs (and confirms with its user)
        - Watch-only: blocks until the operator channel returns a signature

        Returns: (signature, pub_key)
        """
        info = self.get(name)
        message = _as_bytes(message)

        if isinstance(info, LocalInfo):
            priv_key = self._unlock(info, passphrase)
            try:
                signature = self._provider.sign(priv_key, message)
                pub_key = self._provider.public_key_of(priv_key)
            finally:
                del priv_key
            logger.debug(f"Signed with local key '{name}'")
            return signature, pub_key
        elif isinstance(info, HardwareInfo):
            return self._sign_on_device(info, message)
        elif isinstance(info, WatchOnlyInfo):
            channel = self.config.offline_channel
            if isinstance(channel, AsyncSignatureChannel):
                raise KeybaseError("offline channel is asynchronous; use sign_async")
            request = SigningRequest(info.name, message, info.pub_key)
            reply = channel.request_signature(request, timeout=self.config.offline_timeout)
            return self._offline_reply(info, reply)
        raise TypeError(f"unknown key info type: {type(info).__name__}")

    async def sign_async(self, name: str, passphrase: str,
                         message: Union[bytes, str]) -> tuple[bytes, bytes]:
        """
        Awaitable sign.

        Watch-only keys await an AsyncSignatureChannel directly, so the
        request can be cancelled by cancelling the task. Everything else runs
        the synchronous path on a worker thread.
        """
        channel = self.config.offline_channel
        if isinstance(channel, AsyncSignatureChannel):
            info = await asyncio.to_thread(self.get, name)
            if isinstance(info, WatchOnlyInfo):
                request = SigningRequest(info.name, _as_bytes(message), info.pub_key)
                try:
                    reply = await channel.request_signature(request, timeout=self.config.offline_timeout)
                    return self._offline_reply(info, reply)
                except KeybaseError:
                    raise
                except Exception as e:
                    raise KeybaseError(f"sign_async failed: {type(e).__name__}") from e
        return await asyncio.to_thread(self.sign, name, passphrase, message)

    @_guard
    def verify(self, name: str, message: Union[bytes, str], signature: bytes) -> bool:
        """Check signature over message under the named key's public key."""
        info = self.get(name)
        return self._provider.verify(info.pub_key, _as_bytes(message), signature)

    def _sign_on_device(self, info: HardwareInfo, message: bytes) -> tuple[bytes, bytes]:
        device = self.config.devices.get_device(info.device)
        signature = call_device(device.sign, info.path, message, timeout=self.config.device_timeout)
        logger.debug(f"Signed with hardware key '{info.name}'")
        return bytes(signature), info.pub_key

    def _offline_reply(self, info: WatchOnlyInfo, reply) -> tuple[bytes, bytes]:
        signature = self._codec.decode_signature(reply)
        logger.info(f"Received external signature for watch-only key '{info.name}'")
        return signature, info.pub_key

    # ============================================
    # Export / Import
    # ============================================

    @_guard
    def export(self, name: str) -> str:
        """Armor the stored record. Local private keys stay encrypted inside it."""
        raw = self.db.get(info_key(name))
        if not raw:
            raise KeyNotFound(name)
        return armor_info_bytes(raw)

    @_guard
    def import_armor(self, name: str, armor: str) -> Info:
        """Store a record from export() under name. Fails if name is taken."""
        validate_name(name)
        self._ensure_free(name)
        try:
            info = self._codec.decode(unarmor_info_bytes(armor))
        except StorageError as e:
            raise MalformedArmor(f"armored key info is not a valid record: {e}") from e
        pub_key = self._provider.normalize_public_key(info.pub_key)
        info = replace(info.with_name(name), pub_key=pub_key)
        self._write_info(info)
        logger.info(f"Imported {info.key_type.value} key '{name}'")
        return info

    @_guard
    def export_pub_key(self, name: str) -> str:
        """Armor the public key of the named key."""
        return armor_pub_key_bytes(self.get(name).pub_key)

    @_guard
    def import_pub_key(self, name: str, armor: str) -> Info:
        """Store an armored public key as a watch-only key. Fails if name is taken."""
        validate_name(name)
        self._ensure_free(name)
        pub_key = self._provider.normalize_public_key(unarmor_pub_key_bytes(armor))
        info = WatchOnlyInfo(name, pub_key)
        self._write_info(info)
        logger.info(f"Imported public key '{name}'")
        return info

    @_guard
    def export_private_key(self, name: str, passphrase: str, export_passphrase: str) -> str:
        """
        Re-encrypt a local private key under export_passphrase for transport.

        Only works on local private keys.
        """
        if not export_passphrase:
            raise ValidationError("export passphrase must not be empty")
        info = self._require_local(self.get(name))
        priv_key = self._unlock(info, passphrase)
        try:
            return encrypt_armor_priv_key(priv_key, export_passphrase, self.config.kdf)
        finally:
            del priv_key

    @_guard
    def import_private_key(self, name: str, armor: str, passphrase: str) -> Info:
        """
        Store a private-key armor from export_private_key as a local key,
        encrypted under the same passphrase. Fails if name is taken.
        """
        if not passphrase:
            raise ValidationError("passphrase must not be empty")
        validate_name(name)
        self._ensure_free(name)
        priv_key = unarmor_decrypt_priv_key(armor, passphrase)
        try:
            info = self._local_info(name, priv_key, passphrase)
        finally:
            del priv_key
        self._write_info(info)
        logger.info(f"Imported private key '{name}'")
        return info

    # ============================================
    # Mutation
    # ============================================

    @_guard
    def rotate_passphrase(self, name: str, old_passphrase: str,
                          get_new_passphrase: Callable[[], str]) -> Info:
        """
        Change the passphrase a local key is encrypted with.

        get_new_passphrase is only called once old_passphrase has been
        verified.
        """
        info = self._require_local(self.get(name))
        priv_key = self._unlock(info, old_passphrase)
        try:
            try:
                new_passphrase = get_new_passphrase()
            except KeybaseError:
                raise
            except Exception as e:
                raise KeybaseError("could not obtain the new passphrase") from e
            if not new_passphrase:
                raise ValidationError("new passphrase must not be empty")
            new_info = self._local_info(name, priv_key, new_passphrase)
        finally:
            del priv_key
        self._write_info(new_info)
        logger.info(f"Rotated passphrase of key '{name}'")
        return new_info

    @_guard
    def delete(self, name: str, passphrase: str) -> None:
        """
        Remove a key forever.

        Local keys require their passphrase. Hardware and watch-only keys
        require the literal confirmation 'yes'.
        """
        info = self.get(name)

        if isinstance(info, LocalInfo):
            priv_key = self._unlock(info, passphrase)
            del priv_key
        elif isinstance(info, (HardwareInfo, WatchOnlyInfo)):
            if passphrase != DELETE_CONFIRMATION:
                raise ConfirmationRequired(
                    "enter 'yes' exactly to delete the key - this cannot be undone")
        else:
            raise TypeError(f"unknown key info type: {type(info).__name__}")

        self.db.delete_sync(info_key(name))
        logger.info(f"Deleted {info.key_type.value} key '{name}'")

    # ============================================
    # Internals
    # ============================================

    def _check_mnemonic(self, mnemonic: str, lengths: Optional[tuple[int, ...]], message: str) -> str:
        if not isinstance(mnemonic, str):
            raise InvalidMnemonic("mnemonic must be a string")
        words = mnemonic.split()
        if lengths is not None and len(words) not in lengths:
            raise InvalidMnemonicLength(f"{message}, got: {len(words)} words")
        phrase = " ".join(words)
        if not self._provider.validate_mnemonic(phrase):
            raise InvalidMnemonic("invalid mnemonic: unknown word or bad checksum")
        return phrase

    def _ensure_free(self, name: str) -> None:
        validate_name(name)
        if self.has(name):
            raise KeyAlreadyExists(name)

    def _persist_derived_key(self, name: str, words: str, passphrase: str, path: str) -> Info:
        priv_key = derive_private_key(self._provider, words, path)
        try:
            # With a passphrase, store the encrypted private key; else the public key only
            if passphrase:
                info = self._local_info(name, priv_key, passphrase)
            else:
                info = WatchOnlyInfo(name, self._provider.public_key_of(priv_key))
        finally:
            del priv_key
        self._write_info(info)
        logger.info(f"Stored {info.key_type.value} key '{name}' derived at {path}")
        return info

    def _local_info(self, name: str, priv_key: bytes, passphrase: str) -> LocalInfo:
        armor = encrypt_armor_priv_key(priv_key, passphrase, self.config.kdf)
        return LocalInfo(name, self._provider.public_key_of(priv_key), armor)

    def _unlock(self, info: LocalInfo, passphrase: str) -> bytes:
        if not info.priv_key_armor:
            raise NoPrivateKeyMaterial(f"private key not available for '{info.name}'")
        try:
            return unarmor_decrypt_priv_key(info.priv_key_armor, passphrase)
        except MalformedArmor as e:
            raise DecryptionFailed() from e
        except DecryptionFailed:
            logger.warning(f"Decryption failed for key '{info.name}'")
            raise

    def _require_local(self, info: Info) -> LocalInfo:
        if isinstance(info, LocalInfo):
            return info
        elif isinstance(info, (HardwareInfo, WatchOnlyInfo)):
            raise WrongKeyType(
                f"locally stored key required, '{info.name}' is {info.key_type.value}")
        raise TypeError(f"unknown key info type: {type(info).__name__}")

    def _read_info(self, raw: bytes) -> Info:
        return self._codec.decode(raw)

    def _write_info(self, info: Info) -> None:
        self.db.set_sync(info_key(info.name), self._codec.encode(info))


def open_keybase(home: Optional[Union[str, Path]] = None, **overrides) -> Keybase:
    """
    Open the file-backed keybase under home (default: $KEYBASE_HOME or
    ~/.keybase), applying settings.json when present. Keyword arguments
    override KeybaseConfig fields.
    """
    app_dir = Path(home) if home is not None else get_app_dir()
    app_dir.mkdir(parents=True, exist_ok=True)
    config = KeybaseConfig.from_settings(load_settings(get_settings_path(app_dir)), **overrides)
    return Keybase(FileDB(get_keys_dir(app_dir)), config)
