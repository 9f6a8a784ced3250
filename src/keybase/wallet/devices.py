"""
Hardware signing devices.

A device holds its private keys; the keybase only ever asks it for a public
key or a signature at a derivation path. Every call is bounded by a timeout
so a stuck peripheral surfaces as DeviceTimeout instead of hanging the caller.
"""

import logging
import threading
from typing import Callable, Protocol, TypeVar, runtime_checkable

from ..errors import DeviceTimeout, DeviceUnavailable, KeybaseError

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_NAME = "default"
DEFAULT_DEVICE_TIMEOUT = 30.0  # seconds

T = TypeVar("T")


@runtime_checkable
class SigningDevice(Protocol):
    """Minimal interface expected from a hardware signing device."""

    def get_public_key(self, path: str) -> bytes:
        """Return the compressed public key at path."""

    def sign(self, path: str, message: bytes) -> bytes:
        """Sign message with the key at path. The device confirms with the user."""


class DeviceManager:
    """Registry of connected signing devices, addressed by name."""

    def __init__(self):
        self._devices: dict[str, SigningDevice] = {}
        self._lock = threading.Lock()

    def register_device(self, name: str, device: SigningDevice) -> None:
        if not isinstance(device, SigningDevice):
            raise TypeError(f"{type(device).__name__} does not implement SigningDevice")
        with self._lock:
            self._devices[name] = device
        logger.info(f"Registered signing device '{name}'")

    def unregister_device(self, name: str) -> None:
        with self._lock:
            self._devices.pop(name, None)

    def get_device(self, name: str) -> SigningDevice:
        with self._lock:
            device = self._devices.get(name)
        if device is None:
            raise DeviceUnavailable(f"signing device '{name}' is not connected")
        return device

    def list_devices(self) -> list[str]:
        with self._lock:
            return sorted(self._devices)


def call_device(fn: Callable[..., T], *args, timeout: float = DEFAULT_DEVICE_TIMEOUT) -> T:
    """
    Run a device call on a worker thread with a deadline.

    Raises:
        DeviceTimeout: no answer within timeout seconds
        DeviceUnavailable: the device raised
    """
    outcome: dict[str, object] = {}
    done = threading.Event()

    def run():
        try:
            outcome["result"] = fn(*args)
        except BaseException as e:  # re-raised on the calling thread
            outcome["error"] = e
        finally:
            done.set()

    # Daemon thread: an unresponsive device must not block interpreter exit
    worker = threading.Thread(target=run, name="keybase-device", daemon=True)
    worker.start()

    if not done.wait(timeout):
        logger.warning(f"Signing device did not answer within {timeout}s")
        raise DeviceTimeout(f"signing device did not answer within {timeout}s")

    error = outcome.get("error")
    if error is not None:
        if isinstance(error, KeybaseError):
            raise error
        raise DeviceUnavailable(f"signing device failed: {error}") from error
    return outcome["result"]
