"""
Keybase configuration.

Everything the keybase would otherwise take from process-wide state (record
codec, cryptography provider, signing devices, watch-only channel, KDF cost)
is carried by one KeybaseConfig passed to the Keybase constructor.

settings.json (all keys optional):

    {
        "kdf": {"time_cost": 3, "memory_cost": 65536, "parallelism": 4},
        "device_timeout": 30,
        "offline_timeout": null
    }
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .errors import ValidationError
from .models.info import InfoCodec
from .services.signing import AsyncSignatureChannel, SignatureChannel, StreamChannel
from .wallet.crypto import DEFAULT_ARGON2, Argon2Params
from .wallet.devices import DEFAULT_DEVICE_TIMEOUT, DeviceManager
from .wallet.keys import Secp256k1Provider

logger = logging.getLogger(__name__)


@dataclass
class KeybaseConfig:
    """Collaborators and tunables injected into a Keybase."""
    codec: InfoCodec = field(default_factory=InfoCodec)
    provider: Secp256k1Provider = field(default_factory=Secp256k1Provider)
    devices: DeviceManager = field(default_factory=DeviceManager)
    offline_channel: Union[SignatureChannel, AsyncSignatureChannel] = field(default_factory=StreamChannel)
    kdf: Argon2Params = DEFAULT_ARGON2
    device_timeout: float = DEFAULT_DEVICE_TIMEOUT
    offline_timeout: Optional[float] = None  # None = wait for the operator indefinitely

    @classmethod
    def from_settings(cls, settings: dict[str, Any], **overrides) -> "KeybaseConfig":
        """Build a config from a settings dict; unknown keys are ignored."""
        config = cls(**overrides)
        try:
            if "kdf" in settings and "kdf" not in overrides:
                kdf = settings["kdf"] or {}
                config.kdf = Argon2Params(
                    time_cost=int(kdf.get("time_cost", config.kdf.time_cost)),
                    memory_cost=int(kdf.get("memory_cost", config.kdf.memory_cost)),
                    parallelism=int(kdf.get("parallelism", config.kdf.parallelism)),
                )
            if "device_timeout" in settings and "device_timeout" not in overrides:
                config.device_timeout = float(settings["device_timeout"])
            if "offline_timeout" in settings and "offline_timeout" not in overrides:
                value = settings["offline_timeout"]
                config.offline_timeout = None if value is None else float(value)
        except (TypeError, ValueError, AttributeError) as e:
            raise ValidationError(f"invalid keybase settings: {e}") from e
        return config



def load_settings(path: Path) -> dict[str, Any]:
    """Load settings.json. A missing file yields an empty dict."""
    path = Path(path)
    if not path.exists():
        return {}
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise ValidationError(f"Failed to load settings from {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"settings in {path} must be a JSON object")
    logger.debug(f"Loaded keybase settings from {path}")
    return data
