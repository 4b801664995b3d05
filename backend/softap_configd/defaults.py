import random
import uuid
from typing import Callable, Optional

from softap_configd.ap_config import (
    INVALID_NETWORK_ID,
    LOCAL_ONLY_NETWORK_ID,
    AccessPointConfig,
    SecurityType,
)

RAND_SSID_INT_MIN = 1000
RAND_SSID_INT_MAX = 9999

UuidFactory = Callable[[], uuid.UUID]

_SYSTEM_RANDOM = random.SystemRandom()


def random_ssid_suffix(rng: Optional[random.Random] = None) -> int:
    return (rng or _SYSTEM_RANDOM).randint(RAND_SSID_INT_MIN, RAND_SSID_INT_MAX)


def random_psk(uuid_factory: Optional[UuidFactory] = None) -> str:
    """
    First 12 hex digits of xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx (hyphen skipped).
    """
    text = str((uuid_factory or uuid.uuid4)())
    return text[0:8] + text[9:13]


def _generate(
    ssid_template: str,
    network_id: int,
    rng: Optional[random.Random],
    uuid_factory: Optional[UuidFactory],
) -> AccessPointConfig:
    return AccessPointConfig.create(
        ssid=f"{ssid_template}_{random_ssid_suffix(rng)}",
        security=SecurityType.WPA2_PSK,
        pre_shared_key=random_psk(uuid_factory),
        network_id=network_id,
    )


def generate_default_config(
    ssid_template: str,
    rng: Optional[random.Random] = None,
    uuid_factory: Optional[UuidFactory] = None,
) -> AccessPointConfig:
    """
    WPA2 default with a random password, so a fresh device never comes up open.
    """
    return _generate(ssid_template, INVALID_NETWORK_ID, rng, uuid_factory)


def generate_local_only_config(
    ssid_template: str,
    rng: Optional[random.Random] = None,
    uuid_factory: Optional[UuidFactory] = None,
) -> AccessPointConfig:
    """
    Temporary WPA2 config for a local-only hotspot. Never persisted.
    """
    return _generate(ssid_template, LOCAL_ONLY_NETWORK_ID, rng, uuid_factory)
