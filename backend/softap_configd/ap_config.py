"""
SoftAP configuration data model.

KeyMgmt values are the auth-type codes written to disk, so they must not be
renumbered. SecurityType is the subset a softAP may actually run with.
"""

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union


AP_BAND_2GHZ = 0
AP_BAND_5GHZ = 1

INVALID_NETWORK_ID = -1
LOCAL_ONLY_NETWORK_ID = -2


class KeyMgmt(IntEnum):
    NONE = 0
    WPA_PSK = 1
    WPA_EAP = 2
    IEEE8021X = 3
    WPA2_PSK = 4


class SecurityType(Enum):
    OPEN = "open"
    WPA2_PSK = "wpa2_psk"


class AuthDerivation(Enum):
    AMBIGUOUS = "ambiguous"
    UNSET = "unset"
    UNSUPPORTED = "unsupported"


AuthTypeResult = Union[KeyMgmt, AuthDerivation]

# Decision table: supported security variants and their on-disk auth codes.
SECURITY_AUTH_TYPES: Dict[SecurityType, KeyMgmt] = {
    SecurityType.OPEN: KeyMgmt.NONE,
    SecurityType.WPA2_PSK: KeyMgmt.WPA2_PSK,
}
_AUTH_TYPE_SECURITY: Dict[KeyMgmt, SecurityType] = {v: k for k, v in SECURITY_AUTH_TYPES.items()}


def derive_auth_type(key_mgmt: Optional[Iterable[KeyMgmt]]) -> AuthTypeResult:
    """
    Reduce a key-management capability set to a single auth type.

    Never raises: an empty/None set is UNSET, more than one bit is AMBIGUOUS
    and a single code outside KeyMgmt is UNSUPPORTED.
    """
    if key_mgmt is None:
        return AuthDerivation.UNSET
    members = set(key_mgmt)
    if not members:
        return AuthDerivation.UNSET
    if len(members) > 1:
        return AuthDerivation.AMBIGUOUS
    try:
        return KeyMgmt(next(iter(members)))
    except ValueError:
        return AuthDerivation.UNSUPPORTED


@dataclass
class AccessPointConfig:
    ssid: str
    ap_band: int = AP_BAND_2GHZ
    ap_channel: int = 0
    allowed_key_management: Optional[FrozenSet[KeyMgmt]] = field(
        default_factory=lambda: frozenset({KeyMgmt.NONE})
    )
    pre_shared_key: Optional[str] = None
    network_id: int = INVALID_NETWORK_ID

    @classmethod
    def create(
        cls,
        ssid: str,
        security: SecurityType = SecurityType.OPEN,
        pre_shared_key: Optional[str] = None,
        ap_band: int = AP_BAND_2GHZ,
        ap_channel: int = 0,
        network_id: int = INVALID_NETWORK_ID,
    ) -> "AccessPointConfig":
        return cls(
            ssid=ssid,
            ap_band=ap_band,
            ap_channel=ap_channel,
            allowed_key_management=frozenset({SECURITY_AUTH_TYPES[security]}),
            pre_shared_key=pre_shared_key,
            network_id=network_id,
        )

    def auth_type(self) -> AuthTypeResult:
        return derive_auth_type(self.allowed_key_management)

    @property
    def security_type(self) -> Optional[SecurityType]:
        auth = self.auth_type()
        if isinstance(auth, KeyMgmt):
            return _AUTH_TYPE_SECURITY.get(auth)
        return None

    def copy(self) -> "AccessPointConfig":
        return replace(self)

    def to_dict(self, reveal_psk: bool = False) -> Dict[str, Any]:
        auth = self.auth_type()
        psk: Optional[str] = self.pre_shared_key
        if psk and not reveal_psk:
            psk = "********"
        return {
            "ssid": self.ssid,
            "ap_band": self.ap_band,
            "ap_channel": self.ap_channel,
            "auth_type": auth.name if isinstance(auth, KeyMgmt) else auth.value,
            "security": self.security_type.value if self.security_type else None,
            "pre_shared_key": psk,
            "network_id": self.network_id,
        }

    def redacted(self) -> Dict[str, Any]:
        return self.to_dict(reveal_psk=False)
