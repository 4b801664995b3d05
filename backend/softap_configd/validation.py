"""
Validation gate for caller-supplied softAP configurations.

Rules run in a fixed order and stop at the first failure. Only open and
WPA2-PSK networks are accepted.
"""

import logging
from enum import Enum
from typing import List, Optional

from softap_configd.ap_config import AccessPointConfig, AuthDerivation, KeyMgmt

log = logging.getLogger("softap_configd.validation")

SSID_MIN_LEN = 1
SSID_MAX_LEN = 32
PSK_MIN_LEN = 8
PSK_MAX_LEN = 63


class ValidationFailure(str, Enum):
    EMPTY_SSID = "empty_ssid"
    SSID_LENGTH_OUT_OF_RANGE = "ssid_length_out_of_range"
    MALFORMED_SSID_ENCODING = "malformed_ssid_encoding"
    MISSING_CAPABILITIES = "missing_capabilities"
    AMBIGUOUS_AUTH_TYPE = "ambiguous_auth_type"
    UNSUPPORTED_AUTH_TYPE = "unsupported_auth_type"
    PASSWORD_ON_OPEN_NETWORK = "password_on_open_network"
    MISSING_PASSWORD = "missing_password"
    PASSWORD_LENGTH_OUT_OF_RANGE = "password_length_out_of_range"
    MALFORMED_PASSWORD_ENCODING = "malformed_password_encoding"


def _utf8_len(value: str) -> int:
    # surrogatepass: a lone surrogate still has a length, it just isn't encodable.
    return len(value.encode("utf-8", "surrogatepass"))


def _utf8_encodable(value: str) -> bool:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _fail(failure: ValidationFailure, field: str, detail: str) -> ValidationFailure:
    log.debug("softap_config_rejected %s", detail, extra={"field": field, "rule": failure.value})
    return failure


def check_ssid(ssid: Optional[str]) -> Optional[ValidationFailure]:
    if not ssid:
        return _fail(ValidationFailure.EMPTY_SSID, "ssid", "ssid must be set")

    size = _utf8_len(ssid)
    if size < SSID_MIN_LEN or size > SSID_MAX_LEN:
        return _fail(
            ValidationFailure.SSID_LENGTH_OUT_OF_RANGE,
            "ssid",
            f"ssid is {size} bytes, allowed {SSID_MIN_LEN}..{SSID_MAX_LEN}",
        )

    if not _utf8_encodable(ssid):
        return _fail(ValidationFailure.MALFORMED_SSID_ENCODING, "ssid", "ssid is not valid utf-8")
    return None


def check_pre_shared_key(psk: str) -> Optional[ValidationFailure]:
    size = _utf8_len(psk)
    if size < PSK_MIN_LEN or size > PSK_MAX_LEN:
        return _fail(
            ValidationFailure.PASSWORD_LENGTH_OUT_OF_RANGE,
            "pre_shared_key",
            f"password is {size} bytes, allowed {PSK_MIN_LEN}..{PSK_MAX_LEN}",
        )
    if not _utf8_encodable(psk):
        return _fail(
            ValidationFailure.MALFORMED_PASSWORD_ENCODING,
            "pre_shared_key",
            "password is not valid utf-8",
        )
    return None


def check_security(config: AccessPointConfig) -> Optional[ValidationFailure]:
    if config.allowed_key_management is None:
        return _fail(
            ValidationFailure.MISSING_CAPABILITIES,
            "allowed_key_management",
            "key management set is unset",
        )

    auth = config.auth_type()
    if auth is AuthDerivation.UNSUPPORTED:
        return _fail(
            ValidationFailure.UNSUPPORTED_AUTH_TYPE,
            "allowed_key_management",
            "unknown auth type code, use open or wpa2_psk",
        )
    if isinstance(auth, AuthDerivation):
        return _fail(
            ValidationFailure.AMBIGUOUS_AUTH_TYPE,
            "allowed_key_management",
            f"cannot derive auth type ({auth.value})",
        )

    has_psk = bool(config.pre_shared_key)
    if auth == KeyMgmt.NONE:
        if has_psk:
            return _fail(
                ValidationFailure.PASSWORD_ON_OPEN_NETWORK,
                "pre_shared_key",
                "open network must not carry a password",
            )
        return None

    if auth == KeyMgmt.WPA2_PSK:
        if not has_psk:
            return _fail(ValidationFailure.MISSING_PASSWORD, "pre_shared_key", "password must be set")
        return check_pre_shared_key(config.pre_shared_key)

    return _fail(
        ValidationFailure.UNSUPPORTED_AUTH_TYPE,
        "allowed_key_management",
        f"auth type {auth.name} not supported, use open or wpa2_psk",
    )


def check_ap_configuration(config: AccessPointConfig) -> Optional[ValidationFailure]:
    """
    Return the first rule the config violates, or None if it is acceptable.
    """
    return check_ssid(config.ssid) or check_security(config)


def validate_ap_configuration(config: AccessPointConfig) -> bool:
    return check_ap_configuration(config) is None


def collect_violations(config: AccessPointConfig) -> List[ValidationFailure]:
    """
    One failure per rule group (ssid, security), for diagnostics.
    """
    out: List[ValidationFailure] = []
    for failure in (check_ssid(config.ssid), check_security(config)):
        if failure is not None:
            out.append(failure)
    return out
