"""
Process-wide owner of the active softAP configuration.

Construct one ApConfigStore and pass it to whoever needs it. Every accessor
takes the same lock because callers come from independent threads (API
handlers and the AP state machine).
"""

import logging
import random
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from softap_configd import codec, defaults, validation
from softap_configd.ap_config import AccessPointConfig
from softap_configd.concurrency import (
    DEFAULT_CONCURRENCY_TEMPLATE,
    ConcurrencyConfig,
    read_concurrency_config,
)
from softap_configd.config import DEFAULT_AP_CONFIG_FILE
from softap_configd.errors import DecodeError, EncodeError, PersistenceFailure
from softap_configd.provider import BackupNotifier, ConfigProvider

log = logging.getLogger("softap_configd.store")

IFACE_WLAN0 = "wlan0"
IFACE_SOFTAP0 = "softap0"
IFACE_BRIDGE = "wifi_br0"


class StoreState(str, Enum):
    LOADED = "loaded"
    DEFAULT_GENERATED = "default_generated"
    PERSISTED = "persisted"
    ACTIVE = "active"


@dataclass(frozen=True)
class InterfaceRoles:
    sap_interface: Optional[str] = None
    bridge_interface: Optional[str] = None
    sap_new_interface_required: bool = False


def derive_interface_roles(candidates: List[str]) -> InterfaceRoles:
    sap: Optional[str] = None
    bridge: Optional[str] = None
    create_intf = False
    for name in candidates:
        if name == IFACE_WLAN0:
            sap = name
        elif name == IFACE_SOFTAP0:
            sap = name
            create_intf = True
        elif name == IFACE_BRIDGE:
            bridge = name
    return InterfaceRoles(sap_interface=sap, bridge_interface=bridge, sap_new_interface_required=create_intf)


class ApConfigStore:
    def __init__(
        self,
        provider: ConfigProvider,
        backup_notifier: BackupNotifier,
        ap_config_file: Union[str, Path, None] = None,
        concurrency_template_file: Union[str, Path, None] = None,
        rng: Optional[random.Random] = None,
        uuid_factory: Optional[defaults.UuidFactory] = None,
    ):
        self._lock = threading.RLock()
        self._provider = provider
        self._backup_notifier = backup_notifier
        self._path = Path(ap_config_file) if ap_config_file else DEFAULT_AP_CONFIG_FILE
        self._rng = rng
        self._uuid_factory = uuid_factory

        # Nothing below needs the lock: the instance isn't published yet.
        self.load_state = StoreState.LOADED
        try:
            self._ap_config = codec.read_config_file(self._path)
            log.info("softap_config_loaded", extra={"path": str(self._path), "state": self.load_state.value})
        except DecodeError as e:
            log.warning(
                "softap_config_fallback_to_default %s",
                e,
                extra={"path": str(self._path), "kind": e.kind.value},
            )
            self._ap_config = self._generate_default()
            self.load_state = StoreState.DEFAULT_GENERATED
            if self._persist(self._ap_config, op="init"):
                self.load_state = StoreState.PERSISTED

        self._allowed_2g_channels = provider.allowed_2g_channels()
        log.debug("allowed_2g_channels %s", self._allowed_2g_channels)

        self._roles = derive_interface_roles(provider.softap_interface_candidates())

        template = Path(concurrency_template_file) if concurrency_template_file else DEFAULT_CONCURRENCY_TEMPLATE
        self._concurrency = read_concurrency_config(
            template,
            ConcurrencyConfig(
                dual_sap_supported=provider.dual_sap_enabled(),
                dual_sap_interfaces=list(provider.dual_sap_interfaces()),
            ),
        )

    @property
    def path(self) -> Path:
        return self._path

    def _generate_default(self) -> AccessPointConfig:
        return defaults.generate_default_config(
            self._provider.default_ssid_template(),
            rng=self._rng,
            uuid_factory=self._uuid_factory,
        )

    def _persist(self, config: AccessPointConfig, op: str) -> bool:
        try:
            codec.write_config_file(self._path, config)
        except (OSError, EncodeError) as e:
            # Previous file is untouched; in-memory state still follows the caller.
            failure = PersistenceFailure(str(self._path), f"{type(e).__name__}: {e}")
            log.error("softap_config_write_failed %s", failure.reason, extra={"path": failure.path, "op": op})
            return False
        log.info("softap_config_written", extra={"path": str(self._path), "op": op})
        return True

    def get_ap_configuration(self) -> AccessPointConfig:
        with self._lock:
            return self._ap_config.copy()

    def set_ap_configuration(self, config: Optional[AccessPointConfig] = None) -> bool:
        """
        Replace and persist the active config; None restores a fresh default.

        The config is stored as given. Callers that accept external input
        must run validation.check_ap_configuration() first.
        """
        with self._lock:
            try:
                if config is None:
                    self._ap_config = self._generate_default()
                    op = "reset"
                else:
                    self._ap_config = config.copy()
                    op = "set"
                written = self._persist(self._ap_config, op=op)
                self.load_state = StoreState.ACTIVE
            finally:
                # Signalled even when the bytes didn't change (or the write failed).
                self._backup_notifier.notify_changed()
            return written

    def validate(self, config: AccessPointConfig) -> Optional[validation.ValidationFailure]:
        return validation.check_ap_configuration(config)

    def generate_local_only_config(self) -> AccessPointConfig:
        return defaults.generate_local_only_config(
            self._provider.local_only_ssid_template(),
            rng=self._rng,
            uuid_factory=self._uuid_factory,
        )

    def get_allowed_2g_channels(self) -> Optional[List[int]]:
        with self._lock:
            if self._allowed_2g_channels is None:
                return None
            return list(self._allowed_2g_channels)

    def get_concurrency_config(self) -> ConcurrencyConfig:
        with self._lock:
            return self._concurrency.copy()

    def get_interface_roles(self) -> InterfaceRoles:
        with self._lock:
            return self._roles

    def get_sta_sap_concurrency(self) -> bool:
        with self._lock:
            return self._concurrency.sta_sap_concurrent_enabled

    def get_config_file_channel(self) -> int:
        with self._lock:
            return self._concurrency.sap_channel

    def get_sap_interface(self) -> Optional[str]:
        with self._lock:
            return self._roles.sap_interface

    def get_bridge_interface(self) -> Optional[str]:
        with self._lock:
            return self._roles.bridge_interface

    def is_sap_new_intf_required(self) -> bool:
        with self._lock:
            return self._roles.sap_new_interface_required

    def is_dual_sap_supported(self) -> bool:
        with self._lock:
            return self._concurrency.dual_sap_supported

    def get_dual_sap_interfaces(self) -> List[str]:
        with self._lock:
            return list(self._concurrency.dual_sap_interfaces)

    def get_dual_sap_status(self) -> bool:
        with self._lock:
            return self._concurrency.dual_sap_active

    def set_dual_sap_status(self, enable: bool) -> None:
        with self._lock:
            self._concurrency.dual_sap_active = bool(enable)
