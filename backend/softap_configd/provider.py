"""
Platform collaborators: the resource overlay and the backup notifier.

The store only sees these two narrow interfaces, so tests can hand it a
StaticConfigProvider instead of a real overlay.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

log = logging.getLogger("softap_configd.provider")

DEFAULT_OVERLAY: Dict[str, Any] = {
    "wifi_tether_configure_ssid_default": "AndroidAP",
    "wifi_localhotspot_configure_ssid_default": "AndroidShare",
    # Comma-separated like the platform resource, or a JSON list.
    "config_wifi_framework_sap_2G_channel_list": "1,6,11",
    "config_tether_wifi_regexs": ["wlan0"],
    "config_wifi_dual_sap_mode_enabled": False,
    "config_wifi_dual_sap_interfaces": [],
}


class ConfigProvider(Protocol):
    def default_ssid_template(self) -> str: ...

    def local_only_ssid_template(self) -> str: ...

    def allowed_2g_channels(self) -> Optional[List[int]]: ...

    def softap_interface_candidates(self) -> List[str]: ...

    def dual_sap_enabled(self) -> bool: ...

    def dual_sap_interfaces(self) -> List[str]: ...


class BackupNotifier(Protocol):
    def notify_changed(self) -> None: ...


def parse_channel_list(value: Union[None, str, Iterable[Any]]) -> Optional[List[int]]:
    """
    Accept "1,6,11" or [1, 6, 11]. Entries that are not integers are skipped.
    """
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else list(value)
    channels: List[int] = []
    for item in items:
        token = str(item).strip()
        if not token:
            continue
        try:
            channels.append(int(token))
        except ValueError:
            log.warning("overlay_bad_channel_entry %r", token, extra={"field": "allowed_2g_channels"})
    return channels


def _str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


class StaticConfigProvider:
    def __init__(self, overlay: Optional[Dict[str, Any]] = None, **overrides: Any):
        merged = dict(DEFAULT_OVERLAY)
        merged.update(overlay or {})
        merged.update(overrides)
        self._overlay = merged

    @property
    def overlay(self) -> Dict[str, Any]:
        return dict(self._overlay)

    def default_ssid_template(self) -> str:
        return str(self._overlay["wifi_tether_configure_ssid_default"])

    def local_only_ssid_template(self) -> str:
        return str(self._overlay["wifi_localhotspot_configure_ssid_default"])

    def allowed_2g_channels(self) -> Optional[List[int]]:
        return parse_channel_list(self._overlay.get("config_wifi_framework_sap_2G_channel_list"))

    def softap_interface_candidates(self) -> List[str]:
        return _str_list(self._overlay.get("config_tether_wifi_regexs"))

    def dual_sap_enabled(self) -> bool:
        return bool(self._overlay.get("config_wifi_dual_sap_mode_enabled", False))

    def dual_sap_interfaces(self) -> List[str]:
        return _str_list(self._overlay.get("config_wifi_dual_sap_interfaces"))


def read_overlay_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Returns the raw JSON overlay on disk (or {} if missing/invalid).
    """
    path = Path(path)
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("overlay_unreadable %s", e, extra={"path": str(path)})
        return {}
    return data if isinstance(data, dict) else {}


class OverlayConfigProvider(StaticConfigProvider):
    """
    DEFAULT_OVERLAY merged with a JSON overlay file, read once.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(read_overlay_file(self.path))


class NullBackupNotifier:
    def notify_changed(self) -> None:
        return None


class LoggingBackupNotifier:
    def __init__(self):
        self._lock = threading.Lock()
        self.count = 0

    def notify_changed(self) -> None:
        with self._lock:
            self.count += 1
            n = self.count
        log.info("backup_data_changed", extra={"op": f"notify#{n}"})
