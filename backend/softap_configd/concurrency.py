import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, List, Optional, Union

log = logging.getLogger("softap_configd.concurrency")

DEFAULT_CONCURRENCY_TEMPLATE = Path("/vendor/etc/wifi/wifi_concurrency_cfg.txt")

ENABLE_STA_SAP = "ENABLE_STA_SAP_CONCURRENCY:"
SAP_CHANNEL = "SAP_CHANNEL:"

_DECIMAL_RE = re.compile(r"^[+-]?[0-9]+$")
_INT_MIN = -(2 ** 31)
_INT_MAX = 2 ** 31 - 1


@dataclass
class ConcurrencyConfig:
    sta_sap_concurrent_enabled: bool = False
    sap_channel: int = 0
    dual_sap_supported: bool = False
    dual_sap_interfaces: List[str] = field(default_factory=list)
    # Runtime only; never persisted.
    dual_sap_active: bool = False

    def copy(self) -> "ConcurrencyConfig":
        return replace(self, dual_sap_interfaces=list(self.dual_sap_interfaces))


def _value_after(line: str, prefix: str) -> str:
    return line[len(prefix):].replace("\r", "").replace("\n", "")


def _parse_int(value: str) -> Optional[int]:
    if not _DECIMAL_RE.match(value):
        return None
    parsed = int(value)
    if not _INT_MIN <= parsed <= _INT_MAX:
        return None
    return parsed


def parse_concurrency_lines(
    lines: Iterable[str],
    initial: Optional[ConcurrencyConfig] = None,
) -> ConcurrencyConfig:
    """
    Apply KEY:VALUE lines from the vendor template.

    A field is only updated on a clean integer parse; bad values are logged
    and the previous value stays.
    """
    cfg = initial.copy() if initial else ConcurrencyConfig()
    for line in lines:
        log.debug("concurrency_cfg_line %s", line.rstrip("\r\n"))
        if line.startswith(ENABLE_STA_SAP):
            value = _parse_int(_value_after(line, ENABLE_STA_SAP))
            if value is None:
                log.error("concurrency_cfg_bad_format %r", line.rstrip("\r\n"), extra={"field": "sta_sap_concurrency"})
                continue
            cfg.sta_sap_concurrent_enabled = value == 1
        elif line.startswith(SAP_CHANNEL):
            value = _parse_int(_value_after(line, SAP_CHANNEL))
            if value is None:
                log.error("concurrency_cfg_bad_format %r", line.rstrip("\r\n"), extra={"field": "sap_channel"})
                continue
            cfg.sap_channel = value
    return cfg


def read_concurrency_config(
    path: Union[str, Path] = DEFAULT_CONCURRENCY_TEMPLATE,
    initial: Optional[ConcurrencyConfig] = None,
) -> ConcurrencyConfig:
    """
    Parse the template once. A missing file just means the feature is off.
    """
    path = Path(path)
    cfg = initial.copy() if initial else ConcurrencyConfig()
    if not path.is_file():
        log.debug("concurrency_cfg_absent", extra={"path": str(path)})
        return cfg

    log.debug("concurrency_cfg_reading", extra={"path": str(path)})
    try:
        with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
            for line in f:
                # One line at a time so a mid-file read error keeps earlier values.
                cfg = parse_concurrency_lines([line], cfg)
    except OSError as e:
        log.error("concurrency_cfg_read_failed %s", e, extra={"path": str(path)})
    return cfg
