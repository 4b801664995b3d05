import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from softap_configd.concurrency import DEFAULT_CONCURRENCY_TEMPLATE

DEFAULT_AP_CONFIG_FILE = Path("/data/misc/wifi/softap.conf")
DEFAULT_OVERLAY_FILE = Path("/etc/softap-configd/overlay.json")

ENV_AP_CONFIG_FILE = "SOFTAP_CONFIGD_AP_CONFIG_FILE"
ENV_CONCURRENCY_FILE = "SOFTAP_CONFIGD_CONCURRENCY_FILE"
ENV_OVERLAY_FILE = "SOFTAP_CONFIGD_OVERLAY_FILE"
ENV_LOG_LEVEL = "SOFTAP_CONFIGD_LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    ap_config_file: Path = DEFAULT_AP_CONFIG_FILE
    concurrency_template_file: Path = DEFAULT_CONCURRENCY_TEMPLATE
    overlay_file: Path = DEFAULT_OVERLAY_FILE


def _env_path(env: Mapping[str, str], name: str, default: Path) -> Path:
    raw = (env.get(name) or "").strip()
    return Path(raw) if raw else default


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Resolve file locations, letting the environment override each default.
    """
    env = os.environ if env is None else env
    return Settings(
        ap_config_file=_env_path(env, ENV_AP_CONFIG_FILE, DEFAULT_AP_CONFIG_FILE),
        concurrency_template_file=_env_path(env, ENV_CONCURRENCY_FILE, DEFAULT_CONCURRENCY_TEMPLATE),
        overlay_file=_env_path(env, ENV_OVERLAY_FILE, DEFAULT_OVERLAY_FILE),
    )
