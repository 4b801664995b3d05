import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from softap_configd.ap_config import AccessPointConfig, SecurityType
from softap_configd.config import load_settings
from softap_configd.logging import setup_logging
from softap_configd.provider import LoggingBackupNotifier, OverlayConfigProvider
from softap_configd.store import ApConfigStore
from softap_configd.validation import check_ap_configuration

log = logging.getLogger("softap_configd.main")

EXIT_OK = 0
EXIT_INVALID = 2


def _print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _add_config_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--ssid", required=True)
    sec = p.add_mutually_exclusive_group(required=True)
    sec.add_argument("--open", action="store_true", help="open network, no password")
    sec.add_argument("--psk", help="WPA2-PSK passphrase (8-63 bytes)")
    p.add_argument("--band", type=int, default=0)
    p.add_argument("--channel", type=int, default=0)


def _config_from_args(args: argparse.Namespace) -> AccessPointConfig:
    security = SecurityType.OPEN if args.open else SecurityType.WPA2_PSK
    return AccessPointConfig.create(
        ssid=args.ssid,
        security=security,
        pre_shared_key=None if args.open else args.psk,
        ap_band=args.band,
        ap_channel=args.channel,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="softap-configd", description="SoftAP configuration store")
    parser.add_argument("--config-file", help="softap.conf location")
    parser.add_argument("--concurrency-file", help="vendor concurrency template")
    parser.add_argument("--overlay-file", help="JSON platform overlay")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")

    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="print the active configuration")
    show.add_argument("--reveal-psk", action="store_true")

    sub.add_parser("reset", help="replace the configuration with a fresh default")

    set_p = sub.add_parser("set", help="validate and store a configuration")
    _add_config_args(set_p)

    val = sub.add_parser("validate", help="check a configuration without storing it")
    _add_config_args(val)

    sub.add_parser("concurrency", help="print concurrency flags and interface roles")

    local = sub.add_parser("local-only", help="print an ephemeral local-only hotspot config")
    local.add_argument("--reveal-psk", action="store_true")
    return parser


def build_store(args: argparse.Namespace) -> ApConfigStore:
    settings = load_settings()
    return ApConfigStore(
        provider=OverlayConfigProvider(args.overlay_file or settings.overlay_file),
        backup_notifier=LoggingBackupNotifier(),
        ap_config_file=args.config_file or settings.ap_config_file,
        concurrency_template_file=args.concurrency_file or settings.concurrency_template_file,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    # stdout carries the JSON result; keep log lines off it.
    setup_logging(args.log_level, stream=sys.stderr)

    if args.command == "validate":
        failure = check_ap_configuration(_config_from_args(args))
        _print_json({"valid": failure is None, "error": failure.value if failure else None})
        return EXIT_OK if failure is None else EXIT_INVALID

    store = build_store(args)

    if args.command == "show":
        _print_json(store.get_ap_configuration().to_dict(reveal_psk=args.reveal_psk))
    elif args.command == "reset":
        written = store.set_ap_configuration(None)
        _print_json({"written": written, "config": store.get_ap_configuration().redacted()})
    elif args.command == "set":
        cfg = _config_from_args(args)
        failure = store.validate(cfg)
        if failure is not None:
            log.warning("softap_config_rejected", extra={"rule": failure.value, "op": "set"})
            _print_json({"written": False, "error": failure.value})
            return EXIT_INVALID
        written = store.set_ap_configuration(cfg)
        _print_json({"written": written, "config": store.get_ap_configuration().redacted()})
    elif args.command == "concurrency":
        _print_json(
            {
                "concurrency": asdict(store.get_concurrency_config()),
                "interfaces": asdict(store.get_interface_roles()),
                "allowed_2g_channels": store.get_allowed_2g_channels(),
            }
        )
    elif args.command == "local-only":
        _print_json(store.generate_local_only_config().to_dict(reveal_psk=args.reveal_psk))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
