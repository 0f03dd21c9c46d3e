from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from lastedit import config
from lastedit.app.vault import Vault
from lastedit.controller import LastEditController
from lastedit.session import RestorationTracker
from lastedit.store import PositionStore

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="lastedit",
        description="Inspect and clean saved last edit locations for a vault.",
    )
    parser.add_argument("--vault", required=True, help="Path to the vault folder")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Settings file (default: $LASTEDIT_CONFIG or {config.GLOBAL_CONFIG})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("show", help="List saved positions and whether their note is still tracked")
    sub.add_parser("cleanup", help="Remove positions of deleted or excluded notes")
    return parser.parse_args(argv)


def _build_controller(vault: Vault, settings: config.LastEditSettings, config_path: Path) -> LastEditController:
    store = PositionStore(
        settings.cursor_position,
        persist=lambda: config.save_settings(settings, config_path),
    )
    return LastEditController(
        settings,
        store,
        RestorationTracker(),
        vault,
        active_editor=lambda: None,
        notify=print,
    )


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    verbose = args.verbose or config.debug_enabled()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    vault_root = Path(args.vault).expanduser()
    if not vault_root.is_dir():
        print(f"Error: vault folder not found: {vault_root}", file=sys.stderr)
        return 2
    config_path = Path(args.config).expanduser() if args.config else config.GLOBAL_CONFIG

    settings = config.load_settings(config_path)
    vault = Vault(vault_root)
    controller = _build_controller(vault, settings, config_path)

    if args.command == "show":
        valid = controller.valid_identifiers(vault.markdown_files())
        for identifier, pos in sorted(settings.cursor_position.items()):
            state = "tracked" if identifier in valid else "stale"
            print(f"{identifier}\tline={pos.line} ch={pos.ch}\t{state}")
        print(f"{len(settings.cursor_position)} saved position(s), source={settings.identifier_source.value}")
        return 0

    controller.cleanup(vault.markdown_files())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
