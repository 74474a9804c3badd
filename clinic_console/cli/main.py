"""Entry point for the command-line interface."""

from __future__ import annotations

import argparse

from .. import i18n
from ..i18n import _
from ..log import configure_logging, install_exception_hooks
from ..settings import AppSettings, load_app_settings
from .commands import COMMANDS

APP_NAME = "ClinicConsole"

i18n.install(APP_NAME)


def build_parser() -> argparse.ArgumentParser:
    """Construct argument parser for CLI commands."""
    parser = argparse.ArgumentParser(
        prog="clinic-console", description=_("Clinic records console")
    )
    parser.add_argument(
        "--settings",
        help=_("path to JSON/TOML settings"),
    )
    parser.add_argument(
        "--base-url",
        help=_("override the API base URL"),
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help=_("answer yes to every confirmation"),
    )
    sub = parser.add_subparsers(dest="command", required=True)
    for name, cmd in COMMANDS.items():
        p = sub.add_parser(name, help=cmd.help)
        cmd.add_arguments(p)
        p.set_defaults(func=cmd.func)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = AppSettings()
    if args.settings:
        try:
            settings = load_app_settings(args.settings)
        except (OSError, ValueError) as exc:
            parser.error(_("cannot load settings: {error}").format(error=exc))
    if args.base_url:
        settings.api.base_url = args.base_url
    configure_logging(settings.ui.log_level)
    install_exception_hooks()
    preferred_language = settings.ui.language
    if preferred_language:
        i18n.install(APP_NAME, languages=[preferred_language])
    args.app_settings = settings
    return int(args.func(args) or 0)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
