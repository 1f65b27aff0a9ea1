"""Command-line interface for previewing and administering the widget."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from .config import AppConfig, parse_app_config
from .models import (
    AUTHOR_FIELD,
    BANNER_FIELD,
    COUNT_FIELD,
    PUBDATE_FIELD,
    SHOW_TITLE_FIELD,
    TITLE_FIELD,
    SettingsRecord,
    default_settings,
)
from .store import (
    create_instance,
    get_instance,
    get_session_factory,
    init_engine,
    list_instances,
    save_instance,
)
from .widget import RecentEssaysWidget, WidgetRegistry, register_widgets

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Preview and configure the HeroPress recent essays widget."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the configuration XML file. Built-in defaults if omitted.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    render = commands.add_parser("render", help="Print the widget's front-end HTML.")
    render.add_argument(
        "--instance", type=int, help="Render a stored instance instead of ad-hoc settings."
    )
    render.add_argument("--title", default=None, help="Widget title.")
    render.add_argument("--count", type=int, default=None, help="Number of essays (1-5).")
    for flag, label in (
        ("banner", "image"),
        ("title-link", "title link"),
        ("author", "author"),
        ("pubdate", "publish date"),
    ):
        render.add_argument(
            f"--hide-{flag}", action="store_true", help=f"Do not show the {label}."
        )

    form = commands.add_parser("form", help="Print the admin settings form.")
    form.add_argument("--instance", type=int, default=None)

    commands.add_parser("create", help="Place a new widget instance with defaults.")

    save = commands.add_parser(
        "save", help="Apply an urlencoded admin form submission to an instance."
    )
    save.add_argument("--instance", type=int, required=True)
    save.add_argument("--data", required=True, help="Urlencoded form POST body.")

    commands.add_parser("list", help="List stored widget instances.")

    return parser


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Initialise logging according to options."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def _ad_hoc_record(args: argparse.Namespace) -> SettingsRecord:
    record = default_settings().to_record()
    if args.title is not None:
        record[TITLE_FIELD] = args.title
    if args.count is not None:
        record[COUNT_FIELD] = args.count
    record[BANNER_FIELD] = int(not args.hide_banner)
    record[SHOW_TITLE_FIELD] = int(not args.hide_title_link)
    record[AUTHOR_FIELD] = int(not args.hide_author)
    record[PUBDATE_FIELD] = int(not args.hide_pubdate)
    return record


def _open_session(app_config: AppConfig):
    engine = init_engine(app_config.database.connection_string)
    if engine is None:
        raise RuntimeError("No database configured; set <database><connection-string>.")
    return get_session_factory(engine)()


def _load_record(session, number: int) -> SettingsRecord:
    record = get_instance(session, number)
    if record is None:
        raise RuntimeError(f"Widget instance #{number} does not exist.")
    return record


def run_command(
    args: argparse.Namespace, app_config: AppConfig, widget: RecentEssaysWidget
) -> str:
    """Execute one subcommand and return its output text."""
    if args.command == "render":
        if args.instance is None:
            return widget.render(_ad_hoc_record(args))
        session = _open_session(app_config)
        try:
            return widget.render(_load_record(session, args.instance))
        finally:
            session.close()

    if args.command == "form" and args.instance is None:
        return widget.render_form(default_settings().to_record())

    session = _open_session(app_config)
    try:
        if args.command == "form":
            return widget.render_form(_load_record(session, args.instance), args.instance)
        if args.command == "create":
            number, _ = create_instance(session, widget.id_base)
            return f"Created instance #{number}"
        if args.command == "save":
            old_record = _load_record(session, args.instance)
            submitted = widget.parse_form_submission(args.data, args.instance)
            record = widget.update(submitted, old_record)
            save_instance(session, args.instance, record)
            return f"Saved instance #{args.instance}"
        if args.command == "list":
            lines = [
                f"#{number} {id_base} {record}"
                for number, id_base, record in list_instances(session, widget.id_base)
            ]
            return "\n".join(lines)
    finally:
        session.close()

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = parse_app_config(args.config) if args.config else AppConfig()

        # CLI overrides config
        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file
        configure_logging(log_level, log_file)

        registry = WidgetRegistry()
        widget = register_widgets(
            registry, feed_url=app_config.feed_url, timeout=app_config.timeout
        )

        output = run_command(args, app_config, widget)
    except ValueError as exc:
        parser.error(str(exc))
    except (RuntimeError, FileNotFoundError, KeyError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    print(output)
    return 0
