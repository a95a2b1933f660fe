"""Command line entry point: run saved or ad-hoc expressions over a file."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from . import __version__
from .commands import OutcomeStatus, RegexCommands, StatusOutcome
from .editor.buffer import EditorBuffer
from .engine.compiler import build_flags
from .engine.preview import PreviewService, PreviewStatus
from .services.settings import Settings, SettingsStore
from .utils.file_io import read_text, write_text
from .utils.logging import level_for, setup_logging

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_path = setup_logging(level_for(args.debug), console=args.debug, stream=sys.stderr)
    store = SettingsStore(Path(args.settings).expanduser() if args.settings else None)
    settings = store.load()
    if settings.debug_logging and not args.debug:
        log_path = setup_logging(logging.DEBUG, console=True, stream=sys.stderr, force=True)
    LOGGER.debug("regexfire %s, settings=%s, log=%s", __version__, store.path, log_path)

    handler = _HANDLERS[args.command]
    try:
        return handler(args, settings, store)
    except OSError as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="regexfire",
        description="Regex find/replace with saved expressions and presets.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--settings",
        metavar="PATH",
        help="Override the default ~/.regexfire/settings.json path.",
    )
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level and echo logs to stderr.")
    parser.add_argument("--json", action="store_true", help="Print apply, save and delete outcomes as JSON objects.")
    commands = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    apply = commands.add_parser("apply", help="Rewrite a file in place.")
    apply.add_argument("file", type=Path)
    source = apply.add_mutually_exclusive_group(required=True)
    source.add_argument("--find", metavar="PATTERN", help="Ad-hoc pattern (regex unless --literal).")
    source.add_argument("--expression", metavar="NAME", help="Run a saved expression.")
    source.add_argument("--group", metavar="NAME", help="Run a saved preset.")
    source.add_argument("--batch", metavar="NAME", nargs="+", help="Run several saved expressions.")
    apply.add_argument("--replace", default="", metavar="TEMPLATE", help="Replacement for --find.")
    apply.add_argument("--literal", action="store_true", help="Treat --find as plain text.")
    apply.add_argument("--ignore-case", action="store_true", help="Add the 'i' flag.")
    apply.add_argument(
        "--selection",
        type=_selection_arg,
        metavar="START:END",
        help="Only rewrite this character range.",
    )
    apply.add_argument("--dry-run", action="store_true", help="Print the result instead of writing it.")

    preview = commands.add_parser("preview", help="List matches without changing the file.")
    preview.add_argument("file", type=Path)
    preview.add_argument("--find", required=True, metavar="PATTERN")
    preview.add_argument("--ignore-case", action="store_true")
    preview.add_argument("--limit", type=_positive_int, default=None, metavar="N", help="Maximum rows to print.")

    commands.add_parser("list", help="Show saved expressions and presets.")

    save = commands.add_parser("save", help="Save a named expression.")
    save.add_argument("name")
    save.add_argument("--find", required=True, metavar="PATTERN")
    save.add_argument("--replace", default="", metavar="TEMPLATE")
    save.add_argument("--flags", default=None, help="Regex flags (default: gm, plus i with --ignore-case).")
    save.add_argument("--ignore-case", action="store_true")

    save_group = commands.add_parser("save-group", help="Save a preset of existing expressions.")
    save_group.add_argument("name")
    save_group.add_argument("items", nargs="+", metavar="EXPRESSION")

    delete = commands.add_parser("delete", help="Delete a saved expression or preset.")
    delete.add_argument("name")
    delete.add_argument("--group", action="store_true", help="Delete a preset instead of an expression.")
    return parser


def _selection_arg(value: str) -> tuple[int, int]:
    start, sep, end = value.partition(":")
    try:
        if not sep:
            raise ValueError(value)
        bounds = (int(start), int(end))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected START:END, got {value!r}") from None
    if bounds[0] < 0 or bounds[1] < bounds[0]:
        raise argparse.ArgumentTypeError(f"invalid range {value!r}")
    return bounds


def _positive_int(value: str) -> int:
    try:
        number = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError("must be positive")
    return number


def _report(args: argparse.Namespace, outcome: StatusOutcome) -> int:
    stream = sys.stdout if outcome.ok else sys.stderr
    if args.json:
        print(json.dumps(outcome.to_dict(), ensure_ascii=False), file=stream)
    else:
        print(outcome.message, file=stream)
    return EXIT_OK if outcome.ok else EXIT_ERROR


def _fail(args: argparse.Namespace, message: str) -> int:
    return _report(args, StatusOutcome(OutcomeStatus.ERROR, message))


def _cmd_apply(args: argparse.Namespace, settings: Settings, store: SettingsStore) -> int:
    loaded = read_text(args.file)
    buffer = EditorBuffer.from_text(loaded.text, selection=args.selection)
    effective = replace(
        settings,
        use_regex=not args.literal,
        selection_only=args.selection is not None,
        case_insensitive=bool(args.ignore_case or settings.case_insensitive),
    )
    commands = RegexCommands(effective, settings_store=store)
    saved = commands.store

    if args.find is not None:
        outcome = commands.find_replace(buffer, args.find, args.replace, commands.options())
    elif args.expression is not None:
        expression = saved.get_expression(args.expression)
        if expression is None:
            return _fail(args, f"No saved expression named '{args.expression}'")
        outcome = commands.run_expression(buffer, expression)
    elif args.group is not None:
        group = saved.get_group(args.group)
        if group is None:
            return _fail(args, f"No saved preset named '{args.group}'")
        outcome = commands.run_group(buffer, group)
    else:
        unknown = [name for name in args.batch if saved.get_expression(name) is None]
        if unknown:
            return _fail(args, f"Unknown expression(s): {', '.join(unknown)}")
        outcome = commands.run_batch(buffer, saved.resolve_names(args.batch))

    status = _report(args, outcome)
    if status != EXIT_OK:
        return status
    result = buffer.get_text()
    if args.dry_run:
        sys.stdout.write(result)
    elif result != loaded.text:
        write_text(args.file, result, encoding=loaded.encoding, newline=loaded.newline)
        LOGGER.info("Wrote %s (%d replacement(s))", args.file, outcome.count)
    return EXIT_OK


def _cmd_preview(args: argparse.Namespace, settings: Settings, store: SettingsStore) -> int:
    loaded = read_text(args.file)
    buffer = EditorBuffer.from_text(loaded.text)
    flags = build_flags(case_insensitive=bool(args.ignore_case or settings.case_insensitive))
    service = PreviewService(item_limit=args.limit) if args.limit else PreviewService()
    result = service.preview(buffer.get_text(), args.find, flags, locate=buffer.offset_to_position)
    if result.status is PreviewStatus.INVALID:
        return _fail(args, result.error or result.summary())
    if result.status is PreviewStatus.EMPTY:
        return _fail(args, "Nothing to search for!")
    print(result.summary())
    for item in result.items:
        print(item.label())
    more = result.more_label()
    if more:
        print(more)
    return EXIT_OK


def _cmd_list(args: argparse.Namespace, settings: Settings, store: SettingsStore) -> int:
    commands = RegexCommands(settings, settings_store=store)
    expressions = commands.store.expressions
    groups = commands.store.groups
    print(f"Expressions ({len(expressions)}):")
    for expression in expressions:
        print(f"  {expression.name}  {expression.describe()}")
    print(f"Presets ({len(groups)}):")
    for group in groups:
        print(f"  {group.name}  {group.describe()}")
    return EXIT_OK


def _cmd_save(args: argparse.Namespace, settings: Settings, store: SettingsStore) -> int:
    flags = args.flags
    if flags is None and args.ignore_case:
        flags = build_flags(case_insensitive=True)
    commands = RegexCommands(settings, settings_store=store)
    return _report(args, commands.save_expression(args.name, pattern=args.find, flags=flags, replace=args.replace))


def _cmd_save_group(args: argparse.Namespace, settings: Settings, store: SettingsStore) -> int:
    commands = RegexCommands(settings, settings_store=store)
    unknown = [name for name in args.items if commands.store.get_expression(name) is None]
    if unknown:
        LOGGER.warning("Preset %r refers to unknown expression(s): %s", args.name, ", ".join(unknown))
    return _report(args, commands.save_group(args.name, args.items))


def _cmd_delete(args: argparse.Namespace, settings: Settings, store: SettingsStore) -> int:
    commands = RegexCommands(settings, settings_store=store)
    if args.group:
        outcome = commands.delete_group(args.name)
    else:
        outcome = commands.delete_expression(args.name)
    return _report(args, outcome)


_HANDLERS = {
    "apply": _cmd_apply,
    "preview": _cmd_preview,
    "list": _cmd_list,
    "save": _cmd_save,
    "save-group": _cmd_save_group,
    "delete": _cmd_delete,
}


if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main())
