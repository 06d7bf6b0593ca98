"""Command-line front door for lazypicker.

Parses CLI options, layers them over the JSON config file, reads records
from stdin or a source command, and runs the interactive picker. Accepted
records are written to stdout; the exit status reports the outcome. With
``--filter`` the records are ranked and printed without a terminal.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from .columns import TemplateContext, format_template
from .config import PickerConfig, build_config
from .errors import Abort, ConfigError, LazyPickerError, PatternError
from .matching.filter import DEFAULT_FILTER_TIMEOUT, filter_matches
from .runtime import run_picker
from .runtime.config import config_path, load_config
from .runtime.logs import configure_logging
from .runtime.sources import read_command_records, read_records

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 2
EXIT_FATAL = 1
DEFAULT_COMMAND_ENV = "LAZYPICKER_DEFAULT_COMMAND"


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be > 0")
    return parsed


def _nonnegative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def parse_binding(text: str) -> tuple[str, str]:
    """Split ``TRIGGER:ACTIONS``; a leading ``:`` binds the colon key itself."""
    split_at = text.find(":", 1)
    if split_at <= 0:
        raise ConfigError(f"binding {text!r} must look like TRIGGER:ACTIONS")
    return text[:split_at], text[split_at + 1 :]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazypicker",
        description="Interactively pick lines from stdin or a command with fuzzy matching.",
    )
    parser.add_argument("-q", "--query", default=None, help="Initial query.")
    parser.add_argument("-c", "--command", default=None, help="Source command used when stdin is a terminal.")
    parser.add_argument(
        "--no-multi",
        dest="multi",
        action="store_false",
        default=None,
        help="Allow only the highlighted record to be accepted.",
    )
    parser.add_argument("--allow-empty", action="store_true", default=None, help="Accept with no match prints nothing.")
    parser.add_argument("-d", "--delimiter", default=None, help="Regex splitting records into columns.")
    parser.add_argument(
        "--regex",
        action="append",
        default=None,
        help="Column regex; repeat for each column (overrides --delimiter).",
    )
    parser.add_argument("--column-names", default=None, help="Comma-separated column names.")
    parser.add_argument("--max-columns", type=_positive_int, default=None, help="Column limit for --delimiter.")
    parser.add_argument("--column", type=_nonnegative_int, default=None, help="Initial active column.")
    parser.add_argument("-p", "--preview", action="append", default=None, help="Preview command; repeatable.")
    parser.add_argument(
        "--layout",
        action="append",
        default=None,
        help="Preview layout SIDE[:PCT[:MIN[:MAX]]]; repeat for fallbacks.",
    )
    parser.add_argument("--preview-wrap", action="store_true", default=None, help="Wrap preview lines.")
    parser.add_argument("--wrap", action="store_true", default=None, help="Wrap long result lines.")
    parser.add_argument("-b", "--bind", action="append", default=[], help="Key binding TRIGGER:ACTIONS; repeatable.")
    parser.add_argument(
        "--no-default-bindings",
        action="store_true",
        help="Start from an empty binding table.",
    )
    parser.add_argument("--header", default=None, help="Header text above the results.")
    parser.add_argument("--footer", default=None, help="Footer text below the results.")
    parser.add_argument("--prompt", default=None, help="Query prompt.")
    parser.add_argument("--output-template", default=None, help="Template for each accepted record (default {}).")
    parser.add_argument("--print0", action="store_true", help="Separate output records with NUL.")
    parser.add_argument("--read0", action="store_true", help="Read NUL-separated input records.")
    parser.add_argument("--history", default=None, help="File with one past query per line.")
    parser.add_argument("--overlay", action="append", default=None, help="Overlay text; repeatable.")
    parser.add_argument("--no-color", action="store_true", default=None, help="Disable colors.")
    parser.add_argument("--no-mouse", action="store_true", help="Disable mouse reporting.")
    parser.add_argument(
        "-f",
        "--filter",
        metavar="QUERY",
        default=None,
        help="Print records matching QUERY, best first, without the interactive picker.",
    )
    parser.add_argument(
        "--filter-timeout",
        type=_positive_float,
        default=DEFAULT_FILTER_TIMEOUT,
        help="Seconds to wait for --filter ranking to finish.",
    )
    parser.add_argument("--config", default=None, help="Path to a JSON config file.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log more; repeat for debug.")
    return parser


def _read_history(path: str) -> list[str]:
    try:
        text = Path(path).expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read history file {path!r}: {exc}") from exc
    return [line for line in text.splitlines() if line]


def options_from_args(args: argparse.Namespace) -> dict[str, object]:
    """Translate parsed arguments into a ``build_config`` layer."""
    options: dict[str, object] = {
        "query": args.query,
        "source_command": args.command,
        "multi": args.multi,
        "allow_empty": args.allow_empty,
        "active_column": args.column,
        "previews": args.preview,
        "layouts": args.layout,
        "preview_wrap": args.preview_wrap,
        "results_wrap": args.wrap,
        "header": args.header,
        "footer": args.footer,
        "prompt": args.prompt,
        "output_template": args.output_template,
        "overlays": args.overlay,
        "no_color": args.no_color,
        "max_columns": args.max_columns,
    }
    if args.regex:
        options["split"] = list(args.regex)
    elif args.delimiter is not None:
        options["split"] = args.delimiter
    if args.column_names is not None:
        options["column_names"] = [name.strip() for name in args.column_names.split(",")]
    if args.print0:
        options["output_separator"] = "\0"
    if args.read0:
        options["input_separator"] = "\0"
    if args.no_mouse:
        options["mouse"] = False
    if args.no_default_bindings:
        options["default_bindings"] = False
    if args.history is not None:
        options["history"] = _read_history(args.history)
    if args.bind:
        options["bindings"] = dict(parse_binding(text) for text in args.bind)
    return options


def _filter_input(config: PickerConfig, stream) -> list[str]:
    separator = config.input_separator.encode("utf-8")
    if stream is not None:
        return read_records(stream.read(), separator)
    if config.source_command:
        return read_command_records(config.source_command, separator)
    return []


def run_filter(query: str, config: PickerConfig, stream=None, timeout: float = DEFAULT_FILTER_TIMEOUT) -> list[str]:
    """Rank the input against ``query`` and format the matches for output."""
    splitter = config.splitter()
    records = filter_matches(_filter_input(config, stream), query, timeout, splitter, config.active_column)
    return [
        format_template(
            config.output_template,
            TemplateContext(
                splitter=splitter,
                current=(record.text, record.columns),
                active_column=config.active_column,
                query=query,
            ),
        )
        for record in records
    ]


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments, run the picker, and exit with its status.

    Exit codes: 0 accept (or a finished ``--filter`` run), the ``Abort``
    code on cancel, 2 for configuration errors and malformed ``--filter``
    queries, 1 for terminal or other fatal errors.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    stream = None if sys.stdin.isatty() else sys.stdin.buffer
    try:
        file_layer = load_config(Path(args.config).expanduser() if args.config else config_path())
        fallback = {"source_command": os.environ.get(DEFAULT_COMMAND_ENV) if stream is None else None}
        config = build_config(fallback, file_layer, options_from_args(args))
    except ConfigError as exc:
        sys.stderr.write(f"lazypicker: {exc}\n")
        raise SystemExit(EXIT_CONFIG_ERROR) from exc

    if args.filter is not None:
        try:
            lines = run_filter(args.filter, config, stream, args.filter_timeout)
        except PatternError as exc:
            sys.stderr.write(f"lazypicker: {exc}\n")
            raise SystemExit(EXIT_CONFIG_ERROR) from exc
        except LazyPickerError as exc:
            logger.error("filter failed: %s", exc)
            sys.stderr.write(f"lazypicker: {exc}\n")
            raise SystemExit(EXIT_FATAL) from exc
        sys.stdout.write("".join(line + config.output_separator for line in lines))
        sys.stdout.flush()
        return

    try:
        result = run_picker(config, stream=stream)
    except LazyPickerError as exc:
        logger.error("fatal: %s", exc)
        sys.stderr.write(f"lazypicker: {exc}\n")
        raise SystemExit(EXIT_FATAL) from exc

    out = sys.stdout
    for line in result.printed:
        out.write(line + "\n")
    for line in result.output:
        out.write(line + config.output_separator)
    out.flush()
    if isinstance(result.termination, Abort):
        raise SystemExit(result.termination.code)


if __name__ == "__main__":
    main()
