"""CLI entry point for the Mobiledoc-to-Markdown converter."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from .config import ConfigError, ConfigOverrides, ConverterConfig, load_config
from .converter import convert
from .core.logging import configure_logger
from .errors import ConversionError, InputReadError

PROG = "mobiledoc-md"
LOGGER_NAME = "mobiledoc_md"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        usage="%(prog)s [OPTS] [FILE]",
        description=(
            "Convert a Mobiledoc article, given as a JSON document with "
            "'title' and 'mobiledoc' fields, into Markdown."
        ),
        epilog="Reads standard input when FILE is omitted.",
    )
    parser.add_argument(
        "files",
        nargs="*",
        type=Path,
        metavar="FILE",
        help="JSON document to convert (defaults to standard input).",
    )
    parser.add_argument(
        "--use-figure",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Render images with HTML figure tag.",
    )
    parser.add_argument(
        "--escape-markdown",
        action=argparse.BooleanOptionalAction,
        default=None,
        help=(
            "Escape image captions and URLs in Markdown image syntax "
            "(off by default)."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a TOML config file.",
    )
    parser.add_argument(
        "--log-level",
        help="Set the logging level for the run (defaults to WARNING).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write JSON log records to this file.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if len(args.files) > 1:
        parser.print_usage(sys.stderr)
        return 2

    overrides = ConfigOverrides(
        use_figure=args.use_figure,
        escape_markdown=args.escape_markdown,
        log_level=args.log_level,
        log_file=args.log_file,
    )
    try:
        load_result = load_config(config_path=args.config, overrides=overrides)
    except ConfigError as exc:
        parser.error(str(exc))

    config = load_result.config
    try:
        logger = configure_logger(
            LOGGER_NAME,
            prog=PROG,
            level=config.log_level,
            log_file=config.log_file,
        )
    except OSError as exc:
        sys.stderr.write(f"{PROG}: cannot open log file: {exc}\n")
        return 1

    logger.debug(
        "mobiledoc-md invoked",
        extra={
            "config_path": load_result.config_path,
            "use_figure": config.options.use_figure,
            "escape_markdown": config.options.escape_markdown,
        },
    )

    path = args.files[0] if args.files else None
    try:
        if path is None:
            _process_stdin(config, logger)
        else:
            _process_file(path, config, logger)
    except ConversionError as exc:
        logger.error("%s", exc, exc_info=config.log_level == "DEBUG")
        return 1
    return 0


def _process_file(
    path: Path, config: ConverterConfig, logger: logging.Logger
) -> None:
    try:
        handle = path.expanduser().open("r", encoding="utf-8")
    except OSError as exc:
        raise InputReadError(f"cannot open input file: {exc}") from exc
    with handle:
        logger.debug("Reading input file", extra={"source": path})
        convert(handle, sys.stdout, config.options, logger=logger)


def _process_stdin(config: ConverterConfig, logger: logging.Logger) -> None:
    logger.debug("Reading standard input")
    convert(sys.stdin, sys.stdout, config.options, logger=logger)


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
