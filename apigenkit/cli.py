"""Command-line entry point: substitute templates and map the API index."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from apigenkit.fileutil import logged_write
from apigenkit.naming import MappedIndex
from apigenkit.spec import Spec, StreamOrPath
from apigenkit.templating import substitute

PROGRAM_NAME = "mcp"
TRACE = 5

_LOG_LEVELS = {
    "INFO": logging.INFO,
    "ERROR": logging.ERROR,
    "DEBUG": logging.DEBUG,
    "TRACE": TRACE,
}

_SUBSTITUTE_DESCRIPTION = (
    "Substitutes templates using structured data. A tree of data is used to "
    "substitute in various templates, using multiple inputs and outputs."
)

_SPEC_HELP = (
    "Maps template files to output with the syntax '<src>:<dst>'. If <src> is "
    "unspecified, the template is read from stdin, e.g. ':output'; only one spec "
    "can read from stdin. If <dst> is unspecified, the output goes to stdout, "
    "e.g. 'input.tpl:' or 'input.tpl'. Multiple outputs to the same stream or "
    "file are separated by --separator."
)


def parse_replacements(values: Sequence[str]) -> list[tuple[str, str]]:
    """Split ``find:replace`` values into pairs; raise ValueError on an odd count."""
    parts = [part for value in values for part in value.split(":")]
    if len(parts) % 2:
        raise ValueError(
            "Please provide --replace-value arguments in pairs of two. "
            "First the value to find, second the one to replace it with"
        )
    return list(zip(parts[::2], parts[1::2]))


def run_substitute(args: argparse.Namespace) -> None:
    """Run the substitute subcommand."""
    replacements = parse_replacements(args.replacements or [])
    data = args.data if args.data is not None else StreamOrPath.STREAM
    substitute(data, args.specs, args.separator, args.validate, replacements)


def run_map_index(args: argparse.Namespace) -> None:
    """Run the map-api-index subcommand."""
    discovery_path = Path(args.discovery_json_path)
    try:
        raw = json.loads(discovery_path.read_bytes())
    except (OSError, ValueError) as exc:
        raise ValueError(f"Could not read spec file at '{discovery_path}'") from exc
    index = MappedIndex.from_api_index(raw).validated(
        Path(args.spec_directory), Path(args.output_directory)
    )
    logged_write(
        args.output_file,
        json.dumps(index.to_dict(), indent=2),
        "mapped api index",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(prog=PROGRAM_NAME)
    parser.add_argument(
        "-l",
        "--log-level",
        default="INFO",
        choices=list(_LOG_LEVELS),
        help="The desired log level.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    map_index = commands.add_parser(
        "map-api-index",
        help="Transform the API index into data we can use during substitution",
    )
    map_index.add_argument(
        "discovery_json_path",
        type=Path,
        help="The index with all API specification URLs from the discovery API",
    )
    map_index.add_argument(
        "output_file", type=Path, help="The path to which to write the digest"
    )
    map_index.add_argument(
        "spec_directory",
        type=Path,
        help="The directory holding downloaded specification files",
    )
    map_index.add_argument(
        "output_directory",
        type=Path,
        help="The directory into which files will be generated",
    )
    map_index.set_defaults(func=run_map_index)

    sub = commands.add_parser(
        "substitute",
        aliases=["sub"],
        help="Substitutes templates using structured data.",
        description=_SUBSTITUTE_DESCRIPTION,
    )
    sub.add_argument(
        "-s",
        "--separator",
        default="\n",
        help="The string separating multiple documents written to the same stream or file.",
    )
    sub.add_argument(
        "--replace",
        dest="replacements",
        action="append",
        default=[],
        metavar="find-this:replace-with-that",
        help="A find & replace for string values in the data, e.g. --replace=foo:bar.",
    )
    sub.add_argument(
        "-v",
        "--validate",
        action="store_true",
        help="Parse the instantiated template as YAML or JSON and fail if invalid.",
    )
    sub.add_argument(
        "-d",
        "--data",
        type=StreamOrPath.parse,
        default=None,
        metavar="path",
        help="Structured data in YAML or JSON format; if set, stdin is read as template.",
    )
    sub.add_argument(
        "specs",
        nargs="*",
        type=Spec.parse,
        metavar="template-spec",
        help=_SPEC_HELP,
    )
    sub.set_defaults(func=run_substitute)
    return parser


def _error_chain(exc: BaseException) -> str:
    lines = [f"error: {exc or type(exc).__name__}"]
    seen = {id(exc)}
    cause = exc.__cause__ or exc.__context__
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        lines.append(f"caused by: {cause or type(cause).__name__}")
        cause = cause.__cause__ or cause.__context__
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments, run the chosen subcommand and return an exit status."""
    logging.addLevelName(TRACE, "TRACE")
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=_LOG_LEVELS[args.log_level])
    try:
        args.func(args)
    except Exception as exc:
        print(_error_chain(exc), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())