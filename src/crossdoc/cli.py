"""Command line interface for crossdoc.

Subcommands:

``parse``
    Parse one docstring (file or stdin) and print the structured record as
    JSON, or as Markdown with ``--markdown``.
``build``
    Build the cross-linked documentation model from extractor output.
``links``
    Print the resolved links of every cross reference in a built model.

Errors are reported as RFC 9457 Problem Details on stderr. Exit codes are
``0`` on success, ``2`` for configuration errors, ``3`` for malformed models,
``4`` for file errors and ``1`` for anything else raised by crossdoc.
"""

from __future__ import annotations

import argparse
import sys
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final, TextIO

import msgspec

from crossdoc.config import DEFAULT_CONFIG_FILENAME, load_config, load_settings
from crossdoc.docstring import parse_any_doc
from crossdoc.errors import (
    ConfigurationError,
    CrossDocError,
    FileOperationError,
    ModelLoadError,
    render_problem,
)
from crossdoc.links import PageLayout
from crossdoc.logging import get_logger, setup_logging, with_fields
from crossdoc.pipeline import build_doc_model, collect_links
from crossdoc.render import render_docstring
from crossdoc.serialization import (
    dump_doc_model,
    encode_doc_model,
    load_doc_model,
    load_source_trees,
    to_builtins,
)

if TYPE_CHECKING:
    from crossdoc.logging import LoggerAdapter

__all__ = ["build_parser", "main"]

logger = get_logger(__name__)

EXIT_OK: Final = 0
EXIT_ERROR: Final = 1
EXIT_CONFIG: Final = 2
EXIT_MODEL: Final = 3
EXIT_FILE: Final = 4

CommandHandler = Callable[[argparse.Namespace, "LoggerAdapter"], int]


@dataclass(slots=True, frozen=True)
class Subcommand:
    """Registration record for one subcommand."""

    name: str
    help_text: str
    handler: CommandHandler
    configure: Callable[[argparse.ArgumentParser], None]


def _write_json(payload: bytes, stream: TextIO) -> None:
    stream.write(msgspec.json.format(payload, indent=2).decode("utf-8"))
    stream.write("\n")


def _read_text(path: str | None) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        message = f"Cannot read {path}: {exc.strerror or exc}"
        raise FileOperationError(message, cause=exc, context={"path": path}) from exc


def _command_parse(args: argparse.Namespace, log: LoggerAdapter) -> int:
    parsed = parse_any_doc(_read_text(args.file), native=args.native)
    log.debug("Parsed docstring", extra={"params": len(parsed.params)})
    if args.markdown:
        sys.stdout.write(render_docstring(parsed) + "\n")
    else:
        _write_json(msgspec.json.encode(parsed), sys.stdout)
    return EXIT_OK


def _command_build(args: argparse.Namespace, log: LoggerAdapter) -> int:
    settings = args.settings
    config = load_config(args.config).with_settings(settings)
    if args.layout is not None:
        config = config.model_copy(
            update={"output": config.output.model_copy(update={"layout": args.layout})}
        )
    trees = load_source_trees(args.sources)
    model = build_doc_model(config, trees.rust_modules, trees.python_modules, trees.metadata)
    if args.output is None:
        _write_json(encode_doc_model(model), sys.stdout)
    else:
        dump_doc_model(model, args.output)
        log.info("Wrote documentation model", extra={"path": str(args.output)})
    return EXIT_OK


def _command_links(args: argparse.Namespace, log: LoggerAdapter) -> int:
    model = load_doc_model(args.model)
    layout = args.layout or args.settings.layout or PageLayout.MODULE
    links = collect_links(model, layout)
    log.debug("Resolved links", extra={"links": len(links), "layout": str(layout)})
    if args.json:
        _write_json(msgspec.json.encode(to_builtins(links)), sys.stdout)
        return EXIT_OK
    for link in links:
        sys.stdout.write(
            f"{link.python_page.path}: {link.to_rust.to_markdown_with_badge()}\n"
            f"{link.rust_page.path}: {link.to_python.to_markdown_with_badge()}\n"
        )
    return EXIT_OK


def _configure_parse(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("file", nargs="?", help="File holding the docstring (default: stdin)")
    parser.add_argument(
        "--native",
        action="store_true",
        help="Treat the text as a Rust doc comment",
    )
    parser.add_argument(
        "--markdown",
        action="store_true",
        help="Render Markdown instead of JSON",
    )


def _configure_build(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("sources", type=Path, help="Extractor output (JSON item trees)")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(DEFAULT_CONFIG_FILENAME),
        help=f"Project configuration (default: {DEFAULT_CONFIG_FILENAME})",
    )
    parser.add_argument("--output", "-o", type=Path, help="Write the model here instead of stdout")
    _add_layout_argument(parser)


def _configure_links(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("model", type=Path, help="Built documentation model (JSON)")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of Markdown")
    _add_layout_argument(parser)


def _add_layout_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--layout",
        type=PageLayout,
        choices=list(PageLayout),
        help="Page layout (overrides configuration and CROSSDOC_LAYOUT)",
    )


SUBCOMMANDS: tuple[Subcommand, ...] = (
    Subcommand(
        "parse",
        "Parse a docstring into structured JSON",
        _command_parse,
        _configure_parse,
    ),
    Subcommand(
        "build",
        "Build the cross-linked documentation model",
        _command_build,
        _configure_build,
    ),
    Subcommand(
        "links",
        "Resolve cross reference links in a built model",
        _command_links,
        _configure_links,
    ),
)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser.

    Returns
    -------
    argparse.ArgumentParser
        Parser with every subcommand registered.
    """
    parser = argparse.ArgumentParser(
        prog="crossdoc",
        description="Cross-language API documentation for Rust/Python projects",
    )
    subparsers = parser.add_subparsers(dest="subcommand")
    for subcommand in SUBCOMMANDS:
        subparser = subparsers.add_parser(subcommand.name, help=subcommand.help_text)
        subcommand.configure(subparser)
        subparser.set_defaults(func=subcommand.handler)
    return parser


def _exit_code(error: CrossDocError) -> int:
    if isinstance(error, ConfigurationError):
        return EXIT_CONFIG
    if isinstance(error, ModelLoadError):
        return EXIT_MODEL
    if isinstance(error, FileOperationError):
        return EXIT_FILE
    return EXIT_ERROR


def main(argv: list[str] | None = None) -> int:
    """Execute the crossdoc CLI.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. If None, uses ``sys.argv``.

    Returns
    -------
    int
        Exit code (0 for success, non-zero for errors).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_ERROR
    handler: CommandHandler = args.func

    correlation_id = uuid.uuid4().hex
    try:
        args.settings = load_settings()
        setup_logging(args.settings.log_level.upper(), json_format=args.settings.log_json)
        with with_fields(
            logger, correlation_id=correlation_id, operation=f"cli.{args.subcommand}"
        ) as log:
            return handler(args, log)
    except CrossDocError as exc:
        logger.log(
            exc.log_level,
            "Command failed",
            extra={"operation": f"cli.{args.subcommand}", "code": exc.code.value},
        )
        instance = f"urn:crossdoc:{args.subcommand}:{correlation_id}"
        problem = exc.to_problem_details(instance=instance)
        sys.stderr.write(render_problem(problem) + "\n")
        return _exit_code(exc)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
