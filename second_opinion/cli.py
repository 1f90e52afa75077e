"""CLI entrypoints for second-opinion commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict

from .config import ConfigError, SecondOpinionConfig, load_config
from .handler import InvalidRequestError, SecondOpinionHandler, tool_definitions
from .logging import configure_logging


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .second-opinion.yml or the directory containing it (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="second-opinion",
        description="Get a second opinion on a coding problem from local context and external insight services.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    ask_parser = subparsers.add_parser(
        "ask",
        help="Ask for a second opinion and print the answer.",
    )
    _add_verbose_option(ask_parser, suppress_default=True)
    _add_config_option(ask_parser)
    ask_parser.add_argument("--goal", required=True, help="What you are trying to accomplish.")
    ask_parser.add_argument("--error", help="Error message you are seeing.")
    code_group = ask_parser.add_mutually_exclusive_group()
    code_group.add_argument("--code", help="Relevant code snippet.")
    code_group.add_argument("--code-file", type=Path, help="Read the relevant code snippet from a file.")
    ask_parser.add_argument("--solutions-tried", help="Solutions you have already tried.")
    ask_parser.add_argument(
        "--file",
        dest="file_path",
        help="Path to the file with the issue (enables related-file discovery).",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Expose the get_second_opinion tool over HTTP.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_config_option(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    tools_parser = subparsers.add_parser(
        "tools",
        help="Print the tool definitions as JSON.",
    )
    _add_verbose_option(tools_parser, suppress_default=True)

    return parser


def _arguments_from(args: argparse.Namespace) -> Dict[str, Any]:
    arguments: Dict[str, Any] = {"goal": args.goal}
    code = args.code
    if args.code_file is not None:
        code = args.code_file.read_text(encoding="utf-8")
    optional = {
        "error": args.error,
        "code": code,
        "solutionsTried": args.solutions_tried,
        "filePath": args.file_path,
    }
    arguments.update({key: value for key, value in optional.items() if value is not None})
    return arguments


def _load(parser: argparse.ArgumentParser, config_path: str) -> SecondOpinionConfig:
    try:
        return load_config(Path(config_path))
    except ConfigError as exc:
        parser.exit(2, f"Invalid configuration: {exc}\n")


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for second-opinion commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "tools":
        print(json.dumps({"tools": tool_definitions()}, indent=2))
    elif args.command == "ask":
        config = _load(parser, args.config)
        try:
            arguments = _arguments_from(args)
        except OSError as exc:
            parser.exit(2, f"Unable to read --code-file: {exc}\n")
        handler = SecondOpinionHandler(config)
        try:
            result = asyncio.run(handler.handle(arguments))
        except InvalidRequestError as exc:
            parser.exit(2, f"{exc}\n")
        print(result.text)
        if result.is_error:
            sys.exit(1)
    elif args.command == "serve":
        config = _load(parser, args.config)
        from .service import run_service

        run_service(lambda: SecondOpinionHandler(config), host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
