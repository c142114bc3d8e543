from __future__ import annotations

import argparse
import importlib
import inspect
import json
import logging
import sys
from collections.abc import Iterable
from typing import Any

from loguru import logger

from pureloop.config import STRATEGIES, LoopConfig
from pureloop.driver import Driver
from pureloop.errors import InitializerError, PureloopError

EXIT_FATAL = 1
EXIT_USAGE = 2
EXIT_ERROR = 3


class _InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        # Report the caller of the logging call, not this handler.
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level: str) -> None:
    logger.level(level)  # unknown names raise ValueError before any sink is removed
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="{time:HH:mm:ss.SSS} | {level: <7} | {name}:{function} | {message}",
    )
    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)


def _import_symbol(path: str) -> Any:
    if ":" in path:
        module_name, attr_path = path.split(":", 1)
        module = importlib.import_module(module_name)
        return _resolve_attr(module, attr_path)
    parts = path.split(".")
    if len(parts) < 2:
        raise ValueError(f"'{path}' is not a fully-qualified symbol. Use module.symbol format.")
    module = importlib.import_module(".".join(parts[:-1]))
    return getattr(module, parts[-1])


def _resolve_attr(obj: Any, attr_path: str) -> Any:
    current = obj
    for attr in attr_path.split("."):
        current = getattr(current, attr)
    return current


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
    except TypeError:
        return repr(value)
    return value


def handle_run(args: argparse.Namespace) -> int:
    try:
        initializer = _import_symbol(args.initializer)
    except (ImportError, AttributeError, ValueError) as exc:
        print(f"Error: cannot resolve {args.initializer!r}: {exc}", file=sys.stderr)
        return EXIT_USAGE

    config = LoopConfig.from_env().with_overrides(
        channel_capacity=args.capacity,
        strategy=args.strategy,
        max_workers=args.max_workers,
        trace=True if args.trace else None,
    )
    log = logger.bind(component="pureloop.cli")
    log.info("Running {} (strategy={}, capacity={})", args.initializer, config.strategy, config.channel_capacity)

    try:
        error = Driver(config).run(initializer)
    except InitializerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except PureloopError as exc:
        log.opt(exception=exc).debug("Main loop raised")
        print(f"Error: {type(exc).__name__}: {exc}", file=sys.stderr)
        return EXIT_ERROR

    if args.format == "json":
        payload = {
            "status": "fatal",
            "initializer": args.initializer,
            "error_type": type(error).__name__,
            "error": str(error) if isinstance(error, BaseException) else _json_safe(error),
        }
        print(json.dumps(payload))
    else:
        print(f"Fatal: {error}")
    log.error("Main loop ended with {!r}", error)
    return EXIT_FATAL


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pureloop", description="Run pureloop programs")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for the stderr sink (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Run the main loop for an initializer until it reports a fatal error",
        description=(
            "Run the main loop for an initializer until it reports a fatal error.\n\n"
            "Settings not given on the command line come from PURELOOP_* environment "
            "variables.\n\n"
            "Examples:\n"
            "  pureloop run myapp.main:Init\n"
            "  pureloop --log-level DEBUG run myapp.main.init --strategy pooled --trace"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    run_parser.add_argument(
        "initializer",
        help="Initializer object or (state, effects) factory, as module:attr or module.attr",
    )
    run_parser.add_argument("--capacity", type=int, help="Event channel capacity")
    run_parser.add_argument("--strategy", choices=STRATEGIES, help="Slow-effect executor")
    run_parser.add_argument("--max-workers", type=int, help="Pool size for --strategy pooled")
    run_parser.add_argument("--trace", action="store_true", help="Log every dispatch")
    run_parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text)",
    )
    run_parser.set_defaults(func=handle_run)

    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    try:
        configure_logging(args.log_level.upper())
        return args.func(args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
