"""Weave CLI — command-line interface for the Weave interpreter.

Commands:
  weave run <script> [args...]       — Run a script; args become $1, $2, ...
  weave check <script>               — Lex, parse and register declarations only

Use `-` as the script path to read the program from standard input.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from weave import __version__
from weave.config import ConfigError, WeaveConfig, load_config, ERROR_FORMATS
from weave.errors import ScriptError, format_error
from weave.runner import check_source, run_source

logger = logging.getLogger(__name__)

STDIN_NAME = "<stdin>"


def _read_script(path: str) -> Optional[tuple[str, str]]:
    """Return (source, name) for a script path, or None after reporting a read failure."""
    if path == "-":
        return sys.stdin.read(), STDIN_NAME
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read(), path
    except (OSError, UnicodeDecodeError) as e:
        reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
        print(f"Error reading file '{path}': {reason}", file=sys.stderr)
        return None


def _load_settings(args: argparse.Namespace) -> WeaveConfig:
    """File settings overlaid with command-line flags."""
    start_dir = "." if args.file == "-" else (os.path.dirname(os.path.abspath(args.file)) or ".")
    config = load_config(args.config, start_dir=start_dir)
    if args.error_format:
        config.error_format = args.error_format
    if args.verbose:
        config.log_level = "DEBUG"
    if args.dump_tokens:
        config.dump_tokens = True
    if args.dump_ast:
        config.dump_ast = True
    return config


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def cmd_run(args: argparse.Namespace, config: WeaveConfig) -> int:
    """Run a Weave script with positional arguments."""
    loaded = _read_script(args.file)
    if loaded is None:
        return 1
    source, name = loaded
    logger.debug("running %s with %d argument(s)", name, len(args.args))
    return run_source(source, args.args, filename=name, config=config)


def cmd_check(args: argparse.Namespace, config: WeaveConfig) -> int:
    """Check that a script lexes, parses and declares its names consistently."""
    loaded = _read_script(args.file)
    if loaded is None:
        return 1
    source, name = loaded
    try:
        _, registry = check_source(source, name, config)
    except ScriptError as e:
        print(format_error(e.error, config.error_format), file=sys.stderr)
        return 1
    logger.debug("%s is well formed: %r", name, registry)
    return 0


def _add_common_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("-v", "--verbose", action="store_true", help="Log pipeline details to stderr")
    p.add_argument("--config", default=None, help="Config file (default: nearest .weaverc.yml)")
    p.add_argument("--error-format", dest="error_format", choices=list(ERROR_FORMATS), default=None,
                   help="Diagnostic format on stderr")
    p.add_argument("--dump-tokens", action="store_true", dest="dump_tokens", help="Print tokens to stderr")
    p.add_argument("--dump-ast", action="store_true", dest="dump_ast", help="Print the AST to stderr")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weave",
        description="Weave — scripting, batteries included",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run
    p_run = subparsers.add_parser("run", help="Run a Weave script")
    _add_common_arguments(p_run)
    p_run.add_argument("file", help="Weave script (.wv), or - for stdin")
    p_run.add_argument("args", nargs=argparse.REMAINDER, help="Positional arguments ($1, $2, ...)")
    p_run.set_defaults(func=cmd_run)

    # check
    p_check = subparsers.add_parser("check", help="Parse a script and check its declarations")
    _add_common_arguments(p_check)
    p_check.add_argument("file", help="Weave script (.wv), or - for stdin")
    p_check.set_defaults(func=cmd_check)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    try:
        config = _load_settings(args)
    except ConfigError as e:
        print(f"config error: {e}", file=sys.stderr)
        sys.exit(2)

    _configure_logging(config.log_level)
    sys.exit(args.func(args, config))


if __name__ == "__main__":
    main()
