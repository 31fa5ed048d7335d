"""Weave pipeline: source text -> tokens -> AST -> registry -> execution.

The whole source is lexed and parsed, and the registry built, before any
statement runs, so a lex, parse or declaration error produces no output.
"""

from __future__ import annotations

import logging
import pprint
import sys
from typing import Optional, Sequence, TextIO

from weave.ast_nodes import Program
from weave.config import WeaveConfig
from weave.errors import ScriptError, format_error
from weave.interpreter import run, stack_headroom
from weave.lexer import tokenize
from weave.parser import parse_tokens
from weave.registry import Registry, build_registry

logger = logging.getLogger(__name__)


def check_source(
    source: str,
    filename: str = "<string>",
    config: Optional[WeaveConfig] = None,
    stderr: Optional[TextIO] = None,
) -> tuple[Program, Registry]:
    """Lex, parse and register declarations. Raises ScriptError on failure."""
    config = config or WeaveConfig()
    stderr = stderr if stderr is not None else sys.stderr

    tokens = tokenize(source, filename)
    if config.dump_tokens:
        for tok in tokens:
            stderr.write(f"{tok!r}\n")

    with stack_headroom(config.max_call_depth):
        program = parse_tokens(tokens, filename)
        if config.dump_ast:
            stderr.write(pprint.pformat(program.statements) + "\n")

    registry = build_registry(program)
    return program, registry


def run_source(
    source: str,
    argv: Sequence[str] = (),
    *,
    filename: str = "<string>",
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    config: Optional[WeaveConfig] = None,
) -> int:
    """Run a Weave program from source text and return its exit status.

    `filename` is reported in diagnostics and is the value of `$0`;
    `argv` supplies `$1`, `$2`, ...
    """
    config = config or WeaveConfig()
    stderr = stderr if stderr is not None else sys.stderr

    try:
        program, registry = check_source(source, filename, config, stderr)
    except ScriptError as e:
        logger.debug("aborted before execution: %s", e.kind.value)
        stderr.write(format_error(e.error, config.error_format) + "\n")
        return 1

    return run(
        program,
        registry,
        argv,
        stdout=stdout,
        stderr=stderr,
        script_name=filename,
        max_call_depth=config.max_call_depth,
        error_format=config.error_format,
    )
