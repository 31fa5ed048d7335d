"""Weave tree-walking interpreter.

Executes a parsed Program against an immutable Registry. Each function call
gets a fresh Environment seeded with its parameters; function bodies see
only their own bindings plus the registry. Statement execution returns an
explicit Continue or Return signal so that `return` unwinds to the nearest
call boundary without using exceptions. Exceptions are reserved for errors.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, TextIO

from weave.ast_nodes import (
    Program, Statement, Declaration, LetStmt, ReturnStmt, ExprStmt, IfStmt, WhileStmt,
    Expr, NumberLiteral, StringLiteral, BoolLiteral, NilLiteral, Identifier,
    BinaryOp, UnaryOp, Call, Dot, StructLiteral, PositionalArg,
)
from weave.errors import (
    SourceLocation, ScriptError, format_error,
    name_error, arity_error, type_error, runtime_error,
)
from weave.registry import Registry
from weave.types import FunctionDef, satisfies, describe_type
from weave.values import (
    Value, NumberValue, StringValue, StructInstance, FunctionRef,
    UNIT, is_truthy, make_bool,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_CALL_DEPTH = 200

# Host stack frames budgeted per script-level call when raising the recursion limit
_FRAMES_PER_CALL = 25


# ---------------------------------------------------------------------------
# Control signals
# ---------------------------------------------------------------------------

class Flow:
    """Outcome of executing a statement."""


@dataclass(frozen=True)
class Continue(Flow):
    pass


@dataclass(frozen=True)
class Return(Flow):
    value: Value = UNIT


CONTINUE = Continue()


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

class Environment:
    """Bindings owned by one function call (or by the top level)."""

    def __init__(self) -> None:
        self._bindings: dict[str, Value] = {}

    def define(self, name: str, value: Value) -> None:
        self._bindings[name] = value

    def lookup(self, name: str) -> Optional[Value]:
        return self._bindings.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._bindings

    def __repr__(self) -> str:
        return f"Environment({sorted(self._bindings)})"


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------

class Interpreter:
    """Evaluates Weave statements and expressions."""

    def __init__(
        self,
        registry: Registry,
        argv: Sequence[str] = (),
        stdout: Optional[TextIO] = None,
        script_name: str = "<string>",
        max_call_depth: int = DEFAULT_MAX_CALL_DEPTH,
    ):
        self.registry = registry
        self.argv = list(argv)
        self.stdout = stdout if stdout is not None else sys.stdout
        self.script_name = script_name
        self.max_call_depth = max_call_depth
        self.depth = 0

    # -------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------

    def execute(self, program: Program) -> None:
        """Run every top-level statement in order. Raises ScriptError on failure."""
        env = Environment()
        for stmt in program.statements:
            try:
                flow = self.execute_statement(stmt, env)
            except RecursionError:
                raise ScriptError(runtime_error(
                    "expression nested too deeply to evaluate", stmt.location,
                )) from None
            if isinstance(flow, Return):
                logger.debug("top-level return at %s", stmt.location)
                break

    def execute_block(self, stmts: Sequence[Statement], env: Environment) -> Flow:
        for stmt in stmts:
            flow = self.execute_statement(stmt, env)
            if isinstance(flow, Return):
                return flow
        return CONTINUE

    def execute_statement(self, stmt: Statement, env: Environment) -> Flow:
        if isinstance(stmt, ExprStmt):
            self.evaluate(stmt.expr, env)
            return CONTINUE

        if isinstance(stmt, LetStmt):
            env.define(stmt.name, self.evaluate(stmt.value, env))
            return CONTINUE

        if isinstance(stmt, ReturnStmt):
            value = self.evaluate(stmt.value, env) if stmt.value is not None else UNIT
            return Return(value)

        if isinstance(stmt, IfStmt):
            if is_truthy(self.evaluate(stmt.condition, env)):
                return self.execute_block(stmt.then_body, env)
            return self.execute_block(stmt.else_body, env)

        if isinstance(stmt, WhileStmt):
            while is_truthy(self.evaluate(stmt.condition, env)):
                flow = self.execute_block(stmt.body, env)
                if isinstance(flow, Return):
                    return flow
            return CONTINUE

        if isinstance(stmt, Declaration):
            # Already collected by the registry
            return CONTINUE

        raise ScriptError(runtime_error(
            f"cannot execute {type(stmt).__name__}", stmt.location,
        ))

    # -------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------

    def evaluate(self, expr: Expr, env: Environment) -> Value:
        if isinstance(expr, NumberLiteral):
            return NumberValue(expr.value)
        if isinstance(expr, StringLiteral):
            return StringValue(expr.value)
        if isinstance(expr, BoolLiteral):
            return make_bool(expr.value)
        if isinstance(expr, NilLiteral):
            return UNIT
        if isinstance(expr, Identifier):
            return self._eval_identifier(expr, env)
        if isinstance(expr, PositionalArg):
            return self._eval_positional(expr)
        if isinstance(expr, BinaryOp):
            return self._eval_binary(expr, env)
        if isinstance(expr, UnaryOp):
            return self._eval_unary(expr, env)
        if isinstance(expr, Call):
            return self._eval_call(expr, env)
        if isinstance(expr, Dot):
            return self._eval_dot(expr, env)
        if isinstance(expr, StructLiteral):
            return self._eval_struct_literal(expr, env)
        raise ScriptError(runtime_error(
            f"cannot evaluate {type(expr).__name__}", expr.location,
        ))

    def _eval_identifier(self, expr: Identifier, env: Environment) -> Value:
        value = env.lookup(expr.name)
        if value is not None:
            return value
        if self.registry.lookup_function(expr.name) is not None:
            return FunctionRef(expr.name)
        if self.registry.lookup_type(expr.name) is not None:
            raise ScriptError(name_error(
                f"'{expr.name}' is a type, not a value", expr.name, expr.location,
            ))
        raise ScriptError(name_error(f"unknown identifier '{expr.name}'", expr.name, expr.location))

    def _eval_positional(self, expr: PositionalArg) -> Value:
        if expr.index == 0:
            return StringValue(self.script_name)
        if expr.index > len(self.argv):
            raise ScriptError(runtime_error(
                f"positional argument ${expr.index} was not supplied ({len(self.argv)} given)",
                expr.location,
                index=expr.index,
                supplied=len(self.argv),
            ))
        return StringValue(self.argv[expr.index - 1])

    # -------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------

    def _eval_binary(self, expr: BinaryOp, env: Environment) -> Value:
        # Left-nested chains such as `a + b + c + ...` are folded in a loop,
        # so their length does not cost host stack depth.
        spine: list[BinaryOp] = []
        node: Expr = expr
        while isinstance(node, BinaryOp):
            spine.append(node)
            node = node.left
        left = self.evaluate(node, env)
        for op_node in reversed(spine):
            right = self.evaluate(op_node.right, env)
            left = self._apply_binary(op_node.op, left, right, op_node.location)
        return left

    def _apply_binary(
        self,
        op: str,
        left: Value,
        right: Value,
        location: Optional[SourceLocation],
    ) -> Value:
        if op == "+":
            return self._add(left, right, location)
        if op == "==":
            return make_bool(left == right)
        if op == "!=":
            return make_bool(left != right)

        if op in ("-", "*", "/"):
            if not (isinstance(left, NumberValue) and isinstance(right, NumberValue)):
                raise ScriptError(runtime_error(
                    f"arithmetic type mismatch: cannot apply '{op}' to "
                    f"{left.describe()} and {right.describe()}",
                    location,
                    operator=op,
                ))
            if op == "-":
                return NumberValue(left.value - right.value)
            if op == "*":
                return NumberValue(left.value * right.value)
            if right.value == 0:
                raise ScriptError(runtime_error("division by zero", location, operator=op))
            return NumberValue(left.value / right.value)

        if op in ("<", "<=", ">", ">="):
            comparable = (
                (isinstance(left, NumberValue) and isinstance(right, NumberValue))
                or (isinstance(left, StringValue) and isinstance(right, StringValue))
            )
            if not comparable:
                raise ScriptError(runtime_error(
                    f"cannot compare {left.describe()} and {right.describe()} with '{op}'",
                    location,
                    operator=op,
                ))
            a, b = left.value, right.value
            if op == "<":
                return make_bool(a < b)
            if op == "<=":
                return make_bool(a <= b)
            if op == ">":
                return make_bool(a > b)
            return make_bool(a >= b)

        raise ScriptError(runtime_error(f"unknown operator '{op}'", location))

    def _add(self, left: Value, right: Value, location: Optional[SourceLocation]) -> Value:
        if isinstance(left, NumberValue) and isinstance(right, NumberValue):
            return NumberValue(left.value + right.value)
        if isinstance(left, StringValue) or isinstance(right, StringValue):
            return StringValue(left.display() + right.display())
        raise ScriptError(type_error(
            f"cannot add {left.describe()} and {right.describe()}",
            location,
            expected_type="number or string",
            actual=f"{left.type_name} + {right.type_name}",
        ))

    def _eval_unary(self, expr: UnaryOp, env: Environment) -> Value:
        operand = self.evaluate(expr.operand, env)
        if expr.op == "!":
            return make_bool(not is_truthy(operand))
        if not isinstance(operand, NumberValue):
            raise ScriptError(runtime_error(
                f"arithmetic type mismatch: cannot negate {operand.describe()}",
                expr.location,
                operator=expr.op,
            ))
        return NumberValue(-operand.value)

    # -------------------------------------------------------------------
    # Calls
    # -------------------------------------------------------------------

    def _eval_call(self, expr: Call, env: Environment) -> Value:
        callee = expr.callee
        if isinstance(callee, Identifier) and callee.name == "print":
            return self._print(expr, env)
        fn = self._resolve_callee(callee, env)
        args = [self.evaluate(a, env) for a in expr.args]
        return self.call_function(fn, args, expr.location)

    def _resolve_callee(self, callee: Expr, env: Environment) -> FunctionDef:
        if isinstance(callee, Identifier) and callee.name not in env:
            fn = self.registry.lookup_function(callee.name)
            if fn is None:
                raise ScriptError(name_error(
                    f"unknown function '{callee.name}'", callee.name, callee.location,
                ))
            return fn
        value = self.evaluate(callee, env)
        if not isinstance(value, FunctionRef):
            raise ScriptError(type_error(
                f"{value.describe()} is not callable",
                callee.location,
                expected_type="function",
                actual=value.describe(),
            ))
        fn = self.registry.lookup_function(value.name)
        if fn is None:
            raise ScriptError(name_error(f"unknown function '{value.name}'", value.name, callee.location))
        return fn

    def _print(self, expr: Call, env: Environment) -> Value:
        if len(expr.args) != 1:
            raise ScriptError(arity_error("print", 1, len(expr.args), expr.location))
        value = self.evaluate(expr.args[0], env)
        self.stdout.write(value.display() + "\n")
        return UNIT

    def _eval_dot(self, expr: Dot, env: Environment) -> Value:
        receiver = self.evaluate(expr.receiver, env)
        if expr.args is None and isinstance(receiver, StructInstance) and expr.name in receiver.fields:
            return receiver.fields[expr.name]

        fn = self.registry.resolve_method(expr.name, receiver, expr.location)
        if fn is None:
            raise ScriptError(name_error(
                f"no method '{expr.name}' for {receiver.describe()}", expr.name, expr.location,
            ))
        logger.debug("dispatch %s.%s -> %s", receiver.type_name, expr.name, fn.signature())
        args = [receiver] + [self.evaluate(a, env) for a in expr.args or []]
        return self.call_function(fn, args, expr.location)

    def call_function(
        self,
        fn: FunctionDef,
        args: list[Value],
        location: Optional[SourceLocation] = None,
    ) -> Value:
        """Type-check arguments, bind them in a fresh Environment, run the body."""
        if len(args) != fn.arity:
            raise ScriptError(arity_error(fn.name, fn.arity, len(args), location))
        env = Environment()
        for (pname, ptype), arg in zip(fn.params, args):
            if not satisfies(arg, ptype, self.registry, location):
                expected = describe_type(ptype, self.registry)
                raise ScriptError(type_error(
                    f"parameter '{pname}' of '{fn.name}' expects {expected}, got {arg.describe()}",
                    location,
                    expected_type=str(ptype),
                    actual=arg.describe(),
                    parameter=pname,
                ))
            env.define(pname, arg)

        if self.depth >= self.max_call_depth:
            raise ScriptError(runtime_error(
                f"maximum call depth exceeded ({self.max_call_depth}) calling '{fn.name}'",
                location,
                max_call_depth=self.max_call_depth,
            ))
        logger.debug("call %s with %d argument(s)", fn.name, len(args))
        self.depth += 1
        try:
            flow = self.execute_block(fn.body, env)
        except RecursionError:
            raise ScriptError(runtime_error(
                f"maximum call depth exceeded calling '{fn.name}'", location,
            )) from None
        finally:
            self.depth -= 1
        if isinstance(flow, Return):
            return flow.value
        return UNIT

    # -------------------------------------------------------------------
    # Struct construction
    # -------------------------------------------------------------------

    def _eval_struct_literal(self, expr: StructLiteral, env: Environment) -> Value:
        sdef = self.registry.structs.get(expr.type_name)
        if sdef is None:
            if expr.type_name in self.registry.aliases:
                raise ScriptError(type_error(
                    f"'{expr.type_name}' is a union type and cannot be constructed",
                    expr.location,
                    expected_type="struct",
                ))
            raise ScriptError(name_error(
                f"unknown struct '{expr.type_name}'", expr.type_name, expr.location,
            ))

        supplied: dict[str, Value] = {}
        for init in expr.fields:
            if init.name in supplied:
                raise ScriptError(type_error(
                    f"field '{init.name}' of '{sdef.name}' is supplied more than once",
                    init.location,
                    field=init.name,
                ))
            if sdef.get_field_type(init.name) is None:
                raise ScriptError(type_error(
                    f"'{sdef.name}' has no field '{init.name}'",
                    init.location,
                    field=init.name,
                ))
            supplied[init.name] = self.evaluate(init.value, env)

        for fname, ftype in sdef.fields:
            if fname not in supplied:
                raise ScriptError(type_error(
                    f"missing field '{fname}' ({describe_type(ftype, self.registry)}) "
                    f"in '{sdef.name}' literal",
                    expr.location,
                    expected_type=str(ftype),
                    field=fname,
                ))

        for init in expr.fields:
            ftype = sdef.get_field_type(init.name)
            value = supplied[init.name]
            if not satisfies(value, ftype, self.registry, init.location):
                raise ScriptError(type_error(
                    f"field '{init.name}' of '{sdef.name}' expects "
                    f"{describe_type(ftype, self.registry)}, got {value.describe()}",
                    init.location,
                    expected_type=str(ftype),
                    actual=value.describe(),
                    field=init.name,
                ))

        return StructInstance(sdef.name, {fname: supplied[fname] for fname in sdef.field_names})


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

@contextmanager
def stack_headroom(max_call_depth: int = DEFAULT_MAX_CALL_DEPTH) -> Iterator[None]:
    """Raise the host recursion limit for the duration of a parse or run."""
    previous_limit = sys.getrecursionlimit()
    sys.setrecursionlimit(max(previous_limit, max_call_depth * _FRAMES_PER_CALL + 1000))
    try:
        yield
    finally:
        sys.setrecursionlimit(previous_limit)


def run(
    program: Program,
    registry: Registry,
    argv: Sequence[str] = (),
    *,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    script_name: str = "<string>",
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH,
    error_format: str = "text",
) -> int:
    """Execute a program and return its exit status.

    A script error is written once to stderr and yields status 1.
    """
    stderr = stderr if stderr is not None else sys.stderr
    interpreter = Interpreter(
        registry, argv, stdout=stdout, script_name=script_name, max_call_depth=max_call_depth,
    )
    try:
        with stack_headroom(max_call_depth):
            interpreter.execute(program)
    except ScriptError as e:
        stderr.write(format_error(e.error, error_format) + "\n")
        return 1
    return 0
