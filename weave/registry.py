"""Weave declaration registry.

One pass over the program collects every top-level type alias, struct and
function, so declarations are visible regardless of textual order. The
registry is read-only once built and is passed explicitly to the type
checker and the interpreter.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping, Optional, Union

from weave.ast_nodes import Program, Declaration, TypeAliasDecl, StructDecl, FnDecl
from weave.errors import SourceLocation, ScriptError, name_error
from weave.types import (
    TypeAlias, StructDef, FunctionDef, PRIMITIVES,
    resolve_type_annotation, satisfies,
)
from weave.values import Value

logger = logging.getLogger(__name__)


class Registry:
    """Immutable table of declared type aliases, structs and functions."""

    def __init__(
        self,
        aliases: dict[str, TypeAlias],
        structs: dict[str, StructDef],
        functions: dict[str, FunctionDef],
    ):
        self._aliases = MappingProxyType(dict(aliases))
        self._structs = MappingProxyType(dict(structs))
        self._functions = MappingProxyType(dict(functions))
        # (function name, first parameter type name) -> function, in declaration order
        dispatch: dict[tuple[str, str], FunctionDef] = {}
        for fn in functions.values():
            if fn.receiver_type is not None:
                dispatch.setdefault((fn.name, fn.receiver_type.name), fn)
        self._dispatch = MappingProxyType(dispatch)
        methods: dict[str, list[FunctionDef]] = {}
        for (fn_name, _), fn in dispatch.items():
            methods.setdefault(fn_name, []).append(fn)
        self._methods = {fn_name: tuple(fns) for fn_name, fns in methods.items()}

    @property
    def aliases(self) -> Mapping[str, TypeAlias]:
        return self._aliases

    @property
    def structs(self) -> Mapping[str, StructDef]:
        return self._structs

    @property
    def functions(self) -> Mapping[str, FunctionDef]:
        return self._functions

    @property
    def dispatch_table(self) -> Mapping[tuple[str, str], FunctionDef]:
        return self._dispatch

    def lookup_type(self, name: str) -> Union[TypeAlias, StructDef, None]:
        return self._structs.get(name) or self._aliases.get(name)

    def lookup_function(self, name: str) -> Optional[FunctionDef]:
        return self._functions.get(name)

    def method_candidates(self, name: str) -> tuple[FunctionDef, ...]:
        """Functions named `name` that take at least one parameter, in declaration order."""
        return self._methods.get(name, ())

    def resolve_method(
        self,
        name: str,
        receiver: Value,
        location: Optional[SourceLocation] = None,
    ) -> Optional[FunctionDef]:
        """Find the function `name` whose first parameter accepts `receiver`.

        Primitive and struct receivers hit the dispatch table directly by
        their type name. Union-typed parameters cannot be keyed by the
        receiver, so the remaining candidates are tried in declaration
        order and the first match wins.
        """
        fn = self._dispatch.get((name, receiver.type_name))
        if fn is not None:
            return fn
        for fn in self.method_candidates(name):
            if satisfies(receiver, fn.receiver_type, self, location):
                return fn
        return None

    def __repr__(self) -> str:
        return (f"Registry(aliases={list(self._aliases)}, structs={list(self._structs)}, "
                f"functions={list(self._functions)})")


def _declare(seen: dict[str, Declaration], decl: Declaration) -> None:
    if decl.name in PRIMITIVES and not isinstance(decl, FnDecl):
        raise ScriptError(name_error(
            f"'{decl.name}' is a built-in type and cannot be redeclared", decl.name, decl.location,
        ))
    previous = seen.get(decl.name)
    if previous is not None:
        where = f" (first declared at {previous.location.line}:{previous.location.column})" \
            if previous.location else ""
        raise ScriptError(name_error(
            f"'{decl.name}' is already declared{where}", decl.name, decl.location,
        ))
    seen[decl.name] = decl


def _check_unique(names: list[str], what: str, owner: str, decl: Declaration) -> None:
    seen: set[str] = set()
    for n in names:
        if n in seen:
            raise ScriptError(name_error(f"duplicate {what} '{n}' in '{owner}'", n, decl.location))
        seen.add(n)


def build_registry(program: Program) -> Registry:
    """Collect every top-level declaration into a Registry."""
    seen: dict[str, Declaration] = {}
    aliases: dict[str, TypeAlias] = {}
    structs: dict[str, StructDef] = {}
    functions: dict[str, FunctionDef] = {}

    for decl in program.declarations:
        _declare(seen, decl)
        if isinstance(decl, TypeAliasDecl):
            literals = tuple(dict.fromkeys(decl.literals))
            aliases[decl.name] = TypeAlias(name=decl.name, literals=literals, location=decl.location)
        elif isinstance(decl, StructDecl):
            _check_unique([f.name for f in decl.fields], "field", decl.name, decl)
            fields = tuple((f.name, resolve_type_annotation(f.type_annotation)) for f in decl.fields)
            structs[decl.name] = StructDef(name=decl.name, fields=fields, location=decl.location)
        elif isinstance(decl, FnDecl):
            _check_unique([p.name for p in decl.params], "parameter", decl.name, decl)
            params = tuple((p.name, resolve_type_annotation(p.type_annotation)) for p in decl.params)
            return_type = resolve_type_annotation(decl.return_type) if decl.return_type else None
            functions[decl.name] = FunctionDef(
                name=decl.name, params=params, return_type=return_type,
                body=tuple(decl.body), location=decl.location,
            )

    logger.debug(
        "registry built: %d aliases, %d structs, %d functions",
        len(aliases), len(structs), len(functions),
    )
    return Registry(aliases, structs, functions)
