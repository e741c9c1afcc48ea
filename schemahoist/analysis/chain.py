"""
Chain resolution for schema-factory call chains.

A chain is the spine of calls and member accesses that grows out of a single
root name, e.g. ``z.string().min(1).optional()``. These helpers find the root
of a chain, climb to its outermost call, and detect chains that sit inside a
larger schema-building call.
"""

import ast
from typing import Collection, FrozenSet, Iterator

from schemahoist.utils.helpers import ParentMap, iter_ancestors, parent_of

# Methods that consume a finished schema instead of building one.
TERMINAL_METHODS: FrozenSet[str] = frozenset({
    'parse', 'safeParse', 'parseAsync', 'safeParseAsync', 'spa',
})

_MEMBER_TYPES = (ast.Attribute, ast.Subscript)


def chain_root(node: ast.AST) -> ast.AST:
    """
    Follow callees and member objects down to the root of a chain.

    For ``z.string().optional()`` this returns the ``z`` Name. The result may
    be any expression (``(a or b).c()`` ends at the BoolOp); callers check
    its type.
    """
    current = node
    while True:
        if isinstance(current, ast.Call):
            current = current.func
        elif isinstance(current, _MEMBER_TYPES):
            current = current.value
        else:
            return current


def is_namespace_call(node: ast.AST, namespace: str) -> bool:
    """True for a call whose chain is rooted at the literal ``namespace`` name."""
    if not isinstance(node, ast.Call):
        return False
    root = chain_root(node)
    return isinstance(root, ast.Name) and root.id == namespace


def is_terminal_call(node: ast.AST, terminal_methods: Collection[str] = TERMINAL_METHODS) -> bool:
    """``<schema>.parse(...)`` and friends."""
    return (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Attribute)
        and node.func.attr in terminal_methods
    )


def iter_spine(node: ast.AST) -> Iterator[ast.AST]:
    """Yield ``node`` and every callee or member object below it, outermost first."""
    current = node
    while True:
        yield current
        if isinstance(current, ast.Call):
            current = current.func
        elif isinstance(current, _MEMBER_TYPES):
            current = current.value
        else:
            return


def is_schema_call(
    node: ast.AST,
    namespace: str,
    terminal_methods: Collection[str] = TERMINAL_METHODS,
) -> bool:
    """
    A namespace call that still builds a schema.

    Anything at or above a terminal method is a value derived from parsing,
    so ``z.string().parse(x).upper()`` is not a schema call while the
    ``z.string()`` inside it is.
    """
    return is_namespace_call(node, namespace) and not any(
        is_terminal_call(part, terminal_methods) for part in iter_spine(node)
    )


def outermost_call(
    call: ast.Call,
    parents: ParentMap,
    terminal_methods: Collection[str] = TERMINAL_METHODS,
) -> ast.Call:
    """
    Climb from ``call`` to the top call of its chain.

    Starting at ``z.string()`` in ``z.string().min(1).default('x')`` this
    returns the ``.default('x')`` call. The climb stops below terminal
    methods, so ``z.string().parse(data)`` resolves to ``z.string()``.
    """
    current = call
    while True:
        member = parent_of(current, parents)
        if not isinstance(member, _MEMBER_TYPES) or member.value is not current:
            return current
        outer = parent_of(member, parents)
        if not isinstance(outer, ast.Call) or outer.func is not member:
            return current
        if is_terminal_call(outer, terminal_methods):
            return current
        current = outer


def is_nested_in_target_call(
    outer: ast.Call,
    parents: ParentMap,
    namespace: str,
    terminal_methods: Collection[str] = TERMINAL_METHODS,
) -> bool:
    """
    True if some ancestor of ``outer`` is itself a schema-building call.

    ``z.string()`` inside ``z.object({'a': z.string()})`` travels with the
    enclosing object schema and is not a candidate on its own.
    """
    for ancestor in iter_ancestors(outer, parents):
        if is_schema_call(ancestor, namespace, terminal_methods):
            return True
    return False
