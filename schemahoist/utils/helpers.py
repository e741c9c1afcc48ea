"""Utility helpers for schemahoist: timing and AST plumbing."""

import ast
import time
from typing import Dict, Iterator, NamedTuple, Optional


class Timer:
    """High-resolution timer for measuring a pass."""

    def __init__(self):
        self.start_ns = 0
        self.end_ns = 0

    def __enter__(self):
        self.start_ns = time.perf_counter_ns()
        return self

    def __exit__(self, *exc):
        self.end_ns = time.perf_counter_ns()

    @property
    def elapsed_ns(self) -> int:
        return self.end_ns - self.start_ns


def format_ns(ns: float) -> str:
    """Format nanoseconds into a human-readable string."""
    if ns < 1_000:
        return f"{ns:.0f} ns"
    elif ns < 1_000_000:
        return f"{ns / 1_000:.1f} µs"
    elif ns < 1_000_000_000:
        return f"{ns / 1_000_000:.2f} ms"
    else:
        return f"{ns / 1_000_000_000:.3f} s"


class ParentLink(NamedTuple):
    """Where a node hangs in the tree: ``getattr(parent, field)[index]``."""
    parent: ast.AST
    field: str
    index: Optional[int] = None


ParentMap = Dict[ast.AST, ParentLink]


def build_parent_map(tree: ast.AST) -> ParentMap:
    """Map every node below ``tree`` to the link that holds it."""
    parents: ParentMap = {}
    for node in ast.walk(tree):
        for field, value in ast.iter_fields(node):
            if isinstance(value, ast.AST):
                parents[value] = ParentLink(node, field)
            elif isinstance(value, list):
                for index, item in enumerate(value):
                    if isinstance(item, ast.AST):
                        parents[item] = ParentLink(node, field, index)
    return parents


def parent_of(node: ast.AST, parents: ParentMap) -> Optional[ast.AST]:
    link = parents.get(node)
    return link.parent if link is not None else None


def iter_ancestors(node: ast.AST, parents: ParentMap) -> Iterator[ast.AST]:
    """Yield the ancestors of ``node``, nearest first."""
    current = parent_of(node, parents)
    while current is not None:
        yield current
        current = parent_of(current, parents)


def iter_children_in_order(node: ast.AST) -> Iterator[ast.AST]:
    """
    Yield direct children in source order.

    ``ast.iter_child_nodes`` follows ``_fields``, which puts decorators and
    return annotations after the body, positional defaults after keyword-only
    ones, and all dict keys before all dict values.
    """
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        yield from node.decorator_list
        yield from getattr(node, 'type_params', ())
        yield node.args
        if node.returns is not None:
            yield node.returns
        yield from node.body
        return
    if isinstance(node, ast.ClassDef):
        yield from node.decorator_list
        yield from getattr(node, 'type_params', ())
        yield from node.bases
        yield from node.keywords
        yield from node.body
        return
    if isinstance(node, ast.arguments):
        positional = node.posonlyargs + node.args
        first_default = len(positional) - len(node.defaults)
        for index, arg in enumerate(positional):
            yield arg
            if index >= first_default:
                yield node.defaults[index - first_default]
        if node.vararg is not None:
            yield node.vararg
        for arg, default in zip(node.kwonlyargs, node.kw_defaults):
            yield arg
            if default is not None:
                yield default
        if node.kwarg is not None:
            yield node.kwarg
        return
    if isinstance(node, ast.Dict):
        for key, value in zip(node.keys, node.values):
            if key is not None:
                yield key
            yield value
        return
    yield from ast.iter_child_nodes(node)


def walk_preorder(node: ast.AST) -> Iterator[ast.AST]:
    """Depth-first, pre-order, left-to-right walk (``ast.walk`` is breadth-first)."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(iter_children_in_order(current))))


def replace_node(node: ast.AST, replacement: ast.AST, parents: ParentMap) -> None:
    """Put ``replacement`` where ``node`` currently sits."""
    link = parents[node]
    if link.index is None:
        setattr(link.parent, link.field, replacement)
    else:
        getattr(link.parent, link.field)[link.index] = replacement
    parents[replacement] = link
    del parents[node]
