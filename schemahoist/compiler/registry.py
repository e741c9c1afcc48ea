"""
Canonical forms and the per-pass deduplication registry.

Two schema expressions that print identically share one module-level name.
The printed form (``ast.unparse``) is the dictionary key and also seeds the
generated name through a short SHA-256 digest, so names are stable across
runs.
"""

import ast
import copy
import hashlib
from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Optional, Set


def canonicalize(node: ast.AST) -> str:
    """Canonical source text of an expression."""
    return ast.unparse(node)


def short_hash(code: str, length: int = 8) -> str:
    return hashlib.sha256(code.encode('utf-8')).hexdigest()[:length]


def collect_identifiers(tree: ast.AST) -> Set[str]:
    """Every identifier ``tree`` reads, binds or declares."""
    names: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name):
            names.add(node.id)
        elif isinstance(node, ast.arg):
            names.add(node.arg)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.add(node.name)
        elif isinstance(node, ast.alias):
            names.add(node.asname or node.name.split('.')[0])
        elif isinstance(node, (ast.Global, ast.Nonlocal)):
            names.update(node.names)
        elif isinstance(node, (ast.ExceptHandler, ast.MatchAs, ast.MatchStar)) and node.name:
            names.add(node.name)
        elif isinstance(node, ast.MatchMapping) and node.rest:
            names.add(node.rest)
    return names


@dataclass
class HoistedEntry:
    """A module-level declaration waiting to be inserted."""
    name: str
    initializer: ast.expr
    source: str = ''

    def to_statement(self) -> ast.Assign:
        return ast.Assign(
            targets=[ast.Name(id=self.name, ctx=ast.Store())],
            value=self.initializer,
        )


class Registration(NamedTuple):
    name: str
    is_new: bool


class DedupRegistry:
    """
    Maps canonical forms to generated names for one pass.

    Usage:
        registry = DedupRegistry(reserved_names=collect_identifiers(tree))
        reg = registry.register(canonicalize(node), node)
        if reg.is_new: ...  # an entry was queued for insertion
    """

    def __init__(self, prefix: str = 'schema', reserved_names: Optional[Iterable[str]] = None):
        self.prefix = prefix
        self._reserved: Set[str] = set(reserved_names or ())
        self._names: Dict[str, str] = {}
        self.entries: List[HoistedEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: str) -> bool:
        return key in self._names

    def lookup(self, key: str) -> Optional[str]:
        return self._names.get(key)

    def register(self, key: str, node: ast.expr) -> Registration:
        existing = self._names.get(key)
        if existing is not None:
            return Registration(existing, False)

        name = self._fresh_name(key)
        self._names[key] = name
        # Independent copy: the original site is rewritten later
        self.entries.append(HoistedEntry(name, copy.deepcopy(node), key))
        return Registration(name, True)

    def _fresh_name(self, key: str) -> str:
        base = f"_{self.prefix}_{short_hash(key)}"
        name = base
        suffix = 2
        while name in self._reserved:
            name = f"{base}_{suffix}"
            suffix += 1
        self._reserved.add(name)
        return name
