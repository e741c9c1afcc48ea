"""
Schema Hoister
==============

Moves side-effect-free schema construction out of functions and into
module-level constants, so ``z.object({...})`` is built once at import time
instead of on every call.

Before:
    from zod import z

    def user_schema():
        return z.object({'name': z.string()})

After:
    from zod import z
    _schema_1a2b3c4d = z.object({'name': z.string()})

    def user_schema():
        return _schema_1a2b3c4d

The pass runs in two phases over a private copy of the module:
    1. Collect: one pre-order walk visits every call, filters it through the
       chain, nesting, shadowing and safety checks, and records accepted
       candidates (deduplicated by canonical source) in discovery order.
    2. Apply: every accepted site is replaced by a name, and one assignment
       per distinct schema is inserted after the import prelude.
"""

import ast
import copy
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Collection, Dict, List, Optional, Set, Tuple

from schemahoist.analysis.chain import (
    TERMINAL_METHODS,
    is_nested_in_target_call,
    is_schema_call,
    outermost_call,
)
from schemahoist.analysis.safety import HoistSafetyAnalyzer, is_global_namespace_reference
from schemahoist.analysis.scope import ScopeAnalyzer, ScopeMap
from schemahoist.compiler.registry import (
    DedupRegistry,
    HoistedEntry,
    canonicalize,
    collect_identifiers,
)
from schemahoist.utils.helpers import (
    Timer,
    build_parent_map,
    format_ns,
    replace_node,
    walk_preorder,
)

logger = logging.getLogger(__name__)


def find_insertion_index(module: ast.Module) -> int:
    """Index just past the module docstring and the leading imports."""
    body = module.body
    index = 0
    if (
        body
        and isinstance(body[0], ast.Expr)
        and isinstance(body[0].value, ast.Constant)
        and isinstance(body[0].value.value, str)
    ):
        index = 1
    while index < len(body) and isinstance(body[index], (ast.Import, ast.ImportFrom)):
        index += 1
    return index


@dataclass(eq=False)
class Candidate:
    """An accepted occurrence and the module-level name it will reference."""
    node: ast.Call
    name: str
    is_new: bool
    source: str


@dataclass
class HoistReport:
    """Everything one pass produced."""
    tree: ast.Module
    entries: List[HoistedEntry] = field(default_factory=list)
    candidates: List[Candidate] = field(default_factory=list)
    rejections: List[Tuple[str, str]] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)
    elapsed_ns: int = 0

    @property
    def replacements(self) -> int:
        return len(self.candidates)

    @property
    def hoisted_names(self) -> List[str]:
        return [entry.name for entry in self.entries]

    @property
    def changed(self) -> bool:
        return bool(self.candidates)


class HoistPass:
    """
    State for a single pass over a single module.

    Nothing here is shared between passes: the registry, the processed-chain
    set and the candidate arena all die with the instance.
    """

    def __init__(
        self,
        module: ast.Module,
        *,
        namespace: str = 'z',
        prefix: str = 'schema',
        terminal_methods: Collection[str] = TERMINAL_METHODS,
    ):
        self.module = module
        self.namespace = namespace
        self.terminal_methods = frozenset(terminal_methods)
        self.parents = build_parent_map(module)
        self.scopes: ScopeMap = ScopeAnalyzer().analyze(module)
        self.insertion_index = find_insertion_index(module)
        self.registry = DedupRegistry(prefix, collect_identifiers(module))
        self.analyzer = HoistSafetyAnalyzer(namespace)
        self.processed: Set[ast.Call] = set()
        self.candidates: List[Candidate] = []
        self.rejections: List[Tuple[str, str]] = []
        self.stats: Dict[str, int] = defaultdict(int)
        self._applied = False

    # ---- phase 1: collect ----

    def collect(self) -> List[Candidate]:
        for node in walk_preorder(self.module):
            if isinstance(node, ast.Call):
                self._consider(node)
        return self.candidates

    def _consider(self, call: ast.Call) -> None:
        self.stats['calls_visited'] += 1
        if not is_schema_call(call, self.namespace, self.terminal_methods):
            return

        outer = outermost_call(call, self.parents, self.terminal_methods)
        if outer in self.processed:
            return
        self.processed.add(outer)
        self.stats['candidates'] += 1

        if is_nested_in_target_call(outer, self.parents, self.namespace, self.terminal_methods):
            self.stats['rejected_nested'] += 1
            return

        if not is_global_namespace_reference(outer, self.scopes):
            self.stats['rejected_shadowed'] += 1
            self._reject(outer, f"'{self.namespace}' is shadowed by a local binding")
            return

        scope = self.scopes.scope_of(outer)
        if scope is None:
            self.stats['rejected_inconclusive'] += 1
            self._reject(outer, 'no scope information')
            return
        if self.scopes.enclosing_function(scope) is None:
            self.stats['rejected_top_level'] += 1
            return

        decision = self.analyzer.check(outer, self.scopes, self.insertion_index)
        if not decision:
            key = 'rejected_inconclusive' if decision.inconclusive else 'rejected_unsafe'
            self.stats[key] += 1
            self._reject(outer, decision.reason)
            return

        code = canonicalize(outer)
        registration = self.registry.register(code, outer)
        if registration.is_new:
            self.stats['schemas_hoisted'] += 1
            logger.debug(f"Hoisting {code} as {registration.name}")
        else:
            self.stats['schemas_reused'] += 1
            logger.debug(f"Reusing {registration.name} for {code}")
        self.candidates.append(
            Candidate(outer, registration.name, registration.is_new, code)
        )

    def _reject(self, node: ast.AST, reason: str) -> None:
        code = canonicalize(node)
        self.rejections.append((code, reason))
        logger.debug(f"Not hoisting {code}: {reason}")

    # ---- phase 2: apply ----

    def apply(self) -> ast.Module:
        if self._applied:
            raise RuntimeError("HoistPass.apply() called twice")
        self._applied = True

        for candidate in self.candidates:
            reference = ast.copy_location(
                ast.Name(id=candidate.name, ctx=ast.Load()), candidate.node
            )
            replace_node(candidate.node, reference, self.parents)

        if self.registry.entries:
            declarations = [entry.to_statement() for entry in self.registry.entries]
            index = self.insertion_index
            self.module.body[index:index] = declarations

        ast.fix_missing_locations(self.module)
        return self.module

    def run(self) -> ast.Module:
        self.collect()
        return self.apply()


def hoist_module(
    tree: ast.Module,
    *,
    namespace: str = 'z',
    prefix: str = 'schema',
    terminal_methods: Collection[str] = TERMINAL_METHODS,
) -> HoistReport:
    """
    Run one hoisting pass and return the report.

    The input tree is never modified; the report carries a rewritten copy.
    Parser, printer and scope-analysis errors propagate unchanged.
    """
    if not isinstance(tree, ast.Module):
        raise TypeError(f"Expected ast.Module, got {type(tree).__name__}")

    with Timer() as timer:
        hoist_pass = HoistPass(
            copy.deepcopy(tree),
            namespace=namespace,
            prefix=prefix,
            terminal_methods=terminal_methods,
        )
        module = hoist_pass.run()

    logger.debug(
        f"Hoisted {len(hoist_pass.registry)} schema(s) into "
        f"{len(hoist_pass.candidates)} site(s) in {format_ns(timer.elapsed_ns)}"
    )
    return HoistReport(
        tree=module,
        entries=list(hoist_pass.registry.entries),
        candidates=list(hoist_pass.candidates),
        rejections=list(hoist_pass.rejections),
        stats=defaultdict(int, hoist_pass.stats),
        elapsed_ns=timer.elapsed_ns,
    )


def hoist_source(source: str, **options) -> str:
    """Parse ``source``, hoist its schemas and print the result."""
    return ast.unparse(hoist_module(ast.parse(source), **options).tree)


class SchemaHoister:
    """
    Configurable front end for the hoisting pass.

    Usage:
        >>> hoister = SchemaHoister()
        >>> print(hoister.transform_source(source))
        >>> hoister.stats['schemas_hoisted']

    ``stats`` accumulates across calls; every call still runs an independent
    pass with its own registry.
    """

    def __init__(
        self,
        namespace: str = 'z',
        prefix: str = 'schema',
        terminal_methods: Optional[Collection[str]] = None,
        enable_logging: bool = False,
    ):
        self.namespace = namespace
        self.prefix = prefix
        self.terminal_methods = frozenset(
            TERMINAL_METHODS if terminal_methods is None else terminal_methods
        )
        self.stats = defaultdict(int)
        self.last_report: Optional[HoistReport] = None

        if enable_logging:
            logging.basicConfig(level=logging.DEBUG)

    def hoist(self, tree: ast.Module) -> HoistReport:
        report = hoist_module(
            tree,
            namespace=self.namespace,
            prefix=self.prefix,
            terminal_methods=self.terminal_methods,
        )
        for key, value in report.stats.items():
            self.stats[key] += value
        self.last_report = report
        return report

    def transform(self, tree: ast.Module) -> ast.Module:
        """Return a rewritten copy of ``tree``."""
        return self.hoist(tree).tree

    def transform_source(self, source: str) -> str:
        """Return the hoisted version of ``source`` as text."""
        return ast.unparse(self.transform(ast.parse(source)))
