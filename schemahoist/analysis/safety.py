"""
Hoist Safety Analysis
=====================

Decides whether a schema expression found inside a function can be moved to
module level without changing what the program does.

Moving an expression to module level changes *when* and *where* it is
evaluated. Every name it reads must therefore mean the same thing, and already
hold its value, at the insertion point right after the module's import
prelude:

    - builtins and names the module never binds: unchanged meaning
    - names bound inside the expression itself (lambda parameters,
      comprehension variables): they move along with it
    - module names bound only by prelude imports: already executed
    - any other module name: may not be assigned yet at the insertion point
    - function locals, parameters, closures: not available at all

Beyond names, a few constructs are tied to the call site: zero-argument
``super()`` and ``__class__`` (the implicit receiver), ``await``/``yield``
(only legal inside a function) and ``:=`` (binds into the enclosing scope).

The analysis is conservative: anything it cannot classify is rejected.
"""

import ast
from dataclasses import dataclass
from typing import Collection, Optional, Set

from schemahoist.analysis.chain import chain_root
from schemahoist.analysis.scope import Binding, Scope, ScopeMap

_SCOPE_OWNERS = (
    ast.Lambda, ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef,
    ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp,
)


@dataclass
class HoistDecision:
    """Outcome of the safety analysis for one candidate."""
    safe: bool
    reason: str = ''
    # Analysis could not classify something (unplaced node, odd root)
    inconclusive: bool = False

    def __bool__(self) -> bool:
        return self.safe


SAFE = HoistDecision(True)


def prelude_imports(scopes: ScopeMap, insertion_index: int) -> Set[ast.stmt]:
    """Module-level import statements that run before the insertion point."""
    module = scopes.module_scope.node
    return {
        stmt for stmt in module.body[:insertion_index]
        if isinstance(stmt, (ast.Import, ast.ImportFrom))
    }


def is_prelude_import(binding: Binding, prelude: Set[ast.stmt]) -> bool:
    return binding.is_import and all(
        d.statement in prelude for d in binding.definitions
    )


def is_global_namespace_reference(outer: ast.Call, scopes: ScopeMap) -> bool:
    """
    Check that the chain root refers to the module-level namespace, not a
    parameter or local variable that shadows it.
    """
    root = chain_root(outer)
    if not isinstance(root, ast.Name):
        return False
    scope = scopes.scope_of(root)
    if scope is None:
        return False
    binding = scopes.lookup(root.id, scope)
    # Unbound: a builtin or externally provided global
    if binding is None:
        return True
    return binding.scope is scopes.module_scope


class HoistSafetyAnalyzer:
    """
    Classifies every reference inside a candidate expression.

    Usage:
        analyzer = HoistSafetyAnalyzer('z')
        decision = analyzer.check(call_node, scopes, insertion_index)
        if decision: ...
    """

    RECEIVER_NAMES = frozenset({'__class__'})

    def __init__(self, namespace: str = 'z'):
        self.namespace = namespace

    def can_hoist(self, outer: ast.Call, scopes: ScopeMap, insertion_index: int) -> bool:
        return self.check(outer, scopes, insertion_index).safe

    def check(self, outer: ast.Call, scopes: ScopeMap, insertion_index: int) -> HoistDecision:
        prelude = prelude_imports(scopes, insertion_index)
        late_star_import = any(
            stmt not in prelude for stmt in scopes.module_scope.star_imports
        )

        decision = self._check_root(outer, scopes, prelude, late_star_import)
        if not decision:
            return decision

        visitor = _ReferenceVisitor(
            candidate=outer,
            scopes=scopes,
            namespace=self.namespace,
            prelude=prelude,
            late_star_import=late_star_import,
            receiver_names=self.RECEIVER_NAMES,
        )
        visitor.visit(outer)
        return visitor.decision

    def _check_root(
        self,
        outer: ast.Call,
        scopes: ScopeMap,
        prelude: Set[ast.stmt],
        late_star_import: bool,
    ) -> HoistDecision:
        """The namespace itself must exist at the insertion point."""
        root = chain_root(outer)
        if not isinstance(root, ast.Name):
            return HoistDecision(False, 'chain root is not a name', inconclusive=True)
        scope = scopes.scope_of(root)
        if scope is None:
            return HoistDecision(False, f"no scope for '{root.id}'", inconclusive=True)
        binding = scopes.lookup(root.id, scope)
        if binding is None:
            if late_star_import:
                return HoistDecision(
                    False, f"namespace '{root.id}' may come from a later star import"
                )
            return SAFE
        if is_prelude_import(binding, prelude):
            return SAFE
        return HoistDecision(
            False, f"namespace '{root.id}' is not bound by a prelude import"
        )


class _ReferenceVisitor(ast.NodeVisitor):
    """Pre-order walk that stops at the first disqualifying reference."""

    def __init__(
        self,
        *,
        candidate: ast.AST,
        scopes: ScopeMap,
        namespace: str,
        prelude: Set[ast.stmt],
        late_star_import: bool,
        receiver_names: Collection[str],
    ):
        self.candidate = candidate
        self.scopes = scopes
        self.namespace = namespace
        self.prelude = prelude
        self.late_star_import = late_star_import
        self.receiver_names = receiver_names
        self.inner_scope_owners = {
            node for node in ast.walk(candidate) if isinstance(node, _SCOPE_OWNERS)
        }
        self.decision = SAFE

    def visit(self, node: ast.AST):
        if not self.decision:
            return None
        return super().visit(node)

    def _reject(self, reason: str, inconclusive: bool = False) -> None:
        self.decision = HoistDecision(False, reason, inconclusive)

    def visit_Name(self, node: ast.Name) -> None:
        if node.id == self.namespace:
            return
        if node.id in self.receiver_names:
            self._reject(f"uses implicit receiver '{node.id}'")
            return

        scope: Optional[Scope] = self.scopes.scope_of(node)
        if scope is None:
            self._reject(f"no scope for '{node.id}'", inconclusive=True)
            return
        binding = self.scopes.lookup(node.id, scope)

        if binding is None:
            if self.late_star_import:
                self._reject(f"'{node.id}' may come from a later star import")
            return

        # Declared by a lambda or comprehension inside the expression
        if binding.scope.node in self.inner_scope_owners:
            return

        if binding.scope is self.scopes.module_scope:
            if is_prelude_import(binding, self.prelude):
                return
            self._reject(f"'{node.id}' is a module-level name not yet bound at the insertion point")
            return

        self._reject(f"'{node.id}' is local to an enclosing scope")

    def visit_Call(self, node: ast.Call) -> None:
        if (
            isinstance(node.func, ast.Name)
            and node.func.id == 'super'
            and not node.args
            and not node.keywords
        ):
            self._reject("uses zero-argument super()")
            return
        self.generic_visit(node)

    def visit_Await(self, node: ast.Await) -> None:
        self._reject("contains 'await'")

    def visit_Yield(self, node: ast.Yield) -> None:
        self._reject("contains 'yield'")

    def visit_YieldFrom(self, node: ast.YieldFrom) -> None:
        self._reject("contains 'yield from'")

    def visit_NamedExpr(self, node: ast.NamedExpr) -> None:
        self._reject("contains an assignment expression")
