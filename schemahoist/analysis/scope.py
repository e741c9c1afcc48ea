"""
Scope Analyzer
==============

Static name-binding analysis for a Python module, answering the question the
hoisting pass keeps asking: *which declaration does this identifier refer to,
and in which lexical scope does that declaration live?*

Python scoping rules modelled here:
    1. A name bound anywhere in a scope (assignment, parameter, import,
       ``def``/``class``, ``except ... as``, ``for``/``with`` targets, match
       captures, ``del``) is local to that whole scope.
    2. ``global`` redirects bindings to the module scope; ``nonlocal`` to the
       nearest enclosing function scope that binds the name.
    3. Class bodies are invisible to the scopes nested inside them.
    4. Comprehensions get their own scope, but their first iterable is
       evaluated in the enclosing scope, and a walrus target inside them binds
       in the nearest enclosing non-comprehension scope.
    5. Decorators, default values, annotations and class bases are evaluated
       in the scope that contains the ``def``/``class`` statement.

The analysis never raises on unusual input: nodes it could not place
(e.g. PEP 695 type-parameter scopes) simply have no scope, which callers
must treat as inconclusive.
"""

import ast
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional, Set


class ScopeKind(Enum):
    MODULE = auto()
    CLASS = auto()
    FUNCTION = auto()
    LAMBDA = auto()
    COMPREHENSION = auto()


class DefinitionKind(Enum):
    PARAMETER = auto()
    ASSIGNMENT = auto()
    IMPORT = auto()
    FUNCTION = auto()
    CLASS = auto()
    EXCEPT_HANDLER = auto()
    PATTERN = auto()
    DELETION = auto()


@dataclass(eq=False)
class Definition:
    """One place that binds a name."""
    node: ast.AST
    kind: DefinitionKind
    # Import / ImportFrom statement for IMPORT definitions
    statement: Optional[ast.stmt] = None


@dataclass(eq=False)
class Binding:
    """All definitions of one name inside one scope."""
    name: str
    scope: 'Scope'
    definitions: List[Definition] = field(default_factory=list)

    @property
    def is_import(self) -> bool:
        """True when every definition comes from an import statement."""
        return bool(self.definitions) and all(
            d.kind is DefinitionKind.IMPORT for d in self.definitions
        )


@dataclass(eq=False)
class Scope:
    kind: ScopeKind
    node: ast.AST
    parent: Optional['Scope'] = None
    bindings: Dict[str, Binding] = field(default_factory=dict)
    global_names: Set[str] = field(default_factory=set)
    nonlocal_names: Set[str] = field(default_factory=set)
    star_imports: List[ast.ImportFrom] = field(default_factory=list)

    @property
    def is_function(self) -> bool:
        return self.kind in (ScopeKind.FUNCTION, ScopeKind.LAMBDA)

    def bind(self, name: str, definition: Definition) -> Binding:
        binding = self.bindings.get(name)
        if binding is None:
            binding = Binding(name, self)
            self.bindings[name] = binding
        binding.definitions.append(definition)
        return binding


class ScopeMap:
    """Result of :class:`ScopeAnalyzer`: node → scope, plus name resolution."""

    def __init__(self, module_scope: Scope, node_scopes: Dict[ast.AST, Scope]):
        self.module_scope = module_scope
        self._node_scopes = node_scopes

    def scope_of(self, node: ast.AST) -> Optional[Scope]:
        """Scope in which ``node`` is evaluated, or None if unknown."""
        return self._node_scopes.get(node)

    def lookup(self, name: str, scope: Scope) -> Optional[Binding]:
        """Resolve ``name`` as read from ``scope`` (LEGB, minus builtins)."""
        if name in scope.global_names:
            return self.module_scope.bindings.get(name)
        if name not in scope.nonlocal_names:
            binding = scope.bindings.get(name)
            if binding is not None:
                return binding
        current = scope.parent
        while current is not None:
            if current.kind is ScopeKind.CLASS:
                current = current.parent
                continue
            if name in current.global_names:
                return self.module_scope.bindings.get(name)
            if name not in current.nonlocal_names:
                binding = current.bindings.get(name)
                if binding is not None:
                    return binding
            current = current.parent
        return None

    def resolve(self, node: ast.Name) -> Optional[Binding]:
        """Binding a ``Name`` node refers to; None if free or unplaced."""
        scope = self.scope_of(node)
        if scope is None:
            return None
        return self.lookup(node.id, scope)

    @staticmethod
    def enclosing_function(scope: Optional[Scope]) -> Optional[Scope]:
        """Nearest function or lambda scope containing ``scope`` (inclusive)."""
        current = scope
        while current is not None:
            if current.is_function:
                return current
            current = current.parent
        return None


class ScopeAnalyzer(ast.NodeVisitor):
    """
    Builds a :class:`ScopeMap` for one module.

    Usage:
        >>> scopes = ScopeAnalyzer().analyze(ast.parse(source))
        >>> binding = scopes.resolve(name_node)
    """

    def __init__(self):
        self._node_scopes: Dict[ast.AST, Scope] = {}
        self._scope: Optional[Scope] = None

    def analyze(self, module: ast.Module) -> ScopeMap:
        self._node_scopes = {}
        module_scope = Scope(ScopeKind.MODULE, module)
        self._scope = module_scope
        self._node_scopes[module] = module_scope
        for stmt in module.body:
            self.visit(stmt)
        return ScopeMap(module_scope, self._node_scopes)

    # ---- helpers ----

    def visit(self, node: ast.AST):
        self._node_scopes.setdefault(node, self._scope)
        return super().visit(node)

    def _visit_all(self, nodes) -> None:
        for node in nodes:
            if node is not None:
                self.visit(node)

    def _bind(self, name: str, definition: Definition, scope: Optional[Scope] = None) -> None:
        scope = scope or self._scope
        if name in scope.global_names:
            self._module_scope(scope).bind(name, definition)
        elif name in scope.nonlocal_names:
            # Bound in an enclosing function; resolved at lookup time
            return
        else:
            scope.bind(name, definition)

    @staticmethod
    def _module_scope(scope: Scope) -> Scope:
        while scope.parent is not None:
            scope = scope.parent
        return scope

    def _push(self, kind: ScopeKind, node: ast.AST) -> Scope:
        scope = Scope(kind, node, parent=self._scope)
        self._scope = scope
        return scope

    def _pop(self) -> None:
        self._scope = self._scope.parent

    def _visit_arguments_outer(self, args: ast.arguments, annotations: bool) -> None:
        """Defaults (and annotations) belong to the defining scope."""
        self._node_scopes.setdefault(args, self._scope)
        self._visit_all(args.defaults)
        self._visit_all(args.kw_defaults)
        if annotations:
            for arg in self._all_args(args):
                self._node_scopes.setdefault(arg, self._scope)
                if arg.annotation is not None:
                    self.visit(arg.annotation)

    def _bind_parameters(self, args: ast.arguments) -> None:
        for arg in self._all_args(args):
            self._node_scopes[arg] = self._scope
            self._bind(arg.arg, Definition(arg, DefinitionKind.PARAMETER))

    @staticmethod
    def _all_args(args: ast.arguments) -> List[ast.arg]:
        result = list(args.posonlyargs) + list(args.args)
        if args.vararg:
            result.append(args.vararg)
        result.extend(args.kwonlyargs)
        if args.kwarg:
            result.append(args.kwarg)
        return result

    # ---- scopes ----

    def _visit_function(self, node) -> None:
        self._bind(node.name, Definition(node, DefinitionKind.FUNCTION))
        self._visit_all(node.decorator_list)
        self._visit_arguments_outer(node.args, annotations=True)
        if node.returns is not None:
            self.visit(node.returns)
        self._push(ScopeKind.FUNCTION, node)
        self._bind_parameters(node.args)
        self._visit_all(node.body)
        self._pop()

    visit_FunctionDef = _visit_function
    visit_AsyncFunctionDef = _visit_function

    def visit_Lambda(self, node: ast.Lambda) -> None:
        self._visit_arguments_outer(node.args, annotations=False)
        self._push(ScopeKind.LAMBDA, node)
        self._bind_parameters(node.args)
        self.visit(node.body)
        self._pop()

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._bind(node.name, Definition(node, DefinitionKind.CLASS))
        self._visit_all(node.decorator_list)
        self._visit_all(node.bases)
        self._visit_all(node.keywords)
        self._push(ScopeKind.CLASS, node)
        self._visit_all(node.body)
        self._pop()

    def _visit_comprehension(self, node) -> None:
        first, *rest = node.generators
        self.visit(first.iter)
        self._push(ScopeKind.COMPREHENSION, node)
        self._node_scopes[first] = self._scope
        self.visit(first.target)
        self._visit_all(first.ifs)
        for generator in rest:
            self.visit(generator)
        if isinstance(node, ast.DictComp):
            self.visit(node.key)
            self.visit(node.value)
        else:
            self.visit(node.elt)
        self._pop()

    visit_ListComp = _visit_comprehension
    visit_SetComp = _visit_comprehension
    visit_DictComp = _visit_comprehension
    visit_GeneratorExp = _visit_comprehension

    # ---- bindings ----

    def visit_Name(self, node: ast.Name) -> None:
        if isinstance(node.ctx, ast.Store):
            self._bind(node.id, Definition(node, DefinitionKind.ASSIGNMENT))
        elif isinstance(node.ctx, ast.Del):
            self._bind(node.id, Definition(node, DefinitionKind.DELETION))

    def visit_NamedExpr(self, node: ast.NamedExpr) -> None:
        self.visit(node.value)
        target_scope = self._scope
        while target_scope.kind is ScopeKind.COMPREHENSION:
            target_scope = target_scope.parent
        self._node_scopes[node.target] = self._scope
        self._bind(
            node.target.id,
            Definition(node.target, DefinitionKind.ASSIGNMENT),
            scope=target_scope,
        )

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self._node_scopes[alias] = self._scope
            name = alias.asname or alias.name.split('.')[0]
            self._bind(name, Definition(alias, DefinitionKind.IMPORT, node))

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        for alias in node.names:
            self._node_scopes[alias] = self._scope
            if alias.name == '*':
                self._scope.star_imports.append(node)
                continue
            name = alias.asname or alias.name
            self._bind(name, Definition(alias, DefinitionKind.IMPORT, node))

    def visit_Global(self, node: ast.Global) -> None:
        self._scope.global_names.update(node.names)

    def visit_Nonlocal(self, node: ast.Nonlocal) -> None:
        self._scope.nonlocal_names.update(node.names)

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.name:
            self._bind(node.name, Definition(node, DefinitionKind.EXCEPT_HANDLER))
        self.generic_visit(node)

    def visit_MatchAs(self, node) -> None:
        if node.name:
            self._bind(node.name, Definition(node, DefinitionKind.PATTERN))
        self.generic_visit(node)

    def visit_MatchStar(self, node) -> None:
        if node.name:
            self._bind(node.name, Definition(node, DefinitionKind.PATTERN))

    def visit_MatchMapping(self, node) -> None:
        if node.rest:
            self._bind(node.rest, Definition(node, DefinitionKind.PATTERN))
        self.generic_visit(node)
