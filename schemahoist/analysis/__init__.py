"""
Analyses that decide whether a schema expression may leave its function:
name binding (scope), chain shape (chain) and relocation safety (safety).
"""

from schemahoist.analysis.scope import (
    Binding,
    Definition,
    DefinitionKind,
    Scope,
    ScopeAnalyzer,
    ScopeKind,
    ScopeMap,
)
from schemahoist.analysis.chain import (
    TERMINAL_METHODS,
    chain_root,
    is_namespace_call,
    is_nested_in_target_call,
    is_schema_call,
    is_terminal_call,
    outermost_call,
)
from schemahoist.analysis.safety import (
    HoistDecision,
    HoistSafetyAnalyzer,
    is_global_namespace_reference,
)

__all__ = [
    'Binding',
    'Definition',
    'DefinitionKind',
    'Scope',
    'ScopeAnalyzer',
    'ScopeKind',
    'ScopeMap',
    'TERMINAL_METHODS',
    'chain_root',
    'is_namespace_call',
    'is_nested_in_target_call',
    'is_schema_call',
    'is_terminal_call',
    'outermost_call',
    'HoistDecision',
    'HoistSafetyAnalyzer',
    'is_global_namespace_reference',
]
