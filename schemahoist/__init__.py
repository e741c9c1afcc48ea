"""
schemahoist: Module-Level Hoisting of Schema Construction
=========================================================

Schema libraries such as ``z.object({...})`` build fresh, immutable schema
objects every time the expression runs. When that expression sits inside a
function, every call pays for the construction again. schemahoist rewrites a
module so each distinct schema expression is built once, at import time, and
every former occurrence refers to the shared module-level constant.

Core Components:
    - analysis: scope/binding resolution, chain resolution, hoist safety
    - compiler: deduplication registry and the rewrite pass
    - utils: AST plumbing and timing

Usage:
    >>> import schemahoist
    >>> print(schemahoist.hoist_source(source))

    >>> hoister = schemahoist.SchemaHoister(namespace='z', prefix='schema')
    >>> tree = hoister.transform(ast.parse(source))
"""

__version__ = "1.0.0"
__author__ = "schemahoist contributors"

from schemahoist.analysis.scope import ScopeAnalyzer, ScopeMap, Scope, Binding
from schemahoist.analysis.chain import (
    TERMINAL_METHODS,
    chain_root,
    outermost_call,
    is_nested_in_target_call,
)
from schemahoist.analysis.safety import (
    HoistDecision,
    HoistSafetyAnalyzer,
    is_global_namespace_reference,
)
from schemahoist.compiler.registry import DedupRegistry, HoistedEntry, canonicalize
from schemahoist.compiler.hoister import (
    HoistPass,
    HoistReport,
    SchemaHoister,
    hoist_module,
    hoist_source,
)
