"""Deduplication registry and the two-phase rewrite pass."""

from schemahoist.compiler.registry import (
    DedupRegistry,
    HoistedEntry,
    Registration,
    canonicalize,
    collect_identifiers,
)
from schemahoist.compiler.hoister import (
    Candidate,
    HoistPass,
    HoistReport,
    SchemaHoister,
    find_insertion_index,
    hoist_module,
    hoist_source,
)

__all__ = [
    'DedupRegistry',
    'HoistedEntry',
    'Registration',
    'canonicalize',
    'collect_identifiers',
    'Candidate',
    'HoistPass',
    'HoistReport',
    'SchemaHoister',
    'find_insertion_index',
    'hoist_module',
    'hoist_source',
]
