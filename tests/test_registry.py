"""
Tests for canonicalization and the deduplication registry.
"""

import ast
import hashlib

from schemahoist.compiler.registry import (
    DedupRegistry,
    canonicalize,
    collect_identifiers,
    short_hash,
)


def expr(source: str) -> ast.expr:
    return ast.parse(source, mode='eval').body


class TestCanonicalize:
    def test_formatting_is_normalized(self):
        assert canonicalize(expr('z.object( { "a" : z.string() } )')) == \
            canonicalize(expr("z.object({'a': z.string()})"))

    def test_different_structure_differs(self):
        assert canonicalize(expr('z.string()')) != canonicalize(expr('z.number()'))

    def test_short_hash(self):
        assert short_hash('z.string()') == hashlib.sha256(b'z.string()').hexdigest()[:8]


class TestDedupRegistry:
    def setup_method(self):
        self.registry = DedupRegistry()

    def test_new_then_reuse(self):
        node = expr('z.string()')
        first = self.registry.register(canonicalize(node), node)
        second = self.registry.register(canonicalize(node), expr('z.string()'))
        assert first.is_new
        assert not second.is_new
        assert first.name == second.name == f"_schema_{short_hash('z.string()')}"
        assert len(self.registry) == 1

    def test_entries_in_registration_order(self):
        for source in ('z.string()', 'z.number()', 'z.string()', 'z.boolean()'):
            node = expr(source)
            self.registry.register(canonicalize(node), node)
        assert [entry.source for entry in self.registry.entries] == [
            'z.string()', 'z.number()', 'z.boolean()',
        ]

    def test_initializer_is_an_independent_copy(self):
        node = expr('z.string().min(1)')
        self.registry.register(canonicalize(node), node)
        node.func.attr = 'max'
        entry = self.registry.entries[0]
        assert entry.initializer is not node
        assert ast.unparse(entry.initializer) == 'z.string().min(1)'

    def test_collision_with_reserved_name(self):
        base = f"_schema_{short_hash('z.string()')}"
        registry = DedupRegistry(reserved_names={base, f"{base}_2"})
        node = expr('z.string()')
        assert registry.register(canonicalize(node), node).name == f"{base}_3"

    def test_prefix(self):
        registry = DedupRegistry(prefix='shape')
        node = expr('z.string()')
        assert registry.register(canonicalize(node), node).name.startswith('_shape_')

    def test_to_statement(self):
        node = expr('z.string()')
        self.registry.register(canonicalize(node), node)
        statement = self.registry.entries[0].to_statement()
        module = ast.fix_missing_locations(ast.Module(body=[statement], type_ignores=[]))
        assert ast.unparse(module) == f"_schema_{short_hash('z.string()')} = z.string()"

    def test_lookup_and_contains(self):
        node = expr('z.string()')
        reg = self.registry.register(canonicalize(node), node)
        assert 'z.string()' in self.registry
        assert self.registry.lookup('z.string()') == reg.name
        assert self.registry.lookup('z.number()') is None


class TestCollectIdentifiers:
    def test_collects_all_kinds(self):
        tree = ast.parse(
            "import os.path as osp\n"
            "from m import thing\n"
            "class Box:\n"
            "    def open(self, *args, flag=None):\n"
            "        global state\n"
            "        try:\n"
            "            return value\n"
            "        except Exception as err:\n"
            "            pass\n"
        )
        names = collect_identifiers(tree)
        assert {'osp', 'thing', 'Box', 'open', 'self', 'args', 'flag',
                'state', 'value', 'Exception', 'err'} <= names

    def test_match_pattern_names(self):
        tree = ast.parse(
            "match event:\n"
            "    case {'kind': kind, **extra}:\n"
            "        pass\n"
            "    case [first, *others]:\n"
            "        pass\n"
            "    case Point() as point:\n"
            "        pass\n"
        )
        assert {'kind', 'extra', 'first', 'others', 'point'} <= collect_identifiers(tree)
