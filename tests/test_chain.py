"""
Tests for chain resolution and nesting detection.
"""

import ast

from schemahoist.analysis.chain import (
    chain_root,
    is_namespace_call,
    is_nested_in_target_call,
    is_schema_call,
    is_terminal_call,
    iter_spine,
    outermost_call,
)
from schemahoist.utils.helpers import build_parent_map


def find_call(tree: ast.AST, text: str) -> ast.Call:
    for node in ast.walk(tree):
        if isinstance(node, ast.Call) and ast.unparse(node) == text:
            return node
    raise LookupError(text)


class TestChainRoot:
    def test_simple_chain(self):
        expr = ast.parse('z.string().min(1).optional()', mode='eval').body
        root = chain_root(expr)
        assert isinstance(root, ast.Name) and root.id == 'z'

    def test_attribute_before_call(self):
        expr = ast.parse('z.coerce.number()', mode='eval').body
        assert chain_root(expr).id == 'z'

    def test_subscript_is_a_member_access(self):
        expr = ast.parse("z.shapes['user'].extend()", mode='eval').body
        assert chain_root(expr).id == 'z'

    def test_non_name_root(self):
        expr = ast.parse('(a or b).string()', mode='eval').body
        assert isinstance(chain_root(expr), ast.BoolOp)

    def test_is_namespace_call(self):
        assert is_namespace_call(ast.parse('z.string()', mode='eval').body, 'z')
        assert not is_namespace_call(ast.parse('zod.string()', mode='eval').body, 'z')
        assert not is_namespace_call(ast.parse('z.string', mode='eval').body, 'z')

    def test_spine_outermost_first(self):
        expr = ast.parse("z.string().min(1)", mode='eval').body
        assert [ast.unparse(part) for part in iter_spine(expr)] == [
            'z.string().min(1)', 'z.string().min', 'z.string()', 'z.string', 'z',
        ]

    def test_schema_call_stops_at_terminal(self):
        def schema(text):
            return is_schema_call(ast.parse(text, mode='eval').body, 'z')
        assert schema('z.string().min(1)')
        assert not schema('z.string().parse(value)')
        assert not schema('z.string().parse(value).upper()')
        assert not schema('other.string()')


class TestOutermostCall:
    def setup_method(self):
        self.tree = ast.parse("result = z.string().min(1).optional()\n")
        self.parents = build_parent_map(self.tree)

    def test_climbs_to_top_of_chain(self):
        inner = find_call(self.tree, 'z.string()')
        top = outermost_call(inner, self.parents)
        assert ast.unparse(top) == 'z.string().min(1).optional()'

    def test_bare_call_returns_itself(self):
        top = find_call(self.tree, 'z.string().min(1).optional()')
        assert outermost_call(top, self.parents) is top

    def test_argument_position_is_not_a_chain(self):
        tree = ast.parse("wrap(z.string()).strip()\n")
        parents = build_parent_map(tree)
        inner = find_call(tree, 'z.string()')
        assert outermost_call(inner, parents) is inner

    def test_attribute_without_call_stops(self):
        tree = ast.parse("flag = z.string().optional\n")
        parents = build_parent_map(tree)
        inner = find_call(tree, 'z.string()')
        assert outermost_call(inner, parents) is inner

    def test_stops_below_terminal_method(self):
        tree = ast.parse("z.string().min(1).parse(data)\n")
        parents = build_parent_map(tree)
        inner = find_call(tree, 'z.string()')
        top = outermost_call(inner, parents)
        assert ast.unparse(top) == 'z.string().min(1)'
        assert is_terminal_call(find_call(tree, 'z.string().min(1).parse(data)'))


class TestNesting:
    def test_argument_of_namespace_call_is_nested(self):
        tree = ast.parse("z.object({'a': z.string()})\n")
        parents = build_parent_map(tree)
        inner = find_call(tree, 'z.string()')
        assert is_nested_in_target_call(inner, parents, 'z')

    def test_top_chain_is_not_nested(self):
        tree = ast.parse("z.object({'a': z.string()})\n")
        parents = build_parent_map(tree)
        outer = find_call(tree, "z.object({'a': z.string()})")
        assert not is_nested_in_target_call(outer, parents, 'z')

    def test_other_namespace_does_not_nest(self):
        tree = ast.parse("base.extend({'a': z.string()})\n")
        parents = build_parent_map(tree)
        inner = find_call(tree, 'z.string()')
        assert not is_nested_in_target_call(inner, parents, 'z')

    def test_inside_lambda_argument_is_nested(self):
        tree = ast.parse("z.lazy(lambda: z.object({}))\n")
        parents = build_parent_map(tree)
        inner = find_call(tree, 'z.object({})')
        assert is_nested_in_target_call(inner, parents, 'z')

    def test_terminal_ancestor_does_not_nest(self):
        tree = ast.parse("z.string().parse(value)\n")
        parents = build_parent_map(tree)
        inner = find_call(tree, 'z.string()')
        assert not is_nested_in_target_call(inner, parents, 'z')

    def test_chain_past_terminal_does_not_nest(self):
        tree = ast.parse("z.string().parse(value).upper()\n")
        parents = build_parent_map(tree)
        inner = find_call(tree, 'z.string()')
        assert outermost_call(inner, parents) is inner
        assert not is_nested_in_target_call(inner, parents, 'z')
