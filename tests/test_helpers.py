"""
Tests for the AST plumbing helpers.
"""

import ast

from schemahoist.utils.helpers import (
    Timer,
    build_parent_map,
    format_ns,
    iter_ancestors,
    replace_node,
    walk_preorder,
)


def call_texts(tree):
    return [ast.unparse(n) for n in walk_preorder(tree) if isinstance(n, ast.Call)]


class TestWalkPreorder:
    def test_outer_before_inner(self):
        tree = ast.parse("f(g(1), h(2))\n")
        assert call_texts(tree) == ['f(g(1), h(2))', 'g(1)', 'h(2)']

    def test_decorators_before_body(self):
        tree = ast.parse("@deco(1)\ndef f():\n    return body(2)\n")
        assert call_texts(tree) == ['deco(1)', 'body(2)']

    def test_dict_keys_and_values_interleave(self):
        tree = ast.parse("{k1(): v1(), k2(): v2(), **rest()}\n")
        assert call_texts(tree) == ['k1()', 'v1()', 'k2()', 'v2()', 'rest()']

    def test_signature_before_body(self):
        tree = ast.parse("def f(a=d1(), *, k=d2()) -> ret():\n    return body()\n")
        assert call_texts(tree) == ['d1()', 'd2()', 'ret()', 'body()']

    def test_annotations_and_defaults_interleave(self):
        tree = ast.parse("def f(a: t1(), b: t2() = d1(), *args: t3(), k: t4() = d2()): pass\n")
        assert call_texts(tree) == ['t1()', 't2()', 'd1()', 't3()', 't4()', 'd2()']

    def test_class_header_before_body(self):
        tree = ast.parse("@deco()\nclass C(base(), metaclass=meta()):\n    x = body()\n")
        assert call_texts(tree) == ['deco()', 'base()', 'meta()', 'body()']


class TestParents:
    def test_ancestors_nearest_first(self):
        tree = ast.parse("x = [f()]\n")
        parents = build_parent_map(tree)
        call = tree.body[0].value.elts[0]
        kinds = [type(node).__name__ for node in iter_ancestors(call, parents)]
        assert kinds == ['List', 'Assign', 'Module']

    def test_replace_in_list_and_field(self):
        tree = ast.parse("x = [f(), g()]\n")
        parents = build_parent_map(tree)
        listing = tree.body[0].value
        replace_node(listing.elts[1], ast.Name(id='b', ctx=ast.Load()), parents)
        replace_node(listing, ast.Name(id='a', ctx=ast.Load()), parents)
        assert ast.unparse(tree) == 'x = a'
        assert ast.unparse(listing) == '[f(), b]'


class TestTimer:
    def test_elapsed(self):
        with Timer() as timer:
            sum(range(100))
        assert timer.elapsed_ns >= 0

    def test_format_ns(self):
        assert format_ns(500) == '500 ns'
        assert format_ns(2_500) == '2.5 µs'
        assert format_ns(3_000_000) == '3.00 ms'
        assert format_ns(2_000_000_000) == '2.000 s'
