"""Tests for sigscribe.signatures: source parsing, resolution and Signed."""

from concurrent.futures import ThreadPoolExecutor

import pytest

import sample_callables as sc
from sigscribe import (
    InvalidObjectError,
    Signed,
    describe,
    parse_signature,
    resolve_signature,
    set_signature,
    signature_from_source,
    signed,
)
from sigscribe.markers import clear_signature


# ============================================
# Overrides
# ============================================

class TestOverride:
    def test_override_returned_verbatim(self):
        assert resolve_signature(sc.overridden) == "function overridden(a: int, b: int) -> int"

    def test_override_ignores_source_shape(self):
        def messy(*args):  # not what the override says
            return args

        set_signature(messy, "  anything at all,  not even a signature  ")
        assert resolve_signature(messy) == "  anything at all,  not even a signature  "

    def test_override_on_class(self):
        assert resolve_signature(sc.Token) == "class Token(kind, text)"

    def test_subclass_does_not_inherit_override(self):
        assert resolve_signature(sc.SpecialToken) == "class SpecialToken(kind)"

    def test_describe_marks_override(self):
        record = describe(sc.overridden)
        assert record["overridden"] is True
        assert record["shape"] is None

    def test_empty_string_override_is_honoured(self):
        def quiet(a):
            return a

        set_signature(quiet, "")
        assert resolve_signature(quiet) == ""
        assert describe(quiet)["overridden"] is True

    def test_non_string_override_is_stringified(self):
        def numbered(a):
            return a

        set_signature(numbered, 42)
        assert resolve_signature(numbered) == "42"

    def test_override_on_builtin(self):
        set_signature(len, "function len(obj)")
        try:
            assert resolve_signature(len) == "function len(obj)"
        finally:
            clear_signature(len)
        assert resolve_signature(len) == "function len()"


# ============================================
# Function shape from Python source
# ============================================

class TestPythonFunctions:
    def test_plain_function(self):
        assert resolve_signature(sc.add) == "function add(a, b)"

    def test_multiline_params_with_comments(self):
        result = resolve_signature(sc.configure)
        assert result == "function configure(host, port=8080, *, timeout=3.0)"
        assert "#" not in result
        assert "\n" not in result

    def test_nested_default_not_truncated(self):
        assert resolve_signature(sc.nested_default) == (
            "function nested_default(a, key=sorted([3, 1, 2], reverse=(1 > 0)), *args, **kwargs)"
        )

    def test_hash_inside_string_default_kept(self):
        assert resolve_signature(sc.hashes_in_strings) == (
            'function hashes_in_strings(sep="#", marker="a # b")'
        )

    def test_async_reads_as_function(self):
        assert resolve_signature(sc.fetch) == "function fetch(url, retries=3)"

    def test_annotations_kept_return_dropped(self):
        assert resolve_signature(sc.annotated) == "function annotated(name: str, count: int = 1)"

    def test_decorated_function_unwraps(self):
        assert resolve_signature(sc.decorated) == "function decorated(x, y=2)"

    def test_lambda(self):
        assert resolve_signature(sc.square) == "function <lambda>(x)"

    def test_bound_method_keeps_receiver(self):
        assert resolve_signature(sc.Shape().area) == "function area(self, scale=1)"

    def test_describe_pieces(self):
        record = describe(sc.add)
        assert record == {
            "signature": "function add(a, b)",
            "shape": "function",
            "name": "add",
            "params": "a, b",
            "overridden": False,
        }


# ============================================
# Class shape from Python source
# ============================================

class TestPythonClasses:
    def test_constructor_params_without_self(self):
        assert resolve_signature(sc.Point) == "class Point(x, y)"

    def test_no_constructor_renders_empty_parens(self):
        assert resolve_signature(sc.Empty) == "class Empty()"

    def test_nested_class_constructor_ignored(self):
        assert resolve_signature(sc.Outer) == "class Outer(name, *children)"

    def test_inherited_constructor_not_followed(self):
        assert resolve_signature(sc.Derived) == "class Derived()"

    def test_dataclass_generated_init_not_seen(self):
        assert resolve_signature(sc.Record) == "class Record()"

    def test_describe_class_pieces(self):
        record = describe(sc.Point)
        assert record["shape"] == "class"
        assert record["name"] == "Point"
        assert record["params"] == "x, y"


# ============================================
# Degradation
# ============================================

class TestDegradation:
    def test_builtin_function(self):
        assert resolve_signature(len) == "function len()"

    def test_builtin_class(self):
        assert resolve_signature(int) == "class int()"

    def test_callable_instance(self):
        assert resolve_signature(sc.Adder()) == "function Adder()"

    def test_source_not_available(self):
        namespace = {}
        exec("def ghost(a):\n    return a\n", namespace)
        assert resolve_signature(namespace["ghost"]) == "function ghost()"

    def test_non_callable_is_empty(self):
        assert resolve_signature(42) == ""
        assert resolve_signature(None) == ""

    def test_unavailable_source_logged(self, capsys):
        resolve_signature(len)
        assert "Source unavailable for len" in capsys.readouterr().out

    def test_getattr_raising_key_error_on_non_callable(self):
        assert resolve_signature(sc.AttrDict(a=1)) == ""

    def test_getattr_raising_key_error_on_callable(self):
        assert resolve_signature(sc.Boom()) == "function Boom()"
        assert describe(sc.Boom())["name"] == "Boom"


# ============================================
# Raw source text, both dialects
# ============================================

class TestBraceSource:
    def test_plain_function(self):
        assert signature_from_source("function add(a, b) { return a + b }", "brace") == (
            "function add(a, b)"
        )

    def test_comments_in_params(self):
        source = (
            "function greet(\n"
            "  name, // who to greet\n"
            "  greeting = 'Hello' /* default */\n"
            ") {\n"
            "  return greeting + name\n"
            "}"
        )
        result = signature_from_source(source, "brace")
        assert result == "function greet(name, greeting = 'Hello')"
        assert "//" not in result
        assert "\n" not in result

    def test_class_constructor(self):
        source = "class Point { constructor(x, y) { this.x = x } }"
        assert signature_from_source(source, "brace") == "class Point(x, y)"

    def test_class_without_constructor(self):
        source = "class Empty { describe() { return 'empty' } }"
        assert signature_from_source(source, "brace") == "class Empty()"

    def test_nested_default(self):
        source = "function f(a = g(1, (2)), b) { }"
        assert signature_from_source(source, "brace") == "function f(a = g(1, (2)), b)"

    def test_method_shorthand(self):
        assert signature_from_source("area(scale = 1) { return 0 }", "brace") == (
            "function area(scale = 1)"
        )

    def test_async_generator_keyword(self):
        source = "async function* stream(url) { yield url }"
        assert signature_from_source(source, "brace") == "function stream(url)"

    def test_arrow_with_hint(self):
        assert signature_from_source("(a, b) => a + b", "brace", "sum") == "function sum(a, b)"

    def test_arrow_without_hint(self):
        assert signature_from_source("x => x * 2", "brace") == "function anonymous(x)"

    def test_anonymous_function_expression(self):
        assert signature_from_source("function (a) { return a }", "brace") == (
            "function anonymous(a)"
        )

    def test_decorated_class(self):
        source = "@Component({ selector: 'x' })\nclass Widget { constructor(el) { } }"
        assert signature_from_source(source, "brace") == "class Widget(el)"

    def test_constructor_inside_string_ignored(self):
        source = 'class A { m() { return "constructor(x) {" } constructor(real) { } }'
        assert signature_from_source(source, "brace") == "class A(real)"


class TestPythonSource:
    def test_whitespace_normalization(self):
        assert signature_from_source("def f(a,\n   b,\n\tc):\n    pass") == "function f(a, b, c)"

    def test_comment_removal_is_global(self):
        source = "# def fake(z):\ndef real(a):\n    pass"
        assert signature_from_source(source) == "function real(a)"

    def test_positional_only_marker_after_self_dropped(self):
        source = "class P:\n    def __init__(self, /, x):\n        pass"
        assert signature_from_source(source) == "class P(x)"

    def test_one_line_class(self):
        assert signature_from_source("class A: pass") == "class A()"

    def test_class_with_keyword_base(self):
        source = "class Meta(Base, metaclass=ABCMeta):\n    def __init__(self, options):\n        pass"
        assert signature_from_source(source) == "class Meta(options)"

    def test_constructor_quoted_in_docstring_ignored(self):
        source = (
            "class A:\n"
            '    """\n'
            "    def __init__(self, fake):\n"
            '    """\n'
            "    def __init__(self, real):\n"
            "        pass"
        )
        assert signature_from_source(source) == "class A(real)"

    def test_unrecognised_is_empty(self):
        assert signature_from_source("x = 1") == ""
        assert parse_signature("x = 1") is None

    def test_unrecognised_with_hint(self):
        assert signature_from_source("x = 1", name_hint="x") == "function x()"

    def test_unknown_dialect(self):
        with pytest.raises(ValueError):
            signature_from_source("def f(): pass", "cobol")


# ============================================
# Idempotence and concurrency
# ============================================

class TestRepeatability:
    def test_two_calls_agree(self):
        first = resolve_signature(sc.configure)
        assert resolve_signature(sc.configure) == first

    def test_source_object_untouched(self):
        before = dict(vars(sc.add))
        resolve_signature(sc.add)
        assert dict(vars(sc.add)) == before

    def test_concurrent_resolution(self):
        targets = [sc.add, sc.Point, sc.configure, sc.Outer, sc.overridden] * 20
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(resolve_signature, targets))
        assert results == [resolve_signature(t) for t in targets]


# ============================================
# Signed wrapper
# ============================================

class TestSigned:
    def test_decorator_parses_source(self):
        @signed
        def multiply(a, b=2):
            return a * b

        assert multiply(3) == 6
        assert multiply.signature() == "function multiply(a, b=2)"
        assert multiply.__name__ == "multiply"

    def test_decorator_with_override(self):
        @signed("function scale(value, *, factor)")
        def scale(*args, **kwargs):
            return args

        assert scale.signature() == "function scale(value, *, factor)"
        assert scale.__wrapped__(1) == (1,)

    def test_wrapper_class(self):
        wrapped = Signed(sc.add)
        assert wrapped(1, 2) == 3
        assert wrapped.signature() == "function add(a, b)"
        assert repr(wrapped) == "<Signed function add(a, b)>"

    def test_rejects_non_callable(self):
        with pytest.raises(InvalidObjectError):
            Signed(42)

    def test_as_method(self):
        class Counter:
            def __init__(self):
                self.count = 0

            @signed
            def bump(self, step=1):
                self.count += step
                return self.count

        counter = Counter()
        assert counter.bump(2) == 2
        assert counter.bump.signature() == "function bump(self, step=1)"

    def test_wrapping_overridden_callable_keeps_override(self):
        assert Signed(sc.overridden).signature() == "function overridden(a: int, b: int) -> int"
