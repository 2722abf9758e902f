"""
Value Inspector (debug/inspector.py)

Tests classify, describe, format_value, cycle detection and the depth cap.
"""

import array
import io
from collections import UserList, deque
from dataclasses import dataclass
from unittest import mock

from faultline.debug import Debug
from faultline.debug.inspector import (
    DEPTH_MARKER,
    RECURSION_MARKER,
    ValueInspector,
    classify,
    describe,
    escape_string,
    format_value,
    object_fields,
)


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y


class Secretive:
    def __init__(self):
        self.name = "visible"
        self._cache = {}
        self.__token = "hidden"


class Slotted:
    __slots__ = ("a", "b")

    def __init__(self):
        self.a = 1
        self.b = 2


@dataclass
class Settings:
    host: str
    port: int


class Declared:
    def describable_fields(self):
        yield ("id", "public", 7)
        yield ("state", "private", "ok")


class Proxy:
    """Answers every attribute lookup, like a remote object stub."""

    def __init__(self):
        self.target = "db"

    def __getattr__(self, name):
        return lambda: 5


class Misdeclared:
    def __init__(self):
        self.size = 3

    def describable_fields(self):
        return ["size"]


class Empty:
    pass


class Node:
    def __init__(self):
        self.parent = self


# ============================================================================
# classify
# ============================================================================

class TestClassify:

    def test_booleans(self):
        assert classify(True).value == "true"
        assert classify(False).value == "false"
        assert classify(True).kind == "boolean"

    def test_integer(self):
        info = classify(42)
        assert info.kind == "integer"
        assert info.value == "42"
        assert info.size is None

    def test_float(self):
        assert classify(1.5).value == "1.5"
        assert classify(1.5).kind == "float"

    def test_none(self):
        assert classify(None).kind == "null"
        assert classify(None).value == "null"

    def test_string_is_quoted_and_escaped(self):
        info = classify('say "hi"\n')
        assert info.kind == "string"
        assert info.value == '"say \\"hi\\"\\n"'
        assert info.size == 9

    def test_bytes(self):
        info = classify(b"ab\t")
        assert info.kind == "string"
        assert info.value == 'b"ab\\t"'
        assert info.size == 3

    def test_composites(self):
        assert classify([1, 2, 3]).value == "list(3)"
        assert classify((1,)).value == "tuple(1)"
        assert classify({"a": 1}).value == "dict(1)"
        assert classify({1, 2}).value == "set(2)"
        assert classify(frozenset()).value == "frozenset(0)"
        assert classify(deque([1])).value == "deque(1)"
        assert classify([1, 2, 3]).size == 3
        assert classify([]).kind == "array"

    def test_other_sequences_are_composites(self):
        assert classify(range(3)).value == "range(3)"
        assert classify(UserList([1])).value == "UserList(1)"
        assert classify(array.array("i", [1, 2])).value == "array(2)"
        assert classify(range(3)).kind == "array"
        assert classify(range(3)).size == 3

    def test_memoryview_is_not_a_composite(self):
        assert classify(memoryview(b"ab")).kind == "object"

    def test_resource(self):
        info = classify(io.StringIO())
        assert info.kind == "resource"
        assert info.value == "resource(StringIO)"

    def test_object(self):
        info = classify(Point(1, 2))
        assert info.kind == "object"
        assert info.value.startswith("object(")
        assert info.value.endswith("Point)")

    def test_class(self):
        assert classify(int).value == "class(int)"
        assert classify(int).kind == "class"

    def test_escape_string(self):
        assert escape_string("a\\b\r") == "a\\\\b\\r"


# ============================================================================
# Field enumeration
# ============================================================================

class TestObjectFields:

    def test_visibility_from_naming(self):
        fields = {name: visibility for name, visibility, _ in object_fields(Secretive())}
        assert fields["name"] == "public"
        assert fields["_cache"] == "protected"
        assert fields["__token"] == "private"

    def test_dataclass_fields(self):
        fields = object_fields(Settings("localhost", 8000))
        assert [(n, v) for n, _, v in fields] == [("host", "localhost"), ("port", 8000)]

    def test_slots(self):
        fields = object_fields(Slotted())
        assert [(n, v) for n, _, v in fields] == [("a", 1), ("b", 2)]

    def test_describable_capability_wins(self):
        fields = object_fields(Declared())
        assert fields == [("id", "public", 7), ("state", "private", "ok")]

    def test_attribute_fabricating_object_uses_instance_dict(self):
        assert object_fields(Proxy()) == [("target", "public", "db")]

    def test_malformed_declaration_falls_back(self):
        assert object_fields(Misdeclared()) == [("size", "public", 3)]

    def test_mock_fields(self):
        names = [name for name, _, _ in object_fields(mock.Mock())]
        assert "_mock_children" in names


# ============================================================================
# describe / format_value
# ============================================================================

class TestDescribe:

    def test_primitive_leaf(self):
        node = describe("abc")
        assert node.kind == "string"
        assert node.value == '"abc"'
        assert node.size == 3
        assert node.children == ()

    def test_mapping_keys_render_through_classify(self):
        node = describe({"a": 1, 2: None})
        labels = [label for label, _ in node.children]
        assert labels == ['"a"', "2"]

    def test_sequence_indices(self):
        node = describe(["x", "y"])
        assert [label for label, _ in node.children] == ["0", "1"]

    def test_object_labels_carry_visibility(self):
        node = describe(Secretive())
        labels = [label for label, _ in node.children]
        assert "public name" in labels
        assert "protected _cache" in labels
        assert "private __token" in labels

    def test_layout(self):
        assert format_value({"a": [1, 2]}) == (
            'dict(1) [\n'
            '  "a" => list(2) [\n'
            '    0 => 1\n'
            '    1 => 2\n'
            '  ]\n'
            ']'
        )

    def test_object_layout(self):
        output = format_value(Settings("db", 5432))
        lines = output.splitlines()
        assert lines[0].endswith("Settings) {")
        assert lines[1] == '  public host => "db"'
        assert lines[2] == "  public port => 5432"
        assert lines[3] == "}"

    def test_empty_containers(self):
        assert format_value([]) == "list(0) []"
        assert format_value(Empty()).endswith("Empty) {}")

    def test_primitive_format(self):
        assert format_value(None) == "null"
        assert format_value(3) == "3"

    def test_range_layout(self):
        assert format_value(range(2)) == "range(2) [\n  0 => 0\n  1 => 1\n]"

    def test_dump_mock(self):
        output = Debug.dump(mock.Mock(), return_output=True)
        assert output.startswith("object(")
        assert "Mock) {" in output.splitlines()[0]
        assert "protected _mock_children => dict(" in output


# ============================================================================
# Cycles and depth
# ============================================================================

class TestCycleSafety:

    def test_self_referencing_list(self):
        a = []
        a.append(a)
        output = format_value(a)
        assert output == f"list(1) [\n  0 => {RECURSION_MARKER} list\n]"
        assert output.count(RECURSION_MARKER) == 1

    def test_self_referencing_object(self):
        output = format_value(Node())
        assert output.count(RECURSION_MARKER) == 1
        assert f"public parent => {RECURSION_MARKER} Node" in output

    def test_mutual_cycle(self):
        a = {}
        b = {"a": a}
        a["b"] = b
        output = format_value(a)
        assert output.count(RECURSION_MARKER) == 1

    def test_shared_sibling_described_twice(self):
        shared = [1]
        output = format_value([shared, shared])
        assert RECURSION_MARKER not in output
        assert output.count("list(1) [") == 2

    def test_depth_cap(self):
        nested = 0
        for _ in range(20):
            nested = [nested]
        output = format_value(nested)
        assert output.count(DEPTH_MARKER) == 1
        assert output.count("list(1) [") == 11

    def test_custom_depth(self):
        inspector = ValueInspector(max_depth=1)
        output = inspector.format({"a": {"b": {"c": 1}}})
        assert DEPTH_MARKER in output
        assert '"c"' not in output

    def test_describe_is_repeatable(self):
        a = []
        a.append(a)
        inspector = ValueInspector()
        assert inspector.format(a) == inspector.format(a)
