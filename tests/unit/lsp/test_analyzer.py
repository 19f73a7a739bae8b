"""Tests for the declsyn LSP document analyzer and outline."""

from lsprotocol.types import SymbolKind

from declsyn.compiler.ast_nodes import Field, Ident, Path, TypePath
from declsyn.lsp.analyzer import DocumentAnalyzer
from declsyn.lsp.symbols import field_symbol, node_range

URI = "file:///shapes.rs"

SOURCE = """pub struct Point { pub x: f64, y: f64 }
enum Shape { Circle(f64), Empty = 0 }
"""


def _analyze(source: str) -> DocumentAnalyzer:
    analyzer = DocumentAnalyzer(source, URI)
    analyzer.analyze()
    return analyzer


class TestDocumentAnalyzer:
    """Test suite for DocumentAnalyzer."""

    def test_analyze_valid_document(self) -> None:
        analyzer = _analyze(SOURCE)
        assert analyzer.diagnostics == []
        assert analyzer.tree is not None
        assert len(analyzer.tree.items) == 2

    def test_analyze_invalid_document(self) -> None:
        analyzer = _analyze("struct Point { x f64 }")
        assert len(analyzer.diagnostics) == 1
        assert analyzer.tree is None
        assert analyzer.get_document_symbols() == []


class TestDocumentSymbols:
    """Test suite for the document outline."""

    def test_top_level_symbols(self) -> None:
        symbols = _analyze(SOURCE).get_document_symbols()
        assert [(s.name, s.kind) for s in symbols] == [
            ("Point", SymbolKind.Struct),
            ("Shape", SymbolKind.Enum),
        ]

    def test_struct_ranges(self) -> None:
        point = _analyze(SOURCE).get_document_symbols()[0]
        assert (point.range.start.line, point.range.start.character) == (0, 0)
        assert (point.range.end.line, point.range.end.character) == (0, 39)
        assert point.selection_range.start.character == 11
        assert point.selection_range.end.character == 16

    def test_struct_fields(self) -> None:
        point = _analyze(SOURCE).get_document_symbols()[0]
        x, y = point.children
        assert (x.name, x.kind, x.detail) == ("x", SymbolKind.Field, "pub f64")
        assert (y.name, y.detail) == ("y", "f64")
        assert x.range.start.character == 19
        assert x.range.end.character == 29
        assert x.selection_range.start.character == 23

    def test_enum_variants(self) -> None:
        shape = _analyze(SOURCE).get_document_symbols()[1]
        circle, empty = shape.children
        assert circle.kind == SymbolKind.EnumMember
        assert circle.range.start.line == 1
        assert [(c.name, c.detail) for c in circle.children] == [("0", "f64")]
        assert empty.detail == "= 0"
        assert empty.children is None

    def test_tuple_struct_fields_named_by_position(self) -> None:
        (meters,) = _analyze("struct Meters(pub f64, u8);").get_document_symbols()
        assert [(c.name, c.detail) for c in meters.children] == [
            ("0", "pub f64"),
            ("1", "u8"),
        ]

    def test_unit_struct_has_no_children(self) -> None:
        (marker,) = _analyze("struct Marker;").get_document_symbols()
        assert marker.children is None


class TestSyntheticNodes:
    """Nodes built in code have no source positions."""

    def test_node_range_is_none(self) -> None:
        field = Field(ty=TypePath(Path.from_names("u8")), ident=Ident.new("x"))
        assert node_range(field) is None

    def test_field_symbol_falls_back_to_origin(self) -> None:
        symbol = field_symbol(Field(ty=TypePath(Path.from_names("u8"))), 0)
        assert symbol.name == "0"
        assert symbol.range.start.line == 0
        assert symbol.range.start.character == 0
