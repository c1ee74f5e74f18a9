"""Тесты синтаксического анализатора и таблицы символов."""

from varcheck.lexer import tokenize
from varcheck.parser import (ArrayType, PascalVarSyntaxAnalyzer, ScalarType, StringType, UnknownType,
                             parse)
from varcheck.sema import SymbolTable


def _parser(source):
    parser = PascalVarSyntaxAnalyzer(tokenize(source))
    parser.parse()
    return parser


def test_parse_returns_symbol_table_and_errors():
    symbol_table, errors = parse(tokenize("var a: integer;\nvar b: char;"))
    assert errors == []
    assert [symbol.name for symbol in symbol_table.get_all_symbols()] == ["a", "b"]
    assert (symbol_table.lookup("B").line, symbol_table.lookup("B").pos) == (2, 5)


def test_type_descriptors():
    parser = _parser(
        "var a: Integer; s: string; t: string[20];\n"
        "    m: array[-10..6, 6..9] of boolean;"
    )
    assert parser.parse() is True
    types = [declaration.var_type for declaration in parser.get_declarations()]
    assert types == [
        ScalarType("integer"),
        StringType(),
        StringType(20),
        ArrayType(((-10, 6), (6, 9)), ScalarType("boolean")),
    ]


def test_unknown_type_placeholder():
    parser = _parser("var a: 42;")
    assert parser.get_declarations()[0].var_type == UnknownType()
    assert len(parser.get_errors()) == 1


def test_declaration_rendering():
    parser = _parser("var a, B: array[1..2] of string[8];")
    assert str(parser.get_declarations()[0]) == "a, B: array[1..2] of string[8];"


def test_parse_resets_state():
    parser = PascalVarSyntaxAnalyzer(tokenize("var a, a: integer;"))
    assert parser.parse() is False
    assert parser.parse() is False
    assert len(parser.get_errors()) == 1
    assert len(parser.get_symbol_table()) == 1


def test_errors_are_in_emission_order_before_sorting():
    parser = _parser("var x: integer; x: foo;")
    # Ошибка типа находится раньше, чем повторное объявление
    assert [error.col for error in parser.get_errors()] == [20, 17]


def test_symbol_table_keeps_first_declaration():
    table = SymbolTable()
    assert table.define("Total", ScalarType("real"), line=1, pos=5) is None
    original = table.define("TOTAL", ScalarType("char"), line=3, pos=2)
    assert original is not None
    assert (original.name, original.line, original.pos) == ("Total", 1, 5)
    assert table.lookup("total").type == "real"
    assert "tOtAl" in table
    assert len(table) == 1


def test_symbol_to_dict():
    table = SymbolTable()
    table.define("arr", ArrayType(((1, 3),), StringType()), line=2, pos=4)
    assert table.lookup("arr").to_dict() == {"name": "arr", "type": "array[1..3] of string", "line": 2, "col": 4}
