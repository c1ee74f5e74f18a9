import logging

from varcheck.diagnostics import LEXICAL, SYNTAX
from varcheck.lexer import PascalVarLexer
from varcheck.parser import PascalVarSyntaxAnalyzer
from varcheck.sema import SymbolTable

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "✅ Описание корректное"

SEVERITY_TITLES = {
    LEXICAL: "Лексическая ошибка",
    SYNTAX: "Синтаксическая ошибка"
}


class CheckResult:
    """Результат проверки: ошибки, упорядоченные по (строка, столбец)."""

    def __init__(self, errors, symbol_table=None, declarations=None):
        self.errors = sorted(errors, key=lambda diagnostic: diagnostic.sort_key())
        self.symbol_table = symbol_table if symbol_table is not None else SymbolTable()
        self.declarations = declarations or []

    @property
    def success(self):
        return not self.errors

    @property
    def is_lexical_failure(self):
        return bool(self.errors) and self.errors[0].severity == LEXICAL

    def __bool__(self):
        return self.success

    def to_dict(self):
        return {
            'success': self.success,
            'message': format_headline(self),
            'errors': [error.to_dict() for error in self.errors],
            'symbols': [symbol.to_dict() for symbol in self.symbol_table.get_all_symbols()],
            'declarations': [declaration.to_dict() for declaration in self.declarations]
        }


def check(source_code):
    """Проверка описания переменных: лексический, затем синтаксический анализ."""
    lexer = PascalVarLexer(source_code)
    if not lexer.scan():
        # Незакрытый комментарий: синтаксический анализ не выполняется
        return CheckResult(lexer.get_errors())

    logger.debug("Таблица лексем:\n%s", lexer.format_lex_table())

    parser = PascalVarSyntaxAnalyzer(lexer.get_lex_table())
    parser.parse()
    return CheckResult(parser.get_errors(), parser.get_symbol_table(), parser.get_declarations())


def format_headline(result):
    """Главное сообщение для пользователя: успех или первая по порядку ошибка"""
    if result.success:
        return SUCCESS_MESSAGE

    first = result.errors[0]
    title = SEVERITY_TITLES.get(first.severity, "Ошибка")
    return f"❗ {title} в строке {first.line}, позиция {first.col}: {first.message}"
