import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from varcheck.constants import (IDENT_PATTERN, INTEGER_PATTERN, KEYWORDS, MAX_STRING_SIZE, MIN_STRING_SIZE,
                                SCALAR_TYPES, TYPE_KEYWORDS)
from varcheck.diagnostics import SYNTAX, Diagnostic
from varcheck.lexer import TokenKind
from varcheck.sema import SymbolTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScalarType:
    name: str

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class StringType:
    size: Optional[int] = None

    def __str__(self):
        return 'string' if self.size is None else f'string[{self.size}]'


@dataclass(frozen=True)
class ArrayType:
    ranges: Tuple[Tuple[int, int], ...]
    element_type: object

    def __str__(self):
        bounds = ', '.join(f'{low}..{high}' for low, high in self.ranges)
        return f'array[{bounds}] of {self.element_type}'


@dataclass(frozen=True)
class UnknownType:
    """Заглушка на месте типа, который не удалось разобрать"""

    def __str__(self):
        return 'unknown'


@dataclass(frozen=True)
class Identifier:
    name: str
    line: int
    col: int


class Declaration:
    """Описание переменных: имена и общий тип"""

    def __init__(self, names, var_type, line=0, pos=0):
        self.names = names          # Список Identifier
        self.var_type = var_type    # Описание типа
        self.line = line            # Номер строки в исходном коде
        self.pos = pos              # Позиция в строке

    def to_dict(self):
        return {
            'names': [ident.name for ident in self.names],
            'type': str(self.var_type),
            'line': self.line,
            'col': self.pos
        }

    def __str__(self):
        return f"{', '.join(ident.name for ident in self.names)}: {self.var_type};"


class PascalVarSyntaxAnalyzer:
    """Синтаксический анализатор описаний переменных.

    Разбор идет одним проходом без возвратов. Ошибки накапливаются в списке,
    после каждой ошибки анализатор восстанавливается и продолжает разбор.
    """

    def __init__(self, tokens):
        """
        Инициализация синтаксического анализатора.
        :param tokens: таблица лексем, заканчивающаяся лексемой EOF.
        """
        self.lex_table = tokens
        self.position = 0            # Текущая позиция в таблице лексем
        self.errors = []             # Список ошибок синтаксического анализа
        self.symbol_table = SymbolTable()
        self.declarations = []
        # Включается после структурной ошибки в текущем описании
        self.error_recovery_mode = False

    # --- Навигация по лексемам ---

    def current_token(self):
        """Получение текущей лексемы без продвижения."""
        return self.lex_table[min(self.position, len(self.lex_table) - 1)]

    def previous_token(self):
        if self.position > 0:
            return self.lex_table[self.position - 1]
        return None

    def next_token(self):
        """Получение текущей лексемы и продвижение указателя (EOF не пропускается)."""
        token = self.current_token()
        if token.kind != TokenKind.EOF:
            self.position += 1
        return token

    def peek_token(self):
        """Лексема после текущей"""
        return self.lex_table[min(self.position + 1, len(self.lex_table) - 1)]

    def match(self, kind):
        return self.current_token().kind == kind

    def match_symbol(self, symbol):
        return self.current_token().is_symbol(symbol)

    def match_keyword(self, word):
        return self.current_token().is_keyword(word)

    def match_integer(self):
        token = self.current_token()
        return token.kind == TokenKind.NUMBER and INTEGER_PATTERN.match(token.text) is not None

    def on_previous_line(self, token):
        """Лексема находится на той же строке, что и предыдущая"""
        previous = self.previous_token()
        return previous is None or previous.line == token.line

    def starts_type(self):
        token = self.current_token()
        return token.kind == TokenKind.KEYWORD and token.text.lower() in TYPE_KEYWORDS

    def starts_declaration(self):
        """Текущая лексема похожа на начало описания: имя, за которым идет ':' или ','"""
        following = self.peek_token()
        return self.match(TokenKind.IDENTIFIER) and (following.is_symbol(':') or following.is_symbol(','))

    # --- Ошибки ---

    def _record_error(self, message, line, col):
        self.errors.append(Diagnostic(SYNTAX, line, col, message))

    def error_at(self, token, message):
        self._record_error(message, token.line, token.col)

    def expect_error_at(self, token, message):
        """Ошибка ожидания; не дублирует ошибку, уже записанную в той же позиции"""
        if self.errors and (self.errors[-1].line, self.errors[-1].col) == (token.line, token.col):
            return
        self.error_at(token, message)

    def error_after_previous(self, message):
        """Ошибка сразу после последней лексемы строки, а не на следующей лексеме"""
        previous = self.previous_token()
        if previous is None:
            self.error_at(self.current_token(), message)
        else:
            self._record_error(message, previous.line, previous.end_col)

    def report_unknown_symbols(self, line=None):
        """Сообщает о каждом неизвестном символе подряд на строке line

        Без line берется строка текущей лексемы.
        """
        if line is None:
            line = self.current_token().line
        reported = False
        while self.match(TokenKind.UNKNOWN) and self.current_token().line == line:
            token = self.next_token()
            self.error_at(token, f"Недопустимый символ '{token.text}'")
            reported = True
        return reported

    def synchronize(self, line):
        """Пропуск лексем до ';' включительно, но не дальше конца строки line
        и не дальше начала следующего описания
        """
        while not self.match(TokenKind.EOF) and not self.match_keyword('var'):
            token = self.current_token()
            if token.line != line or self.starts_declaration():
                return
            self.next_token()
            if token.is_symbol(';'):
                self.report_unknown_symbols(token.line)
                return
            if token.kind == TokenKind.UNKNOWN:
                self.error_at(token, f"Недопустимый символ '{token.text}'")

    # --- Разбор ---

    def parse(self):
        """Запуск синтаксического анализа."""
        self.position = 0
        self.errors = []
        self.symbol_table = SymbolTable()
        self.declarations = []

        while not self.match(TokenKind.EOF):
            if self.match_keyword('var'):
                self.next_token()
                while self.match(TokenKind.IDENTIFIER):
                    self.parse_declaration()
                continue

            # Восстановление: пропускаем одну лексему и продолжаем
            token = self.next_token()
            if token.kind == TokenKind.UNKNOWN:
                self.error_at(token, f"Недопустимый символ '{token.text}'")
            else:
                self.error_at(token, f"Неожиданный токен '{token.text}': ожидается 'var'")

        if not self.errors:
            logger.debug("Синтаксический анализ завершен успешно. Описаний: %d", len(self.declarations))
            return True

        logger.debug("Синтаксический анализ завершен с ошибками: %d", len(self.errors))
        return False

    def parse_declaration(self):
        """Разбор описания: <имена> ':' <тип> ';'."""
        self.error_recovery_mode = False
        first = self.current_token()

        names = self.parse_identifier_list()

        # ':'
        invalid_symbol = self.report_unknown_symbols()
        has_colon = self.match_symbol(':')
        if has_colon:
            self.next_token()
        elif not invalid_symbol and not self.error_recovery_mode:
            self.error_after_previous("Ожидается ':' после списка имен")

        if has_colon or invalid_symbol or self.starts_type():
            var_type = self.parse_type()
        else:
            self.error_recovery_mode = True
            var_type = UnknownType()

        self.expect_semicolon()

        self.declarations.append(Declaration(names, var_type, line=first.line, pos=first.col))
        self.declare(names, var_type)

    def parse_identifier_list(self):
        """Разбор списка имен через запятую."""
        names = [self.read_name()]

        while self.match_symbol(','):
            comma = self.next_token()
            token = self.current_token()
            name_like = token.kind in (TokenKind.IDENTIFIER, TokenKind.NUMBER, TokenKind.UNKNOWN) or (
                token.kind == TokenKind.KEYWORD and not token.is_keyword('var') and token.line == comma.line)
            if name_like:
                names.append(self.read_name())
                continue

            # Список обрывается; лексема остается для следующего описания
            self.error_at(token, "Ожидается имя переменной")
            self.error_recovery_mode = True
            if token.kind == TokenKind.SYMBOL and token.text not in (':', ';') and token.line == comma.line:
                self.next_token()
            break

        return names

    def read_name(self):
        """Чтение имени переменной.

        Лексемы, записанные вплотную друг к другу (например, 'a#b' или '1x'),
        считаются одним именем и проверяются целиком.
        """
        first = self.next_token()
        text = first.text
        last = first
        while True:
            token = self.current_token()
            glued = token.line == last.line and token.col == last.end_col
            if not glued or token.kind not in (TokenKind.IDENTIFIER, TokenKind.NUMBER,
                                               TokenKind.KEYWORD, TokenKind.UNKNOWN):
                break
            last = self.next_token()
            text += last.text

        if not IDENT_PATTERN.match(text) or text.lower() in KEYWORDS:
            self.error_at(first, f"Недопустимое имя переменной '{text}'")

        return Identifier(text, first.line, first.col)

    def expect_semicolon(self):
        """Проверка ';' в конце описания и пропуск мусора до конца строки."""
        invalid_symbol = self.report_unknown_symbols()

        if self.match_symbol(';'):
            semicolon = self.next_token()
            self.report_unknown_symbols(semicolon.line)
            return

        if not invalid_symbol and not self.error_recovery_mode:
            self.error_after_previous("Ожидается ';'")
            if self.match(TokenKind.IDENTIFIER) or self.match(TokenKind.EOF):
                return

        self.synchronize(self.previous_token().line)

    def declare(self, names, var_type):
        """Проверка повторных объявлений и заполнение таблицы символов."""
        for ident in names:
            original = self.symbol_table.define(ident.name, var_type=var_type, line=ident.line, pos=ident.col)
            if original is not None:
                self._record_error(
                    f"Повторное объявление '{ident.name}' "
                    f"(ранее объявлено в строке {original.line}, позиция {original.pos})",
                    ident.line, ident.col
                )

    def parse_type(self, nested=False):
        """Разбор типа: скалярный тип, string[N] или array[...] of <тип>."""
        token = self.current_token()

        if token.kind == TokenKind.KEYWORD:
            word = token.text.lower()

            if word in SCALAR_TYPES:
                self.next_token()
                return ScalarType(word)

            if word == 'string':
                self.next_token()
                return self.parse_string_type()

            if word == 'array':
                array_type = self.parse_array_type()
                if nested:
                    self.error_at(token, "Тип элементов массива не может быть массивом")
                    return UnknownType()
                return array_type

        if token.kind == TokenKind.EOF or token.is_symbol(';'):
            self.expect_error_at(token, "Ожидается описание типа")
        elif token.kind == TokenKind.UNKNOWN:
            self.error_at(token, f"Недопустимый символ '{token.text}'")
            if self.on_previous_line(token):
                self.next_token()
        else:
            self.error_at(token, f"Недопустимый тип '{token.text}'")
            if self.on_previous_line(token):
                self.next_token()

        self.error_recovery_mode = True
        return UnknownType()

    def parse_string_type(self):
        """Разбор необязательного размера строки: '[' <целое> ']'."""
        if not self.match_symbol('['):
            return StringType()
        self.next_token()

        size = None
        size_token = self.current_token()
        if self.match_integer():
            self.next_token()
            size = int(size_token.text)
            if not MIN_STRING_SIZE <= size <= MAX_STRING_SIZE:
                self.error_at(size_token, f"Размер строки {size} вне диапазона {MIN_STRING_SIZE}..{MAX_STRING_SIZE}")
        else:
            self.error_at(size_token, "Ожидается размер строки (целое число)")
            self.error_recovery_mode = True
            if not (size_token.kind == TokenKind.EOF or size_token.is_symbol(']') or size_token.is_symbol(';')) \
                    and self.on_previous_line(size_token):
                self.next_token()
            if not self.match_symbol(']'):
                return StringType(size)

        if self.match_symbol(']'):
            self.next_token()
        else:
            self.expect_error_at(self.current_token(), "Ожидается ']' после размера строки")
            self.error_recovery_mode = True

        return StringType(size)

    def parse_array_type(self):
        """Разбор массива: 'array' '[' <диапазон> {',' <диапазон>} ']' 'of' <тип>."""
        self.next_token()
        ranges = []

        if self.match_symbol('['):
            self.next_token()
            self.parse_ranges(ranges)
        else:
            self.error_at(self.current_token(), "Ожидается '[' после 'array'")
            self.error_recovery_mode = True
            # Пропущена только открывающая скобка
            if self.match_integer():
                self.parse_ranges(ranges)
            else:
                self.skip_to_range_boundary()
                if self.match_symbol(']'):
                    self.next_token()

        if self.match_keyword('of'):
            self.next_token()
            element_type = self.parse_type(nested=True)
        else:
            self.expect_error_at(self.current_token(), "Ожидается 'of'")
            self.error_recovery_mode = True
            element_type = self.parse_type(nested=True) if self.starts_type() else UnknownType()

        return ArrayType(tuple(ranges), element_type)

    def parse_ranges(self, ranges):
        """Разбор диапазонов индексов до закрывающей ']' включительно."""
        while True:
            index_range = self.parse_range()
            if index_range is None:
                self.skip_to_range_boundary()
            else:
                ranges.append(index_range)

            if self.match_symbol(','):
                self.next_token()
                continue
            if self.match_symbol(']'):
                self.next_token()
                return

            if index_range is not None:
                self.expect_error_at(self.current_token(), "Ожидается ',' или ']'")
                self.error_recovery_mode = True
                self.skip_to_range_boundary()
                if self.match_symbol(','):
                    self.next_token()
                    continue
                if self.match_symbol(']'):
                    self.next_token()
            return

    def parse_range(self):
        """Разбор диапазона <целое> '..' <целое>; None при ошибке."""
        from_token = self.current_token()
        if not self.match_integer():
            self.error_at(from_token, "Ожидается нижняя граница диапазона (целое число)")
            self.error_recovery_mode = True
            return None
        self.next_token()

        if not self.match_symbol('..'):
            self.error_at(self.current_token(), "Ожидается '..' в диапазоне")
            self.error_recovery_mode = True
            return None
        self.next_token()

        to_token = self.current_token()
        if not self.match_integer():
            self.error_at(to_token, "Ожидается верхняя граница диапазона (целое число)")
            self.error_recovery_mode = True
            return None
        self.next_token()

        low = int(from_token.text)
        high = int(to_token.text)
        if low > high:
            self.error_at(from_token, f"Нижняя граница диапазона {low} больше верхней {high}")
        return low, high

    def skip_to_range_boundary(self):
        """Пропуск лексем до ',', ']', 'of', ';' или 'var'."""
        while not (self.match(TokenKind.EOF) or self.match_symbol(',') or self.match_symbol(']')
                   or self.match_symbol(';') or self.match_keyword('of') or self.match_keyword('var')):
            self.next_token()

    def get_symbol_table(self):
        return self.symbol_table

    def get_declarations(self):
        return self.declarations

    def get_errors(self):
        """Получение списка ошибок"""
        return self.errors


def parse(tokens):
    """Разбор таблицы лексем; возвращает таблицу символов и список ошибок."""
    parser = PascalVarSyntaxAnalyzer(tokens)
    parser.parse()
    return parser.get_symbol_table(), parser.get_errors()
