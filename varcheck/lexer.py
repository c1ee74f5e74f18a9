import logging
import string
from dataclasses import dataclass
from enum import Enum

from varcheck.constants import KEYWORDS, SINGLE_CHAR_SYMBOLS, TWO_CHAR_SYMBOLS, WHITESPACE
from varcheck.diagnostics import LEXICAL, Diagnostic

logger = logging.getLogger(__name__)

DIGITS = frozenset(string.digits)
IDENT_START = frozenset(string.ascii_letters + '_')
IDENT_CHARS = IDENT_START | DIGITS

LINE_BREAKS = frozenset('\r\n')

# Открывающая и закрывающая скобки комментариев
COMMENT_BRACKETS = (('{', '}'), ('(*', '*)'))


class TokenKind(Enum):
    KEYWORD = 'KEYWORD'
    IDENTIFIER = 'IDENT'
    NUMBER = 'NUMBER'
    SYMBOL = 'SYMBOL'
    UNKNOWN = 'UNKNOWN'
    EOF = 'EOF'


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line: int
    col: int

    @property
    def end_col(self):
        """Столбец сразу после последнего символа лексемы"""
        return self.col + len(self.text)

    def is_keyword(self, word):
        return self.kind == TokenKind.KEYWORD and self.text.lower() == word

    def is_symbol(self, symbol):
        return self.kind == TokenKind.SYMBOL and self.text == symbol

    def __str__(self):
        return f"{self.kind.value} {self.text!r} ({self.line},{self.col})"


class LexicalError(Exception):
    """Фатальная лексическая ошибка (незакрытый комментарий)."""

    def __init__(self, diagnostic):
        super().__init__(str(diagnostic))
        self.diagnostic = diagnostic


class PascalVarLexer:
    """Лексический анализатор описаний переменных Pascal."""

    def __init__(self, source_code):
        self.source = source_code
        self.position = 0
        self.current_char = self.source[0] if self.source else ''

        # Таблица лексем
        self.lex_table = []

        # Обработка позиций (нумерация с 1)
        self.line_num = 1
        self.char_pos = 1
        self.errors = []

    def peek(self, offset=1):
        """Символ впереди текущего без продвижения ('' за концом текста)"""
        index = self.position + offset
        if index < len(self.source):
            return self.source[index]
        return ''

    def advance(self):
        """Переход к следующему символу с отслеживанием позиции.

        \\r\\n, \\r и \\n считаются одним переводом строки.
        """
        char = self.current_char
        if char == '\n' or (char == '\r' and self.peek() != '\n'):
            self.line_num += 1
            self.char_pos = 1
        elif char != '\r':
            self.char_pos += 1

        self.position += 1
        self.current_char = self.source[self.position] if self.position < len(self.source) else ''

    def make_token(self, kind, text, line, pos):
        """Формирование токена с указанием позиции"""
        token = Token(kind, text, line, pos)
        self.lex_table.append(token)
        return token

    def error(self, message, line, pos):
        """Фиксация лексической ошибки"""
        diagnostic = Diagnostic(LEXICAL, line, pos, message)
        self.errors.append(diagnostic)
        logger.debug(str(diagnostic))

    def read_while(self, allowed):
        """Собирает символы, пока они входят в allowed"""
        start = self.position
        while self.current_char and self.current_char in allowed:
            self.advance()
        return self.source[start:self.position]

    def skip_comment(self, opener, closer):
        """Пропускает комментарий вместе с переводами строк.

        Возвращает False, если текст закончился раньше закрывающей скобки.
        """
        start_line = self.line_num
        start_pos = self.char_pos
        for _ in opener:
            self.advance()

        while self.current_char:
            if self.source.startswith(closer, self.position):
                for _ in closer:
                    self.advance()
                return True
            self.advance()

        self.error("Незакрытый комментарий", start_line, start_pos)
        return False

    def scan(self):
        """Основной метод лексического анализа"""
        while self.current_char:
            char = self.current_char

            # Переводы строк и пробельные символы
            if char in LINE_BREAKS or char in WHITESPACE:
                self.advance()
                continue

            # Комментарии { ... } и (* ... *)
            comment = next((pair for pair in COMMENT_BRACKETS
                            if self.source.startswith(pair[0], self.position)), None)
            if comment:
                if not self.skip_comment(*comment):
                    # Дальше текст разобрать невозможно
                    break
                continue

            start_line = self.line_num
            start_pos = self.char_pos

            # Двухсимвольные операторы
            pair = char + self.peek()
            if pair in TWO_CHAR_SYMBOLS:
                self.advance()
                self.advance()
                self.make_token(TokenKind.SYMBOL, pair, start_line, start_pos)

            # Отрицательное число (до односимвольных символов)
            elif char == '-' and self.peek() in DIGITS:
                self.advance()
                self.make_token(TokenKind.NUMBER, '-' + self.read_while(DIGITS), start_line, start_pos)

            elif char in SINGLE_CHAR_SYMBOLS:
                self.advance()
                self.make_token(TokenKind.SYMBOL, char, start_line, start_pos)

            elif char in DIGITS:
                self.make_token(TokenKind.NUMBER, self.read_while(DIGITS), start_line, start_pos)

            # Идентификаторы и ключевые слова
            elif char in IDENT_START:
                word = self.read_while(IDENT_CHARS)
                kind = TokenKind.KEYWORD if word.lower() in KEYWORDS else TokenKind.IDENTIFIER
                self.make_token(kind, word, start_line, start_pos)

            # Неизвестный символ: решение принимает синтаксический анализатор
            else:
                self.advance()
                self.make_token(TokenKind.UNKNOWN, char, start_line, start_pos)

        if self.errors:
            logger.debug("Лексический анализ завершен с ошибками. Обработано %d лексем.", len(self.lex_table))
            return False

        self.make_token(TokenKind.EOF, '', self.line_num, self.char_pos)
        logger.debug("Лексический анализ завершен успешно. Обработано %d лексем.", len(self.lex_table))
        return True

    def format_lex_table(self):
        """Таблица лексем в текстовом виде"""
        lines = [f"{'Строка':<7} {'Позиция':<8} {'Класс':<10} {'Текст':<30}", "-" * 58]
        for token in self.lex_table:
            lines.append(f"{token.line:<7} {token.col:<8} {token.kind.value:<10} {token.text!r:<30}")
        return "\n".join(lines)

    def get_lex_table(self):
        """Получение таблицы лексем"""
        return self.lex_table

    def get_errors(self):
        """Получение списка ошибок"""
        return self.errors


def tokenize(source_code):
    """Разбивает текст на лексемы; при незакрытом комментарии бросает LexicalError."""
    lexer = PascalVarLexer(source_code)
    if not lexer.scan():
        raise LexicalError(lexer.get_errors()[0])
    return lexer.get_lex_table()
