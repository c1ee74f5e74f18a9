from dataclasses import dataclass

LEXICAL = 'lexical'
SYNTAX = 'syntax'


@dataclass(frozen=True)
class Diagnostic:
    """Ошибка анализа с точной позицией (строка и столбец с 1)."""
    severity: str
    line: int
    col: int
    message: str

    @property
    def source(self):
        return 'lexer' if self.severity == LEXICAL else 'parser'

    def sort_key(self):
        return self.line, self.col

    def to_dict(self):
        """Унифицированный формат ошибки для ответа API"""
        return {
            'type': 'error',
            'severity': self.severity,
            'line': self.line,
            'col': self.col,
            'message': self.message,
            'source': self.source
        }

    def __str__(self):
        return f"Ошибка ({self.line},{self.col}): {self.message}"
