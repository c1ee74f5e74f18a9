import re

# Допустимое имя переменной
IDENT_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

# Целое число (включая отрицательные)
INTEGER_PATTERN = re.compile(r'^-?\d+$')

# Ключевые слова (нельзя использовать как имена переменных)
KEYWORDS = frozenset({
    'var', 'array', 'of',

    # примитивные типы
    'integer', 'real', 'char', 'boolean', 'string'
})

SCALAR_TYPES = frozenset({'integer', 'real', 'char', 'boolean'})

# Ключевые слова, с которых может начинаться описание типа
TYPE_KEYWORDS = SCALAR_TYPES | {'string', 'array'}

# Символы
TWO_CHAR_SYMBOLS = (':=', '..')
SINGLE_CHAR_SYMBOLS = frozenset(':;.,[]()^@+-*/<>=')

WHITESPACE = frozenset(' \t\f\v')

# Допустимый размер string[N]
MIN_STRING_SIZE = 1
MAX_STRING_SIZE = 255

# Пример для кнопки "Пример"
SAMPLE_CODE = 'var d: array [-10..6, 6..9] of integer;'
