class Symbol:
    """Класс для представления объявленной переменной."""

    def __init__(self, name, var_type=None, line=None, pos=None):
        self.name = name          # Имя в том виде, как оно записано в тексте
        self.var_type = var_type  # Описание типа (TypeDescriptor)
        self.line = line
        self.pos = pos

    @property
    def type(self):
        """Возвращает строковое представление типа для Pascal."""
        return str(self.var_type) if self.var_type is not None else 'unknown'

    def to_dict(self):
        return {
            'name': self.name,
            'type': self.type,
            'line': self.line,
            'col': self.pos
        }


class SymbolTable:
    """Таблица символов: имя в нижнем регистре -> первое объявление."""

    def __init__(self):
        self.symbols = {}

    def define(self, name, var_type=None, line=None, pos=None):
        """Добавить символ в таблицу.

        Если имя (без учета регистра) уже объявлено, таблица не меняется и
        возвращается первое объявление; иначе возвращается None.
        """
        key = name.lower()
        existing = self.symbols.get(key)
        if existing is not None:
            return existing

        self.symbols[key] = Symbol(name, var_type=var_type, line=line, pos=pos)
        return None

    def lookup(self, name):
        """Поиск символа по имени без учета регистра."""
        return self.symbols.get(name.lower())

    def get_all_symbols(self):
        """Получить все символы в порядке объявления."""
        return list(self.symbols.values())

    def __contains__(self, name):
        return name.lower() in self.symbols

    def __len__(self):
        return len(self.symbols)
