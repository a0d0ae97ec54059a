import re
import uuid

# Формат идентификаторов: UUID в каноническом виде 8-4-4-4-12 (hex, без скобок и urn:)
_UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def new_id() -> uuid.UUID:
    """
    Генерация нового идентификатора записи (UUID v4).
    :return: объект uuid.UUID
    """
    return uuid.uuid4()


def is_valid_id(value) -> bool:
    """Проверка, что строка — UUID в каноническом формате."""
    return isinstance(value, str) and bool(_UUID_RE.match(value))


def parse_id(value) -> uuid.UUID | None:
    """
    Разбор идентификатора из пути или query-параметра.
    :param value: сырое значение (обычно строка из URL)
    :return: uuid.UUID или None, если формат неверный
    """
    if not is_valid_id(value):
        return None
    return uuid.UUID(value)


if __name__ == "__main__":
    print(new_id())
