"""pgvector ``vector(n)`` column type.

Values are bound as the text literal ``'[x1,x2,...]'`` and parsed back into
``list[float]``, so no driver-level codec needs to be registered.
"""

from sqlalchemy.types import UserDefinedType

# text-embedding-3-small
EMBEDDING_DIMENSIONS = 1536


class Vector(UserDefinedType):
    cache_ok = True

    def __init__(self, dimensions: int):
        self.dimensions = dimensions

    def get_col_spec(self, **kw) -> str:
        return f"vector({self.dimensions})"

    def bind_processor(self, dialect):
        def process(value):
            if value is None:
                return None
            return format_vector(value)

        return process

    def result_processor(self, dialect, coltype):
        def process(value):
            if value is None or isinstance(value, list):
                return value
            return parse_vector(value)

        return process


def format_vector(values) -> str:
    return "[" + ",".join(repr(float(v)) for v in values) + "]"


def parse_vector(text: str) -> list[float]:
    text = text.strip().lstrip("[").rstrip("]")
    if not text:
        return []
    return [float(part) for part in text.split(",")]
