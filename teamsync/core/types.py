"""Custom SQLAlchemy types for cross-database compatibility"""
from sqlalchemy import TypeDecorator, String
import uuid


def generate_uuid() -> str:
    """Generate a UUID string"""
    return str(uuid.uuid4())


class Identifier(TypeDecorator):
    """
    Portable identifier column.

    Generated ids are UUID strings, but channels and users created elsewhere
    may carry short slugs ("general") or numeric ids, so values are stored
    as VARCHAR(64) and always read back as str.
    """
    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value
