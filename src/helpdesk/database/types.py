"""
Column types shared by the helpdesk models.
"""

from enum import IntEnum
from typing import Type

from sqlalchemy import Integer
from sqlalchemy.types import TypeDecorator


class IntEnumType(TypeDecorator):
    """
    Store an `IntEnum` as its integer code and load it back as the enum member.

    Helpdesk codes (status 1..5, folder type 1..80, ...) are part of the stored
    data and are shared between conversations and threads, so the integer is
    persisted rather than the member name (which is what `sqlalchemy.Enum` does).

    Unknown codes read from the database are returned as plain ints instead of
    raising, so a row written by a newer release can still be loaded.
    """

    impl = Integer
    cache_ok = True

    def __init__(self, enum_cls: Type[IntEnum], *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.enum_cls = enum_cls

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        try:
            return self.enum_cls(value)
        except ValueError:
            return value
