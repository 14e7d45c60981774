import enum

from sqlalchemy import Enum
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all booking-engine tables.

    The models are used as table definitions for Core statements
    (insert/select/update on an explicit connection) rather than as
    session-managed objects, so every operation controls its own transaction.
    """

    pass


def enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    """
    Portable VARCHAR-backed enum column type that stores member values.

    Args:
        enum_cls: Python enum whose values are persisted
        name: Type name (used by backends that name enum types)
    """
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )
