"""
Stock value validators for Argument and Field filters.

Any callable taking the raw (unescaped) string and returning a bool can be used
as a filter; these cover the common numeric and identifier checks. All of them
work on ASCII digits and the english alphabet only.

Example
    >>> from arbor import Action, Argument, Field
    >>> from arbor.validators import is_integer, is_positive
    >>> resize = Action("resize")
    >>> resize.argument(Argument("width", filter=is_positive))
    >>> resize.field(Field("steps", "s", filter=is_integer))
"""
import re

_INTEGER = re.compile(r"[+-]?[0-9]+")
_NUMBER = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?(?i:inf|infinity|nan)")

_INT32 = range(-2 ** 31, 2 ** 31)


def is_alphanumeric(value, /):
    """
    Determine whether the value contains only [a-zA-Z0-9] characters.

    >>> is_alphanumeric("A1"), is_alphanumeric("1.0"), is_alphanumeric("-a")
    (True, False, False)
    """
    return all("a" <= char <= "z" or "A" <= char <= "Z" or "0" <= char <= "9" for char in value)


def is_integer(value, /):
    """
    Determine whether the value is a 32-bit signed integer.

    >>> is_integer("-10"), is_integer("10.2"), is_integer("a")
    (True, False, False)
    """
    return bool(_INTEGER.fullmatch(value)) and int(value) in _INT32


def is_numeric(value, /):
    """
    Determine whether the value represents a number, e.g. "10.2", "10.", "-.10".

    >>> is_numeric("-.10"), is_numeric("1a"), is_numeric("-")
    (True, False, False)
    """
    return bool(_NUMBER.fullmatch(value))


def is_negative(value, /):
    """
    Determine whether the value is a number strictly below zero.
    """
    return is_numeric(value) and float(value) < 0.0


def is_positive(value, /):
    """
    Determine whether the value is a number strictly above zero.
    """
    return is_numeric(value) and float(value) > 0.0


__all__ = (
    "is_alphanumeric",
    "is_integer",
    "is_numeric",
    "is_negative",
    "is_positive",
)
