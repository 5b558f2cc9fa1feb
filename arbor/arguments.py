r"""
Arbor argument specifications.

Overview
- Specs
  • Argument: positional, value-bearing slot of an action (consumed in declaration order).
  • Field: named, value-bearing option (e.g., --env dev / -e dev) with an optional
    one-character short and an optional default.
  • Flag: named, presence-only switch (e.g., --verbose / -v).

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes the
    fields listed in __introspectable__ as read-only properties.

Metadata (sanitized on construction)
- Shared (all specs)
  • title: str, trimmed, non-empty (EmptyNameError otherwise).
  • descr: Unset | str | Text (short help), non-empty when provided.
- Argument/Field only (value-bearing)
  • filter: Unset | Callable[[str], bool], the validation predicate.
- Named (Field/Flag)
  • short: Unset | str, exactly one character, not whitespace and not '-'.
- Field only
  • default: Unset | None | str, the value a request holds when the field is absent.

Specs are immutable once built; an action only ever reads them. Collisions between
names are an action-level concern (see arbor.actions).

Quick example:
    >>> from arbor.arguments import Argument, Field, Flag
    >>> Argument("target", descr="where to deploy")
    >>> Field("env", "e", default="prod")
    >>> Flag("verbose", "v")
"""
import functools
import operator
import re

from rich.text import Text

from .faults import EmptyNameError, FaultCode
from .utils import *


class ArgumentType(type):
    """
    Metaclass that turns specs into introspectable, read-only descriptors.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and pretty printing.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - field(title='env', short='e', default='prod', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate the 'title' and 'descr' shared by every spec.

    Raises
    - TypeError: if 'title' is not a string, or 'descr' is not a string/Text/Unset.
    - EmptyNameError: if 'title' is empty after trimming.
    - ValueError: if 'descr' is a string but empty after trimming.
    """
    if not isinstance(title := metadata["title"], str):
        raise TypeError(f"{cls.__typename__} 'title' must be a string")
    elif not (title := title.strip()):
        raise EmptyNameError(
            f"{cls.__typename__} 'title' cannot be empty",
            title="empty name",
            code=FaultCode.EMPTY_NAME,
            hint=f"give the {cls.__typename__} a non-empty title",
        )
    metadata["title"] = title

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_named_metadata(cls, metadata, /):
    """
    Internal: validate the one-character 'short' alias of a Field or Flag.

    Rules
    - Unset means "no short" (stored as None).
    - Otherwise exactly one character that is neither whitespace nor '-'
      ('-' would make "--" ambiguous with the long form).
    """
    if not isinstance(short := metadata["short"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'short' must be a string")
    elif isinstance(short, str) and (len(short) != 1 or short.isspace() or short == "-"):
        raise ValueError(f"{cls.__typename__} 'short' must be a single non-blank character other than '-'")
    metadata["short"] = coalesce(short)


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: validate the 'filter' predicate of a value-bearing spec.
    """
    if (filter := metadata["filter"]) is not Unset and not callable(filter):
        raise TypeError(f"{cls.__typename__} 'filter' must be callable")
    metadata["filter"] = coalesce(filter)


class _Parametric:
    """
    Shared behavior of value-bearing specs (Argument, Field).
    """

    def accepts(self, value, /):
        """
        Run the filter against a raw value; a missing filter always passes.
        """
        if self._filter is None:
            return True
        return bool(self._filter(value))


class _Named:
    """
    Shared behavior of named specs (Field, Flag).
    """

    @property
    def keys(self):
        """
        Every name this spec can be addressed by (title, then short if any).
        """
        return (self._title,) if self._short is None else (self._title, self._short)


class Argument(_Parametric, metaclass=ArgumentType):
    """
    Positional, value-bearing argument specification.

    An action consumes one plain token per declared argument, in declaration
    order; every argument is required. The optional filter validates the raw
    (unescaped) string before it is accepted.
    """

    __introspectable__ = (
        "title",
        "descr",
        "filter",
    )

    def __init__(self, title, /, descr=Unset, *, filter=Unset):
        """
        Parameters
        - title: str
          Name of the slot (used by Request.argument() and in messages).
        - descr: Unset | str | Text
          Short description. If Unset, becomes None.
        - filter: Unset | Callable[[str], bool]
          Validation predicate; a falsy result rejects the value.
        """
        metadata = {
            "title": title,
            "descr": descr,
            "filter": filter,
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_parametric_metadata(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)


class Field(_Parametric, _Named, metaclass=ArgumentType):
    """
    Named, value-bearing option specification.

    Addressed as --title or -short, and always followed by its value token. A
    request starts with the field set to its default (None when no default was
    given) and keeps the last value supplied.
    """

    __introspectable__ = (
        "title",
        "short",
        "default",
        "descr",
        "filter",
    )

    def __init__(self, title, short=Unset, /, default=Unset, descr=Unset, *, filter=Unset):
        """
        Parameters
        - title: str
          Long name, addressed as --title.
        - short: Unset | str
          One-character alias, addressed as -s.
        - default: Unset | None | str
          Initial value held by a request. Unset and None both mean "no default".
          The default is not run through the filter.
        - descr: Unset | str | Text
          Short description. If Unset, becomes None.
        - filter: Unset | Callable[[str], bool]
          Validation predicate; a falsy result rejects the value.
        """
        metadata = {
            "title": title,
            "short": short,
            "default": default,
            "descr": descr,
            "filter": filter,
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_named_metadata(type(self), metadata)
        _sanitize_parametric_metadata(type(self), metadata)

        if not isinstance(metadata["default"], str | None | Unset):
            raise TypeError(f"{type(self).__typename__} 'default' must be a string")
        metadata["default"] = coalesce(metadata["default"])

        for name, object in metadata.items():
            setattr(self, "_" + name, object)


class Flag(_Named, metaclass=ArgumentType):
    """
    Named, presence-only switch specification.

    Addressed as --title or -short; short flags can be combined (-vf). A request
    starts with every flag False and sets it to True when seen (repeating a flag
    is harmless).
    """

    __introspectable__ = (
        "title",
        "short",
        "descr",
    )

    def __init__(self, title, short=Unset, /, descr=Unset):
        """
        Parameters
        - title: str
          Long name, addressed as --title.
        - short: Unset | str
          One-character alias, addressed as -s or inside a combined -abc.
        - descr: Unset | str | Text
          Short description. If Unset, becomes None.
        """
        metadata = {
            "title": title,
            "short": short,
            "descr": descr,
        }
        _sanitize_metadata(type(self), metadata)
        _sanitize_named_metadata(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)


__all__ = (
    "Argument",
    "Field",
    "Flag",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ArgumentType
