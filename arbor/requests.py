"""
Arbor requests: the parsed binding of input tokens to one action.

A Request is created by the registry for the action selected so far, filled in
while tokens are classified, and finalized once the whole input has been
consumed. Until then it is private to the resolver; after finalization it is
read-only and can be handed to the action's callback with dispatch().

State
- arguments: the positional values, in declaration order.
- fields: title -> value (starts at each field's default, None when it has none).
- flags: title -> bool (starts False, set True when seen; setting twice is harmless).

Accessors
- argument(title_or_index), field(title_or_short), flag(title_or_short) resolve
  names the same way the parser does, so `request.field("e")` and
  `request.field("env")` read the same value.
"""
import functools
import operator

from .arguments import Field, Flag
from .utils import *


class Request:
    """
    Mutable-until-finalized accumulator of parsed values for one action.
    """

    action = mirror("action")
    arguments = mirror("arguments")
    fields = mirror("fields")
    flags = mirror("flags")
    finalized = mirror("finalized")

    def __init__(self, action, /):
        self._action = action
        self._arguments = []
        self._fields = {title: field.default for title, field in action.fields.items()}
        self._flags = dict.fromkeys(action.flags, False)
        self._finalized = False

    def _ensure_mutable(self):
        if self._finalized:
            raise TypeError("request is finalized and cannot be modified")

    def _append(self, value, /):
        self._ensure_mutable()
        self._arguments.append(value)

    def _assign(self, title, value, /):
        self._ensure_mutable()
        self._fields[title] = value

    def _raise(self, title, /):
        self._ensure_mutable()
        self._flags[title] = True

    def _finalize(self):
        self._finalized = True

    @property
    def valid(self):
        """
        Whether exactly the declared number of arguments was collected.
        """
        return len(self._arguments) == len(self._action.arguments)

    def argument(self, key, /):
        """
        Return a positional value by declaration index or by argument title.

        Raises
        - KeyError: unknown title, or a declared argument not collected yet.
        - IndexError: index outside the collected values.
        """
        if isinstance(key, int):
            return self._arguments[key]
        for index, argument in enumerate(self._action.arguments):
            if argument.title == key:
                try:
                    return self._arguments[index]
                except IndexError:
                    raise KeyError(key) from None
        raise KeyError(key)

    def _lookup(self, name, kind):
        spec = self._action.switches.get(name)
        if not isinstance(spec, kind):
            raise KeyError(name)
        return spec.title

    def field(self, name, /):
        """
        Return the value of a field by title or short (None when unset without default).
        """
        return self._fields[self._lookup(name, Field)]

    def flag(self, name, /):
        """
        Return whether a flag was given, by title or short.
        """
        return self._flags[self._lookup(name, Flag)]

    def dispatch(self):
        """
        Run the bound action's callback with this request and return its result.

        An action without callback (a pure parent) dispatches to None.
        """
        if not self._finalized:
            raise TypeError("request must be finalized before dispatch")
        if (callback := self._action.callback) is None:
            return None
        return callback(self)

    def __rich_repr__(self):
        yield "action", self._action.keyword
        yield "arguments", self.arguments
        yield "fields", dict(self._fields)
        yield "flags", dict(self._flags)

    def __repr__(self):
        return f"request({
            ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
        })"


__all__ = (
    "Request",
)
