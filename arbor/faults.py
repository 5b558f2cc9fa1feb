"""
Arbor faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain so logs and searches stay predictable.
- ActionException / ActionWarning: base types that carry a message + options and
  know how to render themselves with rich in a short, lowercased, actionable way.
- ParseError / SchemaError: the two exception families. Parse errors come from
  the scanner and the resolver; schema errors come from declaring actions,
  arguments, fields and flags (they are raised at registration time, before any
  input is parsed).
- trigger(): central entry point to surface a fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

Integration
- The registry calls trigger(fault, **ctx) for parse errors and warnings.
- In library mode (shell=False) exceptions are raised and warnings are emitted
  through the warnings machinery; in shell mode they are rendered to stderr via
  rich and errors exit the process with status 1.
"""
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across arbor (stable identifiers).

    grouping (by high-level domain)
    - lexical (110xx)
      • MALFORMED_QUOTE
    - routing (1110x)
      • MISSING_ACTION, UNKNOWN_ACTION, UNKNOWN_SUBACTION
    - switches (fields/flags) (1111x)
      • UNKNOWN_SWITCH, MISSING_FIELD_VALUE
    - positionals and values (1112x)
      • UNEXPECTED_ARGUMENT, REJECTED_VALUE, MISSING_ARGUMENTS
    - warnings (12xxx)
      • UNTERMINATED_QUOTE
    - schema (13xxx)
      • EMPTY_NAME, DUPLICATE_KEYWORD, NAME_COLLISION, FROZEN_ACTION, ATTACHED_ACTION
    """
    # --- lexical errors (110xx) ---
    MALFORMED_QUOTE             = 11001

    # --- routing errors (1110x) ---
    MISSING_ACTION              = 11100
    UNKNOWN_ACTION              = 11101
    UNKNOWN_SUBACTION           = 11102

    # --- switch errors (1111x) ---
    UNKNOWN_SWITCH              = 11112
    MISSING_FIELD_VALUE         = 11117

    # --- positional/value errors (1112x) ---
    UNEXPECTED_ARGUMENT         = 11121
    REJECTED_VALUE              = 11124
    MISSING_ARGUMENTS           = 11125

    # --- warnings (12xxx) ---
    UNTERMINATED_QUOTE          = 12001

    # --- schema errors (13xxx) ---
    EMPTY_NAME                  = 13001
    DUPLICATE_KEYWORD           = 13002
    NAME_COLLISION              = 13003
    FROZEN_ACTION               = 13004
    ATTACHED_ACTION             = 13005

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _program(options):
    main = __import__("__main__")
    return getattr(main, "__prog__", options.get("prog") or "arbor")


def _render(fault, defaults):
    """
    build the rich renderable shared by exceptions and warnings.

    layout: "[ prog — code | title ]", then the message, then " → hint".
    with fancy=True the message and hint are wrapped in a titled panel.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", False)
    fancy = options.get("fancy", False)

    styles = defaultdict(str, defaults | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    code = options.get("code")
    header = Text.assemble(
        "[ ",
        text(_program(options), "prog-name"),
        " — ",
        text(code.normalize() if isinstance(code, FaultCode) else "-", "code"),
        " | ",
        text(str(options.get("title", type(fault).__name__)).title(), "title"),
        " ]"
    )
    message = text(fault.message, "message")
    hint = Text.assemble(text(" → ", "hint-arrow"), text(options.get("hint"), "hint"))

    if fancy:
        return Panel(Group(message, hint), title=header, title_align="left")
    return Group(header, message, hint)


class ActionException(Exception):
    """
    base type for every arbor error.

    - message: short, lowercased sentence describing what went wrong.
    - options: immutable mapping with the rendering/runtime context
      (title, code, hint, docs, shell, fancy, colorful, prog, plus any
      fault-specific payload such as input, index or action).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def hint(self):
        return self.options.get("hint")

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ParseError(ActionException): ...
class MalformedQuoteError(ParseError): ...
class MissingActionError(ParseError): ...
class UnknownActionError(ParseError): ...
class UnknownSubactionError(ParseError): ...
class UnknownSwitchError(ParseError): ...
class MissingFieldValueError(ParseError): ...
class RejectedValueError(ParseError): ...
class UnexpectedArgumentError(ParseError): ...
class MissingArgumentsError(ParseError): ...


class SchemaError(ActionException): ...
class EmptyNameError(SchemaError, ValueError): ...
class DuplicateKeywordError(SchemaError, ValueError): ...
class NameCollisionError(SchemaError, ValueError): ...
class FrozenActionError(SchemaError, TypeError): ...
class AttachedActionError(SchemaError, ValueError): ...


class ActionWarning(Warning):
    """
    base type for every arbor warning (same message + options contract as
    ActionException, but non-fatal).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings
            "message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnterminatedQuoteWarning(ActionWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode, rendering happens via the rich console; otherwise, exceptions
      are raised and warnings are emitted with warnings.warn.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ActionException",
    "ParseError",
    "MalformedQuoteError",
    "MissingActionError",
    "UnknownActionError",
    "UnknownSubactionError",
    "UnknownSwitchError",
    "MissingFieldValueError",
    "RejectedValueError",
    "UnexpectedArgumentError",
    "MissingArgumentsError",
    "SchemaError",
    "EmptyNameError",
    "DuplicateKeywordError",
    "NameCollisionError",
    "FrozenActionError",
    "AttachedActionError",
    "ActionWarning",
    "UnterminatedQuoteWarning",
    "trigger",
    "getdoc",
)
