"""
Arbor registry: hold the top-level actions and resolve input into a Request.

What this module provides
- Registry: keyword-keyed mapping of top-level actions plus the runtime options
  used to surface faults (shell/fancy/colorful/prog).
  • insert(action) / action(...): register top-level actions (freezing them).
  • resolve(tokens): classify pre-split tokens into a finalized Request.
  • load(prompt): same, from sys.argv[1:] (Unset), a raw line (str, scanned
    first) or an iterable of tokens.
  • __invoke__(prompt): load, then dispatch the request to its callback.
- invoke(registry, prompt): convenience runner mirroring __invoke__.

Resolution, in order
1. the first token (unescaped) selects a top-level action;
2. while the child path is open, each token (unescaped) that names a child of
   the current action descends into it, starting a fresh request; the first
   token that does not closes the child path for good and is classified below;
3. the token is unescaped, then classified by its shape:
   • "--name"  → flag, else field consuming the next token as its value;
   • "-abc"    → one short flag per character;
   • "-c"      → short flag, else short field consuming the next token;
   • otherwise → next positional argument (a lone "-" included);
4. the request must hold exactly the declared number of arguments.

Faults are raised in library mode and rendered + exit(1) in shell mode, always
at the first problem (no partial request is returned).

Messages lead with the token position ("at third position") so users can
locate the problem in what they typed.
"""
import difflib
import functools
import logging
import os.path
import sys
from collections import deque
from collections.abc import Iterable

from .actions import Action, _attach, action
from .arguments import Field, Flag
from .faults import *
from .requests import Request
from .scanner import scan, unescape
from .utils import *

logger = logging.getLogger(__name__)


@functools.cache
def _ordinal(number):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


class _Resolution:
    """
    Per-call parsing state (token queue, position, current action and request).

    Keeping this out of the Registry means the registry and its actions are only
    ever read during resolution.
    """

    def __init__(self, registry, tokens):
        self._registry = registry
        self._tokens = deque(tokens)
        self._index = 0
        self._action = None
        self._request = None
        self._path = []

    @property
    def route(self):
        return " ".join(self._path)

    def _next(self):
        self._index += 1
        return self._tokens.popleft()

    def _bind(self, action):
        self._action = action
        self._request = Request(action)
        self._path.append(action.keyword)

    def run(self):
        if not self._tokens:
            return self._registry.trigger(MissingActionError(
                "no action given",
                title="missing action",
                code=FaultCode.MISSING_ACTION,
                hint="start with one of: %s" % (", ".join(self._registry.actions) or "(no actions registered)"),
                docs=getdoc(FaultCode.MISSING_ACTION),
            ))

        selector = unescape(self._next())
        try:
            self._bind(self._registry.actions[selector])
        except KeyError:
            suggestions = difflib.get_close_matches(selector, self._registry.actions.keys(), 5)
            try:
                hint = "did you mean %r?" % suggestions[0]
            except IndexError:
                hint = "start with one of: %s" % (", ".join(self._registry.actions) or "(no actions registered)")
            return self._registry.trigger(UnknownActionError(
                "unknown action %r at %s position" % (selector, _ordinal(self._index)),
                title="unknown action",
                code=FaultCode.UNKNOWN_ACTION,
                input=selector,
                index=self._index,
                suggestions=suggestions,
                hint=hint,
                docs=getdoc(FaultCode.UNKNOWN_ACTION),
            ))
        logger.debug("selected action %r", selector)

        descending = True
        while self._tokens:
            token = self._next()
            if descending:
                try:
                    self._bind(self._action.children[unescape(token)])
                    logger.debug("descended into %r", self.route)
                    continue
                except KeyError:
                    descending = False
                    logger.debug("child path closed at %s position by %r", _ordinal(self._index), token)
            self._classify(token)

        return self._finalize()

    def _classify(self, token):
        token = unescape(token)
        if token.startswith("--"):
            self._parse_long(token[2:], token)
        elif token.startswith("-") and len(token) > 2:
            self._parse_combined(token[1:], token)
        elif token.startswith("-") and len(token) == 2:
            self._parse_short(token[1:], token)
        else:
            self._parse_argument(token)

    def _unknown_switch(self, input, *, flags_only=False):
        """
        Trigger UnknownSwitchError with close matches among the action's switches.
        """
        switches = self._action.switches
        spellings = [
            ("--" if len(key) > 1 else "-") + key
            for key, spec in switches.items()
            if not flags_only or isinstance(spec, Flag)
        ]
        suggestions = difflib.get_close_matches(input, spellings, 5)
        try:
            hint = "did you mean %r?" % suggestions[0]
        except IndexError:
            if spellings:
                hint = "%s accepts: %s" % (self.route, ", ".join(sorted(spellings)))
            else:
                hint = "%s takes no %s" % (self.route, "flags" if flags_only else "fields or flags")
        return self._registry.trigger(UnknownSwitchError(
            "unknown %s %r at %s position" % ("flag" if flags_only else "field or flag", input, _ordinal(self._index)),
            title="unknown %s" % ("flag" if flags_only else "field or flag"),
            code=FaultCode.UNKNOWN_SWITCH,
            input=input,
            index=self._index,
            action=self._action,
            suggestions=suggestions,
            hint=hint,
            docs=getdoc(FaultCode.UNKNOWN_SWITCH),
        ))

    def _parse_long(self, name, token):
        spec = self._action.switches.get(name)
        if isinstance(spec, Flag):
            logger.debug("%r is flag %r", token, spec.title)
            self._request._raise(spec.title)
        elif isinstance(spec, Field):
            self._parse_field(spec, "--" + name)
        else:
            self._unknown_switch("--" + name)

    def _parse_short(self, name, token):
        spec = self._action.switches.get(name)
        if isinstance(spec, Flag):
            logger.debug("%r is flag %r", token, spec.title)
            self._request._raise(spec.title)
        elif isinstance(spec, Field):
            self._parse_field(spec, "-" + name)
        else:
            self._unknown_switch("-" + name)

    def _parse_combined(self, names, token):
        # every character must be a flag; fields cannot be combined
        for name in names:
            spec = self._action.switches.get(name)
            if not isinstance(spec, Flag):
                return self._unknown_switch("-" + name, flags_only=True)
            logger.debug("%r contains flag %r", token, spec.title)
            self._request._raise(spec.title)

    def _parse_field(self, field, input):
        start = self._index
        if not self._tokens:
            return self._registry.trigger(MissingFieldValueError(
                "field %r at %s position needs a value" % (input, _ordinal(start)),
                title="missing field value",
                code=FaultCode.MISSING_FIELD_VALUE,
                input=input,
                index=start,
                action=self._action,
                hint="add a value after the name (for example: %s <%s>)" % (input, field.title),
                docs=getdoc(FaultCode.MISSING_FIELD_VALUE),
            ))

        value = unescape(self._next())
        if not field.accepts(value):
            return self._registry.trigger(RejectedValueError(
                "value %r for field %r at %s position was rejected" % (value, input, _ordinal(self._index)),
                title="rejected value",
                code=FaultCode.REJECTED_VALUE,
                input=value,
                index=self._index,
                action=self._action,
                argument=field,
                hint=field.descr or "check the expected format of %s" % input,
                docs=getdoc(FaultCode.REJECTED_VALUE),
            ))
        logger.debug("field %r set to %r", field.title, value)
        self._request._assign(field.title, value)

    def _parse_argument(self, value):
        position = len(self._request.arguments)
        try:
            argument = self._action.arguments[position]
        except IndexError:
            if self._action.children and not position:
                suggestions = difflib.get_close_matches(value, self._action.children.keys(), 5)
                try:
                    hint = "did you mean %r?" % suggestions[0]
                except IndexError:
                    hint = "%s expects one of: %s" % (self.route, ", ".join(self._action.children))
                return self._registry.trigger(UnknownSubactionError(
                    "unknown subaction %r at %s position" % (value, _ordinal(self._index)),
                    title="unknown subaction",
                    code=FaultCode.UNKNOWN_SUBACTION,
                    input=value,
                    index=self._index,
                    action=self._action,
                    suggestions=suggestions,
                    hint=hint,
                    docs=getdoc(FaultCode.UNKNOWN_SUBACTION),
                ))
            return self._registry.trigger(UnexpectedArgumentError(
                "unexpected argument %r at %s position" % (value, _ordinal(self._index)),
                title="unexpected argument",
                code=FaultCode.UNEXPECTED_ARGUMENT,
                input=value,
                index=self._index,
                action=self._action,
                hint="%s takes %d argument(s); remove the extra value" % (self.route, len(self._action.arguments)),
                docs=getdoc(FaultCode.UNEXPECTED_ARGUMENT),
            ))

        if not argument.accepts(value):
            return self._registry.trigger(RejectedValueError(
                "value %r for argument %r at %s position was rejected" % (value, argument.title, _ordinal(self._index)),
                title="rejected value",
                code=FaultCode.REJECTED_VALUE,
                input=value,
                index=self._index,
                action=self._action,
                argument=argument,
                hint=argument.descr or "check the expected format of %s" % argument.title,
                docs=getdoc(FaultCode.REJECTED_VALUE),
            ))
        logger.debug("argument %r set to %r", argument.title, value)
        self._request._append(value)

    def _finalize(self):
        if not self._request.valid:
            missing = [argument.title for argument in self._action.arguments[len(self._request.arguments):]]
            return self._registry.trigger(MissingArgumentsError(
                "%s is missing %d argument(s): %s" % (self.route, len(missing), ", ".join(missing)),
                title="missing arguments",
                code=FaultCode.MISSING_ARGUMENTS,
                action=self._action,
                missing=tuple(missing),
                hint="usage: %s %s" % (self.route, " ".join("<%s>" % argument.title for argument in self._action.arguments)),
                docs=getdoc(FaultCode.MISSING_ARGUMENTS),
            ))
        self._request._finalize()
        logger.debug("resolved %r", self._request)
        return self._request


class Registry:
    """
    Root of the action tree and entry point of resolution.

    Runtime options
    - shell: when True, faults are printed to stderr (rich) and errors exit
      the process with status 1; when False they are raised / warned.
    - fancy: render faults inside a rich panel.
    - colorful: enable fault styles (see __styles__ in __main__).
    - prog: program name shown in fault headers (defaults to basename(argv[0])).

    The registry is only read while resolving, so one instance can serve many
    resolutions, including concurrent ones.
    """

    actions = mirror("actions")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")
    prog = mirror("prog")

    def __init__(self, actions=(), /, *, shell=False, fancy=False, colorful=False, prog=Unset):
        if not isinstance(prog, str | Unset):
            raise TypeError("registry 'prog' must be a string")
        self._actions = {}
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._prog = coalesce(prog, os.path.basename(sys.argv[0]) or "arbor")
        for action in actions:
            self.insert(action)

    @property
    def options(self):
        """
        Runtime options merged into every fault surfaced by this registry.
        """
        return {
            "shell": self._shell,
            "fancy": self._fancy,
            "colorful": self._colorful,
            "prog": self._prog,
        }

    def insert(self, action, /):
        """
        Register a top-level action (freezing it); keywords must be unique.

        Returns the action.
        """
        _attach(self._actions, action, owner="registry")
        return action

    def action(self, source=Unset, /, *args, **kwargs):
        """
        Create or insert a top-level action; same modes as Action.action().
        """
        if isinstance(source, Action):
            if args or kwargs:
                raise TypeError("action() cannot combine an existing action with extra metadata")
            return self.insert(source)

        @rename("action")
        def wrapper(source, /):
            return self.insert(action(source, *args, **kwargs))

        return wrapper(source) if source is not Unset else wrapper

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this registry's runtime options merged in.
        """
        trigger(fault, **self.options | options)

    def resolve(self, tokens, /):
        """
        Resolve pre-split tokens into a finalized Request (no scanning involved).

        Raises (library mode)
        - TypeError: when tokens is not an iterable of strings.
        - ParseError subclasses: see the module documentation.
        """
        if isinstance(tokens, str) or not isinstance(tokens, Iterable):
            raise TypeError("resolve() argument must be an iterable of strings")
        tokens = list(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("resolve() argument must be an iterable of strings")
        logger.debug("resolving %r", tokens)
        return _Resolution(self, tokens).run()

    def load(self, prompt=Unset, /):
        """
        Resolve a prompt into a finalized Request.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: raw line; split with the arbor scanner (quotes and escapes).
          • Iterable[str]: pre-split tokens.
        """
        if prompt is Unset:
            return self.resolve(sys.argv[1:])
        if isinstance(prompt, str):
            return self.resolve(scan(prompt, **self.options))
        return self.resolve(prompt)

    def __invoke__(self, prompt=Unset, /):
        """
        Load the prompt and dispatch the request; returns the callback's result.
        """
        return self.load(prompt).dispatch()

    def __rich_repr__(self):
        yield "actions", self.actions
        yield "shell", self._shell
        yield "fancy", self._fancy
        yield "colorful", self._colorful
        yield "prog", self._prog


def invoke(object, prompt=Unset, /):
    """
    Convenience runner: load + dispatch through an object implementing __invoke__.

    Parameters
    - object: a Registry (or anything providing __invoke__(prompt)).
    - prompt: Unset (sys.argv[1:]) | str (scanned) | Iterable[str].

    Returns
    - the dispatched callback's result (None for an action without callback).
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)
    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method")


__all__ = (
    "Registry",
    "invoke",
)
