"""
Arbor action layer: declare, compose and freeze the action tree.

What this module provides
- Action: a named command node owning
  • an ordered tuple of positional Argument specs,
  • Field and Flag specs sharing one name space (titles and shorts),
  • child actions keyed by keyword,
  • an optional callback that receives the resolved Request.
- action(...): create an Action from a callback or return a decorator that does.

Lifecycle
- An Action is mutable while it is being built: argument(), field(), flag(),
  action() and bind() validate their input and return the action (or the
  callback, for bind) so calls can be chained or used as decorators.
- Inserting an action under a parent or into a Registry freezes it; a frozen
  action rejects any further mutation with FrozenActionError. The tree is
  therefore complete and read-only by the time any input is resolved.
- Each action can be attached once (AttachedActionError otherwise), so the
  structure stays a strict tree.

Quick start
    from arbor import Action, Argument, Field, Flag, Registry

    deploy = (
        Action("deploy", descr="ship a build")
        .argument(Argument("target"))
        .field(Field("env", "e", default="prod"))
        .flag(Flag("verbose", "v"))
    )

    @deploy.action
    def rollback(request):
        ...  # undo the last deployment

    registry = Registry()
    registry.insert(deploy)
"""
import functools
import inspect
import logging
import operator
import re

from rich.text import Text

from .arguments import Argument, Field, Flag
from .faults import *
from .utils import *

logger = logging.getLogger(__name__)


class ActionType(type):
    """
    Metaclass giving actions a stable __repr__/__rich_repr__ and read-only
    properties for every name listed in __introspectable__.

    __displayable__ (if set) narrows which properties are shown by __rich_repr__;
    otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

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
            - action(keyword='deploy', descr=None, ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _attach(children, child, *, owner):
    """
    Register a child action under its owner (a parent action or a registry).

    Behavior
    - Rejects anything that is not an Action.
    - Rejects an action that already belongs to another owner.
    - Rejects a keyword already taken among the siblings.
    - Freezes the child (and, through it, its whole subtree) on success.

    Parameters
    - children: dict[str, Action]
      The owner's keyword-keyed child storage, mutated in place.
    - child: Action
    - owner: str
      Human-readable owner label for messages (e.g. "registry", "action 'deploy'").
    """
    if not isinstance(child, Action):
        raise TypeError(f"{owner} children must be actions")
    if child._attached:
        raise AttachedActionError(
            f"action {child.keyword!r} already belongs to another owner",
            title="attached action",
            code=FaultCode.ATTACHED_ACTION,
            hint="create a separate action instead of inserting the same one twice",
        )
    if children.setdefault(child.keyword, child) is not child:
        raise DuplicateKeywordError(
            f"{owner} keyword {child.keyword!r} is already in use",
            title="duplicate keyword",
            code=FaultCode.DUPLICATE_KEYWORD,
            hint="keywords must be unique among siblings",
        )
    child._attached = True
    child._freeze()
    logger.debug("attached action %r under %s", child.keyword, owner)


class Action(metaclass=ActionType):
    """
    Named command node of the action tree.

    Responsibilities
    - Hold the positional schema (arguments), the switch schema (fields and
      flags, addressed by title or short) and the children.
    - Enforce the name-space invariant: titles and shorts of all fields and
      flags on one action are pairwise distinct.
    - Carry the callback that Request.dispatch() runs.

    Properties (read-only views)
    - keyword, descr, callback
    - arguments: tuple[Argument, ...]
    - fields / flags: mapping title -> spec
    - switches: mapping title-or-short -> spec (the shared name space)
    - children: mapping keyword -> Action
    - frozen: whether the action has been inserted somewhere
    """

    __introspectable__ = (
        "keyword",
        "descr",
        "arguments",
        "fields",
        "flags",
        "switches",
        "children",
        "callback",
        "frozen",
    )

    __displayable__ = (
        "keyword",
        "descr",
        "arguments",
        "fields",
        "flags",
        "children",
    )

    def __init__(
            self,
            keyword,
            /,
            descr=Unset,
            *,
            arguments=(),
            fields=(),
            flags=(),
            children=(),
            callback=Unset,
    ):
        """
        Construct an action, optionally declaring its whole schema at once.

        Parameters
        - keyword: str
          Name selecting this action; trimmed, must be non-empty.
        - descr: Unset | str | Text
          Short description. If Unset, becomes None.
        - arguments, fields, flags: Iterable of specs
          Shorthand for repeated argument()/field()/flag() calls (same validation).
        - children: Iterable[Action]
          Shorthand for repeated action() calls.
        - callback: Unset | Callable[[Request], Any]
          Shorthand for bind().

        Raises
        - TypeError: on a non-string keyword/descr or a wrong spec type.
        - EmptyNameError: on an empty keyword.
        - NameCollisionError / DuplicateKeywordError: see field()/flag()/action().
        """
        if not isinstance(keyword, str):
            raise TypeError(f"{type(self).__typename__} 'keyword' must be a string")
        elif not (keyword := keyword.strip()):
            raise EmptyNameError(
                f"{type(self).__typename__} 'keyword' cannot be empty",
                title="empty name",
                code=FaultCode.EMPTY_NAME,
                hint="give the action a non-empty keyword",
            )
        if not isinstance(descr, str | Text | Unset):
            raise TypeError(f"{type(self).__typename__} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"{type(self).__typename__} 'descr' cannot be empty")

        self._keyword = keyword
        self._descr = coalesce(descr)
        self._arguments = []
        self._fields = {}
        self._flags = {}
        self._switches = {}
        self._children = {}
        self._callback = None
        self._frozen = False
        self._attached = False

        for argument in arguments:
            self.argument(argument)
        for field in fields:
            self.field(field)
        for flag in flags:
            self.flag(flag)
        for child in children:
            self.action(child)
        if callback is not Unset:
            self.bind(callback)

    def _ensure_mutable(self):
        if self._frozen:
            raise FrozenActionError(
                f"action {self._keyword!r} is frozen and cannot be modified",
                title="frozen action",
                code=FaultCode.FROZEN_ACTION,
                hint="declare everything before inserting the action into a parent or a registry",
            )

    def _freeze(self):
        self._frozen = True

    def _claim(self, spec):
        """
        Reserve every name of a field/flag in the shared switch name space.
        """
        seen = set()
        for key in spec.keys:
            if key in self._switches or key in seen:
                owner = self._switches.get(key, spec)
                raise NameCollisionError(
                    f"{type(spec).__typename__} name {key!r} collides with "
                    f"{type(owner).__typename__} {owner.title!r} on action {self._keyword!r}",
                    title="name collision",
                    code=FaultCode.NAME_COLLISION,
                    hint="field and flag titles and shorts must all be distinct within one action",
                )
            seen.add(key)
        self._switches.update(dict.fromkeys(spec.keys, spec))

    def argument(self, argument, /):
        """
        Append a positional Argument; order of calls is the positional order.
        """
        self._ensure_mutable()
        if not isinstance(argument, Argument):
            raise TypeError(f"{type(self).__typename__} arguments must be Argument specs")
        self._arguments.append(argument)
        return self

    def field(self, field, /):
        """
        Add a Field, rejecting any title/short collision with existing fields and flags.
        """
        self._ensure_mutable()
        if not isinstance(field, Field):
            raise TypeError(f"{type(self).__typename__} fields must be Field specs")
        self._claim(field)
        self._fields[field.title] = field
        return self

    def flag(self, flag, /):
        """
        Add a Flag, rejecting any title/short collision with existing fields and flags.
        """
        self._ensure_mutable()
        if not isinstance(flag, Flag):
            raise TypeError(f"{type(self).__typename__} flags must be Flag specs")
        self._claim(flag)
        self._flags[flag.title] = flag
        return self

    def bind(self, callback, /):
        """
        Bind the callback run by Request.dispatch(); can be set only once.

        Returns the callback, so it works as a decorator: @deploy.bind
        """
        self._ensure_mutable()
        if not callable(callback):
            raise TypeError(f"{type(self).__typename__} callback must be callable")
        if self._callback is not None:
            raise TypeError(f"{type(self).__typename__} callback cannot be overridden")
        self._callback = callback
        return callback

    def action(self, source=Unset, /, *args, **kwargs):
        """
        Create or attach a child action under this action.

        Modes
        - action(child): attach an existing Action (it gets frozen).
        - action(callback, ...): build an Action from the callback and attach it.
        - @action(...) / @action: decorator form of the above.

        Returns
        - the attached child Action, or a decorator in decorator mode.
        """
        self._ensure_mutable()
        if isinstance(source, Action):
            if args or kwargs:
                raise TypeError("action() cannot combine an existing action with extra metadata")
            _attach(self._children, source, owner=f"action {self._keyword!r}")
            return source

        @rename("action")
        def wrapper(source, /):
            self._ensure_mutable()
            child = action(source, *args, **kwargs)
            _attach(self._children, child, owner=f"action {self._keyword!r}")
            return child

        return wrapper(source) if source is not Unset else wrapper


def action(source=Unset, /, keyword=Unset, descr=Unset, **kwargs):
    """
    Create an Action from a callback, or return a decorator to build it later.

    Invocation modes
    - Direct callback:
        deploy = action(func, "deploy", arguments=[Argument("target")])
    - Decorator:
        @action(arguments=[Argument("target")])
        def deploy(request): ...

    Defaults
    - keyword: the callback's __name__.
    - descr: the callback's docstring (cleaned by inspect.getdoc), if any.

    Returns
    - Action | Callable[[Callable], Action]
    """
    @rename("action")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@action() must be applied to a callable")
        return Action(
            coalesce(keyword, getattr(source, "__name__", Unset)),
            coalesce(descr, inspect.getdoc(source) or Unset),
            callback=source,
            **kwargs
        )

    return wrapper(source) if source is not Unset else wrapper


__all__ = (
    "Action",
    "action",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del ActionType
