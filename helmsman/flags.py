"""
Helmsman flag registry entries.

Overview
- Flag: binds a name set ("i, input"), a Value (bound to a storage Cell at
  construction), and the declaration metadata: literal default, environment
  fallbacks, usage/placeholder text, the no-argument default and the hidden bit.
- lookup(flags, name): find the flag owning a name (aliases included).

Lifecycle
- construction: names are validated and the destination is bound to its Value
  variant; an unsupported destination kind is a TypeError right here.
- initialize(): once per run, before parsing. Clears the visited bit, then seeds
  the value from the first non-empty environment variable, or else from the
  literal default. Neither source marks the flag visited.
- set_value(text): used by the matcher; strips one pair of matching quotes,
  parses, and marks the flag visited.

Precedence
- literal default < environment value < argument line.

Quick example
    >>> port = Cell(int)
    >>> flag = Flag("p, port", port, default="8080", envvar="APP_PORT, PORT")
    >>> flag.initialize()
    >>> port.value
    8080
"""
import copy
import functools
import logging
import operator
import os
import re

from .utils import *
from .values import Cell, Kind, Value, bind

logger = logging.getLogger(__name__)


class FlagType(type):
    """
    Metaclass exposing declared fields as read-only properties.

    - every name in __introspectable__ becomes a mirror() property over "_<name>".
    - __typename__ is the hyphenated lowercase class name, used in messages.
    - __repr__/__rich_repr__ list the introspectable fields.
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
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_names(cls, text):
    if not isinstance(text, str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    if not (names := splitnames(text)):
        raise ValueError(f"{cls.__typename__} must specify at least one name")
    seen = set()
    for name in names:
        if not re.fullmatch(r"[^\s=,-][^\s=,]*", name):
            raise ValueError(f"{cls.__typename__} name {name!r} is not a valid option name")
        if name in seen:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        seen.add(name)
    return names


def _sanitize_text(cls, field, object):
    if not isinstance(object, str | Unset):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    return object


class Flag(metaclass=FlagType):
    """
    Named, typed command-line option bound to external storage.

    Parameters
    - name: str
      Comma-separated aliases; single characters are short (-x), longer names are
      long (--name). The first alias is the primary name.
    - value: Cell | Value | Kind | str | type | Unset
      Destination. A Cell or Value is used as given; a kind or type creates a fresh
      Cell; Unset creates a string cell (a boolean cell when isbool is set).
    - default: str
      Literal applied by initialize() when no environment variable provides one.
    - envvar: str | Iterable[str]
      Environment variable names probed in order ("A, B" or ("A", "B")).
    - usage, placeholder: help text (placeholder defaults to "value").
    - noarg: str
      Value used when the flag is given without an argument; such a flag never
      consumes the next token. Booleans default it to "true".
    - isbool: bool
      Shorthand for a boolean destination when no value is given.
    - hidden: bool
      Suppress from help output.
    """

    __introspectable__ = (
        "name",
        "names",
        "usage",
        "placeholder",
        "default",
        "envvar",
        "noarg",
        "hidden",
    )

    def __init__(
            self,
            name,
            /,
            value=Unset,
            default=Unset,
            envvar=(),
            usage=Unset,
            placeholder=Unset,
            noarg=Unset,
            *,
            isbool=False,
            hidden=False,
    ):
        cls = type(self)
        self._names = _sanitize_names(cls, name)
        self._name = self._names[0]

        if isinstance(value, Value):
            self._value = value
        elif isinstance(value, Cell):
            self._value = bind(value)
        elif value is Unset:
            self._value = bind(Cell(bool if isbool else str))
        else:
            self._value = bind(Cell(Kind.resolve(value)))
        self._initial = copy.copy(self._value.cell.value)

        if isinstance(envvar, str):
            envvar = splitnames(envvar)
        elif not all(isinstance(variable, str) for variable in envvar):
            raise TypeError(f"{cls.__typename__} 'envvar' must be a string or an iterable of strings")

        self._default = _sanitize_text(cls, "default", default)
        self._envvar = tuple(variable.strip() for variable in envvar if variable.strip())
        self._usage = coalesce(_sanitize_text(cls, "usage", usage), "")
        self._placeholder = coalesce(_sanitize_text(cls, "placeholder", placeholder), "value")
        self._noarg = _sanitize_text(cls, "noarg", noarg)
        if self._noarg is Unset and self._value.isbool:
            self._noarg = "true"
        self._hidden = bool(hidden)
        self._visited = False

    @property
    def value(self):
        """
        The bound Value (parse/render capability).
        """
        return self._value

    @property
    def cell(self):
        return self._value.cell

    @property
    def isbool(self):
        return self._value.isbool

    @property
    def visited(self):
        """
        True once the flag was matched on the argument line during this run.
        """
        return self._visited

    def initialize(self):
        """
        Restore the declaration-time content, reset the visited bit and seed the
        value from environment or default.

        The first environment variable holding a non-empty value wins; the literal
        default is applied only when no variable does. Malformed literals raise
        InvalidValueError like any other set.
        """
        self._visited = False
        self._value.cell.value = copy.copy(self._initial)
        for variable in self._envvar:
            if text := os.environ.get(variable):
                logger.debug("flag %r seeded from environment variable %s", self._name, variable)
                self._value.set(unquote(text))
                return
        if self._default:
            self._value.set(unquote(self._default))

    def set_value(self, text, /):
        """
        Parse text into the bound value (quotes stripped) and mark the flag visited.
        """
        self._value.set(unquote(text))
        self._visited = True

    def get_value(self):
        """
        Rendered text of the current value.
        """
        return str(self._value)


def lookup(flags, name, /):
    """
    Return the first flag owning `name` among its aliases, or None.
    """
    for flag in flags:
        if name in flag.names:
            return flag
    return None


__all__ = (
    "Flag",
    "lookup",
)

# Keep the metaclass out of star-imports and autocompletion.
del FlagType
