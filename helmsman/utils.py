"""
Helmsman utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the value, flag, matcher and command layers.
- Public-but-internal leaning: stable enough for consumers, designed primarily
  to keep the higher layers terse.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None
    or with an empty string (an empty default is a legitimate, distinct literal).

- coalesce(value, default=None)
  • Replace Unset with a concrete default, preserving falsey values like ""/0/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated callables (getters, wrappers).

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) as a
    fresh copy for containers, so callers cannot mutate declared configuration.

- splitnames(text)
  • Split a comma-separated alias declaration ("i, input") into clean names.

- unquote(text)
  • Strip one pair of matching surrounding quotes ('a b' or "a b").

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> splitnames("i, input")
    ('i', 'input')
    >>> unquote("'a b'")
    'a b'
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Flags accept "" as a real literal default, and None is not a string, so the
    declaration surface needs a third state meaning “nothing was declared”.
    A single instance, Unset, is exposed for use as that default.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and "".
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable: this type is sealed.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations and isinstance checks (e.g., str | Unset).
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when Unset appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns object unless it is Unset, in which case default is returned.
    Falsey values like None, 0, "" or [] are preserved as-is.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce("", "fallback")     -> ""
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator

    Raises
    - TypeError on a non-callable target, a non-string name, or a wrong arity.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values so the caller receives detached data.

    - Sequence (non-string) → tuple (declaration order is meaningful, mutation is not).
    - Mapping → dict with processed values.
    - Set → frozenset.
    - Anything else → returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str | bytes):
        return tuple(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return frozenset(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads "_{name}" on the instance and returns a
    detached copy for container types.

    Example
    - Given self._flags, declare flags = mirror("flags") to expose it safely.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


def splitnames(text, /):
    """
    Split a comma-separated alias declaration into a tuple of names.

    Surrounding whitespace is dropped and empty segments are ignored, so
    "i, input" and "i,input," both yield ("i", "input"). Order is preserved:
    the first name is the primary one (used in display paths).
    """
    if not isinstance(text, str):
        raise TypeError("splitnames() argument must be a string")
    return tuple(name for segment in text.split(",") if (name := segment.strip()))


def unquote(text, /):
    """
    Strip one pair of matching surrounding quotes.

    Only a value fully wrapped in the same quote character is touched:
    "'a b'" → "a b", '"x"' → "x", "'x" → "'x", "'" → "'".
    """
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "splitnames",
    "unquote",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
