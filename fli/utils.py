"""
Fli utilities (small helpers shared by every layer)

Scope
- Building blocks used across the package for consistent lookups and messages.
- Public-but-internal leaning: stable enough for consumers, written primarily
  for the options/parsing/commands layers.

Overview
- UnsetType / Unset
  • Singleton sentinel meaning “not provided”, distinct from None.

- coalesce(value, default=None)
  • Replace Unset with a default while keeping None/0/""/[] untouched.

- rename(callable, name) / @rename("name")
  • Give generated handlers a stable __name__/__qualname__ for tracebacks and logs.

- mirror("attr")
  • Read-only property over a private backing field (self._attr); containers are
    handed out as fresh copies so registries cannot be mutated from outside.

- canonicalize(name)
  • The one place where dash normalization lives. Every loose lookup (preserved
    options, inheritance marking, callback-data lookups) walks its spellings.

- ordinal(number)
  • 1-based position rendered for messages (“first”, “second”, “11th”...).

- suggest(word, candidates)
  • Close matches for “did you mean ...?” hints, backed by difflib.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> canonicalize("help")
    ('help', '-help', '--help')
    >>> canonicalize("--help")
    ('--help', '-help', 'help')
    >>> ordinal(3)
    'third'
"""
import builtins
import difflib
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for parameters that were not provided at all.

    Fli uses None as a meaningful payload (an optional option with no value,
    a missing handler), so “absent” needs its own marker. Only one instance,
    Unset, ever exists.

    - bool(Unset) is False.
    - repr(Unset) is "Unset".
    - The type is sealed.
    """

    def __or__(self, other, /):
        # Allows `str | Unset` in isinstance checks and annotations.
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
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
    Return `object` unless it is Unset, in which case return `default`.

    Falsey values (None, 0, "", []) are real values and are kept as-is.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set __name__/__qualname__ on a callable, or build a decorator doing so.

    Forms
    - rename(callable, name) -> callable
    - rename(name) -> decorator

    Raises
    - TypeError on a non-callable target, a non-string name, a callable whose
      attributes cannot be updated, or a wrong number of arguments.
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


def _detach(object):
    """
    Copy containers recursively so callers never hold the registry's own lists/dicts.

    Strings and scalars come back unchanged; mapping keys are kept as they are.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_detach, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_detach, object.values())))
    elif isinstance(object, Set):
        return set(map(_detach, object))
    return object


def mirror(name, /):
    """
    Build a read-only property that reads `self._{name}`.

    Container values are detached copies; everything else is returned as-is
    (so ValueTypes objects stay the registry's own instances).
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def canonicalize(name, /):
    """
    Return the lookup spellings for a flag or option name, in priority order.

    The name is tried verbatim first, then with its leading dashes replaced by
    one dash, two dashes and none. Duplicates are dropped while keeping order,
    so "-h", "--help", "help" and "h" can all reach the same registry entry.

    Raises
    - TypeError: if name is not a string.
    """
    if not isinstance(name, str):
        raise TypeError("canonicalize() argument must be a string")
    stem = name.lstrip("-")
    return tuple(dict.fromkeys((name, "-" + stem, "--" + stem, stem)))


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are words ("first"…"tenth").
    - Other numbers get numeric suffixes, with the 11th/12th/13th exception.
    """
    try:
        return (
            "first", "second", "third", "fourth", "fifth",
            "sixth", "seventh", "eighth", "ninth", "tenth",
        )[number - 1] if number > 0 else f"{number}th"
    except IndexError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"
    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


def suggest(word, candidates, /, limit=3):
    """Closest candidates to `word`, best first (empty when nothing is close)."""
    return difflib.get_close_matches(word, [str(candidate) for candidate in candidates], limit)


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
    "canonicalize",
    "ordinal",
    "suggest",
)
