r"""
Fli value model: typed literals and option arities.

Overview
- Values
  • Str, Int, Float, Bool: the tagged union of literals an option can hold.
    Each variant knows how to re-read itself from a raw token (retype) and
    reports failures as InvalidValueError with the token, the expected type
    name and the reason.

- Arities (ValueTypes)
  • NoValue: presence-only flag, consumes nothing.
  • RequiredSingle(default): exactly one token.
  • OptionalSingle(default=None): zero or one token.
  • RequiredMultiple(values=(), expected=None): one or more tokens, exactly
    `expected` when set.
  • OptionalMultiple(values=None, maximum=None): zero or more tokens, at most
    `maximum` when set.
  The default Value(s) of an arity are templates: a token is re-typed with the
  variant of the template sitting at its position (string when there is none).

Parse rules
- integer: base-10 signed, ASCII digits, 64-bit range.
- float: decimal or scientific notation, or inf/infinity/nan (any case).
- boolean: {true, t, 1, yes, y} / {false, f, 0, no, n}, case-insensitive.
- string: verbatim.

Equality
- Values of different variants never compare equal.
- Float equality tolerates a difference below sys.float_info.epsilon.

Quick example:
    >>> Int().retype("3000")
    Int(3000)
    >>> RequiredMultiple([Int(), Float()], 2).label
    'multiple (exactly 2)'
"""
import copy
import re
import sys

from .faults import InvalidValueError
from .utils import Unset, coalesce

_INTEGER = re.compile(r"[+-]?[0-9]+")
_FLOAT = re.compile(r"[+-]?(?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)", re.IGNORECASE)
_TRUTHY = frozenset({"true", "t", "1", "yes", "y"})
_FALSY = frozenset({"false", "f", "0", "no", "n"})


class Value:
    """
    Base of the literal variants.

    Subclasses declare __typename__ (used in messages), __default__ (payload
    when constructed without argument) and implement _check/_parse.
    """
    __slots__ = ("_data",)
    __typename__ = "value"
    __default__ = None

    def __init__(self, data=Unset, /):
        self._data = self._check(coalesce(data, type(self).__default__))

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        cls.__match_args__ = ("data",)

    @property
    def data(self):
        return self._data

    @classmethod
    def _check(cls, data):
        raise NotImplementedError

    @classmethod
    def _parse(cls, token):
        raise NotImplementedError

    def retype(self, token, /):
        """
        Replace the payload with `token` read under this variant's rules.

        Returns self so calls can be chained on a fresh copy:
        `copy.copy(template).retype("42")`.

        Raises
        - TypeError: if token is not a string.
        - InvalidValueError: if the token cannot be read as this variant
          (options: input, expected, reason).
        """
        if not isinstance(token, str):
            raise TypeError(f"{type(self).__typename__} token must be a string")
        try:
            self._data = self._parse(token)
        except ValueError as error:
            raise InvalidValueError(
                "cannot read %r as %s: %s" % (token, type(self).__typename__, error),
                input=token,
                expected=type(self).__typename__,
                reason=str(error),
                hint="pass a valid %s (for example: %s)" % (type(self).__typename__, type(self).__example__),
            ) from None
        return self

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return type(self) is type(other) and self._data == other._data

    def __hash__(self):
        return hash((type(self), self._data))

    def __copy__(self):
        return type(self)(self._data)

    def __deepcopy__(self, memo):
        return self.__copy__()

    def __repr__(self):
        return f"{type(self).__name__}({self._data!r})"

    def __str__(self):
        return str(self._data)


class Str(Value):
    __slots__ = ()
    __typename__ = "string"
    __default__ = ""
    __example__ = "text"

    @classmethod
    def _check(cls, data):
        if not isinstance(data, str):
            raise TypeError("string value must be a str")
        return data

    @classmethod
    def _parse(cls, token):
        return token


class Int(Value):
    __slots__ = ()
    __typename__ = "integer"
    __default__ = 0
    __example__ = "42"

    @classmethod
    def _check(cls, data):
        # bool is an int subclass, but True is not an integer literal here
        if not isinstance(data, int) or isinstance(data, bool):
            raise TypeError("integer value must be an int")
        if not -2 ** 63 <= data < 2 ** 63:
            raise ValueError("integer value must fit in 64 bits")
        return data

    @classmethod
    def _parse(cls, token):
        if not _INTEGER.fullmatch(token):
            raise ValueError("invalid digit found in string" if token else "cannot parse integer from empty string")
        number = int(token)
        if not -2 ** 63 <= number < 2 ** 63:
            raise ValueError("number too large to fit in target type")
        return number


class Float(Value):
    __slots__ = ()
    __typename__ = "float"
    __default__ = 0.0
    __example__ = "3.14"

    @classmethod
    def _check(cls, data):
        if not isinstance(data, int | float) or isinstance(data, bool):
            raise TypeError("float value must be a number")
        return float(data)

    @classmethod
    def _parse(cls, token):
        if not _FLOAT.fullmatch(token):
            raise ValueError("invalid float literal" if token else "cannot parse float from empty string")
        return float(token)

    def __eq__(self, other):
        if not isinstance(other, Float):
            return super().__eq__(other)
        if self._data == other._data:  # covers infinities
            return True
        return abs(self._data - other._data) < sys.float_info.epsilon

    __hash__ = Value.__hash__


class Bool(Value):
    __slots__ = ()
    __typename__ = "boolean"
    __default__ = False
    __example__ = "true"

    @classmethod
    def _check(cls, data):
        if not isinstance(data, bool):
            raise TypeError("boolean value must be a bool")
        return data

    @classmethod
    def _parse(cls, token):
        if (lowered := token.lower()) in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
        raise ValueError("expected one of true/t/1/yes/y or false/f/0/no/n")


def _sanitize_value(cls, value, *, optional=False):
    if value is None and optional:
        return None
    if not isinstance(value, Value):
        raise TypeError(f"{cls.__typename__} default must be a value (Str, Int, Float or Bool)")
    return copy.copy(value)


def _sanitize_values(cls, values, *, optional=False):
    if values is None and optional:
        return None
    if isinstance(values, str | Value):
        raise TypeError(f"{cls.__typename__} values must be an iterable of values")
    return [_sanitize_value(cls, value) for value in values]


def _sanitize_count(cls, count, name):
    if count is None:
        return None
    if not isinstance(count, int) or isinstance(count, bool):
        raise TypeError(f"{cls.__typename__} '{name}' must be an int")
    if count < 1:
        raise ValueError(f"{cls.__typename__} '{name}' must be at least 1")
    return count


class ValueTypes:
    """
    Arity/requiredness contract attached to an option.

    Every variant exposes:
    - expects_value(): False only for NoValue.
    - required: whether at least one token must follow the flag.
    - as_str() / as_strings(): string payload(s) or None.
    - label: short arity description used by help tables.

    Instances compare by variant and payload, and clone deeply through
    copy.replace()/copy.copy() so registries never share value objects.
    """
    __slots__ = ()
    __typename__ = "value-types"
    __fields__ = ()
    required = False

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        cls.__match_args__ = cls.__fields__

    def expects_value(self):
        return True

    def as_str(self):
        return None

    def as_strings(self):
        return None

    @property
    def label(self):
        raise NotImplementedError

    def __eq__(self, other):
        if not isinstance(other, ValueTypes):
            return NotImplemented
        return type(self) is type(other) and all(
            getattr(self, field) == getattr(other, field) for field in type(self).__fields__
        )

    __hash__ = None

    def __replace__(self, **overrides):
        return type(self)(*(overrides.get(field, getattr(self, field)) for field in type(self).__fields__))

    def __copy__(self):
        return self.__replace__()

    def __deepcopy__(self, memo):
        return self.__replace__()

    def __repr__(self):
        return f"{type(self).__name__}({', '.join(repr(getattr(self, field)) for field in type(self).__fields__)})"


class NoValue(ValueTypes):
    """Presence-only flag: the token itself is the information."""
    __slots__ = ()
    __typename__ = "no-value"

    def expects_value(self):
        return False

    @property
    def label(self):
        return "none"


class RequiredSingle(ValueTypes):
    __slots__ = ("_value",)
    __typename__ = "required-single"
    __fields__ = ("value",)
    required = True

    def __init__(self, value, /):
        self._value = _sanitize_value(type(self), value)

    @property
    def value(self):
        return self._value

    def as_str(self):
        return self._value.data if isinstance(self._value, Str) else None

    @property
    def label(self):
        return "single (required)"


class OptionalSingle(ValueTypes):
    __slots__ = ("_value",)
    __typename__ = "optional-single"
    __fields__ = ("value",)

    def __init__(self, value=None, /):
        self._value = _sanitize_value(type(self), value, optional=True)

    @property
    def value(self):
        return self._value

    def as_str(self):
        return self._value.data if isinstance(self._value, Str) else None

    @property
    def label(self):
        return "single (optional)"


class RequiredMultiple(ValueTypes):
    __slots__ = ("_values", "_expected")
    __typename__ = "required-multiple"
    __fields__ = ("values", "expected")
    required = True

    def __init__(self, values=(), expected=None, /):
        self._values = _sanitize_values(type(self), values)
        self._expected = _sanitize_count(type(self), expected, "expected")

    @property
    def values(self):
        return list(self._values)

    @property
    def expected(self):
        return self._expected

    @property
    def maximum(self):
        return self._expected

    def as_strings(self):
        if not all(isinstance(value, Str) for value in self._values):
            return None
        return [value.data for value in self._values]

    @property
    def label(self):
        if self._expected is not None:
            return f"multiple (exactly {self._expected})"
        return "multiple (1+)"


class OptionalMultiple(ValueTypes):
    __slots__ = ("_values", "_maximum")
    __typename__ = "optional-multiple"
    __fields__ = ("values", "maximum")

    def __init__(self, values=None, maximum=None, /):
        self._values = _sanitize_values(type(self), values, optional=True)
        self._maximum = _sanitize_count(type(self), maximum, "maximum")

    @property
    def values(self):
        return list(self._values) if self._values is not None else None

    @property
    def maximum(self):
        return self._maximum

    def as_strings(self):
        if self._values is None:
            return None
        if not all(isinstance(value, Str) for value in self._values):
            return None
        return [value.data for value in self._values]

    @property
    def label(self):
        if self._maximum is not None:
            return f"multiple (max {self._maximum})"
        return "multiple (0+)"


__all__ = (
    "Value",
    "Str",
    "Int",
    "Float",
    "Bool",
    "ValueTypes",
    "NoValue",
    "RequiredSingle",
    "OptionalSingle",
    "RequiredMultiple",
    "OptionalMultiple",
)
