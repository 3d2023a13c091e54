"""
Fli option registry: option descriptors, per-command registry and its builder.

Overview
- OptionKind
  • NORMAL: an ordinary option, its value is resolved by the parser and read
    by the command callback.
  • PRESERVED: an option bound to an immediate handler (help, version...).
    When matched, the handler runs instead of the command callback.

- SingleOption
  • One descriptor per option: name (internal id), description, short flag
    (`-x`), long flag (`--xxx`), current value (ValueTypes), kind, handler.
  • There is a single table of descriptors per command: preserved options are
    regular entries tagged PRESERVED, not a parallel structure.

- CommandOptionsParser
  • Ordered descriptors plus short/long flag maps for O(1) lookup.
  • Exact lookups (has_option/get_option) are what the token scanner uses.
  • Loose lookups (find_option/get_preserved_option/mark_inheritable) walk
    canonicalize() spellings, so "v", "-v" and "--v" style inputs agree.
  • Inheritance: options marked inheritable are cloned into a fresh builder by
    inheritable_options_builder(); clones never share state with the source.

- CommandOptionsParserBuilder
  • Collects options and materializes the registry on first build(); later
    build() calls return the same registry.

Quirk
- Registering a second option with an already used flag silently re-points
  the flag to the newer option. The older descriptor stays in the list.
"""
import copy
import re
from enum import Enum

from .faults import (
    InvalidFlagFormatError,
    InvalidOptionConfigError,
    OptionNotFoundError,
    UnexpectedValueError,
)
from .utils import canonicalize, mirror, suggest
from .values import ValueTypes

_SHORT_FLAG = re.compile(r"-[^\W_]+")
_LONG_FLAG = re.compile(r"--[^\W_]+(-[^\W_]+)*")


class OptionKind(Enum):
    NORMAL = "normal"
    PRESERVED = "preserved"


def _sanitize_option(metadata, /):
    """
    Internal: validate descriptor metadata in place.

    Raises
    - TypeError: wrong types for name/description/flags/value/handler.
    - InvalidOptionConfigError: empty name, no flag at all, preserved option
      without a handler.
    - InvalidFlagFormatError: a flag that is not `-x` / `--word` shaped.
    """
    for field in ("name", "description", "short_flag", "long_flag"):
        if not isinstance(metadata[field], str):
            raise TypeError(f"single-option '{field}' must be a string")
        metadata[field] = metadata[field].strip()

    if not (name := metadata["name"]):
        raise InvalidOptionConfigError(
            "option name cannot be empty",
            option=name,
            reason="empty name",
            hint="give the option an internal name (for example: 'verbose')",
        )

    if not metadata["short_flag"] and not metadata["long_flag"]:
        raise InvalidOptionConfigError(
            "option %r needs a short or a long flag" % name,
            option=name,
            reason="no flags",
            hint="pass a short flag like '-v', a long flag like '--verbose', or both",
        )

    for field, pattern, example in (
        ("short_flag", _SHORT_FLAG, "-v"),
        ("long_flag", _LONG_FLAG, "--verbose"),
    ):
        if (flag := metadata[field]) and not pattern.fullmatch(flag):
            raise InvalidFlagFormatError(
                "invalid flag format %r for option %r" % (flag, name),
                option=name,
                flag=flag,
                hint="flags must start with '-' or '--' (for example: %s)" % example,
            )

    if not isinstance(metadata["value"], ValueTypes):
        raise TypeError("single-option 'value' must be a value type (NoValue, RequiredSingle, ...)")
    metadata["value"] = copy.copy(metadata["value"])

    if not isinstance(metadata["kind"], OptionKind):
        raise TypeError("single-option 'kind' must be an option kind")

    if metadata["handler"] is not None and not callable(metadata["handler"]):
        raise TypeError("single-option 'handler' must be callable")

    if metadata["kind"] is OptionKind.PRESERVED and metadata["handler"] is None:
        raise InvalidOptionConfigError(
            "preserved option %r has no handler" % name,
            option=name,
            reason="missing handler",
            hint="register preserved options with add_option_with_callback()",
        )


class SingleOption:
    """
    Descriptor of one registered option.

    Fields are exposed read-only; only the owning registry replaces `value`
    (see CommandOptionsParser.update_option_value).
    """
    __slots__ = ("_name", "_description", "_short_flag", "_long_flag", "_value", "_kind", "_handler")

    name = mirror("name")
    description = mirror("description")
    short_flag = mirror("short_flag")
    long_flag = mirror("long_flag")
    value = mirror("value")
    kind = mirror("kind")
    handler = mirror("handler")

    def __init__(self, name, description, short_flag, long_flag, value, /, kind=OptionKind.NORMAL, handler=None):
        metadata = {
            "name": name,
            "description": description,
            "short_flag": short_flag,
            "long_flag": long_flag,
            "value": value,
            "kind": kind,
            "handler": handler,
        }
        _sanitize_option(metadata)
        for field, object in metadata.items():
            setattr(self, "_" + field, object)

    @property
    def flags(self):
        """Non-empty flags, short first."""
        return tuple(flag for flag in (self._short_flag, self._long_flag) if flag)

    @property
    def preserved(self):
        return self._kind is OptionKind.PRESERVED

    def __replace__(self, **overrides):
        fields = {
            "name": self._name,
            "description": self._description,
            "short_flag": self._short_flag,
            "long_flag": self._long_flag,
            "value": self._value,
            "kind": self._kind,
            "handler": self._handler,
        } | overrides
        kind, handler = fields.pop("kind"), fields.pop("handler")
        return type(self)(*fields.values(), kind=kind, handler=handler)

    def __eq__(self, other):
        if not isinstance(other, SingleOption):
            return NotImplemented
        return all(getattr(self, slot) == getattr(other, slot) for slot in self.__slots__)

    __hash__ = None

    def __rich_repr__(self):
        yield "name", self._name
        yield "short_flag", self._short_flag
        yield "long_flag", self._long_flag
        yield "value", self._value
        yield "kind", self._kind.value

    def __repr__(self):
        return f"single-option({', '.join('%s=%r' % pair for pair in self.__rich_repr__())})"


class CommandOptionsParser:
    """
    Registry of the options of one command node.

    Invariants
    - a flag maps to at most one option index (latest registration wins).
    - an index appears in the inheritable list at most once.
    """

    def __init__(self):
        self._options = []
        self._shorts = {}
        self._longs = {}
        self._inheritable = []

    def register(self, option, /):
        """Append a ready-made descriptor and index its flags."""
        if not isinstance(option, SingleOption):
            raise TypeError("register() argument must be a single-option")
        index = len(self._options)
        self._options.append(option)
        if option.short_flag:
            self._shorts[option.short_flag] = index
        if option.long_flag:
            self._longs[option.long_flag] = index
        return self

    def add_option(self, name, description, short_flag, long_flag, value, /, kind=OptionKind.NORMAL, handler=None):
        return self.register(SingleOption(name, description, short_flag, long_flag, value, kind=kind, handler=handler))

    def _position(self, flag):
        try:
            return self._shorts[flag]
        except KeyError:
            return self._longs.get(flag)

    def _locate(self, name):
        # loose lookup shared by find_option, get_preserved_option and mark_inheritable
        for spelling in canonicalize(name):
            if (index := self._position(spelling)) is not None:
                yield index

    def has_option(self, flag, /):
        return self._position(flag) is not None

    def get_option(self, flag, /):
        index = self._position(flag)
        return self._options[index] if index is not None else None

    def get_option_by_short_flag(self, flag, /):
        index = self._shorts.get(flag)
        return self._options[index] if index is not None else None

    def get_option_by_long_flag(self, flag, /):
        index = self._longs.get(flag)
        return self._options[index] if index is not None else None

    def get_options(self):
        return list(self._options)

    def get_option_expected_value_type(self, flag, /):
        option = self.get_option(flag)
        return option.value if option is not None else None

    def find_option(self, name, /):
        """
        Loose lookup: canonicalize() spellings first, then the internal name.

        Returns None when nothing matches.
        """
        for index in self._locate(name):
            return self._options[index]
        for option in reversed(self._options):
            if option.name == name:
                return option
        return None

    def get_preserved_option(self, name, /):
        """First PRESERVED option reachable through canonicalize(name), or None."""
        for index in self._locate(name):
            if (option := self._options[index]).preserved:
                return option
        return None

    def update_option_value(self, flag, value, /):
        """
        Replace the current value of the option registered under `flag`.

        Raises
        - TypeError: value is not a ValueTypes.
        - OptionNotFoundError: no option uses this exact flag.
        - UnexpectedValueError: a value-bearing arity assigned to a flag option.
        """
        if not isinstance(value, ValueTypes):
            raise TypeError("update_option_value() value must be a value type")
        if (index := self._position(flag)) is None:
            raise OptionNotFoundError(
                "option %r not found in parser" % flag,
                option=flag,
                suggestions=suggest(flag, self.flags()),
                hint="register the option before assigning it a value",
            )
        option = self._options[index]
        if not option.value.expects_value() and value.expects_value():
            raise UnexpectedValueError(
                "option %r does not accept values, but %r was provided" % (flag, value),
                option=flag,
                value=value,
                hint="pass %r without a value" % flag,
            )
        option._value = copy.copy(value)

    def mark_inheritable(self, flag, /):
        """
        Mark an option so subcommands created afterwards receive a copy of it.

        Raises
        - OptionNotFoundError: nothing matches `flag` (after canonicalization).
        """
        for index in self._locate(flag):
            if index not in self._inheritable:
                self._inheritable.append(index)
            return
        raise OptionNotFoundError(
            "cannot mark unknown option %r as inheritable" % flag,
            option=flag,
            suggestions=(suggestions := suggest(flag, self.flags())),
            hint=("did you mean %r?" % suggestions[0]) if suggestions else "register the option before marking it",
        )

    def mark_inheritable_many(self, flags, /):
        """Mark each flag in turn; the first failure stops and earlier marks stay."""
        if isinstance(flags, str):
            raise TypeError("mark_inheritable_many() argument must be an iterable of flags, not a string")
        for flag in flags:
            self.mark_inheritable(flag)

    def is_inheritable(self, flag, /):
        return any(index in self._inheritable for index in self._locate(flag))

    def inheritable_options(self):
        return [self._options[index] for index in self._inheritable]

    def inheritable_options_builder(self):
        """
        New, independent builder pre-populated with clones of the inheritable options.

        Inheritable marks themselves are not carried over.
        """
        builder = CommandOptionsParserBuilder()
        for option in self.inheritable_options():
            builder.register(copy.replace(option))
        return builder

    def flags(self):
        return [*self._shorts, *self._longs]

    def __len__(self):
        return len(self._options)

    def __iter__(self):
        return iter(self._options)

    def __contains__(self, flag):
        return self.has_option(flag)

    def __copy__(self):
        clone = type(self)()
        for option in self._options:
            clone.register(copy.replace(option))
        # re-apply the flag maps verbatim so overwritten flags keep pointing where they did
        clone._shorts = dict(self._shorts)
        clone._longs = dict(self._longs)
        clone._inheritable = list(self._inheritable)
        return clone

    def __rich_repr__(self):
        yield "options", self._options
        yield "inheritable", [self._options[index].name for index in self._inheritable]

    def __repr__(self):
        return f"command-options-parser({', '.join(option.name for option in self._options)})"


class CommandOptionsParserBuilder:
    """
    Collects options for a command and materializes its registry on demand.

    All mutators return the builder so declarations can be chained.
    """

    def __init__(self):
        self._pending = []
        self._parser = None

    def register(self, option, /):
        if self._parser is not None:
            self._parser.register(option)
        else:
            if not isinstance(option, SingleOption):
                raise TypeError("register() argument must be a single-option")
            self._pending.append(option)
        return self

    def add_option(self, name, description, short_flag, long_flag, value, /, kind=OptionKind.NORMAL, handler=None):
        return self.register(SingleOption(name, description, short_flag, long_flag, value, kind=kind, handler=handler))

    def build(self):
        if self._parser is None:
            self._parser = CommandOptionsParser()
            for option in self._pending:
                self._parser.register(option)
            self._pending.clear()
        return self._parser

    def __repr__(self):
        return f"command-options-parser-builder(built={self._parser is not None})"


__all__ = (
    "OptionKind",
    "SingleOption",
    "CommandOptionsParser",
    "CommandOptionsParserBuilder",
)
