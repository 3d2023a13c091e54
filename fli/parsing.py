r"""
Fli token parsing: chain entries, the parse state machine and the input parser.

Overview
- CommandChain entries (the output alphabet of a parse)
  • SubCommand(name): a child command was entered.
  • Option(flag, value): a regular option, with its resolved ValueTypes.
    Flags are recorded as Option(flag, NoValue()); that entry is the only
    record of “this flag was passed”.
  • Argument(value): a positional token.
  • PreservedOption(flag): a preserved option (help, version...) was matched.
  Entries compare by type and fields and support structural pattern matching.

- ParseState
  • Modes: START, IN_COMMAND, IN_OPTION, ACCEPTING_VALUE, BREAKING,
    IN_ARGUMENT, END. ACCEPTING_VALUE carries the pending flag and arity.
  • advance() consults a static transition table; an illegal move raises
    InvalidStateTransitionError and leaves the state untouched.

- InputArgsParser
  • prepare(command) scans the tokens once, left to right, consulting the
    command tree, and produces a flat chain. Entering a subcommand appends
    SubCommand(name) and re-runs the same algorithm against the child with the
    remaining tokens (tail delegation, same chain).
  • Values are re-typed from the option's default template and committed to
    the command's registry as they are read.
  • prepare() is idempotent once it succeeded.

Token rules (in priority order, per token)
1. after a legal `--`, everything is an Argument, including further `--`.
2. `--` is legal only right after an option (IN_OPTION / ACCEPTING_VALUE).
3. a pending option consumes values according to its arity; a recognized flag
   spelling is always a flag, never a value.
4. preserved options (loose spelling), then regular options (exact spelling).
5. subcommand names.
6. unknown command when the node takes no positionals and a command name is
   expected.
7. positional argument.

Quick example:
    >>> parser = InputArgsParser("", ["-o", "out.txt"])
    >>> parser.prepare(root).get_command_chain()
    [Option('-o', RequiredSingle(Str('out.txt')))]
"""
import copy
from enum import Enum

from .context import Context
from .faults import (
    CommandMismatchError,
    InternalError,
    InvalidStateTransitionError,
    InvalidValueError,
    MissingValueError,
    ParserNotPreparedError,
    UnexpectedTokenError,
    UnknownCommandError,
    UnknownOptionError,
    ValueCountMismatchError,
)
from .utils import Unset, coalesce, ordinal, suggest
from .values import (
    NoValue,
    OptionalMultiple,
    OptionalSingle,
    RequiredMultiple,
    RequiredSingle,
    Str,
)

BREAK = "--"


class CommandChain:
    """
    Base of the chain entries.

    Subclasses list their fields in __fields__; equality, hashing, repr and
    pattern matching are derived from it.
    """
    __slots__ = ()
    __fields__ = ()

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        cls.__match_args__ = cls.__fields__

    def _astuple(self):
        return tuple(getattr(self, field) for field in type(self).__fields__)

    def __eq__(self, other):
        if not isinstance(other, CommandChain):
            return NotImplemented
        return type(self) is type(other) and self._astuple() == other._astuple()

    def __hash__(self):
        return hash((type(self), *map(repr, self._astuple())))

    def __repr__(self):
        return f"{type(self).__name__}({', '.join(map(repr, self._astuple()))})"


class SubCommand(CommandChain):
    __slots__ = ("name",)
    __fields__ = ("name",)

    def __init__(self, name, /):
        self.name = name


class Option(CommandChain):
    __slots__ = ("flag", "value")
    __fields__ = ("flag", "value")

    def __init__(self, flag, value, /):
        self.flag = flag
        self.value = value


class Argument(CommandChain):
    __slots__ = ("value",)
    __fields__ = ("value",)

    def __init__(self, value, /):
        self.value = value


class PreservedOption(CommandChain):
    __slots__ = ("flag",)
    __fields__ = ("flag",)

    def __init__(self, flag, /):
        self.flag = flag


class Mode(Enum):
    START = "start"
    IN_COMMAND = "in-command"
    IN_OPTION = "in-option"
    ACCEPTING_VALUE = "accepting-value"
    BREAKING = "breaking"
    IN_ARGUMENT = "in-argument"
    END = "end"


# target mode -> modes it may be entered from
_TRANSITIONS = {
    Mode.START: frozenset(),
    Mode.IN_COMMAND: frozenset({Mode.START, Mode.IN_COMMAND}),
    Mode.IN_OPTION: frozenset({Mode.START, Mode.IN_COMMAND, Mode.IN_ARGUMENT, Mode.IN_OPTION, Mode.ACCEPTING_VALUE}),
    Mode.ACCEPTING_VALUE: frozenset({Mode.IN_OPTION}),
    Mode.IN_ARGUMENT: frozenset({Mode.START, Mode.IN_COMMAND, Mode.BREAKING, Mode.IN_ARGUMENT}),
    Mode.BREAKING: frozenset({Mode.IN_OPTION, Mode.ACCEPTING_VALUE}),
    Mode.END: frozenset(Mode) - {Mode.START},
}


class ParseState:
    """
    Finite-state machine of one prepare() call.

    Attributes
    - mode: current Mode.
    - option / expected: pending flag and its ValueTypes while ACCEPTING_VALUE,
      None otherwise.
    """
    __slots__ = ("mode", "option", "expected")

    START = Mode.START
    IN_COMMAND = Mode.IN_COMMAND
    IN_OPTION = Mode.IN_OPTION
    ACCEPTING_VALUE = Mode.ACCEPTING_VALUE
    BREAKING = Mode.BREAKING
    IN_ARGUMENT = Mode.IN_ARGUMENT
    END = Mode.END

    def __init__(self):
        self.mode = Mode.START
        self.option = None
        self.expected = None

    @staticmethod
    def allows(current, target, /):
        """Whether `target` may be entered from `current`."""
        return current in _TRANSITIONS[target]

    def can_advance(self, target, /):
        return self.allows(self.mode, target)

    def advance(self, target, /, option=None, expected=None):
        """
        Move to `target`, raising InvalidStateTransitionError when the table forbids it.

        `option`/`expected` are required for ACCEPTING_VALUE and ignored otherwise.
        """
        if not isinstance(target, Mode):
            raise TypeError("advance() argument must be a parse mode")
        if not self.can_advance(target):
            raise InvalidStateTransitionError(
                "invalid parse state transition from %s to %s" % (self.mode.value, target.value),
                source=self.mode,
                target=target,
            )
        if target is Mode.ACCEPTING_VALUE:
            if option is None or expected is None:
                raise InternalError("accepting-value state needs an option and its value type")
            self.option, self.expected = option, expected
        else:
            self.option = self.expected = None
        self.mode = target
        return self

    def __repr__(self):
        if self.mode is Mode.ACCEPTING_VALUE:
            return f"parse-state({self.mode.value}, {self.option!r}, {self.expected!r})"
        return f"parse-state({self.mode.value})"


class InputArgsParser:
    """
    Turns the tokens following a command name into a CommandChain.

    Parameters
    - command: the name the tokens belong to (the root command is named "").
    - args: iterable of string tokens (program name already stripped).

    The parser is single-use: once prepared it only serves its chain (and
    slices of it, see with_remaining_chain()).
    """

    def __init__(self, command, args=(), /):
        if not isinstance(command, str):
            raise TypeError("InputArgsParser() command must be a string")
        if isinstance(args, str):
            raise TypeError("InputArgsParser() args must be an iterable of strings, not a string")
        self._command = command
        self._args = list(args)
        if not all(isinstance(arg, str) for arg in self._args):
            raise TypeError("InputArgsParser() args must be an iterable of strings")
        self._chain = []
        self._prepared = False
        self._offset = 0  # tokens consumed by parent commands (for 1-based positions)

    @classmethod
    def from_chain(cls, command, chain, /):
        """A prepared parser serving an already built chain."""
        self = cls(command)
        self._chain = list(chain)
        self._prepared = True
        return self

    @property
    def command(self):
        return self._command

    @property
    def args(self):
        return list(self._args)

    @property
    def prepared(self):
        return self._prepared

    def get_command(self):
        return self._command

    def get_parsed_commands_chain(self):
        """
        The chain produced by prepare().

        Raises
        - ParserNotPreparedError: prepare() has not completed yet.
        """
        if not self._prepared:
            raise ParserNotPreparedError(
                "parser for %r must be prepared before use" % self._command,
                command=self._command,
                hint="call prepare() first",
            )
        return self._chain

    get_command_chain = get_parsed_commands_chain

    def with_remaining_chain(self, start, /, command=Unset):
        """
        A prepared parser over `chain[start:]` (empty past the end).

        Used by dispatch to hand a subcommand exactly its part of the chain.
        """
        chain = self.get_parsed_commands_chain()
        return type(self).from_chain(coalesce(command, self._command), chain[start:])

    def _position(self, index):
        return ordinal(self._offset + index + 1)

    def _append(self, entry, context):
        self._chain.append(entry)
        context.logger.debug("%s: %r", self._command or "<root>", entry)

    def prepare(self, command, /, context=Unset):
        """
        Scan the tokens against `command` and build the chain.

        Returns self. A parser that is already prepared is returned unchanged.

        Raises
        - CommandMismatchError: the parser was created for another command.
        - UnexpectedTokenError: `--` outside an option context.
        - MissingValueError / ValueCountMismatchError / InvalidValueError:
          value consumption failures.
        - UnknownCommandError: a token sits where only a subcommand may be.
        - UnknownOptionError / InvalidStateTransitionError: misplaced tokens.
        """
        if context is Unset:
            context = Context()

        if self._prepared:
            context.logger.debug("parser for %r is already prepared", self._command)
            return self

        if self._command != command.name:
            raise CommandMismatchError(
                "command mismatch: expected %r, got %r" % (command.name, self._command),
                expected=command.name,
                actual=self._command,
                hint="create the parser with the name of the command it is prepared against",
            )

        state = ParseState().advance(Mode.IN_COMMAND)
        registry = command.get_option_parser()
        absorbing = False

        index = 0
        while index < len(self._args):
            token = self._args[index]

            if absorbing:
                self._append(Argument(token), context)
                state.advance(Mode.IN_ARGUMENT)
                index += 1
                continue

            if token == BREAK:
                if state.mode not in (Mode.IN_OPTION, Mode.ACCEPTING_VALUE):
                    raise UnexpectedTokenError(
                        "unexpected %r at %s position" % (token, self._position(index)),
                        input=token,
                        position=self._offset + index,
                        hint="'--' separates options from positional arguments; put it right after an option",
                    )
                self._settle(state, index, context)
                state.advance(Mode.BREAKING)
                absorbing = True
                index += 1
                continue

            if state.mode is Mode.ACCEPTING_VALUE:
                index = self._consume(state, registry, index, context)
                continue

            if command.get_preserved_option(token) is not None:
                self._append(PreservedOption(token), context)
                state.advance(Mode.IN_OPTION)
                index += 1
                continue

            if (option := registry.get_option(token)) is not None:
                state.advance(Mode.IN_OPTION)
                if option.value.expects_value():
                    state.advance(Mode.ACCEPTING_VALUE, option=token, expected=option.value)
                else:
                    self._append(Option(token, NoValue()), context)
                index += 1
                continue

            if (child := command.get_sub_command(token)) is not None:
                self._append(SubCommand(token), context)
                context.logger.debug("descending into %r with %r", token, self._args[index + 1:])
                self._command = token
                self._args = self._args[index + 1:]
                self._offset += index + 1
                return self.prepare(child, context)

            if command.expected_positional_args <= 0 and (
                state.mode in (Mode.START, Mode.IN_COMMAND) or
                (self._chain and isinstance(self._chain[-1], SubCommand))
            ):
                available = list(command.sub_commands)
                suggestions = suggest(token, available)
                route = command.route
                typeof = "subcommand" if command.parent is not None else "command"
                if token.startswith("-") and len(token) > 1 and (flags := suggest(token, registry.flags())):
                    hint = "no option %r here either; did you mean %r? run '%s --help' to see available %ss" % (
                        token, flags[0], route, typeof
                    )
                elif suggestions:
                    hint = "did you mean %r? you can also run '%s --help' to see available %ss" % (
                        suggestions[0], route, typeof
                    )
                else:
                    hint = "run '%s --help' to see available %ss" % (route, typeof)
                raise UnknownCommandError(
                    "unknown %s %r at %s position" % (typeof, token, self._position(index)),
                    input=token,
                    position=self._offset + index,
                    available=available,
                    suggestions=suggestions,
                    hint=hint,
                )

            try:
                state.advance(Mode.IN_ARGUMENT)
            except InvalidStateTransitionError as error:
                raise self._misplaced(error, token, index, registry, command) from None
            self._append(Argument(token), context)
            index += 1

        self._settle(state, len(self._args), context)
        state.advance(Mode.END)
        self._prepared = True
        return self

    def _retype(self, template, token, flag, index):
        try:
            return copy.copy(template if template is not None else Str()).retype(token)
        except InvalidValueError as error:
            raise InvalidValueError(
                "invalid value %r for option %r at %s position: %s" % (
                    token, flag, self._position(index), error.options["reason"]
                ),
                input=token,
                option=flag,
                position=self._offset + index,
                expected=error.options["expected"],
                reason=error.options["reason"],
                hint=error.options["hint"],
            ) from None

    def _missing(self, flag, index):
        return MissingValueError(
            "missing required value for option %r at %s position" % (flag, self._position(index)),
            option=flag,
            position=self._offset + index,
            hint="pass a value right after %r (for example: %s <value>)" % (flag, flag),
        )

    def _consume(self, state, registry, index, context):
        """
        Read the value(s) of the pending option starting at `index`.

        Returns the index of the first token not consumed. The state is back
        to IN_OPTION afterwards.
        """
        flag, expected = state.option, state.expected
        token = self._args[index]

        match expected:
            case RequiredSingle(template):
                if registry.has_option(token):
                    raise self._missing(flag, index)
                resolved = RequiredSingle(self._retype(template, token, flag, index))
                index += 1
            case OptionalSingle(template):
                if registry.has_option(token):
                    # the flag is processed as a fresh option on the next iteration
                    self._append(Option(flag, OptionalSingle(None)), context)
                    state.advance(Mode.IN_OPTION)
                    return index
                resolved = OptionalSingle(self._retype(template, token, flag, index))
                index += 1
            case RequiredMultiple(templates, count) | OptionalMultiple(templates, count):
                templates = templates or []
                start, values = index, []
                while index < len(self._args) and (count is None or len(values) < count):
                    if (token := self._args[index]) == BREAK or registry.has_option(token):
                        break
                    template = templates[len(values)] if len(values) < len(templates) else None
                    values.append(self._retype(template, token, flag, index))
                    index += 1
                if isinstance(expected, RequiredMultiple):
                    if not values:
                        raise self._missing(flag, start)
                    if count is not None and len(values) != count:
                        raise ValueCountMismatchError(
                            "option %r expected %d value%s, got %d" % (flag, count, "s" * (count != 1), len(values)),
                            option=flag,
                            expected=count,
                            actual=len(values),
                            position=self._offset + start,
                            hint="pass exactly %d value%s after %r" % (count, "s" * (count != 1), flag),
                        )
                    resolved = RequiredMultiple(values, count)
                else:
                    resolved = OptionalMultiple(values or None, count)
            case _:
                raise InternalError(
                    "option %r is accepting values with arity %r" % (flag, expected),
                    option=flag,
                    expected=expected,
                )

        self._append(Option(flag, resolved), context)
        registry.update_option_value(flag, resolved)
        state.advance(Mode.IN_OPTION)
        return index

    def _settle(self, state, index, context):
        # a pending option reached the end of its tokens (end of input or `--`)
        if state.mode is not Mode.ACCEPTING_VALUE:
            return
        flag, expected = state.option, state.expected
        if expected.required:
            raise self._missing(flag, index)
        match expected:
            case OptionalSingle():
                self._append(Option(flag, OptionalSingle(None)), context)
            case OptionalMultiple(_, maximum):
                self._append(Option(flag, OptionalMultiple(None, maximum)), context)
        state.advance(Mode.IN_OPTION)

    def _unknown(self, token, index, registry, command):
        suggestions = suggest(token, registry.flags())
        try:
            hint = "did you mean %r? you can also run '%s --help' to see all options" % (suggestions[0], command.route)
        except IndexError:
            hint = "run '%s --help' to see all available options" % command.route
        return UnknownOptionError(
            "unknown option %r at %s position" % (token, self._position(index)),
            input=token,
            position=self._offset + index,
            suggestions=suggestions,
            hint=hint,
        )

    def _misplaced(self, error, token, index, registry, command):
        position = self._position(index)
        if token.startswith("-") and len(token) > 1:
            return self._unknown(token, index, registry, command)
        return copy.replace(
            error,
            input=token,
            position=self._offset + index,
            hint="positional argument %r at %s position follows an option; "
                 "put positionals first or separate them with '--'" % (token, position),
        )

    def __repr__(self):
        return f"input-args-parser({self._command!r}, prepared={self._prepared}, chain={self._chain!r})"


__all__ = (
    "CommandChain",
    "SubCommand",
    "Option",
    "Argument",
    "PreservedOption",
    "Mode",
    "ParseState",
    "InputArgsParser",
)
