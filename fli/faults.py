"""
Fli faults (errors raised by the parsing/dispatch engine) and their rendering.

Scope
- FaultCode: stable numeric identifiers for every error kind the engine raises.
  Codes are grouped by domain so logs and searches stay predictable.
- FliError: base type carrying a message plus read-only options (title, code,
  hint and the structured payload such as input/position/option/available).
  Every error kind is a FliError subclass.
- trigger(): the single entry point used by the application layer to surface
  a fault (raise in library mode, render and exit in shell mode).
- getdoc(): optional description lookup for a code from the host application.

Propagation
- The core (values, options, parsing, commands) only ever raises. Nothing in
  the core prints or exits, except preserved-option handlers such as help.
- The orchestrator (fli.app.Fli) catches FliError once and calls trigger()
  with the context's rendering options.

UX goals
- Position-first, lowercase messages (“missing value for option '-o' at second position”).
- A short title, one-sentence body, a single clear hint.
- Styles configurable via __styles__ in __main__; codes remappable via __codes__.
"""
import copy
import sys
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
    canonical fault codes used across the engine (stable identifiers).

    grouping (by domain)
    - routing (1110x)
      • UNKNOWN_COMMAND, COMMAND_MISMATCH
    - options and values (1111x)
      • UNKNOWN_OPTION, MISSING_VALUE, UNEXPECTED_VALUE, VALUE_COUNT_MISMATCH,
        INVALID_VALUE, OPTION_NOT_FOUND
    - tokens and parser state (1112x)
      • UNEXPECTED_TOKEN, INVALID_STATE_TRANSITION, PARSER_NOT_PREPARED
    - configuration (1113x)
      • INVALID_OPTION_CONFIG, INVALID_COMMAND_CONFIG, INVALID_FLAG_FORMAT
    - usage (1114x)
      • INVALID_USAGE
    - internal (1115x)
      • INTERNAL
    """
    # --- routing (1110x) ---
    UNKNOWN_COMMAND          = 11101
    COMMAND_MISMATCH         = 11102

    # --- options and values (1111x) ---
    UNKNOWN_OPTION           = 11111
    MISSING_VALUE            = 11112
    UNEXPECTED_VALUE         = 11113
    VALUE_COUNT_MISMATCH     = 11114
    INVALID_VALUE            = 11115
    OPTION_NOT_FOUND         = 11116

    # --- tokens and parser state (1112x) ---
    UNEXPECTED_TOKEN         = 11121
    INVALID_STATE_TRANSITION = 11122
    PARSER_NOT_PREPARED      = 11123

    # --- configuration (1113x) ---
    INVALID_OPTION_CONFIG    = 11131
    INVALID_COMMAND_CONFIG   = 11132
    INVALID_FLAG_FORMAT      = 11133

    # --- usage (1114x) ---
    INVALID_USAGE            = 11141

    # --- internal (1115x) ---
    INTERNAL                 = 11151

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class FliError(Exception):
    """
    base error of the engine.

    - message: one lowercase sentence, position-first when a token is involved.
    - options: read-only mapping with at least title/code/hint, plus any
      structured payload the raiser wants to expose (input, position, option,
      expected, actual, available, suggestions, reason, ...).

    rendering options (prog, colorful, fancy, shell, console) are merged in
    later by trigger(), via copy.replace().
    """
    __code__ = FaultCode.INTERNAL
    __title__ = "error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(
            {"title": type(self).__title__, "code": type(self).__code__, "hint": None} | options
        )

    @property
    def code(self):
        return self.options["code"]

    def __str__(self):
        return str(self.message) if self.message is not Unset else self.options["title"]

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment if colorful else Text(fragment.plain)
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options.get("prog") or "fli"), styler("prog-name"))

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.code.normalize(), styler("code")),
            " | ",
            text(self.options["title"].title(), styler("error-title")),
            " ]"
        )
        message = text(str(self), styler("error-message"))
        renders = [message]
        if self.options["hint"]:
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(self.options["hint"], styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        self.options.get("console", console).print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        replaced = type(self)(self.message, **{**self.options, **overrides})
        replaced.__cause__ = self.__cause__
        return replaced


class CommandMismatchError(FliError):
    __code__ = FaultCode.COMMAND_MISMATCH
    __title__ = "command mismatch"


class UnknownCommandError(FliError):
    __code__ = FaultCode.UNKNOWN_COMMAND
    __title__ = "unknown command"


class UnknownOptionError(FliError):
    __code__ = FaultCode.UNKNOWN_OPTION
    __title__ = "unknown option"


class MissingValueError(FliError):
    __code__ = FaultCode.MISSING_VALUE
    __title__ = "missing value"


class UnexpectedValueError(FliError):
    __code__ = FaultCode.UNEXPECTED_VALUE
    __title__ = "unexpected value"


class ValueCountMismatchError(FliError):
    __code__ = FaultCode.VALUE_COUNT_MISMATCH
    __title__ = "wrong number of values"


class InvalidValueError(FliError):
    __code__ = FaultCode.INVALID_VALUE
    __title__ = "invalid value"


class InvalidStateTransitionError(FliError):
    __code__ = FaultCode.INVALID_STATE_TRANSITION
    __title__ = "misplaced token"


class UnexpectedTokenError(FliError):
    __code__ = FaultCode.UNEXPECTED_TOKEN
    __title__ = "unexpected token"


class InvalidOptionConfigError(FliError):
    __code__ = FaultCode.INVALID_OPTION_CONFIG
    __title__ = "invalid option configuration"


class InvalidCommandConfigError(FliError):
    __code__ = FaultCode.INVALID_COMMAND_CONFIG
    __title__ = "invalid command configuration"


class InvalidFlagFormatError(FliError):
    __code__ = FaultCode.INVALID_FLAG_FORMAT
    __title__ = "invalid flag format"


class OptionNotFoundError(FliError):
    __code__ = FaultCode.OPTION_NOT_FOUND
    __title__ = "option not found"


class ParserNotPreparedError(FliError):
    __code__ = FaultCode.PARSER_NOT_PREPARED
    __title__ = "parser not prepared"


class InvalidUsageError(FliError):
    __code__ = FaultCode.INVALID_USAGE
    __title__ = "invalid usage"


class InternalError(FliError):
    __code__ = FaultCode.INTERNAL
    __title__ = "internal error"


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see FliError).
    - options are merged into the fault via copy.replace() before triggering.
    - with shell=True the fault is printed on the stderr console and the process
      exits with status 1; otherwise the (replaced) fault is raised.

    typical options
    - prog, shell, fancy, colorful, console.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode members and values are short documentation strings.
    returns None when nothing is registered.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "FliError",
    "CommandMismatchError",
    "UnknownCommandError",
    "UnknownOptionError",
    "MissingValueError",
    "UnexpectedValueError",
    "ValueCountMismatchError",
    "InvalidValueError",
    "InvalidStateTransitionError",
    "UnexpectedTokenError",
    "InvalidOptionConfigError",
    "InvalidCommandConfigError",
    "InvalidFlagFormatError",
    "OptionNotFoundError",
    "ParserNotPreparedError",
    "InvalidUsageError",
    "InternalError",
    "trigger",
    "getdoc",
)
