"""
Fli application facade.

Fli bundles an unnamed root command, the program metadata and the runtime
Context, and turns raw process arguments into a dispatched call:

    app = Fli("fm", "1.0.0", "file manager")
    ls = app.command("ls", "List directory contents")
    ls.set_expected_positional_args(1).set_callback(list_directory)
    app.run()

Built-ins
- -h/--help on every command (rendered help, exit status 0).
- -V/--version on the root (name and version, exit status 0).
- -D/--debug when add_debug_option() was called: inheritable, and switches the
  context logger to DEBUG before parsing starts.

Faults raised while parsing or dispatching are surfaced through
faults.trigger(): printed on stderr with exit status 1 in shell mode, raised
otherwise.
"""
import shlex
import sys
from collections.abc import Iterable
from importlib import metadata

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .commands import Command
from .context import Context
from .faults import FliError, trigger
from .parsing import BREAK, InputArgsParser
from .utils import Unset
from .values import NoValue

_DEBUG_FLAGS = ("-D", "--debug")


def _tokenize(prompt):
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("run() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("run() argument must be a string or an iterable of strings")


class Fli:
    """
    Application: root command + metadata + context.

    Parameters
    - name: program name (help titles, version output, fault headers).
    - version / description: shown by --version and the root help.
    - **options: forwarded to Context (shell, colorful, fancy, console, stderr, debug).
    """

    def __init__(self, name, version="", description="", /, **options):
        if not isinstance(name, str) or not name.strip():
            raise TypeError("Fli() name must be a non-empty string")
        if not isinstance(version, str) or not isinstance(description, str):
            raise TypeError("Fli() version and description must be strings")

        self._name = name.strip()
        self._version = version.strip()
        self._description = description.strip()
        self._context = Context(self._name, **options)
        self._debuggable = False

        self._root = Command("", self._description)
        self._root.tree.prog = self._name
        self._root.add_option_with_callback(
            "version", "Display version information", "-V", "--version", NoValue(), self._versioner
        )

    @classmethod
    def from_distribution(cls, distribution, /, **options):
        """
        Build an application from installed package metadata (Name, Version, Summary).

        Raises importlib.metadata.PackageNotFoundError when the distribution is
        not installed.
        """
        info = metadata.metadata(distribution)
        return cls(info["Name"], info.get("Version") or "", info.get("Summary") or "", **options)

    @property
    def name(self):
        return self._name

    @property
    def version(self):
        return self._version

    @property
    def description(self):
        return self._description

    @property
    def root(self):
        return self._root

    @property
    def context(self):
        return self._context

    # --- declarations (delegated to the root command) ---

    def command(self, name, description="", /):
        return self._root.subcommand(name, description)

    def add_command(self, command, /):
        self._root.add_sub_command(command)
        return self

    def set_callback(self, callback, /):
        self._root.set_callback(callback)
        return self

    def set_expected_positional_args(self, count, /):
        self._root.set_expected_positional_args(count)
        return self

    def add_option(self, name, description, short_flag, long_flag, value, /):
        self._root.add_option(name, description, short_flag, long_flag, value)
        return self

    def add_option_with_callback(self, name, description, short_flag, long_flag, value, callback, /):
        self._root.add_option_with_callback(name, description, short_flag, long_flag, value, callback)
        return self

    def mark_inheritable(self, flag, /):
        self._root.mark_inheritable(flag)
        return self

    def mark_inheritable_many(self, flags, /):
        self._root.mark_inheritable_many(flags)
        return self

    # --- debugging ---

    def with_debug(self):
        """Turn debug logging on for every following run."""
        self._context.enable_debug()
        return self

    def add_debug_option(self):
        """
        Register -D/--debug on the root and mark it inheritable.

        Call it before declaring commands: children only inherit options marked
        at the time they are created.
        """
        self._root.add_option("debug", "Enable debug output", *_DEBUG_FLAGS, NoValue())
        self._root.mark_inheritable(_DEBUG_FLAGS[0])
        self._debuggable = True
        return self

    # --- execution ---

    def run(self, prompt=Unset):
        """
        Parse and dispatch a token stream.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; split via shlex.split.
          • Iterable[str]: pre-tokenized; items are taken verbatim.

        Returns whatever the dispatched callback returns.
        """
        tokens = _tokenize(prompt)
        context = self._context

        scanned = tokens[:tokens.index(BREAK)] if BREAK in tokens else tokens
        if self._debuggable and any(token in _DEBUG_FLAGS for token in scanned):
            context.enable_debug()
        context.logger.debug("running %r %s with %r", self._name, self._version or "(no version)", tokens)

        try:
            result = self._root.run(InputArgsParser("", tokens), context)
        except FliError as error:
            context.logger.debug("surfacing %s (%s)", type(error).__name__, error.code.normalize())
            trigger(error, **context.options())
        else:
            context.logger.debug("%r completed", self._name)
            return result

    def __invoke__(self, prompt=Unset):
        return self.run(prompt)

    def print_help(self):
        self._root.render_help(self._context)

    def _versioner(self, data):
        """Print name, version and description, then exit with status 0."""
        context = data.context
        styles = {
            "program-name": "bold #FF4D94",
            "program-version": "bold #00E6FF",
            "description-section": "italic #A3A3A3",
            "panel-title": "bold #FF4D94",
        } | getattr(__import__("__main__"), "__styles__", {})

        def styler(style):
            return styles.get(style, "") if context.colorful else ""

        header = Text.assemble(
            (self._name, styler("program-name")),
            " ",
            (self._version or "unknown version", styler("program-version")),
        )
        renders = [header]
        if self._description:
            renders.append(Text(self._description, styler("description-section")))

        renderable = Group(*renders)
        if context.fancy:
            renderable = Panel(renderable, title=Text("[ VERSION ]", styler("panel-title")), title_align="left")
        context.console.print(renderable)
        sys.exit(0)

    def __repr__(self):
        return f"fli({self._name!r}, version={self._version!r}, commands={list(self._root.sub_commands)!r})"


def invoke(app, prompt=Unset, /):
    """
    Run anything exposing __invoke__ (an Fli application) with a token stream.

    Mirrors trigger(): the protocol is checked, not the type.
    """
    if not hasattr(app, "__invoke__") or not callable(app.__invoke__):
        raise TypeError("invoke() argument must have an __invoke__ method")
    return app.__invoke__(prompt)


__all__ = (
    "Fli",
    "invoke",
)
