"""
Fli runtime context: configuration and logging threaded through a run.

A Context is created by the application (or by tests) and handed explicitly
to InputArgsParser.prepare(), Command.run() and every callback. Nothing in
the package reads process-wide switches.

Fields
- prog: program name shown in help, version and fault headers.
- debug: when true, the context logger emits DEBUG records (parse steps,
  dispatch decisions). enable_debug() switches it on at runtime.
- shell: when true, surfaced faults are printed and the process exits with
  status 1; when false they are raised (library/test usage).
- colorful: apply the rich style palette (plain text otherwise).
- fancy: wrap help and faults in rich panels.
- console / stderr: rich consoles for regular output and diagnostics.
- logger: a per-context `fli.<prog>` logger rendered through rich's RichHandler
  on stderr; two contexts never share levels or handlers.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

from .utils import Unset


class Context:
    __slots__ = ("_prog", "_debug", "shell", "colorful", "fancy", "console", "stderr", "logger")

    def __init__(
            self,
            prog="",
            /,
            *,
            debug=False,
            shell=True,
            colorful=True,
            fancy=False,
            console=Unset,
            stderr=Unset,
    ):
        if not isinstance(prog, str):
            raise TypeError("context 'prog' must be a string")
        for name, flag in (("debug", debug), ("shell", shell), ("colorful", colorful), ("fancy", fancy)):
            if not isinstance(flag, bool):
                raise TypeError(f"context '{name}' must be a bool")

        self._prog = prog.strip()
        self._debug = debug
        self.shell = shell
        self.colorful = colorful
        self.fancy = fancy
        self.console = Console() if console is Unset else console
        self.stderr = Console(stderr=True) if stderr is Unset else stderr

        # unregistered, so every context owns its handler and level
        self.logger = logging.Logger(f"fli.{self._prog or 'app'}")
        self.logger.propagate = False
        self.logger.addHandler(RichHandler(console=self.stderr, show_path=False, markup=False))
        self.logger.setLevel(logging.DEBUG if debug else logging.WARNING)

    @property
    def prog(self):
        return self._prog

    @property
    def debug(self):
        return self._debug

    def enable_debug(self):
        self._debug = True
        self.logger.setLevel(logging.DEBUG)
        return self

    def options(self):
        """Rendering options for faults.trigger()."""
        return {
            "prog": self._prog,
            "shell": self.shell,
            "colorful": self.colorful,
            "fancy": self.fancy,
            "console": self.stderr,
        }

    def __rich_repr__(self):
        yield "prog", self._prog
        yield "debug", self._debug
        yield "shell", self.shell
        yield "colorful", self.colorful
        yield "fancy", self.fancy

    def __repr__(self):
        return f"context({', '.join('%s=%r' % pair for pair in self.__rich_repr__())})"


__all__ = (
    "Context",
)
