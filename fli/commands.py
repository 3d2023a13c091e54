"""
Fli command tree: node arena, command handles, dispatch and help rendering.

Overview
- CommandTree
  • Arena holding every command node of a program, addressed by integer ids.
    Nodes record their parent id and an ordered name -> id map of children.
  • Grafting a standalone tree under a node (add_sub_command) moves its nodes
    into the target arena and leaves forwarding entries behind, so handles
    created before the move keep working.

- Command
  • A light handle (tree, id). Creating or passing handles never copies nodes.
  • Declares options (regular and preserved), subcommands, positional count and
    the main callback. Every node owns a help preserved option (-h/--help).
  • run(parser) prepares the parser and dispatches the chain: a SubCommand
    entry hands the rest of the chain to the child; the terminal node calls its
    preserved handler (if one was matched) or its main callback.

- CallbackData
  • Read-only view handed to callbacks: the command handle, its option
    registry, the positional arguments, the (sliced) parser and the context.

Rendering
- render_help() prints title, description, usage patterns, an options table
  and a subcommands table through rich. Palette keys can be overridden with a
  __styles__ mapping in __main__; colorful/fancy come from the context.
"""
import os
import re
import sys
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .context import Context
from .faults import InvalidCommandConfigError, InvalidUsageError, UnknownCommandError
from .options import CommandOptionsParserBuilder, OptionKind
from .parsing import Argument, Option, PreservedOption, SubCommand
from .utils import Unset, mirror, rename, suggest
from .values import NoValue

_COMMAND_NAME = re.compile(r"[^\s-]\S*")


class _Node:
    __slots__ = ("name", "description", "builder", "children", "parent", "callback", "expected")

    def __init__(self, name, description, builder, parent):
        self.name = name
        self.description = description
        self.builder = builder
        self.children = {}
        self.parent = parent
        self.callback = None
        self.expected = 0


class CommandTree:
    """
    Arena of command nodes.

    - allocate() appends a node and returns its id.
    - adopt() moves a subtree out of another arena into this one.
    - resolve() follows forwarding entries left by adopt().
    - prog is the program name used when the root command is unnamed.
    """

    def __init__(self, prog=""):
        self._nodes = []
        self._forward = {}
        self.prog = prog

    def allocate(self, name, description, builder, parent=None):
        self._nodes.append(_Node(name, description, builder, parent))
        return len(self._nodes) - 1

    def adopt(self, other, root, parent):
        """Move `other`'s subtree rooted at `root` under `parent`; return the new root id."""
        node = other._nodes[root]
        new = len(self._nodes)
        self._nodes.append(node)
        other._forward[root] = (self, new)
        node.parent = parent
        node.children = {name: self.adopt(other, child, new) for name, child in node.children.items()}
        return new

    def resolve(self, id):
        tree = self
        while id in tree._forward:
            tree, id = tree._forward[id]
        return tree, id

    def __getitem__(self, id):
        return self._nodes[id]

    def __len__(self):
        return len(self._nodes) - len(self._forward)


def _sanitize_name(name, /, *, root=False):
    if not isinstance(name, str):
        raise TypeError("command name must be a string")
    if root and name == "":
        return name
    if not _COMMAND_NAME.fullmatch(name):
        raise InvalidCommandConfigError(
            "invalid command name %r" % name,
            input=name,
            hint="command names cannot be empty, start with '-' or contain spaces",
        )
    return name


def _sanitize_description(description, /):
    if not isinstance(description, str):
        raise TypeError("command description must be a string")
    return description.strip()


@rename("help")
def _show_help(data):
    data.command.render_help(data.context)
    sys.exit(0)


class Command:
    """
    Handle on one node of a command tree.

    Construction
    - Command(name, description="") creates a standalone tree rooted at the new
      node. The root may be unnamed (""), which is how applications model the
      program itself.
    - subcommand(name, description) creates children in the same tree.

    Declarations return the handle, so they chain:
        Command("git").add_option("verbose", "Talk more", "-v", "--verbose", NoValue())
    """
    __slots__ = ("_tree", "_id")

    def __init__(self, name, description="", /):
        builder = CommandOptionsParserBuilder()
        self._tree = CommandTree()
        self._id = self._tree.allocate(_sanitize_name(name, root=True), _sanitize_description(description), builder)
        self._setup_help()

    @classmethod
    def _bind(cls, tree, id):
        self = object.__new__(cls)
        self._tree, self._id = tree, id
        return self

    def _resolve(self):
        self._tree, self._id = self._tree.resolve(self._id)
        return self._tree, self._id

    @property
    def _node(self):
        tree, id = self._resolve()
        return tree[id]

    @property
    def tree(self):
        """The arena currently holding this command."""
        return self._resolve()[0]

    def _setup_help(self):
        self.add_option_with_callback("help", "Display help information", "-h", "--help", NoValue(), _show_help)

    # --- introspection ---

    @property
    def name(self):
        return self._node.name

    @property
    def description(self):
        return self._node.description

    @property
    def parent(self):
        node = self._node
        return type(self)._bind(self._tree, node.parent) if node.parent is not None else None

    @property
    def root(self):
        """The topmost command of this tree."""
        child, parent = self, self.parent
        while parent is not None:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """Commands from the root down to this one."""
        path = [command := self]
        while (command := command.parent) is not None:
            path.append(command)
        return tuple(reversed(path))

    @property
    def route(self):
        """
        User-facing invocation prefix, e.g. 'fm ls'.

        An unnamed root is replaced by the tree's prog, then __prog__ from
        __main__, then the script name.
        """
        names = [command.name for command in self.path]
        if not names[0]:
            names[0] = (
                self._tree.prog or
                getattr(__import__("__main__"), "__prog__", "") or
                os.path.basename(sys.argv[0] if sys.argv and sys.argv[0] else "fli")
            )
        return " ".join(name for name in names if name)

    @property
    def option_parser_builder(self):
        return self._node.builder

    def get_option_parser(self):
        """The command's option registry (materialized from its builder on first use)."""
        return self._node.builder.build()

    @property
    def expected_positional_args(self):
        return self._node.expected

    @property
    def callback(self):
        return self._node.callback

    @property
    def sub_commands(self):
        node = self._node
        return {name: type(self)._bind(self._tree, id) for name, id in node.children.items()}

    def has_sub_commands(self):
        return bool(self._node.children)

    def has_sub_command(self, name, /):
        return name in self._node.children

    def get_sub_command(self, name, /):
        node = self._node
        try:
            return type(self)._bind(self._tree, node.children[name])
        except (KeyError, TypeError):
            return None

    # --- declarations ---

    def add_option(self, name, description, short_flag, long_flag, value, /):
        self._node.builder.add_option(name, description, short_flag, long_flag, value)
        return self

    def add_option_with_callback(self, name, description, short_flag, long_flag, value, callback, /):
        """
        Register a preserved option: when matched, `callback(data)` runs instead
        of the command callback. Such handlers usually end the process.
        """
        self._node.builder.add_option(
            name, description, short_flag, long_flag, value,
            kind=OptionKind.PRESERVED,
            handler=callback,
        )
        return self

    def get_preserved_option(self, name, /):
        """Preserved option reachable from `name` ("help", "-h" and "--help" all work)."""
        return self.get_option_parser().get_preserved_option(name)

    def has_preserved_option(self, name, /):
        return self.get_preserved_option(name) is not None

    def mark_inheritable(self, flag, /):
        self.get_option_parser().mark_inheritable(flag)
        return self

    def mark_inheritable_many(self, flags, /):
        self.get_option_parser().mark_inheritable_many(flags)
        return self

    def set_expected_positional_args(self, count, /):
        if not isinstance(count, int) or isinstance(count, bool):
            raise TypeError("expected positional arguments must be an int")
        if count < 0:
            raise ValueError("expected positional arguments cannot be negative")
        self._node.expected = count
        return self

    def set_callback(self, callback, /):
        if callback is not None and not callable(callback):
            raise TypeError("command callback must be callable")
        self._node.callback = callback
        return self

    def _claim(self, name):
        if name in self._node.children:
            raise InvalidCommandConfigError(
                "%s name %r is already in use under %r" % (
                    "subcommand" if self._node.parent is not None else "command", name, self.route
                ),
                input=name,
                hint="pick another name or configure the existing command through get_sub_command()",
            )

    def subcommand(self, name, description="", /):
        """
        Create a child command and return its handle.

        The child starts with clones of the options marked inheritable on this
        command at the time of the call, plus its own help option.
        """
        self._claim(name := _sanitize_name(name))
        builder = self.get_option_parser().inheritable_options_builder()
        id = self._tree.allocate(name, _sanitize_description(description), builder, parent=self._id)
        self._node.children[name] = id
        child = type(self)._bind(self._tree, id)
        child._setup_help()
        return child

    def add_sub_command(self, command, /):
        """
        Attach a standalone command (built with Command(...)) as a child.

        The command's nodes move into this tree; the given handle follows them.
        """
        if not isinstance(command, Command):
            raise TypeError("add_sub_command() argument must be a command")
        node = command._node
        if node.parent is not None or command._tree is self._tree:
            raise InvalidCommandConfigError(
                "command %r is already part of a command tree" % node.name,
                input=node.name,
                hint="only standalone commands can be attached; use subcommand() to create children",
            )
        self._claim(_sanitize_name(node.name))
        self._node.children[node.name] = self._tree.adopt(command._tree, command._id, self._id)
        return self

    # --- dispatch ---

    def run(self, parser, /, context=Unset):
        """
        Prepare `parser` against this command and dispatch the resulting chain.

        Raises whatever prepare() raises, plus:
        - InvalidUsageError: nothing was given to a root command that has no
          callback of its own.
        - UnknownCommandError: a SubCommand entry names no child (only possible
          with hand-built chains).
        """
        if context is Unset:
            context = Context()

        parser.prepare(self, context)
        chain = parser.get_parsed_commands_chain()
        node = self._node

        if not chain and node.parent is None and node.callback is None:
            raise InvalidUsageError(
                "no command or arguments provided",
                hint="run '%s --help' to see correct usage" % self.route,
            )

        arguments = []
        preserved = None
        for index, entry in enumerate(chain):
            match entry:
                case SubCommand(name):
                    if (child := self.get_sub_command(name)) is None:
                        available = list(node.children)
                        raise UnknownCommandError(
                            "unknown subcommand %r under %r" % (name, self.route),
                            input=name,
                            available=available,
                            suggestions=suggest(name, available),
                            hint="run '%s --help' to see available subcommands" % self.route,
                        )
                    context.logger.debug("dispatching to %r", child.route)
                    return child.run(parser.with_remaining_chain(index + 1, name), context)
                case Argument(value):
                    arguments.append(value)
                case PreservedOption(flag):
                    preserved = flag

        handler = node.callback
        if preserved is not None and (option := self.get_preserved_option(preserved)) is not None:
            context.logger.debug("preserved option %r takes over %r", preserved, self.route)
            handler = option.handler

        if handler is None:
            context.logger.debug("nothing to call for %r", self.route)
            return None

        data = CallbackData(self, arguments, parser, context)
        context.logger.debug("calling %r with arguments %r", getattr(handler, "__name__", handler), arguments)
        return handler(data)

    # --- rendering ---

    def build_usage_patterns(self):
        """
        Usage lines for this command.

        - '<route> [SUBCOMMANDS] [ARGUMENT]... [OPTIONS]'
        - '<route> [SUBCOMMANDS] [OPTIONS] -- [ARGUMENT]...' when positionals are expected
        """
        route = self.route
        subcommands = "[SUBCOMMANDS]" if self.has_sub_commands() else ""
        arguments = " ".join(["[ARGUMENT]"] * self.expected_positional_args)

        patterns = [" ".join(part for part in (route, subcommands, arguments, "[OPTIONS]") if part)]
        if arguments:
            patterns.append(" ".join(part for part in (route, subcommands, "[OPTIONS]", "--", arguments) if part))
        return patterns

    def render_help(self, context=Unset):
        """
        Print help for this command on the context console.

        Palette keys
        - title-label, program-name, description-section, usage-label, usage-section
        - group-label, option-name, flag-name, preserved-name, value-type, option-description
        - children-table, children, children-description, footer
        - panel-title
        """
        if context is Unset:
            context = Context()
        console = context.console

        styles = defaultdict(str, {
            # === Head sections ===
            "title-label": "bold #00E6FF",  # CYAN → signature info color
            "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
            "description-section": "italic #A3A3A3",  # Neutral gray
            "usage-label": "bold #00E6FF",
            "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan

            # === Options table ===
            "group-label": "bold #FFFFFF",  # Pure white headers
            "option-name": "bold #00E6FF",  # CYAN for value-bearing options
            "flag-name": "bold #22C55E",  # GREEN for flags
            "preserved-name": "bold #FF4D94",  # MAGENTA for help/version style options
            "value-type": "bold #FFD600",  # AMBER for arities
            "option-description": "#9CA3AF",  # Muted gray

            # === Children table ===
            "children-table": "#4B5563",  # Slate border
            "children": "bold #36C5F0",  # Sky-blue subcommands
            "children-description": "#9CA3AF",
            "footer": "#737373",  # Dim footer gray

            # === Fancy panel ===
            "panel-title": "bold #FF4D94",
        } | getattr(__import__("__main__"), "__styles__", {}))

        def styler(style):
            return styles[style] if context.colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment if context.colorful else Text(fragment.plain)
            return Text(str(fragment), style)

        renders = []
        route = self.route

        renders.append(Text.assemble(text("command", styler("title-label")), ": ", text(route, styler("program-name"))))
        if self.description:
            renders.append(text(self.description, styler("description-section")))

        usage = Text()
        usage.append(text("usage", styler("usage-label"))).append(":")
        for pattern in self.build_usage_patterns():
            usage.append("\n  ").append(text(pattern, styler("usage-section")))
        renders.append(Text("\n").append(usage))

        if options := self.get_option_parser().get_options():
            table = Table(
                "flag", "long form", "value type", "description",
                title=text("options", styler("group-label")),
                title_justify="left",
                box=ROUNDED,
                style=styler("children-table"),
                header_style=styler("group-label"),
            )
            for option in options:
                if option.kind is OptionKind.PRESERVED:
                    style = styler("preserved-name")
                elif option.value.expects_value():
                    style = styler("option-name")
                else:
                    style = styler("flag-name")
                table.add_row(
                    text(option.short_flag, style),
                    text(option.long_flag, style),
                    text(option.value.label, styler("value-type")),
                    text(option.description, styler("option-description")),
                )
            renders.append(table)

        if children := self.sub_commands:
            table = Table(
                "command", "description",
                title=text("subcommands", styler("group-label")),
                title_justify="left",
                box=ROUNDED,
                style=styler("children-table"),
                header_style=styler("group-label"),
            )
            for name, child in children.items():
                table.add_row(
                    text(name, styler("children")),
                    text(child.description or "no description", styler("children-description")),
                )
            renders.append(table)
            renders.append(text(
                "run '%s <command> --help' for more information on a subcommand" % route,
                styler("footer"),
            ))

        renderable = Group(*renders)
        if context.fancy:
            renderable = Panel(
                renderable,
                title=Text.assemble("[", " ", f"{route} HELP".upper(), " ", "]", style=styler("panel-title")),
                title_align="left",
            )
        console.print(renderable)

    # --- dunder ---

    def __eq__(self, other):
        if not isinstance(other, Command):
            return NotImplemented
        return self._resolve() == other._resolve()

    def __hash__(self):
        tree, id = self._resolve()
        return hash((tree, id))

    def __rich_repr__(self):
        node = self._node
        yield "name", node.name
        yield "description", node.description
        yield "options", [option.name for option in self.get_option_parser()]
        yield "children", list(node.children)
        yield "expected_positional_args", node.expected

    def __repr__(self):
        return f"command({', '.join('%s=%r' % pair for pair in self.__rich_repr__())})"


class CallbackData:
    """
    Read-only view handed to command callbacks and preserved handlers.

    - command: the Command handle that matched.
    - option_parser: that command's option registry (values as parsed).
    - arguments: positional arguments collected for that command, in order.
    - arg_parser: the prepared parser whose chain covers that command.
    - context: the Context of the run.
    """
    __slots__ = ("_command", "_arguments", "_arg_parser", "_context")

    command = mirror("command")
    arguments = mirror("arguments")
    arg_parser = mirror("arg_parser")
    context = mirror("context")

    def __init__(self, command, arguments, arg_parser, /, context=Unset):
        if not isinstance(command, Command):
            raise TypeError("callback data 'command' must be a command")
        self._command = command
        self._arguments = tuple(arguments)
        self._arg_parser = arg_parser
        self._context = Context() if context is Unset else context

    @property
    def option_parser(self):
        return self._command.get_option_parser()

    def get_option_value(self, name, /):
        """
        Current value of an option, looked up as given, as '-name', '--name',
        bare, then by internal name. None when no option matches.
        """
        option = self.option_parser.find_option(name)
        return option.value if option is not None else None

    def is_present(self, name, /):
        """Whether the option reachable from `name` was passed to this command."""
        registry = self.option_parser
        if (option := registry.find_option(name)) is None:
            return False
        return any(
            isinstance(entry, Option) and registry.get_option(entry.flag) is option
            for entry in self._arg_parser.get_parsed_commands_chain()
        )

    def get_argument_at(self, index, /):
        try:
            return self._arguments[index] if index >= 0 else None
        except IndexError:
            return None

    def get_arguments(self):
        return list(self._arguments)

    def get_command(self):
        return self._command

    def get_arg_parser(self):
        return self._arg_parser

    def __rich_repr__(self):
        yield "command", self._command.route
        yield "arguments", self._arguments

    def __repr__(self):
        return f"callback-data({', '.join('%s=%r' % pair for pair in self.__rich_repr__())})"


__all__ = (
    "CommandTree",
    "Command",
    "CallbackData",
)
