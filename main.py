"""
fm: a small file manager built on fli.

    python main.py ls -l -- src
    python main.py ls src -l
    python main.py mkdir build -p
    python main.py calc sum -n 1 2 3.5
    python main.py tree . -L 2
    python main.py --help
"""
import shutil
from pathlib import Path

from rich.console import Console
from rich.tree import Tree

from fli import *

console = Console()

app = Fli("fm", "1.0.0", "A small file manager")
app.add_debug_option()

app.add_option("verbose", "Enable verbose output for all operations", "-v", "--verbose", NoValue())
app.add_option("quiet", "Suppress all non-error output", "-q", "--quiet", NoValue())
app.add_option("color", "Enable/disable colored output (true/false)", "-c", "--color", OptionalSingle(Bool(True)))
app.mark_inheritable_many(["-v", "-q", "-c"])


def format_size(size):
    for unit in ("B", "K", "M", "G"):
        if size < 1024:
            return f"{size:.0f}{unit}" if unit == "B" else f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}T"


def list_directory(data):
    path = Path(data.get_argument_at(0) or ".")
    sort = data.get_option_value("sort").as_str() or "name"
    if data.is_present("verbose"):
        console.print(f"[cyan]→[/] listing [yellow]{path}[/] by {sort}")

    entries = list(path.iterdir())
    match sort:
        case "size":
            entries.sort(key=lambda entry: entry.stat().st_size)
        case "time":
            entries.sort(key=lambda entry: entry.stat().st_mtime)
        case "extension":
            entries.sort(key=lambda entry: entry.suffix)
        case _:
            entries.sort(key=lambda entry: entry.name)

    for entry in entries:
        if entry.name.startswith(".") and not data.is_present("all"):
            continue
        if data.is_present("long"):
            size = entry.stat().st_size
            size = format_size(size) if data.is_present("human") else str(size)
            kind = "[blue]DIR [/]" if entry.is_dir() else "[green]FILE[/]"
            console.print(f"{kind} {size:>10}  {entry.name}", highlight=False)
        else:
            console.print(f"[blue]{entry.name}/[/]" if entry.is_dir() else entry.name, highlight=False)


app.command("ls", "List directory contents") \
    .add_option("all", "Show hidden files (starting with .)", "-a", "--all", NoValue()) \
    .add_option("long", "Use long listing format with details", "-l", "--long", NoValue()) \
    .add_option("human", "Print human-readable sizes (e.g., 1K, 234M)", "-H", "--human-readable", NoValue()) \
    .add_option("sort", "Sort by: name, size, time, or extension", "-s", "--sort", OptionalSingle(Str("name"))) \
    .set_expected_positional_args(1) \
    .set_callback(list_directory)


def make_directories(data):
    for name in data.get_arguments():
        path = Path(name)
        try:
            path.mkdir(parents=data.is_present("parents"))
        except OSError as error:
            console.print(f"[red]✗[/] failed to create {name!r}: {error.strerror}")
            continue
        if data.is_present("verbose"):
            console.print(f"[green]✓[/] created directory [yellow]{name}[/]")


app.command("mkdir", "Create one or more directories") \
    .add_option("parents", "Create parent directories as needed", "-p", "--parents", NoValue()) \
    .set_expected_positional_args(1) \
    .set_callback(make_directories)


def remove_paths(data):
    force = data.is_present("force")
    for name in data.get_arguments():
        path = Path(name)
        if not path.exists():
            if not force:
                console.print(f"[red]✗[/] cannot remove {name!r}: no such file or directory")
            continue
        try:
            if path.is_dir():
                shutil.rmtree(path) if data.is_present("recursive") else path.rmdir()
            else:
                path.unlink()
        except OSError as error:
            if not force:
                console.print(f"[red]✗[/] failed to remove {name!r}: {error.strerror}")
            continue
        if data.is_present("verbose"):
            console.print(f"[green]✓[/] removed [yellow]{name}[/]")


app.command("rm", "Remove files or directories") \
    .add_option("recursive", "Remove directories and their contents recursively", "-r", "--recursive", NoValue()) \
    .add_option("force", "Ignore nonexistent files", "-f", "--force", NoValue()) \
    .set_expected_positional_args(1) \
    .set_callback(remove_paths)


def show_file(data):
    if (name := data.get_argument_at(0)) is None:
        console.print("[red]✗[/] no file specified")
        return
    path = Path(name)
    try:
        lines = path.read_text().splitlines()
    except OSError as error:
        console.print(f"[red]✗[/] cannot read {str(path)!r}: {error.strerror}")
        return
    for number, line in enumerate(lines, 1):
        line += "$" if data.is_present("show-ends") else ""
        console.print(f"{number:>6}  {line}" if data.is_present("number") else line, markup=False, highlight=False)


app.command("cat", "Display file contents") \
    .add_option("number", "Number all output lines", "-n", "--number", NoValue()) \
    .add_option("show-ends", "Display $ at end of each line", "-E", "--show-ends", NoValue()) \
    .set_expected_positional_args(1) \
    .set_callback(show_file)

calc = app.command("calc", "Small arithmetic helpers")


def total(data):
    numbers = [value.data for value in data.get_option_value("numbers").values]
    console.print(sum(numbers))


def scale(data):
    factor, offset = (value.data for value in data.get_option_value("pair").values)
    console.print(float(data.get_argument_at(0)) * factor + offset)


calc.subcommand("sum", "Add numbers together") \
    .add_option("numbers", "Numbers to add", "-n", "--numbers", RequiredMultiple([Float()])) \
    .set_callback(total)

calc.subcommand("scale", "Compute value * factor + offset") \
    .add_option("pair", "Factor and offset", "-p", "--pair", RequiredMultiple([Float(), Float()], 2)) \
    .set_expected_positional_args(1) \
    .set_callback(scale)


def show_tree(data):
    root = Path(data.get_argument_at(0) or ".")
    level = data.get_option_value("level").value
    level = level.data if level is not None else 3
    everything = data.is_present("all")
    directories = data.is_present("dirs-only")

    def walk(path, branch, depth):
        if depth > level:
            return
        for entry in sorted(path.iterdir(), key=lambda entry: entry.name):
            if entry.name.startswith(".") and not everything:
                continue
            if entry.is_dir():
                walk(entry, branch.add(f"[blue]{entry.name}/[/]"), depth + 1)
            elif not directories:
                branch.add(entry.name)

    walk(root, tree := Tree(f"[bold]{root}[/]"), 1)
    console.print(tree)


app.command("tree", "Display directory tree structure") \
    .add_option("all", "Show hidden files", "-a", "--all", NoValue()) \
    .add_option("dirs-only", "List directories only", "-d", "--dirs-only", NoValue()) \
    .add_option("level", "Maximum display depth", "-L", "--level", OptionalSingle(Int(3))) \
    .set_expected_positional_args(1) \
    .set_callback(show_tree)


if __name__ == '__main__':
    invoke(app)
