from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from termfolio.lib.console import log
from termfolio.lib.errors import (CommandNotFound, InvalidArguments, IsADirectory,
                                  NotADirectory, PathNotFound, TerminalError)
from termfolio.lib.output import OutputLine, error, info, output, syntax_for
from termfolio.lib.vfs import ROOT, FileSystemNode, VFS, join

if TYPE_CHECKING:
    from termfolio.lib.session import SessionState


@dataclass
class CommandResult:
    """What a handler hands back: lines to print plus requested side effects."""
    lines: list[OutputLine] = field(default_factory=list)
    cwd: str | None = None
    clear: bool = False
    close: bool = False


Handler = Callable[[list[str], "SessionState"], CommandResult]

REASONS = {
    PathNotFound: "No such file or directory",
    NotADirectory: "Not a directory",
    IsADirectory: "Is a directory",
}

# commands whose arguments are paths, used by tab completion
PATH_COMMANDS = frozenset({"cd", "cat", "ls", "tree"})

# shortcuts named after the top-level directories; left out of command
# completion so `pro<Tab>` still completes the directory
SECTION_COMMANDS = frozenset({"about", "experience", "projects", "skills", "contact"})

NEOFETCH_ART = (
    "  ______________  ",
    " |  __________  | ",
    " | | >_       | | ",
    " | |          | | ",
    " | |__________| | ",
    " |______________| ",
    "     _|____|_     ",
    "    |________|    ",
)


def tokenize(line: str) -> list[str]:
    return line.split()


def _text_lines(text: str, syntax: str | None = None) -> list[OutputLine]:
    return [output(row, syntax) for row in text.rstrip("\n").split("\n")]


class CommandInterpreter:
    """
    Parses a typed line and runs the matching command against the VFS.

    ``execute`` never raises: every failure, expected or not, comes back as
    a single error line.
    """

    def __init__(self, vfs: VFS):
        self.vfs = vfs
        self.commands: dict[str, Handler] = {
            "ls": self._cmd_ls, "cd": self._cmd_cd, "cat": self._cmd_cat,
            "pwd": self._cmd_pwd, "help": self._cmd_help, "clear": self._cmd_clear,
            "tree": self._cmd_tree, "echo": self._cmd_echo, "whoami": self._cmd_whoami,
            "date": self._cmd_date, "exit": self._cmd_exit, "gui": self._cmd_gui,
            "neofetch": self._cmd_neofetch, "about": self._cmd_about,
            "experience": self._cmd_experience, "projects": self._cmd_projects,
            "skills": self._cmd_skills, "contact": self._cmd_contact,
        }

    @property
    def command_names(self) -> list[str]:
        return sorted(self.commands)

    @property
    def completable_commands(self) -> list[str]:
        return [name for name in self.command_names if name not in SECTION_COMMANDS]

    def execute(self, line: str, state: SessionState) -> list[OutputLine]:
        return self.run(line, state).lines

    def run(self, line: str, state: SessionState) -> CommandResult:
        """Executes ``line`` and applies a directory change to ``state``."""
        parts = tokenize(line)
        if not parts:
            return CommandResult()
        name, args = parts[0], parts[1:]
        try:
            handler = self.commands.get(name)
            if handler is None:
                raise CommandNotFound(f"{name}: command not found")
            result = handler(args, state)
        except TerminalError as e:
            log(f"{name}: {e}", topic="shell")
            return CommandResult([error(str(e))])
        except Exception as e:
            log(f"Unexpected failure in '{line}': {e!r}", topic="shell")
            return CommandResult([error(f"{name}: {e}")])

        if result.cwd is not None:
            state.current_directory = result.cwd
        return result

    # --- Helpers ---

    def _locate(self, command: str, arg: str, cwd: str) -> FileSystemNode:
        try:
            return self.vfs.node(self.vfs.resolve_path(cwd, arg))
        except PathNotFound:
            if command == "ls":
                raise PathNotFound(f"ls: cannot access '{arg}': {REASONS[PathNotFound]}") from None
            raise PathNotFound(f"{command}: {arg}: {REASONS[PathNotFound]}") from None

    @staticmethod
    def _split_flags(command: str, args: list[str], allowed: str) -> tuple[set[str], list[str]]:
        flags: set[str] = set()
        rest: list[str] = []
        for arg in args:
            if arg.startswith("-") and len(arg) > 1:
                for flag in arg[1:]:
                    if flag not in allowed:
                        raise InvalidArguments(f"{command}: invalid option -- '{flag}'")
                    flags.add(flag)
            else:
                rest.append(arg)
        return flags, rest

    def _section(self, name: str, command: str | None = None) -> list[FileSystemNode]:
        """The files of a top-level section directory, sorted by name."""
        command = command or name
        node = self._locate(command, join(ROOT, name), ROOT)
        if not node.is_dir:
            raise NotADirectory(f"{command}: {node.path}: {REASONS[NotADirectory]}")
        return [node.children[child] for child in sorted(node.children) if not node.children[child].is_dir]

    def _print_section(self, name: str) -> CommandResult:
        lines: list[OutputLine] = []
        for i, file in enumerate(self._section(name)):
            if i:
                lines.append(output(""))
            lines.extend(_text_lines(file.content or "", syntax_for(file.path)))
        return CommandResult(lines)

    # --- Command Implementations ---

    def _cmd_ls(self, args: list[str], state: SessionState) -> CommandResult:
        """ls [-a] [PATH]

        List directory contents. If PATH is not specified, lists
        the current directory. Entries starting with a dot are
        shown only with -a.
        """
        flags, paths = self._split_flags("ls", args, "a")
        if len(paths) > 1:
            raise InvalidArguments("ls: too many arguments")
        arg = paths[0] if paths else "."
        node = self._locate("ls", arg, state.current_directory)
        if not node.is_dir:
            raise NotADirectory(f"ls: {arg}: {REASONS[NotADirectory]}")
        names = self.vfs.list(node.path)
        if "a" not in flags:
            names = [name for name in names if not name.startswith(".")]
        return CommandResult([output(name) for name in names])

    def _cmd_cd(self, args: list[str], state: SessionState) -> CommandResult:
        """cd [DIRECTORY]

        Change the current working directory to DIRECTORY.
        Without an argument, go back to the root.
        """
        if len(args) > 1:
            raise InvalidArguments("cd: too many arguments")
        if not args:
            return CommandResult(cwd=ROOT)
        node = self._locate("cd", args[0], state.current_directory)
        if not node.is_dir:
            raise NotADirectory(f"cd: {args[0]}: {REASONS[NotADirectory]}")
        return CommandResult(cwd=node.path)

    def _cmd_cat(self, args: list[str], state: SessionState) -> CommandResult:
        """cat <FILE>...

        Display the contents of one or more files.
        """
        if not args:
            raise InvalidArguments("cat: missing file operand")
        lines: list[OutputLine] = []
        for arg in args:
            try:
                node = self._locate("cat", arg, state.current_directory)
                if node.is_dir:
                    raise IsADirectory(f"cat: {arg}: {REASONS[IsADirectory]}")
                lines.extend(_text_lines(self.vfs.read(node.path), syntax_for(node.path)))
            except TerminalError as e:
                lines.append(error(str(e)))
        return CommandResult(lines)

    def _cmd_pwd(self, args: list[str], state: SessionState) -> CommandResult:
        """pwd

        Print the current working directory.
        """
        return CommandResult([output(state.current_directory)])

    def _cmd_help(self, args: list[str], state: SessionState) -> CommandResult:
        """help [COMMAND]

        Display helpful information about built-in commands.
        If COMMAND is specified, gives detailed help on that command.
        """
        if not args:
            lines = [info("termfolio shell"), info("Type `help <command>` for more info."), output("")]
            for name in self.command_names:
                doc = self.commands[name].__doc__
                if doc:
                    usage = doc.strip().splitlines()[0]
                    summary = next((row.strip() for row in doc.strip().splitlines()[1:] if row.strip()), "")
                    lines.append(output(f"  {usage:<18} {summary}"))
            return CommandResult(lines)

        cmd = args[0]
        if cmd not in self.commands or not self.commands[cmd].__doc__:
            raise InvalidArguments(f"help: no help topics match `{cmd}`")
        rows = [row.strip() for row in self.commands[cmd].__doc__.strip().splitlines()]
        return CommandResult([info(rows[0])] + [output(row) for row in rows[1:]])

    def _cmd_clear(self, args: list[str], state: SessionState) -> CommandResult:
        """clear

        Clear the terminal screen.
        """
        return CommandResult(clear=True)

    def _cmd_tree(self, args: list[str], state: SessionState) -> CommandResult:
        """tree [PATH]

        Show the directory tree below PATH (default: here).
        """
        if len(args) > 1:
            raise InvalidArguments("tree: too many arguments")
        arg = args[0] if args else "."
        start = self._locate("tree", arg, state.current_directory)
        if not start.is_dir:
            raise NotADirectory(f"tree: {arg}: {REASONS[NotADirectory]}")

        lines = [output(start.path)]
        directories = files = 0
        stack: list[tuple[FileSystemNode, str, bool]] = []

        def push_children(node: FileSystemNode, prefix: str) -> None:
            names = [name for name in sorted(node.children) if not name.startswith(".")]
            for i, name in reversed(list(enumerate(names))):
                stack.append((node.children[name], prefix, i == len(names) - 1))

        push_children(start, "")
        while stack:
            node, prefix, is_last = stack.pop()
            lines.append(output(f"{prefix}{'└── ' if is_last else '├── '}{node.name}"))
            if node.is_dir:
                directories += 1
                push_children(node, prefix + ("    " if is_last else "│   "))
            else:
                files += 1
        lines.append(info(f"{directories} directories, {files} files"))
        return CommandResult(lines)

    def _cmd_echo(self, args: list[str], state: SessionState) -> CommandResult:
        """echo [TEXT]...

        Print TEXT back, separated by single spaces.
        """
        return CommandResult([output(" ".join(args))])

    def _cmd_whoami(self, args: list[str], state: SessionState) -> CommandResult:
        """whoami

        Print the name of the current user.
        """
        return CommandResult([output("guest"), info("You are browsing this portfolio as a guest. Welcome!")])

    def _cmd_date(self, args: list[str], state: SessionState) -> CommandResult:
        """date

        Print the current date and time.
        """
        return CommandResult([output(datetime.now().strftime("%a %b %d %H:%M:%S %Y"))])

    def _cmd_exit(self, args: list[str], state: SessionState) -> CommandResult:
        """exit

        Close the terminal and return to the regular view.
        """
        return CommandResult([info("Closing terminal...")], close=True)

    def _cmd_gui(self, args: list[str], state: SessionState) -> CommandResult:
        """gui

        Switch back to the regular view (same as exit).
        """
        return self._cmd_exit(args, state)

    # --- Section shortcuts ---

    def _cmd_about(self, args: list[str], state: SessionState) -> CommandResult:
        """about

        Print the whole about section: bio, highlights and stats.
        """
        return self._print_section("about")

    def _cmd_experience(self, args: list[str], state: SessionState) -> CommandResult:
        """experience

        Summarise every position listed under experience/.
        """
        lines = [info("Work Experience"), info("===============")]
        for file in self._section("experience"):
            try:
                entry = json.loads(file.content or "")
                header = f"{entry['company']} - {entry['role']}"
                period, achievements = entry["period"], entry["achievements"]
            except (ValueError, KeyError, TypeError):
                lines.append(error(f"experience: cannot parse {file.name}"))
                continue
            lines += [output(""), output(header), output(period)]
            if entry.get("link"):
                lines.append(output(f"Link: {entry['link']}"))
            lines.append(output("Key Achievements:"))
            lines += [output(f"  • {item}") for item in achievements]
        return CommandResult(lines)

    def _cmd_projects(self, args: list[str], state: SessionState) -> CommandResult:
        """projects

        List the projects with a one-line description each.
        """
        lines = [info("Projects"), info("========")]
        for file in self._section("projects"):
            rows = [row.strip() for row in (file.content or "").splitlines() if row.strip()]
            title = rows[0].lstrip("#").strip() if rows else file.name
            lines += [output(""), output(f"# {title}", "markdown")]
            if len(rows) > 1 and not rows[1].startswith("#"):
                lines.append(output(rows[1]))
            lines.append(info(f"More: cat projects/{file.name}"))
        return CommandResult(lines)

    def _cmd_skills(self, args: list[str], state: SessionState) -> CommandResult:
        """skills

        Print every skill list under skills/.
        """
        return self._print_section("skills")

    def _cmd_contact(self, args: list[str], state: SessionState) -> CommandResult:
        """contact

        Print the contact details.
        """
        return self._print_section("contact")

    def _cmd_neofetch(self, args: list[str], state: SessionState) -> CommandResult:
        """neofetch

        Show a system summary of this portfolio.
        """
        about = {file.name: file.content or "" for file in self._section("about", "neofetch")}
        name, _, role = about.get("bio.txt", "").partition("\n")[0].partition(" - ")

        rows = ["guest@termfolio", "-" * 15]
        if name:
            rows.append(f"Name: {name}")
        if role:
            rows.append(f"Role: {role}")
        rows += [row.lstrip("• ") for row in about.get("stats.txt", "").splitlines() if row.startswith("•")]
        try:
            languages = self.vfs.read(join(ROOT, "skills/languages.txt"))
        except TerminalError:
            languages = ""
        bullets = [row.strip().lstrip("• ") for row in languages.splitlines() if row.strip().startswith("•")]
        if bullets:
            rows.append(f"Languages: {', '.join(bullets)}")
        sections = [entry for entry in self.vfs.list(ROOT) if not entry.startswith(".")]
        rows += ["Shell: termfolio", f"Sections: {', '.join(sections)}"]

        width = max(len(art) for art in NEOFETCH_ART)
        lines = []
        for i in range(max(len(NEOFETCH_ART), len(rows))):
            art = NEOFETCH_ART[i] if i < len(NEOFETCH_ART) else ""
            row = rows[i] if i < len(rows) else ""
            lines.append(output(f"{art:<{width}}  {row}".rstrip()))
        return CommandResult(lines)
