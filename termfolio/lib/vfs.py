from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from termfolio.lib.console import log
from termfolio.lib.errors import IsADirectory, NotADirectory, PathNotFound

ROOT = "/"


class NodeKind(Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class FileSystemNode:
    """One file or directory of the virtual tree. Immutable once built."""
    name: str
    path: str
    kind: NodeKind
    content: str | None = None
    children: Mapping[str, FileSystemNode] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIRECTORY


def join(parent: str, name: str) -> str:
    return f"{parent.rstrip('/')}/{name}"


def split(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


def _check_name(name: object, parent: str) -> None:
    if not isinstance(name, str) or not name or "/" in name or name in (".", ".."):
        raise ValueError(f"invalid entry name {name!r} in {parent}")


def build(snapshot: Mapping) -> FileSystemNode:
    """
    Turns a content snapshot into a tree rooted at ``/``.

    A snapshot maps names to either a string (a file and its content) or
    another mapping (a directory). Directories are collected in pre-order
    first, then materialised in reverse so every child exists before the
    frozen parent that holds it.
    """
    if not isinstance(snapshot, Mapping):
        raise ValueError("content snapshot must be a mapping")

    order: list[tuple[str, str, Mapping]] = []
    seen: set[int] = set()
    stack: list[tuple[str, str, Mapping]] = [(ROOT, ROOT, snapshot)]
    while stack:
        path, name, mapping = stack.pop()
        if id(mapping) in seen:
            raise ValueError(f"directory {path} appears more than once in the snapshot")
        seen.add(id(mapping))
        order.append((path, name, mapping))
        for child_name, value in mapping.items():
            _check_name(child_name, path)
            if isinstance(value, Mapping):
                stack.append((join(path, child_name), child_name, value))
            elif not isinstance(value, str):
                raise ValueError(f"{join(path, child_name)}: file content must be a string")

    built: dict[str, FileSystemNode] = {}
    for path, name, mapping in reversed(order):
        children: dict[str, FileSystemNode] = {}
        for child_name, value in mapping.items():
            child_path = join(path, child_name)
            if isinstance(value, str):
                children[child_name] = FileSystemNode(child_name, child_path, NodeKind.FILE, value)
            else:
                children[child_name] = built.pop(child_path)
        built[path] = FileSystemNode(name, path, NodeKind.DIRECTORY, None, MappingProxyType(children))
    return built[ROOT]


class VFS:
    """A read-only virtual file system over the portfolio content."""

    def __init__(self, root: FileSystemNode):
        if root.path != ROOT or not root.is_dir:
            raise ValueError("the root node must be the directory '/'")
        self.root = root
        # flat index for O(1) lookups
        self._index: dict[str, FileSystemNode] = {node.path: node for _, node in self.walk_nodes(root)}
        log(f"VFS ready with {len(self._index)} nodes.", topic="vfs")

    @classmethod
    def from_snapshot(cls, snapshot: Mapping) -> VFS:
        return cls(build(snapshot))

    @staticmethod
    def walk_nodes(start: FileSystemNode) -> Iterator[tuple[int, FileSystemNode]]:
        """Pre-order walk yielding ``(depth, node)``, siblings sorted by name."""
        stack = [(0, start)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            for name in sorted(node.children, reverse=True):
                stack.append((depth + 1, node.children[name]))

    def node(self, path: str) -> FileSystemNode:
        """Looks up an absolute, normalised path."""
        try:
            return self._index[path]
        except KeyError:
            raise PathNotFound(f"{path}: No such file or directory") from None

    def is_dir(self, path: str) -> bool:
        node = self._index.get(path)
        return node is not None and node.is_dir

    def resolve_path(self, cwd: str, expr: str) -> str:
        """
        Resolves ``expr`` against ``cwd`` and returns an absolute path that
        exists in the tree.

        ``.`` is skipped, ``..`` pops a segment and stops at the root, ``~``
        stands for the root. Every segment is checked as it is pushed, so a
        missing segment, or a file used as a directory, fails right there.
        """
        if expr == "~" or expr.startswith("~/"):
            expr = ROOT + expr[1:]
        segments = [] if expr.startswith("/") else split(cwd)
        if not self.is_dir(join(ROOT, "/".join(segments)) if segments else ROOT):
            raise PathNotFound(f"{cwd}: No such file or directory")

        parts = split(expr)
        last = max((i for i, part in enumerate(parts) if part != "."), default=-1)
        for i, part in enumerate(parts):
            if part == ".":
                continue
            if part == "..":
                if segments:
                    segments.pop()
                continue
            candidate = join(ROOT, "/".join([*segments, part]))
            node = self._index.get(candidate)
            if node is None or (i != last and not node.is_dir):
                raise PathNotFound(f"{expr}: No such file or directory")
            segments.append(part)
        return join(ROOT, "/".join(segments)) if segments else ROOT

    def list(self, path: str) -> list[str]:
        """Lists the entry names of a directory, sorted."""
        node = self.node(path)
        if not node.is_dir:
            raise NotADirectory(f"{path}: Not a directory")
        return sorted(node.children)

    def read(self, path: str) -> str:
        """Returns the content of a file."""
        node = self.node(path)
        if node.is_dir:
            raise IsADirectory(f"{path}: Is a directory")
        return node.content or ""

    def get_completions(self, partial: str, cwd: str) -> list[str]:
        """
        Entry names starting with ``partial``, sorted.

        A partial with a ``/`` completes inside the directory named by the
        part before the last slash and keeps that part in each candidate.
        Dot-entries only show up once the prefix itself starts with a dot.
        """
        head, sep, prefix = partial.rpartition("/")
        if sep:
            try:
                base = self.resolve_path(cwd, head or ROOT)
            except PathNotFound:
                return []
        else:
            base = cwd
        if not self.is_dir(base):
            return []
        return [
            f"{head}{sep}{name}"
            for name in self.list(base)
            if name.startswith(prefix) and (prefix.startswith(".") or not name.startswith("."))
        ]
