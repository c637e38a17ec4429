from __future__ import annotations
from typing import (
    Any,
    ClassVar,
    Iterable,
    Iterator,
    Union,
)

import dataclasses
import json
import logging
import os
import pathlib
import shutil

from . import errors
from . import tools


logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


@dataclasses.dataclass(frozen=True)
class CopyCommand:
    op: ClassVar[str] = "cp"

    src: str
    dst: str

    def __str__(self) -> str:
        return f"cp {self.src} {self.dst}"


@dataclasses.dataclass(frozen=True)
class RemoveCommand:
    op: ClassVar[str] = "rm"

    path: str
    emptydirs: bool = False

    def __str__(self) -> str:
        return f"rm {self.path}"


@dataclasses.dataclass(frozen=True)
class MakeDirCommand:
    op: ClassVar[str] = "mkdir"

    path: str

    def __str__(self) -> str:
        return f"mkdir {self.path}"


@dataclasses.dataclass(frozen=True)
class RunCommand:
    op: ClassVar[str] = "runv"

    program: str
    argv: tuple[str, ...] = ()

    def __str__(self) -> str:
        return " ".join((self.program,) + self.argv)


Command = Union[CopyCommand, RemoveCommand, MakeDirCommand, RunCommand]

_COMMAND_TYPES: dict[str, type[Command]] = {
    cls.op: cls  # type: ignore[misc]
    for cls in (CopyCommand, RemoveCommand, MakeDirCommand, RunCommand)
}


class Executor:
    def copy(self, cmd: CopyCommand) -> None:
        raise NotImplementedError

    def remove(self, cmd: RemoveCommand) -> None:
        raise NotImplementedError

    def mkdir(self, cmd: MakeDirCommand) -> None:
        raise NotImplementedError

    def run(self, cmd: RunCommand) -> None:
        raise NotImplementedError

    def execute(self, cmd: Command) -> None:
        if isinstance(cmd, CopyCommand):
            self.copy(cmd)
        elif isinstance(cmd, RemoveCommand):
            self.remove(cmd)
        elif isinstance(cmd, MakeDirCommand):
            self.mkdir(cmd)
        elif isinstance(cmd, RunCommand):
            self.run(cmd)
        else:
            raise TypeError(f"unexpected command: {cmd!r}")


class FileSystemExecutor(Executor):
    """Perform commands against the real file system.

    *rootdir* bounds the upward walk of ``rm`` with ``emptydirs`` set,
    *cwd* is the working directory of external programs.
    """

    def __init__(
        self,
        rootdir: str | os.PathLike[str] | None = None,
        cwd: str | os.PathLike[str] | None = None,
    ) -> None:
        self._rootdir = (
            pathlib.Path(rootdir).absolute() if rootdir is not None else None
        )
        self._cwd = cwd

    def copy(self, cmd: CopyCommand) -> None:
        src = pathlib.Path(cmd.src)
        dst = pathlib.Path(cmd.dst)
        dst.parent.mkdir(parents=True, exist_ok=True)
        if src.is_dir():
            shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)
        elif src.is_symlink():
            if dst.is_symlink() or dst.exists():
                dst.unlink()
            dst.symlink_to(os.readlink(src))
        else:
            shutil.copy2(src, dst)
        logger.info(f"cp {src} -> {dst}")

    def remove(self, cmd: RemoveCommand) -> None:
        path = pathlib.Path(cmd.path)
        if path.is_symlink() or path.is_file():
            path.unlink()
            logger.info(f"rm {path}")
        elif path.is_dir():
            shutil.rmtree(path)
            logger.info(f"rm -r {path}")
        if cmd.emptydirs:
            self._remove_empty_parents(path.absolute().parent)

    def _remove_empty_parents(self, directory: pathlib.Path) -> None:
        while directory != directory.parent:
            if self._rootdir is not None:
                if directory == self._rootdir:
                    break
                if not directory.is_relative_to(self._rootdir):
                    break
            if not directory.is_dir() or any(directory.iterdir()):
                break
            directory.rmdir()
            logger.info(f"rmdir {directory}")
            directory = directory.parent

    def mkdir(self, cmd: MakeDirCommand) -> None:
        pathlib.Path(cmd.path).mkdir(parents=True, exist_ok=True)
        logger.info(f"mkdir {cmd.path}")

    def run(self, cmd: RunCommand) -> None:
        tools.cmd(cmd.program, *cmd.argv, cwd=self._cwd, stdout=None)


class DryRunExecutor(Executor):
    """Log commands instead of performing them."""

    def __init__(self) -> None:
        self.executed: list[Command] = []

    def execute(self, cmd: Command) -> None:
        logger.warning(f"(dry-run) {cmd}")
        self.executed.append(cmd)


class CommandBatch:
    """An ordered record of file system actions.

    Recording never touches the file system; commands take effect only
    when the batch is replayed against an executor.
    """

    def __init__(
        self,
        commands: Iterable[Command] = (),
        rootdir: str | os.PathLike[str] | None = None,
    ) -> None:
        self._commands: list[Command] = list(commands)
        self.rootdir = str(rootdir) if rootdir is not None else None

    def __repr__(self) -> str:
        return f"<CommandBatch of {len(self._commands)} commands>"

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommandBatch):
            return NotImplemented
        return (
            self._commands == other._commands
            and self.rootdir == other.rootdir
        )

    @property
    def commands(self) -> tuple[Command, ...]:
        return tuple(self._commands)

    def cp(
        self, src: str | os.PathLike[str], dst: str | os.PathLike[str]
    ) -> None:
        self._commands.append(CopyCommand(str(src), str(dst)))

    def rm(
        self, path: str | os.PathLike[str], *, emptydirs: bool = False
    ) -> None:
        self._commands.append(RemoveCommand(str(path), emptydirs))

    def mkdir(self, path: str | os.PathLike[str]) -> None:
        self._commands.append(MakeDirCommand(str(path)))

    def runv(self, program: str, argv: Iterable[Any] = ()) -> None:
        self._commands.append(
            RunCommand(program, tuple(str(arg) for arg in argv))
        )

    def extend(self, other: CommandBatch) -> None:
        self._commands.extend(other._commands)

    def replay(self, executor: Executor) -> None:
        for index, cmd in enumerate(self._commands):
            try:
                executor.execute(cmd)
            except (OSError, errors.ExternalCommandError) as e:
                logger.error(f"{cmd}: {e}")
                raise errors.ReplayError(cmd, index) from e

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": FORMAT_VERSION,
            "rootdir": self.rootdir,
            "commands": [
                {"op": cmd.op, **_command_fields(cmd)}
                for cmd in self._commands
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CommandBatch:
        if not isinstance(data, dict):
            raise errors.BatchFormatError("batch must be a JSON object")
        version = data.get("version")
        if version != FORMAT_VERSION:
            raise errors.BatchFormatError(
                f"unsupported batch version: {version!r}"
            )
        rootdir = data.get("rootdir")
        if rootdir is not None and not isinstance(rootdir, str):
            raise errors.BatchFormatError("rootdir must be a string")
        entries = data.get("commands", [])
        if not isinstance(entries, list):
            raise errors.BatchFormatError("commands must be a JSON array")
        commands = [
            _command_from_dict(index, entry)
            for index, entry in enumerate(entries)
        ]
        return cls(commands, rootdir=rootdir)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> CommandBatch:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise errors.BatchFormatError(f"invalid batch: {e}") from None
        return cls.from_dict(data)

    def dump(self, path: str | os.PathLike[str]) -> None:
        with open(path, "w") as f:
            f.write(self.to_json())
            f.write("\n")

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> CommandBatch:
        with open(path, "r") as f:
            return cls.from_json(f.read())


def _command_fields(cmd: Command) -> dict[str, Any]:
    fields = dataclasses.asdict(cmd)
    if isinstance(cmd, RunCommand):
        fields["argv"] = list(cmd.argv)
    return fields


_field_types: dict[str, type] = {
    "src": str,
    "dst": str,
    "path": str,
    "program": str,
    "emptydirs": bool,
    "argv": list,
}


def _command_from_dict(index: int, entry: Any) -> Command:
    if not isinstance(entry, dict):
        raise errors.BatchFormatError(f"command #{index} must be an object")
    entry = dict(entry)
    op = entry.pop("op", None)
    cmd_cls = _COMMAND_TYPES.get(op) if isinstance(op, str) else None
    if cmd_cls is None:
        raise errors.BatchFormatError(f"unknown command: {op!r}")
    for name, value in entry.items():
        expected = _field_types.get(name)
        if expected is not None and not isinstance(value, expected):
            raise errors.BatchFormatError(
                f"command #{index} ({op}): {name} must be "
                f"of type {expected.__name__}"
            )
    if "argv" in entry:
        if not all(isinstance(arg, str) for arg in entry["argv"]):
            raise errors.BatchFormatError(
                f"command #{index} ({op}): argv must hold strings"
            )
        entry["argv"] = tuple(entry["argv"])
    try:
        return cmd_cls(**entry)
    except TypeError as e:
        raise errors.BatchFormatError(f"invalid {op} command: {e}") from None
