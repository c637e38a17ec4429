from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    ClassVar,
)

import logging

from cleo.commands.command import Command as BaseCommand
from cleo.helpers import option

from poetry.console.logging.io_formatter import IOFormatter
from poetry.console.logging.io_handler import IOHandler

from batchpack import errors
from batchpack import loader

if TYPE_CHECKING:
    from cleo.io.inputs.option import Option
    from cleo.io.io import IO

    from batchpack import project as proj


class Command(BaseCommand):
    options: ClassVar[list[Option]] = [
        option(
            "project",
            "P",
            "Project file or directory.",
            flag=False,
            default=loader.DEFAULT_PROJECT_FILE,
        ),
    ]

    _loggers: ClassVar[list[str]] = ["batchpack"]

    def run(self, io: IO) -> int:
        for logger in self._loggers:
            self.register_logger(logging.getLogger(logger), io)

        try:
            return super().run(io)
        except errors.BatchpackError as e:
            io.write_error_line(f"<error>{e}</error>")
            return 1

    def register_logger(self, logger: logging.Logger, io: IO) -> None:
        handler = IOHandler(io)
        handler.setFormatter(IOFormatter())
        logger.handlers = [handler]
        logger.propagate = False

        level = logging.WARNING
        if io.is_debug():
            level = logging.DEBUG
        elif io.is_very_verbose() or io.is_verbose():
            level = logging.INFO

        logger.setLevel(level)

    def load_project(self) -> proj.Project:
        return loader.load_project(self.option("project"))
