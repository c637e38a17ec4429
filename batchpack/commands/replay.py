from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    ClassVar,
)

import logging
import os

from cleo.helpers import argument, option

from batchpack import batchcmds
from batchpack import errors

from . import base

if TYPE_CHECKING:
    from cleo.io.inputs.argument import Argument
    from cleo.io.inputs.option import Option


logger = logging.getLogger(__name__)


class Replay(base.Command):
    name = "replay"
    description = "Execute an exported command batch."

    arguments: ClassVar[list[Argument]] = [
        argument("file", "Batch file written by the export command."),
    ]
    options: ClassVar[list[Option]] = base.Command.options + [
        option(
            "rootdir",
            None,
            "Directory empty parents are never removed above "
            "(defaults to the one recorded in the batch).",
            flag=False,
        ),
        option("dry-run", None, "Only print the commands."),
    ]

    def handle(self) -> int:
        path = self.argument("file")
        try:
            batch = batchcmds.CommandBatch.load(path)
        except FileNotFoundError:
            raise errors.BatchFormatError(
                f"batch file not found: {path}"
            ) from None

        executor: batchcmds.Executor
        if self.option("dry-run"):
            executor = batchcmds.DryRunExecutor()
        else:
            rootdir = self.option("rootdir") or batch.rootdir
            if rootdir is None:
                logger.warning(
                    f"{path} records no install root, empty directories "
                    f"may be removed up to the file system root"
                )
            executor = batchcmds.FileSystemExecutor(
                rootdir=os.path.abspath(rootdir) if rootdir else None,
                cwd=os.getcwd(),
            )

        batch.replay(executor)
        self.line(f"<info>replayed {len(batch)} commands</info>")
        return 0
