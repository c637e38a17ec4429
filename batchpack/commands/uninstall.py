from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    ClassVar,
)

from cleo.helpers import argument, option

from batchpack import actions

from . import base

if TYPE_CHECKING:
    from cleo.io.inputs.argument import Argument
    from cleo.io.inputs.option import Option


class Uninstall(base.Command):
    name = "uninstall"
    description = "Remove an installed target and its dependencies."

    arguments: ClassVar[list[Argument]] = [
        argument(
            "target",
            "Target to uninstall (all targets when omitted).",
            optional=True,
        ),
    ]
    options: ClassVar[list[Option]] = base.Command.options + [
        option(
            "installdir",
            "o",
            "Directory the targets were installed into.",
            flag=False,
        ),
    ]

    def handle(self) -> int:
        installdir = self.option("installdir")
        if not installdir:
            self.line_error("<error>--installdir is required</error>")
            return 1

        project = self.load_project()
        visited = actions.uninstall(
            project,
            self.argument("target"),
            installdir=installdir,
            io=self.io,
        )
        self.line(
            f"<info>uninstall ok</info> ({len(visited.finished)} targets)"
        )
        return 0
