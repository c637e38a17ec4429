from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    ClassVar,
)

import os

from cleo.helpers import argument, option

from batchpack import errors
from batchpack import installcmds

from . import base

if TYPE_CHECKING:
    from cleo.io.inputs.argument import Argument
    from cleo.io.inputs.option import Option


_phases = {
    "build": installcmds.get_buildcmds,
    "install": installcmds.get_installcmds,
    "uninstall": installcmds.get_uninstallcmds,
}


class Export(base.Command):
    name = "export"
    description = "Export the command batch of a package as JSON."
    help = """Records the commands a package would run for the given phase
without touching the file system.  The batch can be executed later
with the <comment>replay</comment> command."""

    arguments: ClassVar[list[Argument]] = [
        argument("package", "Package to export."),
    ]
    options: ClassVar[list[Option]] = base.Command.options + [
        option(
            "phase",
            None,
            "One of build, install or uninstall.",
            flag=False,
            default="install",
        ),
        option(
            "installdir",
            None,
            "Install root the commands refer to.",
            flag=False,
        ),
        option(
            "output",
            "o",
            "File to write the batch to (stdout when omitted).",
            flag=False,
        ),
    ]

    def handle(self) -> int:
        phase = self.option("phase")
        try:
            get_cmds = _phases[phase]
        except KeyError:
            raise errors.ConfigurationError(
                f"unknown phase {phase!r}, expected one of "
                f"{', '.join(_phases)}"
            ) from None

        project = self.load_project()
        name = self.argument("package")
        try:
            package = project.packages[name]
        except KeyError:
            raise errors.ConfigurationError(
                f"unknown package: {name}"
            ) from None

        installdir = self.option("installdir")
        if installdir:
            package.image_root = os.path.abspath(installdir)

        batch = get_cmds(project, package)
        output = self.option("output")
        if output:
            batch.dump(output)
            self.line(
                f"<info>exported {len(batch)} commands to {output}</info>"
            )
        else:
            self.line(batch.to_json())
        return 0
