from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    ClassVar,
)

from cleo.helpers import option

from batchpack import pack

from . import base

if TYPE_CHECKING:
    from cleo.io.inputs.option import Option


class Pack(base.Command):
    name = "pack"
    description = "Build distributable packages for the project."
    help = """Packs every package declared by the project in each of its
formats, or only in the formats given with <comment>--formats</comment>."""

    options: ClassVar[list[Option]] = base.Command.options + [
        option(
            "formats",
            "f",
            "Comma-separated list of formats, or 'all'.",
            flag=False,
            default="all",
        ),
        option("autobuild", None, "Build the packaged targets first."),
        option(
            "outputdir",
            "o",
            "Directory to write packages into.",
            flag=False,
        ),
    ]

    def handle(self) -> int:
        project = self.load_project()
        artifacts = pack.pack(
            project,
            formats=self.option("formats"),
            autobuild=self.option("autobuild"),
            outputdir=self.option("outputdir"),
            io=self.io,
        )
        for artifact in artifacts:
            self.line(f"  {artifact}")
        self.line("<info>pack ok</info>")
        return 0
