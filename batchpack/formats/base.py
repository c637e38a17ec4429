from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    Any,
    ClassVar,
)

import dataclasses
import json
import logging
import os
import pathlib

import magic

from batchpack import batchcmds
from batchpack import hooks
from batchpack import installcmds
from batchpack import platforms

if TYPE_CHECKING:
    from batchpack import project as proj


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class PackContext(hooks.HookContext):
    artifacts: list[str] = dataclasses.field(default_factory=list)


class Format:
    """A packaging backend, one instance per package and format."""

    name: ClassVar[str]

    def __init__(self, spec: proj.FormatSpec) -> None:
        self.spec = spec

    def __repr__(self) -> str:
        return f"<Format {self.name}>"

    def get_option(self, name: str, default: Any = None) -> Any:
        return self.spec.options.get(name, default)

    def load(self, package: proj.Package, ctx: PackContext) -> None:
        pass

    def package(self, package: proj.Package, ctx: PackContext) -> None:
        raise NotImplementedError

    def stage(
        self, package: proj.Package, ctx: PackContext
    ) -> batchcmds.CommandBatch:
        """Assemble the package image by replaying its install commands."""
        batch = installcmds.get_buildcmds(
            ctx.project, package, scanner=ctx.scanner
        )
        batch.extend(
            installcmds.get_installcmds(
                ctx.project, package, scanner=ctx.scanner
            )
        )
        os.makedirs(package.installdir, exist_ok=True)
        batch.replay(
            batchcmds.FileSystemExecutor(
                rootdir=package.installdir, cwd=ctx.project.directory
            )
        )
        return batch

    def get_artifact_path(self, package: proj.Package, suffix: str) -> str:
        return os.path.join(package.outputdir, package.get_basename() + suffix)

    def add_artifact(
        self,
        package: proj.Package,
        ctx: PackContext,
        artifact: str,
        encoding: str = "identity",
    ) -> None:
        ctx.artifacts.append(artifact)
        if ctx.io is not None:
            ctx.io.write_line(f"<info>{package.name}: {artifact}</info>")
        self._write_metadata(package, artifact, encoding)

    def _write_metadata(
        self, package: proj.Package, artifact: str, encoding: str
    ) -> None:
        path = pathlib.Path(package.outputdir) / "build-metadata.json"
        if path.exists():
            with open(path) as f:
                metadata = json.load(f)
        else:
            metadata = {
                "name": package.name,
                "version": package.version.text,
                "plat": package.plat,
                "arch": package.arch,
                "host": platforms.get_host_ident(),
                "installrefs": [],
                "contents": {},
            }

        ref = os.path.basename(artifact)
        if ref not in metadata["installrefs"]:
            metadata["installrefs"].append(ref)
        metadata["contents"][ref] = {
            "format": self.name,
            "type": magic.from_file(artifact, mime=True),
            "encoding": encoding,
        }

        with open(path, "w") as f:
            json.dump(metadata, f, indent=2)
