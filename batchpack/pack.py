from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    Protocol,
    Sequence,
)

import logging
import os
import shutil

from . import batchcmds
from . import errors
from . import formats as pkg_formats
from . import hooks
from . import tools

if TYPE_CHECKING:
    from cleo.io.io import IO

    from . import project as proj
    from . import symbols


logger = logging.getLogger(__name__)

ALL_FORMATS = "all"


def parse_formats(
    selector: str | Sequence[str] | None,
) -> list[str] | None:
    """Parse a format selector such as ``"zip,deb"``.

    Returns None when every declared format is wanted.
    """
    if selector is None:
        return None
    if isinstance(selector, str):
        names = [name.strip() for name in selector.split(",")]
    else:
        names = [name.strip() for name in selector]
    names = [name for name in names if name]
    if not names or names[0] == ALL_FORMATS:
        return None
    return names


class Builder(Protocol):
    def build_targets(
        self, project: proj.Project, names: Sequence[str]
    ) -> None: ...


class ToolBuilder:
    """Build targets by running the project's build tool."""

    def build_targets(
        self, project: proj.Project, names: Sequence[str]
    ) -> None:
        for name in names:
            tools.cmd(
                project.program,
                "build",
                "-P",
                ".",
                "-y",
                name,
                cwd=project.directory,
                stdout=None,
            )


class Packer:
    def __init__(
        self,
        project: proj.Project,
        *,
        formats: str | Sequence[str] | None = None,
        autobuild: bool = False,
        builder: Builder | None = None,
        scanner: symbols.Scanner | None = None,
        outputdir: str | None = None,
        io: IO | None = None,
    ) -> None:
        self._project = project
        self._formats = parse_formats(formats)
        self._autobuild = autobuild
        self._builder = builder if builder is not None else ToolBuilder()
        self._scanner = scanner
        self._io = io
        if outputdir is not None:
            for package in project.packages.values():
                package.outputdir = os.path.join(outputdir, package.name)

    @property
    def requested_formats(self) -> list[str] | None:
        return self._formats

    def get_target_names(self) -> list[str]:
        names: list[str] = []
        for package in self._project.packages.values():
            for name in package.targets:
                if name not in names:
                    names.append(name)
        return names

    def build_targets(self) -> None:
        names = self.get_target_names()
        if names:
            logger.info(f"building {', '.join(names)}")
            self._builder.build_targets(self._project, names)

    def run(self) -> list[str]:
        if self._autobuild:
            self.build_targets()

        artifacts = []
        for package in self._project.packages.values():
            artifacts.extend(self.pack_package(package))
        return artifacts

    def pack_package(self, package: proj.Package) -> list[str]:
        shutil.rmtree(package.buildir, ignore_errors=True)
        os.makedirs(package.outputdir, exist_ok=True)

        if not package.formats:
            raise errors.ConfigurationError(
                f"pack({package.name}): formats not found, declare at "
                f"least one format in the package"
            )

        if self._formats is not None:
            for name in self._formats:
                if name not in package.formats:
                    logger.info(f"{package.name} does not declare {name}")

        artifacts = []
        for name, spec in package.formats.items():
            if self._formats is not None and name not in self._formats:
                continue
            ctx = pkg_formats.PackContext(
                project=self._project,
                batch=batchcmds.CommandBatch(),
                package=package,
                scanner=self._scanner,
                io=self._io,
            )
            backend = self._load_package(package, spec, ctx)
            hooks.run_pipeline(
                hooks.Phase.PACK, package, ctx, default=backend.package
            )
            artifacts.extend(ctx.artifacts)
        return artifacts

    def _load_package(
        self,
        package: proj.Package,
        spec: proj.FormatSpec,
        ctx: pkg_formats.PackContext,
    ) -> pkg_formats.Format:
        package.format_set(spec.name)
        backend = pkg_formats.get_format(spec)
        logger.info(f"packing {package.name} as {spec.name}")
        backend.load(package, ctx)
        if package.on_load is not None:
            package.on_load(package, ctx)
        return backend


def pack(
    project: proj.Project,
    *,
    formats: str | Sequence[str] | None = None,
    autobuild: bool = False,
    builder: Builder | None = None,
    scanner: symbols.Scanner | None = None,
    outputdir: str | None = None,
    io: IO | None = None,
) -> list[str]:
    packer = Packer(
        project,
        formats=formats,
        autobuild=autobuild,
        builder=builder,
        scanner=scanner,
        outputdir=outputdir,
        io=io,
    )
    return packer.run()
