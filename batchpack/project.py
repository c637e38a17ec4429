from __future__ import annotations
from typing import (
    Iterator,
    Optional,
)

import dataclasses
import enum
import glob
import os
import pathlib

from poetry.core.constraints.version import Version

from . import errors
from . import hooks
from . import topological
from . import tools


WINDOWS_PLATS = frozenset({"windows", "mingw"})

DEFAULT_BASENAME = "@@name-@@version-@@plat-@@arch"


class TargetKind(enum.Enum):
    BINARY = "binary"
    SHARED = "shared"
    STATIC = "static"
    HEADERONLY = "headeronly"
    SOURCE = "source"

    @property
    def links_shared(self) -> bool:
        """Whether artifacts of this kind are linked against shlibs."""
        return self in {TargetKind.BINARY, TargetKind.SHARED}


@dataclasses.dataclass(frozen=True)
class DependencyEdge:
    name: str
    interface: bool = False


@dataclasses.dataclass(frozen=True)
class FileEntry:
    src: str
    prefixdir: str = ""
    interface: bool = False


@dataclasses.dataclass
class Requirement:
    """An external library package used by a target."""

    name: str
    libfiles: list[str] = dataclasses.field(default_factory=list)
    enabled: bool = True
    interface: bool = False


def _expand_entries(
    entries: list[FileEntry],
    directory: str,
    destdir: str,
    interface: bool,
) -> tuple[list[str], list[str]]:
    srcfiles = []
    dstfiles = []
    for entry in entries:
        if interface and not entry.interface:
            continue
        pattern = os.path.join(directory, entry.src)
        if any(c in entry.src for c in "*?["):
            matches = sorted(glob.glob(pattern, recursive=True))
        else:
            matches = [pattern]
        for srcfile in matches:
            srcfiles.append(os.path.normpath(srcfile))
            dstfiles.append(
                os.path.normpath(
                    os.path.join(
                        destdir, entry.prefixdir, os.path.basename(srcfile)
                    )
                )
            )
    return srcfiles, dstfiles


@dataclasses.dataclass
class Rule:
    name: str
    scripts: dict[hooks.Phase, hooks.Hooks] = dataclasses.field(
        default_factory=dict
    )

    def get_hooks(self, phase: hooks.Phase) -> hooks.Hooks:
        return self.scripts.get(phase, hooks.NO_HOOKS)


@dataclasses.dataclass
class Target:
    name: str
    kind: TargetKind
    targetfile: str = ""
    symbolfile: Optional[str] = None
    plat: str = ""
    arch: str = ""
    directory: str = "."
    rules: list[str] = dataclasses.field(default_factory=list)
    deps: list[DependencyEdge] = dataclasses.field(default_factory=list)
    prefixdir: Optional[str] = None
    prefixdir_overrides: dict[str, str] = dataclasses.field(
        default_factory=dict
    )
    enabled: bool = True
    headers: list[FileEntry] = dataclasses.field(default_factory=list)
    installs: list[FileEntry] = dataclasses.field(default_factory=list)
    packages: list[Requirement] = dataclasses.field(default_factory=list)
    scripts: dict[hooks.Phase, hooks.Hooks] = dataclasses.field(
        default_factory=dict
    )

    def __repr__(self) -> str:
        return f"<Target {self.name} ({self.kind.value})>"

    @property
    def filename(self) -> str:
        return os.path.basename(self.targetfile)

    def is_plat(self, *plats: str) -> bool:
        return self.plat in plats

    def get_hooks(self, phase: hooks.Phase) -> hooks.Hooks:
        return self.scripts.get(phase, hooks.NO_HOOKS)

    def get_prefixdir_override(self, key: str, default: str) -> str:
        return self.prefixdir_overrides.get(key, default)

    def get_import_library(self) -> str:
        """Return the path of the import library of a Windows DLL."""
        stem = pathlib.Path(self.targetfile).stem
        suffix = ".dll.a" if self.is_plat("mingw") else ".lib"
        return os.path.join(os.path.dirname(self.targetfile), stem + suffix)

    def headerfiles(
        self, includedir: str, *, interface: bool = False
    ) -> tuple[list[str], list[str]]:
        return _expand_entries(
            self.headers, self.directory, includedir, interface
        )

    def installfiles(
        self, installdir: str, *, interface: bool = False
    ) -> tuple[list[str], list[str]]:
        return _expand_entries(
            self.installs, self.directory, installdir, interface
        )


@dataclasses.dataclass
class FormatSpec:
    name: str
    backend: Optional[str] = None
    options: dict[str, object] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass
class Package:
    name: str
    version: Version = dataclasses.field(
        default_factory=lambda: Version.parse("0.0.0")
    )
    description: str = ""
    maintainer: str = ""
    license: str = ""
    homepage: str = ""
    formats: dict[str, FormatSpec] = dataclasses.field(default_factory=dict)
    targets: list[str] = dataclasses.field(default_factory=list)
    from_source: bool = False
    install_rootdir: str = ""
    bindir_name: str = "bin"
    libdir_name: str = "lib"
    includedir_name: str = "include"
    basename: str = DEFAULT_BASENAME
    installs: list[FileEntry] = dataclasses.field(default_factory=list)
    scripts: dict[hooks.Phase, hooks.Hooks] = dataclasses.field(
        default_factory=dict
    )
    on_load: Optional[hooks.Hook] = None
    directory: str = "."
    buildir: str = ""
    outputdir: str = ""
    plat: str = ""
    arch: str = ""
    active_format: Optional[str] = None
    image_root: Optional[str] = None

    def __repr__(self) -> str:
        return f"<Package {self.name} {self.version.text}>"

    def get_hooks(self, phase: hooks.Phase) -> hooks.Hooks:
        return self.scripts.get(phase, hooks.NO_HOOKS)

    def format_set(self, name: str) -> None:
        self.active_format = name

    @property
    def format(self) -> Optional[str]:
        return self.active_format

    def get_image_root(self) -> str:
        """Return the directory where the package image is assembled."""
        if self.image_root is not None:
            return self.image_root
        return os.path.join(self.buildir, self.active_format or "image")

    @property
    def installdir(self) -> str:
        return os.path.normpath(
            os.path.join(self.get_image_root(), self.install_rootdir)
        )

    @property
    def bindir(self) -> str:
        return os.path.join(self.installdir, self.bindir_name)

    @property
    def libdir(self) -> str:
        return os.path.join(self.installdir, self.libdir_name)

    @property
    def includedir(self) -> str:
        return os.path.join(self.installdir, self.includedir_name)

    def installfiles(self) -> tuple[list[str], list[str]]:
        return _expand_entries(
            self.installs, self.directory, self.installdir, False
        )

    def get_basename(self) -> str:
        return tools.format_template(
            self.basename,
            name=self.name,
            version=self.version.text,
            plat=self.plat,
            arch=self.arch,
            format=self.active_format or "",
        )

    @classmethod
    def for_installdir(cls, project: Project, installdir: str) -> Package:
        """Make an install layout rooted at *installdir*.

        Used by the project-level install and uninstall actions, which
        deploy targets directly instead of assembling a package image.
        """
        return cls(
            name=project.name,
            directory=project.directory,
            buildir=project.builddir,
            outputdir=project.builddir,
            plat=project.plat,
            arch=project.arch,
            image_root=os.path.abspath(installdir),
        )


@dataclasses.dataclass
class Project:
    name: str
    directory: str = "."
    builddir: str = "build"
    program: str = "xmake"
    plat: str = ""
    arch: str = ""
    targets: dict[str, Target] = dataclasses.field(default_factory=dict)
    rules: dict[str, Rule] = dataclasses.field(default_factory=dict)
    packages: dict[str, Package] = dataclasses.field(default_factory=dict)
    _orderdeps: dict[str, list[Target]] = dataclasses.field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def target(self, name: str) -> Target:
        try:
            return self.targets[name]
        except KeyError:
            raise errors.ConfigurationError(
                f"unknown target: {name}"
            ) from None

    def rule(self, name: str) -> Rule:
        try:
            return self.rules[name]
        except KeyError:
            raise errors.ConfigurationError(f"unknown rule: {name}") from None

    def target_rules(self, target: Target) -> list[Rule]:
        return [self.rule(name) for name in target.rules]

    def package_targets(self, package: Package) -> list[Target]:
        return [self.target(name) for name in package.targets]

    def iter_targets(self) -> Iterator[Target]:
        return iter(self.targets.values())

    def orderdeps(self, target: Target) -> list[Target]:
        """Return the dependencies whose interface reaches *target*.

        These are the direct dependencies in declared order, each preceded
        by the targets it depends on through interface edges.  Every
        target appears once.
        """
        deps = self._orderdeps.get(target.name)
        if deps is None:
            graph = {
                t.name: {
                    "item": t,
                    "deps": [e.name for e in t.deps if e.interface],
                }
                for t in self.targets.values()
            }
            deps = list(
                topological.sort(graph, roots=[e.name for e in target.deps])
            )
            self._orderdeps[target.name] = deps
        return deps
