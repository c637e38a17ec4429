from __future__ import annotations
from typing import (
    Any,
    Iterator,
    Mapping,
)

import contextlib
import logging
import os
import pathlib
import sys

import tomli

from poetry.core.constraints.version import Version

from . import errors
from . import hooks
from . import platforms
from . import tools
from .project import (
    DEFAULT_BASENAME,
    DependencyEdge,
    FileEntry,
    FormatSpec,
    Package,
    Project,
    Requirement,
    Rule,
    Target,
    TargetKind,
)


logger = logging.getLogger(__name__)

DEFAULT_PROJECT_FILE = "batchpack.toml"

TARGET_PHASES = (hooks.Phase.BUILD, hooks.Phase.INSTALL, hooks.Phase.UNINSTALL)
PACKAGE_PHASES = TARGET_PHASES + (hooks.Phase.PACK,)

_target_keys = frozenset(
    {
        "kind",
        "targetfile",
        "symbolfile",
        "plat",
        "arch",
        "rules",
        "deps",
        "prefixdir",
        "prefixdir_overrides",
        "enabled",
        "headerfiles",
        "installfiles",
        "packages",
        "scripts",
    }
)

_package_keys = frozenset(
    {
        "version",
        "description",
        "maintainer",
        "license",
        "homepage",
        "formats",
        "targets",
        "from_source",
        "install_rootdir",
        "bindir",
        "libdir",
        "includedir",
        "basename",
        "installfiles",
        "scripts",
        "buildir",
        "outputdir",
    }
)

_prefixdir_keys = frozenset({"bindir", "libdir", "includedir"})


@contextlib.contextmanager
def _importable(directory: pathlib.Path) -> Iterator[None]:
    path = str(directory)
    sys.path.insert(0, path)
    try:
        yield
    finally:
        try:
            sys.path.remove(path)
        except ValueError:
            pass


class ProjectLoader:
    def __init__(
        self,
        directory: str | os.PathLike[str],
        data: Mapping[str, Any],
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._directory = pathlib.Path(directory).absolute()
        self._data = data
        self._environ = os.environ if environ is None else environ

    def load(self) -> Project:
        meta = self._table(self._data.get("project", {}), "project")
        builddir = self._environ.get("BATCHPACK_BUILDDIR") or meta.get(
            "builddir", "build"
        )
        project = Project(
            name=meta.get("name", self._directory.name),
            directory=str(self._directory),
            builddir=self._path(builddir),
            program=self._environ.get("BATCHPACK_PROGRAM")
            or meta.get("program", "xmake"),
            plat=meta.get("plat") or platforms.detect_plat(),
            arch=platforms.detect_arch(meta.get("arch")),
        )

        with _importable(self._directory):
            for name, decl in self._table(
                self._data.get("rules", {}), "rules"
            ).items():
                project.rules[name] = Rule(
                    name=name,
                    scripts=self._load_scripts(
                        f"rules.{name}", decl, TARGET_PHASES
                    ),
                )

            for name, decl in self._table(
                self._data.get("targets", {}), "targets"
            ).items():
                project.targets[name] = self._load_target(project, name, decl)

            for name, decl in self._table(
                self._data.get("packages", {}), "packages"
            ).items():
                project.packages[name] = self._load_package(
                    project, name, decl
                )

        self._validate(project)
        return project

    def _table(self, value: Any, where: str) -> Mapping[str, Any]:
        if not isinstance(value, Mapping):
            raise errors.ConfigurationError(f"{where}: expected a table")
        return value

    def _path(self, path: str) -> str:
        return os.path.normpath(os.path.join(self._directory, path))

    def _check_keys(
        self, decl: Mapping[str, Any], allowed: frozenset[str], where: str
    ) -> None:
        for key in decl:
            if key not in allowed:
                logger.warning(f"{where}: ignoring unknown key {key!r}")

    def _load_hook(self, value: Any, where: str) -> hooks.Hook:
        if not isinstance(value, str):
            raise errors.ConfigurationError(
                f"{where}: hook must be a 'module:function' string"
            )
        hook = tools.import_object(value)
        if not callable(hook):
            raise errors.ConfigurationError(
                f"{where}: {value} is not callable"
            )
        return hook  # type: ignore[no-any-return]

    def _load_scripts(
        self,
        where: str,
        decl: Mapping[str, Any],
        phases: tuple[hooks.Phase, ...],
    ) -> dict[hooks.Phase, hooks.Hooks]:
        scripts = {}
        for phase in phases:
            stages = {}
            for stage, key in (
                ("before", f"{phase.value}_before"),
                ("main", phase.value),
                ("after", f"{phase.value}_after"),
            ):
                if key in decl:
                    stages[stage] = self._load_hook(
                        decl[key], f"{where}.{key}"
                    )
            if stages:
                scripts[phase] = hooks.Hooks(**stages)
        return scripts

    def _load_file_entries(self, value: Any, where: str) -> list[FileEntry]:
        entries = []
        for item in value or []:
            if isinstance(item, str):
                entries.append(FileEntry(src=item))
            elif isinstance(item, Mapping) and "src" in item:
                entries.append(
                    FileEntry(
                        src=item["src"],
                        prefixdir=item.get("prefixdir", ""),
                        interface=bool(item.get("interface", False)),
                    )
                )
            else:
                raise errors.ConfigurationError(
                    f"{where}: file entries must be strings or tables "
                    f"with a 'src' key"
                )
        return entries

    def _load_deps(self, value: Any, where: str) -> list[DependencyEdge]:
        deps = []
        for item in value or []:
            if isinstance(item, str):
                deps.append(DependencyEdge(item))
            elif isinstance(item, Mapping) and "name" in item:
                deps.append(
                    DependencyEdge(
                        item["name"], bool(item.get("interface", False))
                    )
                )
            else:
                raise errors.ConfigurationError(
                    f"{where}: deps must be names or tables with a 'name' key"
                )
        return deps

    def _load_requirements(
        self, value: Any, where: str
    ) -> list[Requirement]:
        reqs = []
        for item in value or []:
            if not isinstance(item, Mapping) or "name" not in item:
                raise errors.ConfigurationError(
                    f"{where}: packages must be tables with a 'name' key"
                )
            reqs.append(
                Requirement(
                    name=item["name"],
                    libfiles=[self._path(f) for f in item.get("libfiles", [])],
                    enabled=bool(item.get("enabled", True)),
                    interface=bool(item.get("interface", False)),
                )
            )
        return reqs

    def _load_target(
        self, project: Project, name: str, decl: Mapping[str, Any]
    ) -> Target:
        where = f"targets.{name}"
        decl = self._table(decl, where)
        self._check_keys(decl, _target_keys, where)

        try:
            kind = TargetKind(decl.get("kind"))
        except ValueError:
            raise errors.ConfigurationError(
                f"{where}: invalid kind {decl.get('kind')!r}, expected one "
                f"of {', '.join(k.value for k in TargetKind)}"
            ) from None

        overrides = dict(decl.get("prefixdir_overrides", {}))
        for key in overrides:
            if key not in _prefixdir_keys:
                raise errors.ConfigurationError(
                    f"{where}.prefixdir_overrides: unknown directory {key!r}"
                )

        targetfile = decl.get("targetfile", "")
        if not targetfile and kind not in {
            TargetKind.HEADERONLY,
            TargetKind.SOURCE,
        }:
            raise errors.ConfigurationError(f"{where}: targetfile is required")

        symbolfile = decl.get("symbolfile")
        return Target(
            name=name,
            kind=kind,
            targetfile=self._path(targetfile) if targetfile else "",
            symbolfile=self._path(symbolfile) if symbolfile else None,
            plat=decl.get("plat", project.plat),
            arch=decl.get("arch", project.arch),
            directory=project.directory,
            rules=list(decl.get("rules", [])),
            deps=self._load_deps(decl.get("deps"), where),
            prefixdir=decl.get("prefixdir"),
            prefixdir_overrides=overrides,
            enabled=bool(decl.get("enabled", True)),
            headers=self._load_file_entries(decl.get("headerfiles"), where),
            installs=self._load_file_entries(decl.get("installfiles"), where),
            packages=self._load_requirements(decl.get("packages"), where),
            scripts=self._load_scripts(
                where, decl.get("scripts", {}), TARGET_PHASES
            ),
        )

    def _load_formats(self, value: Any, where: str) -> dict[str, FormatSpec]:
        specs = {}
        if isinstance(value, Mapping):
            for name, options in value.items():
                options = dict(self._table(options, f"{where}.{name}"))
                backend = options.pop("backend", None)
                specs[name] = FormatSpec(name, backend, options)
        elif isinstance(value, list):
            for name in value:
                specs[name] = FormatSpec(name)
        elif value is not None:
            raise errors.ConfigurationError(
                f"{where}: formats must be a list or a table"
            )
        return specs

    def _load_package(
        self, project: Project, name: str, decl: Mapping[str, Any]
    ) -> Package:
        where = f"packages.{name}"
        decl = self._table(decl, where)
        self._check_keys(decl, _package_keys, where)

        try:
            version = Version.parse(str(decl.get("version", "0.0.0")))
        except ValueError as e:
            raise errors.ConfigurationError(f"{where}.version: {e}") from None

        scripts_decl = self._table(decl.get("scripts", {}), f"{where}.scripts")
        on_load = None
        if "load" in scripts_decl:
            on_load = self._load_hook(
                scripts_decl["load"], f"{where}.scripts.load"
            )

        buildir = decl.get("buildir", os.path.join(".pack", name))
        outputdir = decl.get("outputdir", os.path.join("pack", name))
        return Package(
            name=name,
            version=version,
            description=decl.get("description", ""),
            maintainer=decl.get("maintainer", ""),
            license=decl.get("license", ""),
            homepage=decl.get("homepage", ""),
            formats=self._load_formats(decl.get("formats"), where),
            targets=list(decl.get("targets", [])),
            from_source=bool(decl.get("from_source", False)),
            install_rootdir=decl.get("install_rootdir", ""),
            bindir_name=decl.get("bindir", "bin"),
            libdir_name=decl.get("libdir", "lib"),
            includedir_name=decl.get("includedir", "include"),
            basename=decl.get("basename", DEFAULT_BASENAME),
            installs=self._load_file_entries(decl.get("installfiles"), where),
            scripts=self._load_scripts(
                f"{where}.scripts", scripts_decl, PACKAGE_PHASES
            ),
            on_load=on_load,
            directory=project.directory,
            buildir=os.path.join(project.builddir, buildir),
            outputdir=os.path.join(project.builddir, outputdir),
            plat=project.plat,
            arch=project.arch,
        )

    def _validate(self, project: Project) -> None:
        for target in project.targets.values():
            for rule in target.rules:
                if rule not in project.rules:
                    raise errors.ConfigurationError(
                        f"targets.{target.name}: unknown rule {rule!r}"
                    )
            for edge in target.deps:
                if edge.name not in project.targets:
                    raise errors.ConfigurationError(
                        f"targets.{target.name}: unknown dependency "
                        f"{edge.name!r}"
                    )
        for package in project.packages.values():
            for name in package.targets:
                if name not in project.targets:
                    raise errors.ConfigurationError(
                        f"packages.{package.name}: unknown target {name!r}"
                    )


def load_project(
    path: str | os.PathLike[str] = DEFAULT_PROJECT_FILE,
    environ: Mapping[str, str] | None = None,
) -> Project:
    """Load a project from a TOML file or a directory containing one."""
    p = pathlib.Path(path)
    if p.is_dir():
        p = p / DEFAULT_PROJECT_FILE
    try:
        with open(p, "rb") as f:
            data = tomli.load(f)
    except FileNotFoundError:
        raise errors.ConfigurationError(
            f"project file not found: {p}"
        ) from None
    except tomli.TOMLDecodeError as e:
        raise errors.ConfigurationError(f"{p}: {e}") from None

    return ProjectLoader(p.absolute().parent, data, environ=environ).load()
