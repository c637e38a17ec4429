from __future__ import annotations

import logging
import os
import pathlib

import pytest

from batchpack import batchcmds
from batchpack import hooks
from batchpack import project as proj


class FakeScanner:
    """Stands in for the binary scanner, keyed by artifact basename."""

    def __init__(self) -> None:
        self.links: dict[str, list[str]] = {}
        self.calls: list[str] = []

    def __call__(self, targetfile: str, plat: str, arch: str) -> list[str]:
        self.calls.append(os.path.basename(targetfile))
        return list(self.links.get(os.path.basename(targetfile), []))


class FakeBuilder:
    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def build_targets(self, project, names) -> None:
        self.calls.append(list(names))


class Recorder:
    """Collects hook invocations as ``label:entity`` strings."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def hook(self, label: str):
        def _hook(entity, ctx) -> None:
            self.calls.append(f"{label}:{entity.name}")

        return _hook


def touch(path: pathlib.Path, content: str = "") -> pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content or path.name)
    return path


@pytest.fixture(autouse=True)
def _reset_loggers():
    yield
    logger = logging.getLogger("batchpack")
    logger.handlers = []
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def srcdir(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "src"
    path.mkdir()
    return path


@pytest.fixture
def outdir(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path / "out"


@pytest.fixture
def scanner() -> FakeScanner:
    return FakeScanner()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def project(tmp_path: pathlib.Path, srcdir: pathlib.Path) -> proj.Project:
    return proj.Project(
        name="demo",
        directory=str(srcdir),
        builddir=str(tmp_path / "build"),
        program="xmake",
        plat="linux",
        arch="x86_64",
    )


@pytest.fixture
def add_target(project: proj.Project, srcdir: pathlib.Path):
    """Declare a target, creating its artifact under ``src/build``."""

    def _add_target(
        name: str,
        kind: proj.TargetKind,
        filename: str | None = None,
        *,
        create: bool = True,
        **kwargs,
    ) -> proj.Target:
        targetfile = ""
        if filename is not None:
            targetfile = str(srcdir / "build" / filename)
            if create:
                touch(pathlib.Path(targetfile))
        kwargs.setdefault("plat", project.plat)
        kwargs.setdefault("arch", project.arch)
        target = proj.Target(
            name=name,
            kind=kind,
            targetfile=targetfile,
            directory=str(srcdir),
            **kwargs,
        )
        project.targets[name] = target
        return target

    return _add_target


@pytest.fixture
def layout(project: proj.Project, outdir: pathlib.Path) -> proj.Package:
    return proj.Package.for_installdir(project, str(outdir))


@pytest.fixture
def make_ctx(project: proj.Project, layout: proj.Package, scanner):
    def _make_ctx(package: proj.Package | None = None) -> hooks.HookContext:
        return hooks.HookContext(
            project=project,
            batch=batchcmds.CommandBatch(),
            package=package if package is not None else layout,
            scanner=scanner,
        )

    return _make_ctx
