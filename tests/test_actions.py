from __future__ import annotations

import pytest

from batchpack import actions
from batchpack import batchcmds
from batchpack import errors
from batchpack import hooks
from batchpack import project as proj
from batchpack import topological

from .conftest import touch


HEADERONLY = proj.TargetKind.HEADERONLY


@pytest.fixture
def counting_rule(project, recorder):
    project.rules["count"] = proj.Rule(
        name="count",
        scripts={
            hooks.Phase.INSTALL: hooks.Hooks(before=recorder.hook("install")),
            hooks.Phase.UNINSTALL: hooks.Hooks(
                before=recorder.hook("uninstall")
            ),
        },
    )


def dep(*names):
    return [proj.DependencyEdge(name) for name in names]


@pytest.fixture
def diamond(add_target, counting_rule):
    add_target("core", HEADERONLY, rules=["count"])
    add_target("liba", HEADERONLY, rules=["count"], deps=dep("core"))
    add_target("libb", HEADERONLY, rules=["count"], deps=dep("core"))
    add_target("app", HEADERONLY, rules=["count"], deps=dep("liba", "libb"))


def test_visited_set():
    visited = actions.VisitedSet()
    visited.enter("a")
    assert "a" not in visited
    visited.mark_finished("a")
    assert "a" in visited
    assert visited.is_finished("a")
    assert visited.finished == ["a"]


def test_visited_set_detects_reentry():
    visited = actions.VisitedSet()
    visited.enter("a")
    with pytest.raises(topological.CycleError):
        visited.enter("a")


def test_diamond_uninstalls_shared_dep_once(
    project, diamond, recorder, outdir
):
    visited = actions.uninstall(
        project,
        "app",
        installdir=str(outdir),
        executor=batchcmds.DryRunExecutor(),
    )
    assert recorder.calls == [
        "uninstall:core",
        "uninstall:liba",
        "uninstall:libb",
        "uninstall:app",
    ]
    assert visited.finished == ["core", "liba", "libb", "app"]


def test_all_targets_when_no_name(project, diamond, recorder, outdir):
    actions.install(
        project, installdir=str(outdir), executor=batchcmds.DryRunExecutor()
    )
    assert sorted(recorder.calls) == [
        "install:app",
        "install:core",
        "install:liba",
        "install:libb",
    ]


def test_disabled_target_is_marked_visited(
    project, diamond, recorder, outdir
):
    project.targets["liba"].enabled = False
    visited = actions.uninstall(
        project,
        "app",
        installdir=str(outdir),
        executor=batchcmds.DryRunExecutor(),
    )
    assert "uninstall:liba" not in recorder.calls
    assert "uninstall:core" in recorder.calls
    assert "liba" in visited


def test_cycle_is_reported(project, add_target, outdir):
    add_target("a", HEADERONLY, deps=dep("b"))
    add_target("b", HEADERONLY, deps=dep("a"))
    with pytest.raises(errors.ConfigurationError):
        actions.uninstall(
            project,
            "a",
            installdir=str(outdir),
            executor=batchcmds.DryRunExecutor(),
        )


def test_unknown_target(project, outdir):
    with pytest.raises(errors.ConfigurationError):
        actions.install(project, "nope", installdir=str(outdir))


def test_install_then_uninstall(project, add_target, scanner, srcdir, outdir):
    touch(srcdir / "include" / "foo.h")
    add_target(
        "foo",
        proj.TargetKind.SHARED,
        "libfoo.so",
        headers=[proj.FileEntry("include/foo.h", interface=True)],
    )
    add_target(
        "app",
        proj.TargetKind.BINARY,
        "app",
        deps=[proj.DependencyEdge("foo")],
    )
    scanner.links["app"] = ["libfoo.so"]

    visited = actions.install(
        project, "app", installdir=str(outdir), scanner=scanner
    )
    assert visited.finished == ["foo", "app"]
    assert (outdir / "bin" / "app").is_file()
    assert (outdir / "lib" / "libfoo.so").is_file()
    assert (outdir / "include" / "foo.h").is_file()

    actions.uninstall(project, "app", installdir=str(outdir), scanner=scanner)
    assert not (outdir / "bin").exists()
    assert not (outdir / "lib").exists()
    assert not (outdir / "include").exists()
    assert outdir.is_dir()
