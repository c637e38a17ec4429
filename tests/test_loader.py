from __future__ import annotations

import os
import textwrap

import pytest

from batchpack import errors
from batchpack import hooks
from batchpack import loader
from batchpack import project as proj


PROJECT = """\
[project]
name = "demo"
program = "xmake"
plat = "linux"
arch = "x86_64"

[rules.strip]
install_after = "batchpack_test_hooks:after_install"

[targets.foo]
kind = "shared"
targetfile = "build/libfoo.so"
headerfiles = [{ src = "include/*.h", interface = true }]
packages = [{ name = "zlib", libfiles = ["deps/libz.so.1"] }]

[targets.app]
kind = "binary"
targetfile = "build/app"
rules = ["strip"]
deps = ["foo", { name = "core", interface = true }]
prefixdir = "vendor"
prefixdir_overrides = { libdir = "lib64" }

[targets.app.scripts]
install_before = "batchpack_test_hooks:before_install"

[targets.core]
kind = "headeronly"
enabled = false

[packages.demo]
version = "1.2.3"
description = "Demo package"
targets = ["app"]
installfiles = ["LICENSE", { src = "docs/*.md", prefixdir = "share/doc" }]
formats = ["zip", "targz"]

[packages.demo.scripts]
load = "batchpack_test_hooks:on_load"

[packages.deb-only]
targets = ["foo"]
install_rootdir = "usr"

[packages.deb-only.formats.deb]
section = "libs"
depends = ["libc6"]
"""

HOOKS = """\
def before_install(target, ctx):
    pass


def after_install(target, ctx):
    pass


def on_load(package, ctx):
    pass
"""


def write_project(tmp_path, text=PROJECT):
    path = tmp_path / "batchpack.toml"
    path.write_text(text)
    (tmp_path / "batchpack_test_hooks.py").write_text(HOOKS)
    return path


def test_load_project(tmp_path):
    write_project(tmp_path)
    project = loader.load_project(tmp_path, environ={})

    assert project.name == "demo"
    assert project.directory == str(tmp_path)
    assert project.builddir == str(tmp_path / "build")
    assert list(project.targets) == ["foo", "app", "core"]

    app = project.targets["app"]
    assert app.kind is proj.TargetKind.BINARY
    assert app.targetfile == str(tmp_path / "build" / "app")
    assert app.deps == [
        proj.DependencyEdge("foo"),
        proj.DependencyEdge("core", interface=True),
    ]
    assert app.prefixdir == "vendor"
    assert app.get_prefixdir_override("libdir", "lib") == "lib64"
    assert app.get_hooks(hooks.Phase.INSTALL).before.__name__ == (
        "before_install"
    )
    assert project.target_rules(app)[0].get_hooks(
        hooks.Phase.INSTALL
    ).after.__name__ == ("after_install")

    foo = project.targets["foo"]
    assert foo.headers == [proj.FileEntry("include/*.h", interface=True)]
    assert foo.packages[0].libfiles == [str(tmp_path / "deps" / "libz.so.1")]
    assert not project.targets["core"].enabled


def test_load_packages(tmp_path):
    write_project(tmp_path)
    project = loader.load_project(tmp_path / "batchpack.toml", environ={})

    demo = project.packages["demo"]
    assert demo.version.text == "1.2.3"
    assert list(demo.formats) == ["zip", "targz"]
    assert demo.installs == [
        proj.FileEntry("LICENSE"),
        proj.FileEntry("docs/*.md", "share/doc"),
    ]
    assert demo.on_load is not None
    assert demo.buildir == os.path.join(project.builddir, ".pack", "demo")
    assert demo.outputdir == os.path.join(project.builddir, "pack", "demo")

    deb = project.packages["deb-only"]
    assert deb.install_rootdir == "usr"
    assert deb.formats["deb"] == proj.FormatSpec(
        "deb", None, {"section": "libs", "depends": ["libc6"]}
    )
    assert deb.version.text == "0.0.0"


def test_environment_overrides(tmp_path):
    write_project(tmp_path)
    project = loader.load_project(
        tmp_path,
        environ={
            "BATCHPACK_PROGRAM": "/opt/xmake/bin/xmake",
            "BATCHPACK_BUILDDIR": "out",
        },
    )
    assert project.program == "/opt/xmake/bin/xmake"
    assert project.builddir == str(tmp_path / "out")
    assert project.packages["demo"].buildir.startswith(str(tmp_path / "out"))


def test_missing_project_file(tmp_path):
    with pytest.raises(errors.ConfigurationError, match="not found"):
        loader.load_project(tmp_path)


def test_invalid_toml(tmp_path):
    write_project(tmp_path, "[project\n")
    with pytest.raises(errors.ConfigurationError):
        loader.load_project(tmp_path)


@pytest.mark.parametrize(
    "text, message",
    [
        (
            """
            [targets.foo]
            kind = "module"
            targetfile = "foo"
            """,
            "invalid kind",
        ),
        (
            """
            [targets.foo]
            kind = "binary"
            """,
            "targetfile is required",
        ),
        (
            """
            [targets.foo]
            kind = "headeronly"
            deps = ["bar"]
            """,
            "unknown dependency",
        ),
        (
            """
            [targets.foo]
            kind = "headeronly"
            rules = ["bar"]
            """,
            "unknown rule",
        ),
        (
            """
            [packages.foo]
            targets = ["bar"]
            """,
            "unknown target",
        ),
        (
            """
            [targets.foo]
            kind = "headeronly"

            [targets.foo.scripts]
            install = "batchpack_test_hooks:missing"
            """,
            "has no attribute",
        ),
        (
            """
            [targets.foo]
            kind = "static"
            targetfile = "libfoo.a"
            prefixdir_overrides = { sharedir = "share" }
            """,
            "unknown directory",
        ),
    ],
)
def test_invalid_declarations(tmp_path, text, message):
    write_project(tmp_path, textwrap.dedent(text))
    with pytest.raises(errors.ConfigurationError, match=message):
        loader.load_project(tmp_path, environ={})


def test_unknown_keys_are_ignored(tmp_path, caplog):
    write_project(
        tmp_path,
        textwrap.dedent(
            """
            [targets.foo]
            kind = "headeronly"
            color = "blue"
            """
        ),
    )
    project = loader.load_project(tmp_path, environ={})
    assert "foo" in project.targets
    assert "color" in caplog.text
