from __future__ import annotations

import json

import pytest

from cleo.testers.command_tester import CommandTester

from batchpack import app as batchpack_app
from batchpack import formats

from .conftest import touch


PROJECT = """\
[project]
name = "demo"
plat = "linux"
arch = "x86_64"

[targets.foo]
kind = "headeronly"
headerfiles = ["include/*.h"]

[packages.demo]
version = "2.0.0"
targets = ["foo"]
formats = ["zip"]

[packages.empty]
targets = ["foo"]
"""


@pytest.fixture
def project_file(tmp_path):
    touch(tmp_path / "src" / "include" / "foo.h")
    path = tmp_path / "src" / "batchpack.toml"
    path.write_text(PROJECT)
    return path


@pytest.fixture
def no_magic(monkeypatch):
    monkeypatch.setattr(
        formats.base.magic,
        "from_file",
        lambda path, mime=False: "application/zip",
    )


@pytest.fixture
def run():
    app = batchpack_app.create_app()

    def _run(name, args):
        tester = CommandTester(app.find(name))
        status = tester.execute(args)
        return status, tester.io.fetch_output(), tester.io.fetch_error()

    return _run


def test_commands_are_registered():
    app = batchpack_app.create_app()
    for name in ("pack", "install", "uninstall", "export", "replay"):
        assert app.has(name)


def test_install_and_uninstall(run, project_file, tmp_path):
    out = tmp_path / "out"
    status, output, _ = run(
        "install", f"foo --installdir {out} -P {project_file}"
    )
    assert status == 0
    assert "install ok" in output
    assert (out / "include" / "foo.h").is_file()

    status, output, _ = run(
        "uninstall", f"foo --installdir {out} -P {project_file}"
    )
    assert status == 0
    assert "uninstall ok" in output
    assert not (out / "include").exists()


def test_install_requires_installdir(run, project_file):
    status, _, error = run("install", f"foo -P {project_file}")
    assert status == 1
    assert "--installdir" in error


def test_unknown_target_fails(run, project_file, tmp_path):
    status, _, error = run(
        "install", f"nope --installdir {tmp_path} -P {project_file}"
    )
    assert status == 1
    assert "unknown target: nope" in error


def test_pack_requires_formats(run, project_file, no_magic):
    status, output, error = run("pack", f"-P {project_file}")
    assert status == 1
    assert "formats not found" in error
    assert "pack ok" not in output


def test_pack(run, project_file, tmp_path, no_magic):
    text = project_file.read_text().replace(
        "[packages.empty]\ntargets = [\"foo\"]\n", ""
    )
    project_file.write_text(text)
    dist = tmp_path / "dist"

    status, output, _ = run(
        "pack", f"--formats zip --outputdir {dist} -P {project_file}"
    )

    assert status == 0
    assert "pack ok" in output
    assert (dist / "demo" / "demo-2.0.0-linux-x86_64.zip").is_file()


def test_export_and_replay(run, project_file, tmp_path):
    image = tmp_path / "image"
    batchfile = tmp_path / "install.json"

    status, _, _ = run(
        "export",
        f"demo --phase install --installdir {image} "
        f"--output {batchfile} -P {project_file}",
    )
    assert status == 0
    assert not image.exists()

    data = json.loads(batchfile.read_text())
    assert [cmd["op"] for cmd in data["commands"]] == ["cp"]

    status, _, _ = run("replay", f"{batchfile} --dry-run")
    assert status == 0
    assert not image.exists()

    status, output, _ = run("replay", f"{batchfile} --rootdir {image}")
    assert status == 0
    assert "replayed 1 commands" in output
    assert (image / "include" / "foo.h").is_file()


def test_export_to_stdout(run, project_file, tmp_path):
    status, output, _ = run(
        "export",
        f"demo --phase uninstall --installdir {tmp_path} -P {project_file}",
    )
    assert status == 0
    data = json.loads(output)
    assert data["commands"][0]["op"] == "rm"
    assert data["commands"][0]["emptydirs"] is True


def test_export_rejects_unknown_phase(run, project_file):
    status, _, error = run("export", f"demo --phase deploy -P {project_file}")
    assert status == 1
    assert "unknown phase" in error


def test_replay_invalid_batch(run, tmp_path):
    batchfile = tmp_path / "bad.json"
    batchfile.write_text('{"version": 7, "commands": []}')
    status, _, error = run("replay", str(batchfile))
    assert status == 1
    assert "unsupported batch version" in error

    status, _, error = run("replay", str(tmp_path / "missing.json"))
    assert status == 1


def test_replay_keeps_directories_above_install_root(
    run, project_file, tmp_path
):
    inst = tmp_path / "a" / "b" / "inst"
    status, _, _ = run("install", f"foo --installdir {inst} -P {project_file}")
    assert status == 0
    assert (inst / "include" / "foo.h").is_file()

    batchfile = tmp_path / "uninstall.json"
    status, _, _ = run(
        "export",
        f"demo --phase uninstall --installdir {inst} "
        f"--output {batchfile} -P {project_file}",
    )
    assert status == 0
    assert json.loads(batchfile.read_text())["rootdir"] == str(inst)

    status, _, _ = run("replay", str(batchfile))
    assert status == 0
    assert not (inst / "include").exists()
    assert inst.is_dir()
    assert (tmp_path / "a" / "b").is_dir()


def test_replay_rejects_malformed_entries(run, tmp_path):
    batchfile = tmp_path / "bad.json"
    batchfile.write_text('{"version": 1, "commands": ["cp"]}')
    status, _, error = run("replay", str(batchfile))
    assert status == 1
    assert "must be an object" in error
