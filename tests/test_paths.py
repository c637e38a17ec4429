from __future__ import annotations

import pytest

from batchpack import paths
from batchpack import project as proj


@pytest.fixture
def package():
    return proj.Package(name="demo", image_root="/out")


def make_target(**kwargs):
    kwargs.setdefault("plat", "linux")
    return proj.Target(name="foo", kind=proj.TargetKind.SHARED, **kwargs)


def test_defaults_follow_package_layout(package):
    target = make_target()
    assert paths.get_target_bindir(package, target) == "/out/bin"
    assert paths.get_target_libdir(package, target) == "/out/lib"
    assert paths.get_target_includedir(package, target) == "/out/include"
    assert paths.get_target_installdir(package, target) == "/out"


def test_install_rootdir_is_applied():
    package = proj.Package(
        name="demo",
        image_root="/img",
        install_rootdir="usr",
        libdir_name="lib64",
    )
    target = make_target()
    assert paths.get_target_libdir(package, target) == "/img/usr/lib64"


def test_prefixdir(package):
    target = make_target(prefixdir="vendor")
    assert paths.get_target_bindir(package, target) == "/out/vendor/bin"
    assert paths.get_target_libdir(package, target) == "/out/vendor/lib"
    assert paths.get_target_includedir(package, target) == (
        "/out/vendor/include"
    )
    assert paths.get_target_installdir(package, target) == "/out/vendor"


def test_prefixdir_override(package):
    target = make_target(
        prefixdir="vendor", prefixdir_overrides={"libdir": "lib64"}
    )
    assert paths.get_target_libdir(package, target) == "/out/vendor/lib64"
    assert paths.get_target_bindir(package, target) == "/out/vendor/bin"


def test_paths_are_normalized(package):
    target = make_target(prefixdir="vendor/../third_party/")
    assert paths.get_target_libdir(package, target) == (
        "/out/third_party/lib"
    )


@pytest.mark.parametrize(
    "plat, expected",
    [
        ("linux", "/out/lib"),
        ("macosx", "/out/lib"),
        ("windows", "/out/bin"),
        ("mingw", "/out/bin"),
    ],
)
def test_shlib_dir(package, plat, expected):
    target = make_target(plat=plat)
    assert paths.get_target_shlib_dir(package, target) == expected
