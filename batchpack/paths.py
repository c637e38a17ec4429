from __future__ import annotations
from typing import TYPE_CHECKING

import os

if TYPE_CHECKING:
    from . import project as proj


def _get_prefixed_dir(
    package: proj.Package,
    target: proj.Target,
    key: str,
    default: str,
    base: str,
) -> str:
    prefixdir = target.prefixdir
    if prefixdir:
        base = os.path.join(
            package.installdir,
            prefixdir,
            target.get_prefixdir_override(key, default),
        )
    return os.path.normpath(base)


def get_target_bindir(package: proj.Package, target: proj.Target) -> str:
    return _get_prefixed_dir(package, target, "bindir", "bin", package.bindir)


def get_target_libdir(package: proj.Package, target: proj.Target) -> str:
    return _get_prefixed_dir(package, target, "libdir", "lib", package.libdir)


def get_target_includedir(
    package: proj.Package, target: proj.Target
) -> str:
    return _get_prefixed_dir(
        package, target, "includedir", "include", package.includedir
    )


def get_target_installdir(
    package: proj.Package, target: proj.Target
) -> str:
    installdir = package.installdir
    if target.prefixdir:
        installdir = os.path.join(installdir, target.prefixdir)
    return os.path.normpath(installdir)


def get_target_shlib_dir(package: proj.Package, target: proj.Target) -> str:
    """Return where a target's shared libraries are installed.

    DLLs must sit next to the executables that load them, everything
    else goes to the library directory.
    """
    if target.is_plat("windows", "mingw"):
        return get_target_bindir(package, target)
    else:
        return get_target_libdir(package, target)
