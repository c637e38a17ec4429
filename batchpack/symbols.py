from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    Callable,
    Iterable,
)

import logging
import os
import pathlib
import re

import magic

from . import errors
from . import tools

if TYPE_CHECKING:
    from typing_extensions import TypeAlias

    from . import project as proj


logger = logging.getLogger(__name__)

Scanner: TypeAlias = Callable[[str, str, str], list[str]]

_shlib_re = re.compile(r"^.*\.(so(\.\d+)*|dylib|dll)$", re.I)


def is_shlib_file(path: str) -> bool:
    return bool(_shlib_re.match(os.path.basename(path)))


def _get_elf_needed(path: str) -> list[str]:
    # NEEDED entries of the .dynamic section.
    shlib_re = re.compile(r".*\(NEEDED\)\s+Shared library: \[([^\]]+)\]")
    shlibs = []
    output = tools.cmd("readelf", "-d", path)
    for line in output.strip().split("\n"):
        line = line.strip()
        if m := shlib_re.match(line):
            shlibs.append(m.group(1))
    return shlibs


def _get_macho_load_dylibs(path: str) -> list[str]:
    load_cmd_re = re.compile(r"^Load command (\d+)\s*$", re.I)
    lc_load_dylib_cmd_re = re.compile(
        r"^\s*cmd\s+LC_(LOAD|LOAD_WEAK|REEXPORT)_DYLIB\s*$"
    )
    lc_load_dylib_name_re = re.compile(r"^\s*name\s+([^(]+).*$")
    section_re = re.compile(r"^Section$", re.I)

    shlibs = []
    state = "skip"
    output = tools.cmd("otool", "-l", path)
    for line in output.strip().split("\n"):
        line = line.strip()
        if not line:
            continue
        if state == "skip":
            if load_cmd_re.match(line):
                state = "load_cmd"
        elif state == "load_cmd":
            if lc_load_dylib_cmd_re.match(line):
                state = "lc_load_dylib"
            elif section_re.match(line):
                state = "skip"
        elif state == "lc_load_dylib":
            if m := lc_load_dylib_name_re.match(line):
                shlibs.append(pathlib.PurePosixPath(m.group(1).strip()).name)
                state = "skip"
            elif load_cmd_re.match(line):
                state = "load_cmd"
            elif section_re.match(line):
                state = "skip"
    return shlibs


def _get_pe_imports(path: str) -> list[str]:
    dll_re = re.compile(r"^\s*DLL Name:\s*(\S+)\s*$")
    shlibs = []
    output = tools.cmd("objdump", "-p", path)
    for line in output.split("\n"):
        if m := dll_re.match(line):
            shlibs.append(m.group(1))
    return shlibs


def get_depend_libraries(targetfile: str, plat: str, arch: str) -> list[str]:
    """Return the names of shared libraries *targetfile* links against."""
    if not os.path.isfile(targetfile):
        raise errors.MissingArtifactError(targetfile, "dependency scan")

    description = magic.from_file(targetfile)
    if description.startswith("ELF"):
        shlibs = _get_elf_needed(targetfile)
    elif description.startswith("Mach-O"):
        shlibs = _get_macho_load_dylibs(targetfile)
    elif description.startswith("PE32"):
        shlibs = _get_pe_imports(targetfile)
    else:
        raise errors.ScanError(
            f"{targetfile}: cannot scan {description!r} for {plat}/{arch}"
        )

    logger.debug(f"{targetfile} links to {', '.join(shlibs) or 'nothing'}")
    return shlibs


def filter_libfiles(
    target: proj.Target,
    libfiles: list[str],
    scanner: Scanner,
) -> list[str]:
    """Keep the shared libraries that *target* really links against.

    Only binaries and shared libraries are scanned; for other kinds
    every candidate is kept since they are re-exported to dependents.
    """
    if not libfiles or not target.kind.links_shared:
        return list(libfiles)

    depends = {
        os.path.basename(libfile)
        for libfile in scanner(target.targetfile, target.plat, target.arch)
    }
    kept = []
    for libfile in libfiles:
        if os.path.basename(libfile) in depends:
            kept.append(libfile)
        else:
            logger.info(f"{target.name}: skipping unused {libfile}")
    return kept


def get_target_package_libfiles(
    target: proj.Target, *, interface: bool = False
) -> list[str]:
    """Return shared library files of the enabled packages of *target*."""
    libfiles = []
    for pkg in target.packages:
        if not pkg.enabled or (interface and not pkg.interface):
            continue
        for libfile in pkg.libfiles:
            if is_shlib_file(libfile):
                libfiles.append(libfile)
    return libfiles


def unique_by_filename(libfiles: Iterable[str]) -> list[str]:
    seen = set()
    result = []
    for libfile in libfiles:
        filename = os.path.basename(libfile)
        if filename not in seen:
            seen.add(filename)
            result.append(libfile)
    return result
