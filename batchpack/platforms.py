from __future__ import annotations

import platform

import distro


def detect_plat() -> str:
    system = platform.system()
    if system == "Linux":
        return "linux"
    elif system == "Darwin":
        return "macosx"
    elif system == "Windows":
        return "windows"
    elif system.startswith(("MINGW", "MSYS")):
        return "mingw"
    else:
        return system.lower()


def detect_arch(arch: str | None = None) -> str:
    if arch is None:
        arch = platform.machine().lower()

    if arch == "amd64":
        arch = "x86_64"
    elif arch == "arm64" and platform.system() != "Darwin":
        arch = "aarch64"

    return arch


def get_host_ident() -> str:
    """Return a short description of the build host."""
    plat = detect_plat()
    if plat == "linux":
        like = distro.like() or distro.id()
        return f"{distro.id()}-{distro.version()} ({like})"
    elif plat == "macosx":
        return f"macOS {platform.mac_ver()[0]}"
    else:
        return f"{platform.system()} {platform.release()}"


def is_debian_like() -> bool:
    if detect_plat() != "linux":
        return False
    like = set((distro.like() or distro.id()).split())
    return bool(like & {"debian", "ubuntu"})
