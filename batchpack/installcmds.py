from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    Callable,
)

import logging
import os

from . import batchcmds
from . import errors
from . import hooks
from . import paths
from . import symbols
from .project import TargetKind

if TYPE_CHECKING:
    from . import project as proj


logger = logging.getLogger(__name__)


def get_install_mode(
    target: proj.Target, package: proj.Package
) -> TargetKind:
    if package.from_source:
        return TargetKind.SOURCE
    return target.kind


def _get_package(ctx: hooks.HookContext) -> proj.Package:
    if ctx.package is None:
        raise errors.ConfigurationError(
            "install commands require a package layout"
        )
    return ctx.package


def _ensure_artifact(target: proj.Target) -> None:
    if not target.targetfile or not os.path.isfile(target.targetfile):
        raise errors.MissingArtifactError(target.targetfile, target.name)


def _has_symbolfile(target: proj.Target) -> bool:
    return bool(target.symbolfile) and os.path.isfile(target.symbolfile)


def _copy_pairs(
    batch: batchcmds.CommandBatch,
    srcfiles: list[str],
    dstfiles: list[str],
) -> None:
    for srcfile, dstfile in zip(srcfiles, dstfiles):
        batch.cp(srcfile, dstfile)


def _remove_all(
    batch: batchcmds.CommandBatch, dstfiles: list[str]
) -> None:
    for dstfile in dstfiles:
        batch.rm(dstfile, emptydirs=True)


def get_target_shlibs(
    target: proj.Target, ctx: hooks.HookContext
) -> list[str]:
    """Return shared libraries to deploy along with *target*."""
    libfiles = []
    for dep in ctx.project.orderdeps(target):
        if dep.kind is TargetKind.SHARED and os.path.isfile(dep.targetfile):
            libfiles.append(dep.targetfile)
        libfiles.extend(
            symbols.get_target_package_libfiles(dep, interface=True)
        )
    libfiles.extend(symbols.get_target_package_libfiles(target))

    libfiles = symbols.filter_libfiles(target, libfiles, ctx.get_scanner())

    # Packages sharing a library must not overwrite each other's copies.
    return symbols.unique_by_filename(libfiles)


def _install_target_headers(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    package = _get_package(ctx)
    srcheaders, dstheaders = target.headerfiles(
        paths.get_target_includedir(package, target)
    )
    _copy_pairs(ctx.batch, srcheaders, dstheaders)
    for dep in ctx.project.orderdeps(target):
        srcheaders, dstheaders = dep.headerfiles(
            paths.get_target_includedir(package, dep), interface=True
        )
        _copy_pairs(ctx.batch, srcheaders, dstheaders)


def _uninstall_target_headers(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    package = _get_package(ctx)
    _, dstheaders = target.headerfiles(
        paths.get_target_includedir(package, target)
    )
    _remove_all(ctx.batch, dstheaders)
    for dep in ctx.project.orderdeps(target):
        _, dstheaders = dep.headerfiles(
            paths.get_target_includedir(package, dep), interface=True
        )
        _remove_all(ctx.batch, dstheaders)


def _install_target_shlibs(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    shlibdir = paths.get_target_shlib_dir(_get_package(ctx), target)
    for libfile in get_target_shlibs(target, ctx):
        ctx.batch.cp(
            libfile, os.path.join(shlibdir, os.path.basename(libfile))
        )


def _uninstall_target_shlibs(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    shlibdir = paths.get_target_shlib_dir(_get_package(ctx), target)
    for libfile in get_target_shlibs(target, ctx):
        ctx.batch.rm(
            os.path.join(shlibdir, os.path.basename(libfile)),
            emptydirs=True,
        )


def _install_artifact(
    target: proj.Target, ctx: hooks.HookContext, destdir: str
) -> None:
    _ensure_artifact(target)
    ctx.batch.cp(target.targetfile, os.path.join(destdir, target.filename))
    if _has_symbolfile(target):
        assert target.symbolfile is not None
        ctx.batch.cp(
            target.symbolfile,
            os.path.join(destdir, os.path.basename(target.symbolfile)),
        )


def _uninstall_artifact(
    target: proj.Target, ctx: hooks.HookContext, destdir: str
) -> None:
    ctx.batch.rm(os.path.join(destdir, target.filename), emptydirs=True)
    if target.symbolfile:
        ctx.batch.rm(
            os.path.join(destdir, os.path.basename(target.symbolfile)),
            emptydirs=True,
        )


def _on_target_installcmd_binary(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    bindir = paths.get_target_bindir(_get_package(ctx), target)
    _install_artifact(target, ctx, bindir)
    _install_target_shlibs(target, ctx)


def _on_target_installcmd_shared(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    package = _get_package(ctx)
    _install_artifact(
        target, ctx, paths.get_target_shlib_dir(package, target)
    )

    # Import library of a DLL.
    implib = target.get_import_library()
    if os.path.isfile(implib):
        libdir = paths.get_target_libdir(package, target)
        ctx.batch.mkdir(libdir)
        ctx.batch.cp(implib, os.path.join(libdir, os.path.basename(implib)))

    _install_target_headers(target, ctx)
    _install_target_shlibs(target, ctx)


def _on_target_installcmd_static(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    libdir = paths.get_target_libdir(_get_package(ctx), target)
    _install_artifact(target, ctx, libdir)
    _install_target_headers(target, ctx)


def _on_target_installcmd_headeronly(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    _install_target_headers(target, ctx)


def _on_target_installcmd_source(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    package = _get_package(ctx)
    ctx.batch.runv(
        ctx.project.program,
        ["install", "-P", ".", "-y", "-o", package.installdir, target.name],
    )


def _on_target_uninstallcmd_binary(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    bindir = paths.get_target_bindir(_get_package(ctx), target)
    _uninstall_artifact(target, ctx, bindir)
    _uninstall_target_shlibs(target, ctx)


def _on_target_uninstallcmd_shared(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    package = _get_package(ctx)
    _uninstall_artifact(
        target, ctx, paths.get_target_shlib_dir(package, target)
    )

    implib = target.get_import_library()
    if os.path.isfile(implib):
        libdir = paths.get_target_libdir(package, target)
        ctx.batch.rm(
            os.path.join(libdir, os.path.basename(implib)), emptydirs=True
        )

    _uninstall_target_headers(target, ctx)
    _uninstall_target_shlibs(target, ctx)


def _on_target_uninstallcmd_static(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    libdir = paths.get_target_libdir(_get_package(ctx), target)
    _uninstall_artifact(target, ctx, libdir)
    _uninstall_target_headers(target, ctx)


def _on_target_uninstallcmd_headeronly(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    _uninstall_target_headers(target, ctx)


def _on_target_uninstallcmd_source(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    logger.warning(
        f"{target.name}: targets installed from source cannot be "
        f"uninstalled, leaving its files in place"
    )


_installcmds: dict[TargetKind, Callable[..., None]] = {
    TargetKind.BINARY: _on_target_installcmd_binary,
    TargetKind.SHARED: _on_target_installcmd_shared,
    TargetKind.STATIC: _on_target_installcmd_static,
    TargetKind.HEADERONLY: _on_target_installcmd_headeronly,
    TargetKind.SOURCE: _on_target_installcmd_source,
}

_uninstallcmds: dict[TargetKind, Callable[..., None]] = {
    TargetKind.BINARY: _on_target_uninstallcmd_binary,
    TargetKind.SHARED: _on_target_uninstallcmd_shared,
    TargetKind.STATIC: _on_target_uninstallcmd_static,
    TargetKind.HEADERONLY: _on_target_uninstallcmd_headeronly,
    TargetKind.SOURCE: _on_target_uninstallcmd_source,
}


def on_target_installcmd(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    package = _get_package(ctx)
    mode = get_install_mode(target, package)
    _installcmds[mode](target, ctx)
    if mode is TargetKind.SOURCE:
        return

    srcfiles, dstfiles = target.installfiles(
        paths.get_target_installdir(package, target)
    )
    _copy_pairs(ctx.batch, srcfiles, dstfiles)
    for dep in ctx.project.orderdeps(target):
        srcfiles, dstfiles = dep.installfiles(
            paths.get_target_installdir(package, dep), interface=True
        )
        _copy_pairs(ctx.batch, srcfiles, dstfiles)


def on_target_uninstallcmd(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    package = _get_package(ctx)
    mode = get_install_mode(target, package)
    _uninstallcmds[mode](target, ctx)
    if mode is TargetKind.SOURCE:
        return

    _, dstfiles = target.installfiles(
        paths.get_target_installdir(package, target)
    )
    _remove_all(ctx.batch, dstfiles)
    for dep in ctx.project.orderdeps(target):
        _, dstfiles = dep.installfiles(
            paths.get_target_installdir(package, dep), interface=True
        )
        _remove_all(ctx.batch, dstfiles)


def on_target_buildcmd(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    ctx.batch.runv(
        ctx.project.program, ["build", "-P", ".", "-y", target.name]
    )


def get_target_buildcmds(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    hooks.run_pipeline(
        hooks.Phase.BUILD,
        target,
        ctx,
        default=on_target_buildcmd,
        rules=ctx.project.target_rules(target),
    )


def get_target_installcmds(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    hooks.run_pipeline(
        hooks.Phase.INSTALL,
        target,
        ctx,
        default=on_target_installcmd,
        rules=ctx.project.target_rules(target),
    )


def get_target_uninstallcmds(
    target: proj.Target, ctx: hooks.HookContext
) -> None:
    hooks.run_pipeline(
        hooks.Phase.UNINSTALL,
        target,
        ctx,
        default=on_target_uninstallcmd,
        rules=ctx.project.target_rules(target),
    )


def _on_buildcmd(package: proj.Package, ctx: hooks.HookContext) -> None:
    if not package.from_source:
        return
    for target in ctx.project.package_targets(package):
        get_target_buildcmds(target, ctx)


def _on_installcmd(package: proj.Package, ctx: hooks.HookContext) -> None:
    srcfiles, dstfiles = package.installfiles()
    _copy_pairs(ctx.batch, srcfiles, dstfiles)
    for target in ctx.project.package_targets(package):
        get_target_installcmds(target, ctx)


def _on_uninstallcmd(package: proj.Package, ctx: hooks.HookContext) -> None:
    _, dstfiles = package.installfiles()
    _remove_all(ctx.batch, dstfiles)
    for target in ctx.project.package_targets(package):
        get_target_uninstallcmds(target, ctx)


def _get_package_cmds(
    phase: hooks.Phase,
    default: hooks.Hook,
    project: proj.Project,
    package: proj.Package,
    scanner: symbols.Scanner | None,
) -> batchcmds.CommandBatch:
    batch = batchcmds.CommandBatch(rootdir=package.installdir)
    ctx = hooks.HookContext(
        project=project, batch=batch, package=package, scanner=scanner
    )
    hooks.run_pipeline(phase, package, ctx, default=default)
    return batch


def get_buildcmds(
    project: proj.Project,
    package: proj.Package,
    *,
    scanner: symbols.Scanner | None = None,
) -> batchcmds.CommandBatch:
    return _get_package_cmds(
        hooks.Phase.BUILD, _on_buildcmd, project, package, scanner
    )


def get_installcmds(
    project: proj.Project,
    package: proj.Package,
    *,
    scanner: symbols.Scanner | None = None,
) -> batchcmds.CommandBatch:
    return _get_package_cmds(
        hooks.Phase.INSTALL, _on_installcmd, project, package, scanner
    )


def get_uninstallcmds(
    project: proj.Project,
    package: proj.Package,
    *,
    scanner: symbols.Scanner | None = None,
) -> batchcmds.CommandBatch:
    return _get_package_cmds(
        hooks.Phase.UNINSTALL, _on_uninstallcmd, project, package, scanner
    )
