from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    Callable,
)

import dataclasses
import logging

from . import batchcmds
from . import hooks
from . import installcmds
from . import project as proj
from . import topological

if TYPE_CHECKING:
    from cleo.io.io import IO

    from . import symbols


logger = logging.getLogger(__name__)


class VisitedSet:
    """Targets already handled by one top-level install or uninstall."""

    def __init__(self) -> None:
        self._finished: dict[str, bool] = {}
        self._visiting: set[str] = set()

    def __contains__(self, name: object) -> bool:
        return self._finished.get(name, False)  # type: ignore[call-overload]

    def is_finished(self, name: str) -> bool:
        return self._finished.get(name, False)

    def enter(self, name: str) -> None:
        if name in self._visiting:
            raise topological.CycleError(
                f"detected cycle on target {name!r}"
            )
        self._visiting.add(name)

    def mark_finished(self, name: str) -> None:
        self._visiting.discard(name)
        self._finished[name] = True

    @property
    def finished(self) -> list[str]:
        return [name for name, done in self._finished.items() if done]


TargetAction = Callable[[proj.Target, hooks.HookContext], None]


def _run_target(
    verb: str,
    action: TargetAction,
    target: proj.Target,
    ctx: hooks.HookContext,
    executor: batchcmds.Executor,
) -> None:
    if not target.enabled:
        logger.info(f"{target.name} is disabled, skipping")
        return

    if ctx.io is not None:
        ctx.io.write_line(f"<info>{verb} {target.name} ..</info>")
    else:
        logger.info(f"{verb} {target.name} ..")

    batch = batchcmds.CommandBatch()
    action(target, dataclasses.replace(ctx, batch=batch))
    batch.replay(executor)


def _walk(
    target: proj.Target,
    visit: Callable[[proj.Target], None],
    ctx: hooks.HookContext,
    visited: VisitedSet,
) -> None:
    if visited.is_finished(target.name):
        return

    visited.enter(target.name)
    for edge in target.deps:
        _walk(ctx.project.target(edge.name), visit, ctx, visited)

    visit(target)
    visited.mark_finished(target.name)


def _run(
    verb: str,
    action: TargetAction,
    project: proj.Project,
    targetname: str | None,
    installdir: str,
    *,
    scanner: symbols.Scanner | None,
    executor: batchcmds.Executor | None,
    io: IO | None,
) -> VisitedSet:
    package = proj.Package.for_installdir(project, installdir)
    if executor is None:
        executor = batchcmds.FileSystemExecutor(
            rootdir=package.installdir, cwd=project.directory
        )
    ctx = hooks.HookContext(
        project=project,
        batch=batchcmds.CommandBatch(),
        package=package,
        scanner=scanner,
        io=io,
    )
    visited = VisitedSet()

    def visit(target: proj.Target) -> None:
        assert executor is not None
        _run_target(verb, action, target, ctx, executor)

    if targetname:
        _walk(project.target(targetname), visit, ctx, visited)
    else:
        for target in project.iter_targets():
            _walk(target, visit, ctx, visited)

    return visited


def install(
    project: proj.Project,
    targetname: str | None = None,
    *,
    installdir: str,
    scanner: symbols.Scanner | None = None,
    executor: batchcmds.Executor | None = None,
    io: IO | None = None,
) -> VisitedSet:
    """Install *targetname* and its dependencies into *installdir*.

    Without a target name every target of the project is installed.
    """
    return _run(
        "installing",
        installcmds.get_target_installcmds,
        project,
        targetname,
        installdir,
        scanner=scanner,
        executor=executor,
        io=io,
    )


def uninstall(
    project: proj.Project,
    targetname: str | None = None,
    *,
    installdir: str,
    scanner: symbols.Scanner | None = None,
    executor: batchcmds.Executor | None = None,
    io: IO | None = None,
) -> VisitedSet:
    """Remove *targetname* and its dependencies from *installdir*.

    Each target is uninstalled at most once even when several targets
    depend on it.  Disabled targets are skipped but still count as
    visited.
    """
    return _run(
        "uninstalling",
        installcmds.get_target_uninstallcmds,
        project,
        targetname,
        installdir,
        scanner=scanner,
        executor=executor,
        io=io,
    )
