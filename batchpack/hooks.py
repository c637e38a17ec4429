from __future__ import annotations
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Iterable,
    Optional,
    Protocol,
)

import dataclasses
import enum
import logging

if TYPE_CHECKING:
    from typing_extensions import TypeAlias

    from cleo.io.io import IO

    from . import batchcmds
    from . import project as proj
    from . import symbols


logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    BUILD = "build"
    INSTALL = "install"
    UNINSTALL = "uninstall"
    PACK = "pack"


Hook: TypeAlias = Callable[[Any, "HookContext"], None]


@dataclasses.dataclass(frozen=True)
class Hooks:
    before: Optional[Hook] = None
    main: Optional[Hook] = None
    after: Optional[Hook] = None


NO_HOOKS = Hooks()


class HookProvider(Protocol):
    name: str

    def get_hooks(self, phase: Phase) -> Hooks: ...


@dataclasses.dataclass
class HookContext:
    """State shared by every stage of one pipeline run."""

    project: proj.Project
    batch: batchcmds.CommandBatch
    package: proj.Package | None = None
    scanner: symbols.Scanner | None = None
    io: IO | None = None

    def get_scanner(self) -> symbols.Scanner:
        if self.scanner is None:
            from . import symbols

            return symbols.get_depend_libraries
        return self.scanner


def run_pipeline(
    phase: Phase,
    entity: HookProvider,
    ctx: HookContext,
    *,
    default: Hook | None = None,
    rules: Iterable[HookProvider] = (),
) -> None:
    """Run the before/main/after stages of *phase* for *entity*.

    Stage order is the entity's before hook, the before hook of every
    rule, the main stage, the after hook of every rule and finally the
    entity's after hook.  The entity's own main hook wins over the mains
    declared by rules, which in turn replace *default*.
    """
    hooks = entity.get_hooks(phase)
    rule_hooks = [(rule, rule.get_hooks(phase)) for rule in rules]

    stages: list[tuple[str, Hook | None]] = []
    stages.append((f"{entity.name}:{phase.value}_before", hooks.before))
    for rule, rhooks in rule_hooks:
        stages.append((f"{rule.name}:{phase.value}_before", rhooks.before))

    if hooks.main is not None:
        stages.append((f"{entity.name}:{phase.value}", hooks.main))
    else:
        rule_mains = [
            (f"{rule.name}:{phase.value}", rhooks.main)
            for rule, rhooks in rule_hooks
            if rhooks.main is not None
        ]
        if rule_mains:
            stages.extend(rule_mains)
        else:
            stages.append((f"<default>:{phase.value}", default))

    for rule, rhooks in rule_hooks:
        stages.append((f"{rule.name}:{phase.value}_after", rhooks.after))
    stages.append((f"{entity.name}:{phase.value}_after", hooks.after))

    for label, script in stages:
        if script is None:
            continue
        logger.debug(f"running {label}")
        script(entity, ctx)
