from .export import Export
from .install import Install
from .pack import Pack
from .replay import Replay
from .uninstall import Uninstall

commands = [
    Pack,
    Install,
    Uninstall,
    Export,
    Replay,
]

__all__ = [cmd.__name__ for cmd in commands]
