from .cmd import cmd
from .importing import import_object
from .template import format_template

__all__ = (
    "cmd",
    "format_template",
    "import_object",
)
