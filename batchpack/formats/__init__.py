from __future__ import annotations
from typing import TYPE_CHECKING

from batchpack import errors
from batchpack import tools

from .base import Format, PackContext
from . import archive, deb

if TYPE_CHECKING:
    from batchpack import project as proj


__all__ = (
    "Format",
    "PackContext",
    "register",
    "get_format",
    "get_format_class",
    "list_formats",
)


_formats: dict[str, type[Format]] = {}


def register(cls: type[Format]) -> type[Format]:
    _formats[cls.name] = cls
    return cls


def list_formats() -> list[str]:
    return list(_formats)


def get_format_class(spec: proj.FormatSpec) -> type[Format]:
    if spec.backend:
        cls = tools.import_object(spec.backend)
        if not isinstance(cls, type) or not issubclass(cls, Format):
            raise errors.ConfigurationError(
                f"{spec.backend} is not a batchpack.formats.Format subclass"
            )
        return cls

    try:
        return _formats[spec.name]
    except KeyError:
        raise errors.ConfigurationError(
            f"unknown package format: {spec.name} "
            f"(available: {', '.join(sorted(_formats))})"
        ) from None


def get_format(spec: proj.FormatSpec) -> Format:
    return get_format_class(spec)(spec)


register(archive.ZipFormat)
register(archive.TarGzFormat)
register(deb.DebFormat)
