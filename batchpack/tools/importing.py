from __future__ import annotations
from typing import Any

import importlib

from batchpack import errors


def import_object(path: str) -> Any:
    """Import an object given as ``"package.module:name"``."""
    modname, _, objname = path.rpartition(":")
    if not modname or not objname:
        raise errors.ConfigurationError(
            f"invalid object reference {path!r}, expected 'module:name'"
        )
    try:
        mod = importlib.import_module(modname)
    except ImportError as e:
        raise errors.ConfigurationError(
            f"cannot import {modname!r} for {path!r}: {e}"
        ) from e
    try:
        return getattr(mod, objname)
    except AttributeError:
        raise errors.ConfigurationError(
            f"module {modname!r} has no attribute {objname!r}"
        ) from None
