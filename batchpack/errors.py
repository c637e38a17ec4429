from __future__ import annotations

import os


class BatchpackError(Exception):
    pass


class ConfigurationError(BatchpackError):
    pass


class MissingArtifactError(BatchpackError):
    def __init__(self, path: str | os.PathLike[str], what: str = "") -> None:
        self.path = str(path)
        if what:
            msg = f"{what}: artifact not found: {self.path}"
        else:
            msg = f"artifact not found: {self.path}"
        super().__init__(msg)


class ScanError(BatchpackError):
    pass


class ExternalCommandError(BatchpackError):
    def __init__(self, cmdline: str, returncode: int) -> None:
        self.cmdline = cmdline
        self.returncode = returncode
        super().__init__(f"{cmdline} failed with exit code {returncode}")


class BatchFormatError(BatchpackError):
    pass


class ReplayError(BatchpackError):
    def __init__(self, command: object, index: int) -> None:
        self.command = command
        self.index = index
        super().__init__(f"command #{index} failed: {command}")
