from __future__ import annotations
from typing import TYPE_CHECKING

import logging
import os
import tarfile
import zipfile

from . import base

if TYPE_CHECKING:
    from batchpack import project as proj


logger = logging.getLogger(__name__)


class ArchiveFormat(base.Format):
    suffix = ""

    def package(self, package: proj.Package, ctx: base.PackContext) -> None:
        self.stage(package, ctx)
        artifact = self.get_artifact_path(package, self.suffix)
        logger.info(f"archiving {package.get_image_root()} into {artifact}")
        self.write_archive(package.get_image_root(), artifact, package)
        self.add_artifact(package, ctx, artifact, self.encoding)

    @property
    def encoding(self) -> str:
        return "identity"

    def write_archive(
        self, image_root: str, artifact: str, package: proj.Package
    ) -> None:
        raise NotImplementedError

    def _list_image(self, image_root: str) -> list[str]:
        entries = []
        for root, dirs, files in os.walk(image_root):
            dirs.sort()
            for name in sorted(files):
                entries.append(
                    os.path.relpath(os.path.join(root, name), image_root)
                )
        return entries


class ZipFormat(ArchiveFormat):
    name = "zip"
    suffix = ".zip"

    def write_archive(
        self, image_root: str, artifact: str, package: proj.Package
    ) -> None:
        prefix = package.get_basename()
        with zipfile.ZipFile(
            artifact, "w", compression=zipfile.ZIP_DEFLATED
        ) as zf:
            for entry in self._list_image(image_root):
                zf.write(
                    os.path.join(image_root, entry),
                    arcname=os.path.join(prefix, entry),
                )


class TarGzFormat(ArchiveFormat):
    name = "targz"
    suffix = ".tar.gz"

    @property
    def encoding(self) -> str:
        return "gzip"

    def write_archive(
        self, image_root: str, artifact: str, package: proj.Package
    ) -> None:
        prefix = package.get_basename()
        with tarfile.open(artifact, "w:gz") as tf:
            for entry in self._list_image(image_root):
                tf.add(
                    os.path.join(image_root, entry),
                    arcname=os.path.join(prefix, entry),
                    recursive=False,
                )
