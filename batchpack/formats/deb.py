from __future__ import annotations
from typing import TYPE_CHECKING

import logging
import os
import textwrap

import packaging.utils

from batchpack import platforms
from batchpack import tools

from . import base

if TYPE_CHECKING:
    from batchpack import project as proj


logger = logging.getLogger(__name__)

_deb_arches = {
    "x86_64": "amd64",
    "x64": "amd64",
    "i386": "i386",
    "x86": "i386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7": "armhf",
}

CONTROL_TEMPLATE = textwrap.dedent(
    """\
    Package: @@name
    Version: @@version
    Architecture: @@arch
    Maintainer: @@maintainer
    Section: @@section
    Priority: optional
    Homepage: @@homepage
    Description: @@description
    """
)


class DebFormat(base.Format):
    name = "deb"

    def load(self, package: proj.Package, ctx: base.PackContext) -> None:
        if not platforms.is_debian_like():
            logger.warning(
                f"building a deb package on {platforms.get_host_ident()}, "
                f"dpkg-deb may not be available"
            )

    def get_deb_arch(self, package: proj.Package) -> str:
        return self.get_option(
            "arch", _deb_arches.get(package.arch, package.arch)
        )

    def write_control(self, package: proj.Package) -> None:
        debian = os.path.join(package.get_image_root(), "DEBIAN")
        os.makedirs(debian, exist_ok=True)
        control = tools.format_template(
            CONTROL_TEMPLATE,
            name=packaging.utils.canonicalize_name(package.name),
            version=package.version.text,
            arch=self.get_deb_arch(package),
            maintainer=package.maintainer or "unknown <unknown@localhost>",
            section=self.get_option("section", "misc"),
            homepage=package.homepage or "",
            description=package.description or package.name,
        )
        lines = [
            line
            for line in control.splitlines()
            if not line.endswith(":") and not line.endswith(": ")
        ]
        depends = self.get_option("depends")
        if depends:
            lines.append(f"Depends: {', '.join(depends)}")
        with open(os.path.join(debian, "control"), "w") as f:
            f.write("\n".join(lines) + "\n")

    def package(self, package: proj.Package, ctx: base.PackContext) -> None:
        # Debian packages install below /usr unless told otherwise.
        rootdir = package.install_rootdir
        if not rootdir:
            package.install_rootdir = self.get_option("install_rootdir", "usr")
        try:
            self.stage(package, ctx)
        finally:
            package.install_rootdir = rootdir

        self.write_control(package)
        artifact = self.get_artifact_path(package, ".deb")
        tools.cmd(
            "dpkg-deb",
            "--root-owner-group",
            "--build",
            package.get_image_root(),
            artifact,
        )
        self.add_artifact(package, ctx, artifact)
