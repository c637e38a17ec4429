from __future__ import annotations
from typing import (
    TYPE_CHECKING,
)

from cleo.application import Application as BaseApplication
from cleo.formatters.style import Style

import batchpack

from . import commands as batchpack_commands

if TYPE_CHECKING:
    from cleo.io.inputs.input import Input
    from cleo.io.io import IO
    from cleo.io.outputs.output import Output


class App(BaseApplication):
    def __init__(self) -> None:
        super().__init__(batchpack.__name__, batchpack.__version__)

    def create_io(
        self,
        input: Input | None = None,
        output: Output | None = None,
        error_output: Output | None = None,
    ) -> IO:
        io = super().create_io(input, output, error_output)
        io.output.formatter.set_style("info", Style("blue").bold())
        io.error_output.formatter.set_style("info", Style("blue").bold())
        io.error_output.formatter.set_style("warning", Style("yellow"))
        return io


def create_app() -> App:
    app = App()
    for cmd_name in batchpack_commands.__all__:
        cmd = getattr(batchpack_commands, cmd_name)
        app.add(cmd())
    return app


def main() -> int:
    return create_app().run()
