"""
Final printing
"""

from .base import BasePass, ConversionContext, JsProgram
from .dangerous_references import DangerousReferencesPass


class PrintPass(BasePass):
    """Substitute deferred text and normalize the ends of the program."""
    requires = [DangerousReferencesPass]

    def run(self, program: JsProgram, ctx: ConversionContext) -> JsProgram:
        source = program.source
        for placeholder, text in ctx.deferred.items():
            source = source.replace(placeholder, text)
        source = source.lstrip("\n").rstrip()
        return JsProgram(source + "\n" if source else "", program.source_file)
