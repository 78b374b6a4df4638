# SPDX-License-Identifier: GPL-2.0+
#
"""Bintool implementation for the cross gcc

The cross-compiler is only used as the linker for the Rust target, so it is
never run directly. It is checked for before building.
"""

from cargo_optee import bintool

class Bintoolgcc(bintool.Bintool):
    """Handles a cross 'gcc', e.g. aarch64-linux-gnu-gcc"""
    def __init__(self, name, runner=None, cross_compile=''):
        super().__init__(name, runner)
        self.toolname = cross_compile + 'gcc'
