# SPDX-License-Identifier: GPL-2.0+
#
"""Bintool implementation for the cross objcopy"""

from cargo_optee import bintool

class Bintoolobjcopy(bintool.Bintool):
    """Handles a cross 'objcopy', e.g. arm-linux-gnueabihf-objcopy"""
    def __init__(self, name, runner=None, cross_compile=''):
        super().__init__(name, runner)
        self.toolname = cross_compile + 'objcopy'

    def strip(self, infile, outfile):
        """Remove symbols not needed for relocation

        Args:
            infile (str): ELF file to strip
            outfile (str): Output file, which may be the same as infile
        """
        self.run_cmd('--strip-unneeded', infile, outfile)
