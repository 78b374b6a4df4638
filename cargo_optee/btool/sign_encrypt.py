# SPDX-License-Identifier: GPL-2.0+
#
"""Bintool implementation for the OP-TEE TA signing script

The script is part of the TA dev kit exported by an optee_os build, at
scripts/sign_encrypt.py. It wraps a stripped ELF into a signed .ta file which
the OP-TEE loader accepts.
"""

import os

from cargo_optee import bintool

class Bintoolsign_encrypt(bintool.Bintool):
    """Handles the 'sign_encrypt.py' script from the TA dev kit"""
    def __init__(self, name, runner=None, ta_dev_kit_dir=''):
        super().__init__(name, runner)
        self.toolname = 'python3'
        self.script = os.path.join(ta_dev_kit_dir, 'scripts',
                                   'sign_encrypt.py')

    def get_args(self, *args):
        return super().get_args(self.script, *args)

    def sign(self, uuid, key, infile, outfile):
        """Sign a TA

        Args:
            uuid (str): UUID of the TA
            key (str): Path to the private key in PEM format
            infile (str): Stripped TA ELF
            outfile (str): Output .ta file
        """
        result = self.run_cmd_result('--uuid', uuid, '--key', key,
                                     '--in', infile, '--out', outfile)
        self.check_result(result, 'sign_encrypt.py')
