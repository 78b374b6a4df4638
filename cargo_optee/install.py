# SPDX-License-Identifier: GPL-2.0+
#
"""Installing built components to a target directory"""

import os
import shutil

from u_boot_pylib import tout

DEFAULT_TARGET_DIR = 'shared'

def install_file(fname, target_dir, what):
    """Copy a built file into a target directory, creating it if needed

    Args:
        fname (str): File to install
        target_dir (str): Directory to install into
        what (str): Description of the file, e.g. 'TA'

    Returns:
        str: Path to the installed file
    """
    if not os.path.isfile(fname):
        raise ValueError('%s not found at %s' % (what, fname))
    os.makedirs(target_dir, exist_ok=True)
    dest = os.path.join(target_dir, os.path.basename(fname))
    shutil.copy(fname, dest)
    tout.notice('%s installed to: %s' % (what, os.path.realpath(dest)))
    return dest
