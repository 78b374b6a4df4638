# SPDX-License-Identifier: GPL-2.0+
#
"""Architectures, build modes and the Rust targets they map to"""

import os
import shutil

OUR_PATH = os.path.dirname(os.path.realpath(__file__))
TARGETS_DIR = os.path.join(OUR_PATH, 'targets')

ARCH_AARCH64 = 'aarch64'
ARCH_ARM = 'arm'
ARCHES = [ARCH_AARCH64, ARCH_ARM]

ARCH_ALIASES = {
    'aarch64': ARCH_AARCH64,
    'arm64': ARCH_AARCH64,
    'arm': ARCH_ARM,
    'arm32': ARCH_ARM,
    }

# Client Application: normal-world Linux program (also used for plugins)
MODE_CA = 'ca'
# Trusted Application using std, built for the custom OP-TEE targets
MODE_TA_STD = 'ta-std'
# Trusted Application without std, built for the Linux targets
MODE_TA_NO_STD = 'ta-no-std'

# (arch, mode): (rust target, cross-compile prefix)
TARGET_CONFIGS = {
    (ARCH_ARM, MODE_CA): ('arm-unknown-linux-gnueabihf',
                          'arm-linux-gnueabihf-'),
    (ARCH_ARM, MODE_TA_NO_STD): ('arm-unknown-linux-gnueabihf',
                                 'arm-linux-gnueabihf-'),
    (ARCH_ARM, MODE_TA_STD): ('arm-unknown-optee', 'arm-linux-gnueabihf-'),
    (ARCH_AARCH64, MODE_CA): ('aarch64-unknown-linux-gnu',
                              'aarch64-linux-gnu-'),
    (ARCH_AARCH64, MODE_TA_NO_STD): ('aarch64-unknown-linux-gnu',
                                     'aarch64-linux-gnu-'),
    (ARCH_AARCH64, MODE_TA_STD): ('aarch64-unknown-optee',
                                  'aarch64-linux-gnu-'),
    }

def parse_arch(name):
    """Convert an architecture name to one of ARCHES

    Args:
        name (str): Name to convert, e.g. 'arm64' (case is ignored)

    Returns:
        str: Architecture, e.g. ARCH_AARCH64

    Raises:
        ValueError: the name is not recognised
    """
    arch = ARCH_ALIASES.get(str(name).lower())
    if not arch:
        raise ValueError('Invalid architecture: %s' % name)
    return arch

def ta_mode(std):
    """Get the build mode for a TA

    Args:
        std (bool): True if the TA uses std
    """
    return MODE_TA_STD if std else MODE_TA_NO_STD

def get_target_and_cross_compile(arch, mode):
    """Get the Rust target and cross-compile prefix for a build

    Args:
        arch (str): Architecture, e.g. ARCH_ARM
        mode (str): Build mode, e.g. MODE_TA_STD

    Returns:
        tuple:
            str: Rust target, e.g. 'arm-unknown-optee'
            str: Cross-compile prefix, e.g. 'arm-linux-gnueabihf-'
    """
    config = TARGET_CONFIGS.get((arch, mode))
    if not config:
        raise ValueError('No target configuration found for arch: %s, mode: %s'
                         % (arch, mode))
    return config

def get_custom_targets():
    """Get the names of the custom targets which are provided"""
    return sorted(os.path.splitext(fname)[0]
                  for fname in os.listdir(TARGETS_DIR)
                  if fname.endswith('.json'))

def write_custom_targets(outdir):
    """Write the target-spec files for the custom OP-TEE targets

    The directory is suitable for use as RUST_TARGET_PATH

    Args:
        outdir (str): Directory to write the .json files to
    """
    for name in get_custom_targets():
        shutil.copy(os.path.join(TARGETS_DIR, name + '.json'), outdir)
