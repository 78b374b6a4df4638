# SPDX-License-Identifier: GPL-2.0+
#
"""Building all the examples in a tree, as done by CI

The examples are described by a metadata file (normally metadata.json in the
examples directory), for example:

    {
      "examples": {
        "hello_world-rs": {
          "category": "common",
          "tas": ["hello_world-rs/ta"],
          "cas": ["hello_world-rs/host"]
        },
        "supp_plugin-rs": {
          "category": "no-std-only",
          "tas": ["supp_plugin-rs/ta"],
          "cas": ["supp_plugin-rs/host"],
          "plugins": ["supp_plugin-rs/plugin"]
        }
      }
    }

Directories are relative to the examples directory. The file is read as yaml,
so json or yaml can be used.
"""

import os

import yaml

from cargo_optee import bintool
from cargo_optee import cmdline
from cargo_optee import config
from u_boot_pylib import tout

CAT_COMMON, CAT_STD_ONLY, CAT_NO_STD_ONLY = 'common', 'std-only', 'no-std-only'
CATEGORIES = [CAT_COMMON, CAT_STD_ONLY, CAT_NO_STD_ONLY]

# Metadata key holding the directories for each component type
COMPONENT_KEYS = {
    config.COMP_TA: 'tas',
    config.COMP_CA: 'cas',
    config.COMP_PLUGIN: 'plugins',
    }

METADATA_FNAME = 'metadata.json'
DEFAULT_INSTALL_DIR = os.path.join('tests', 'shared')

class Example:
    """An example, with its TAs, CAs and plugins

    Properties:
        name: Name of the example
        category: Category, one of CATEGORIES
        dirs: Dict of directories to build, relative to the examples
            directory:
                key: component type, e.g. config.COMP_TA
                value: list of str
    """
    def __init__(self, name, category, dirs):
        self.name = name
        self.category = category
        self.dirs = dirs

    def __str__(self):
        return 'example %s' % self.name

    def wanted(self, std):
        """Check whether this example should be built

        Args:
            std (bool): True if building std examples, False for no-std
        """
        if self.category == CAT_COMMON:
            return True
        return self.category == (CAT_STD_ONLY if std else CAT_NO_STD_ONLY)


def read_examples(fname):
    """Read the examples metadata file

    Args:
        fname (str): Filename to read

    Returns:
        list of Example: Examples, sorted by name
    """
    if not os.path.exists(fname):
        raise ValueError('Examples metadata not found: %s' % fname)
    with open(fname) as inf:
        data = yaml.safe_load(inf)
    return load_examples(data)

def load_examples(data):
    """Load the examples from a dict

    Args:
        data (dict): Decoded metadata

    Returns:
        list of Example: Examples, sorted by name
    """
    if not isinstance(data, dict) or not isinstance(data.get('examples'), dict):
        raise ValueError("Examples metadata must have an 'examples' table")
    result = []
    for name, info in sorted(data['examples'].items()):
        if not isinstance(info, dict):
            raise ValueError("Example '%s' must be a table" % name)
        category = info.get('category')
        if category not in CATEGORIES:
            raise ValueError("Example '%s' has invalid category '%s' (%s)" %
                             (name, category, ', '.join(CATEGORIES)))
        dirs = {}
        for comp, key in COMPONENT_KEYS.items():
            dirs[comp] = list(info.get(key) or [])
        result.append(Example(name, category, dirs))
    return result

def get_component_argv(comp, manifest, install_dir, arch, std, ta_dev_kit_dir,
                       optee_client_export):
    """Get the cargo-optee arguments to install a component

    Args:
        comp (str): Component type, e.g. config.COMP_PLUGIN
        manifest (str): Path to Cargo.toml for the component
        install_dir (str): Directory to install into
        arch (str): Architecture to build for
        std (bool): True to build a TA with std
        ta_dev_kit_dir (str): TA dev kit directory
        optee_client_export (str): OP-TEE client export directory

    Returns:
        list of str: Arguments
    """
    argv = ['install', comp, '--manifest-path', manifest, '--target-dir',
            install_dir, '--arch', arch]
    if comp == config.COMP_TA:
        argv += ['--ta-dev-kit-dir', ta_dev_kit_dir]
        if std:
            argv.append('--std')
    else:
        argv += ['--optee-client-export', optee_client_export]
    return argv

def build_examples(args, build_func, clean_func, runner=None):
    """Build and install all wanted examples, continuing after failures

    Args:
        args (Namespace): Arguments for the build-examples command
        build_func (function): Function to build a component, called with
            the parsed arguments for an 'install' command and the runner
        clean_func (function): Function to clean a component, called with
            the manifest path and the runner
        runner (function): Function to use to run commands, None for default

    Returns:
        int: 0 if everything was installed, 1 if anything failed
    """
    ta_dev_kit_dir = args.ta_dev_kit_dir or os.environ.get('TA_DEV_KIT_DIR')
    if not ta_dev_kit_dir:
        raise ValueError('TA_DEV_KIT_DIR environment variable is not set')
    optee_client_export = (args.optee_client_export or
                           os.environ.get('OPTEE_CLIENT_EXPORT'))
    if not optee_client_export:
        raise ValueError('OPTEE_CLIENT_EXPORT environment variable is not set')

    examples_dir = os.path.abspath(args.examples_dir)
    metadata = args.metadata or os.path.join(examples_dir, METADATA_FNAME)
    default_dir = os.path.abspath(DEFAULT_INSTALL_DIR)
    install_dirs = {
        config.COMP_TA: os.path.abspath(args.ta_install_dir or default_dir),
        config.COMP_CA: os.path.abspath(args.ca_install_dir or default_dir),
        config.COMP_PLUGIN: os.path.abspath(args.plugin_install_dir or
                                            default_dir),
        }
    for dirname in install_dirs.values():
        os.makedirs(dirname, exist_ok=True)

    tout.notice('Installing with configuration:')
    tout.notice('  ARCH_TA: %s' % args.ta_arch)
    tout.notice('  ARCH_HOST: %s' % args.host_arch)
    tout.notice('  STD: %s' % ('std' if args.std else 'no-std'))
    tout.notice('  TA_DEV_KIT_DIR: %s' % ta_dev_kit_dir)
    tout.notice('  OPTEE_CLIENT_EXPORT: %s' % optee_client_export)

    failed = []
    count = 0
    for example in read_examples(metadata):
        if not example.wanted(args.std):
            continue
        count += 1
        example_dir = os.path.join(examples_dir, example.name)
        if not os.path.isdir(example_dir):
            tout.error('ERROR: Example directory not found: %s' % example_dir)
            failed.append(example.name)
            continue
        tout.notice('[%d] Building: %s (%s)' % (count, example.name,
                                                example.category))
        if not example.dirs[config.COMP_TA]:
            tout.warning('No TAs defined for %s' % example.name)
        for comp in config.COMPONENTS:
            arch = args.ta_arch if comp == config.COMP_TA else args.host_arch
            dirs = example.dirs[comp]
            for seq, subdir in enumerate(dirs):
                tout.notice('-> Building %s [%d/%d]: %s' %
                            (comp.upper(), seq + 1, len(dirs), subdir))
                path = os.path.join(examples_dir, subdir)
                manifest = os.path.join(path, 'Cargo.toml')
                desc = '%s (%s)' % (example.name, subdir)
                if not os.path.isdir(path):
                    tout.error('ERROR: %s directory not found: %s' %
                               (comp.upper(), path))
                    failed.append(desc)
                    continue
                if not os.path.isfile(manifest):
                    tout.error('ERROR: Cargo.toml not found in %s directory: %s'
                               % (comp.upper(), path))
                    failed.append(desc)
                    continue
                argv = get_component_argv(
                    comp, manifest, install_dirs[comp], arch, args.std,
                    ta_dev_kit_dir, optee_client_export)
                try:
                    build_func(cmdline.parse_args(argv), runner)
                    clean_func(manifest, runner)
                except (ValueError, OSError, bintool.ToolError) as exc:
                    tout.error('ERROR: Failed to install %s: %s: %s' %
                               (comp.upper(), subdir, exc))
                    failed.append(desc)

    tout.notice('')
    tout.notice('INSTALL SUMMARY')
    tout.notice('Mode:          %s' % ('std' if args.std else 'no-std'))
    tout.notice('Architecture:  TA=%s, CA=%s' % (args.ta_arch, args.host_arch))
    tout.notice('Examples:      %d processed' % count)
    if failed:
        tout.error('INSTALL FAILED')
        tout.error('Failed components:')
        for desc in failed:
            tout.error('  - %s' % desc)
        return 1
    tout.notice('All examples installed successfully')
    return 0
