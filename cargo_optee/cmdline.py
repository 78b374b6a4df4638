# SPDX-License-Identifier: GPL-2.0+
#
# Command-line parser for cargo-optee
#

from argparse import ArgumentParser, ArgumentTypeError

import cargo_optee
from cargo_optee import config
from cargo_optee import install
from cargo_optee import target
from u_boot_pylib import tout

# Output levels, in increasing order of verbosity
LEVELS = ['fatal', 'error', 'warning', 'notice', 'info', 'detail', 'debug']

def arch_type(value):
    try:
        return target.parse_arch(value)
    except ValueError as exc:
        raise ArgumentTypeError(str(exc))

def env_type(value):
    try:
        return config.parse_env_var(value)
    except ValueError as exc:
        raise ArgumentTypeError(str(exc))

def add_common_args(parser):
    """Add arguments used by TA, CA and plugin builds"""
    parser.add_argument('--manifest-path', type=str,
                        help='Path to the Cargo.toml manifest file')
    parser.add_argument('--arch', type=arch_type,
                        help='Target architecture: aarch64 or arm '
                        '(default: aarch64)')
    parser.add_argument('--debug', action='store_true', default=None,
                        help='Enable debug build (default: release)')
    parser.add_argument(
        '--env', type=env_type, action='append', default=[],
        metavar='KEY=VALUE',
        help='Environment override for the build, e.g. RUSTFLAGS=... '
        '(can be repeated)')
    parser.add_argument('--no-default-features', action='store_true',
                        help='Pass --no-default-features to cargo build')
    parser.add_argument('--features', type=str,
                        help='Features to enable (comma-separated)')

def add_ta_args(parser):
    add_common_args(parser)
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        '--std', dest='std', action='store_true', default=None,
        help='Enable std for the TA (default: read from Cargo.toml metadata)')
    group.add_argument(
        '--no-std', dest='std', action='store_false', default=None,
        help='Build the TA without std (default: read from Cargo.toml '
        'metadata)')
    parser.add_argument('--ta-dev-kit-dir', type=str,
                        help='OP-TEE TA development kit export directory')
    parser.add_argument(
        '--signing-key', type=str,
        help='TA signing key (default: TA_DEV_KIT_DIR/keys/default_ta.pem)')
    parser.add_argument('--uuid-path', type=str,
                        help='UUID file path (default: ../uuid.txt)')

def add_ca_args(parser):
    add_common_args(parser)
    parser.add_argument('--optee-client-export', type=str,
                        help='OP-TEE client export directory')

def add_plugin_args(parser):
    add_ca_args(parser)
    parser.add_argument('--uuid-path', type=str,
                        help='UUID file path (default: ../uuid.txt)')

def add_component_parsers(parser, verb, install_args):
    """Add subparsers for building each type of component

    Args:
        parser: Parser to add to
        verb (str): Verb to use in the help, e.g. 'Build'
        install_args (bool): True to add the --target-dir argument
    """
    subparser = parser.add_subparsers(dest='component', required=True)
    ta_parser = subparser.add_parser(
        config.COMP_TA, help='%s a Trusted Application (TA)' % verb)
    add_ta_args(ta_parser)
    ca_parser = subparser.add_parser(
        config.COMP_CA, help='%s a Client Application (host)' % verb)
    add_ca_args(ca_parser)
    plugin_parser = subparser.add_parser(
        config.COMP_PLUGIN, help='%s a plugin (shared library)' % verb)
    add_plugin_args(plugin_parser)
    if install_args:
        for sub in (ta_parser, ca_parser, plugin_parser):
            sub.add_argument(
                '--target-dir', type=str, default=install.DEFAULT_TARGET_DIR,
                help='Directory to install the binary to (default: %s)' %
                install.DEFAULT_TARGET_DIR)

def parse_args(argv):
    """Parse the cargo-optee command-line arguments

    Args:
        argv: List of string arguments

    Returns:
        argparse.Namespace: Parsed arguments
    """
    epilog = '''Build OP-TEE Trusted Applications, Client Applications and
plugins written in Rust.'''

    parser = ArgumentParser(prog='cargo-optee', epilog=epilog)
    parser.add_argument('-D', '--full-traceback', action='store_true',
        help='Enabling debugging (provides a full traceback on error)')
    levels = ', '.join('%d=%s' % (getattr(tout, name.upper()), name)
                       for name in LEVELS)
    parser.add_argument('-v', '--verbosity', default=tout.INFO, type=int,
        help='Control verbosity: %s (default: %d)' % (levels, tout.INFO))
    parser.add_argument('--version', action='version',
                        version='%(prog)s ' + cargo_optee.__version__)

    subparser = parser.add_subparsers(dest='cmd', required=True)

    build_parser = subparser.add_parser('build',
                                        help='Build OP-TEE components')
    add_component_parsers(build_parser, 'Build', False)

    install_parser = subparser.add_parser(
        'install', help='Build and install OP-TEE components')
    add_component_parsers(install_parser, 'Install', True)

    clean_parser = subparser.add_parser('clean',
                                        help='Clean OP-TEE components')
    clean_parser.add_argument('--manifest-path', type=str,
                              help='Path to the Cargo.toml manifest file')

    ex_parser = subparser.add_parser(
        'build-examples', help='Build and install all examples in a tree')
    ex_parser.add_argument('-e', '--examples-dir', type=str,
                           default='examples',
                           help='Directory holding the examples')
    ex_parser.add_argument(
        '-m', '--metadata', type=str,
        help='Examples metadata file (default: EXAMPLES_DIR/metadata.json)')
    ex_parser.add_argument('--ta', dest='ta_arch', type=arch_type,
                           default=target.ARCH_AARCH64,
                           help='TA architecture (default: aarch64)')
    ex_parser.add_argument('--host', dest='host_arch', type=arch_type,
                           default=target.ARCH_AARCH64,
                           help='Architecture for CAs and plugins '
                           '(default: aarch64)')
    ex_parser.add_argument('--std', action='store_true',
                           help='Build std examples (default: no-std)')
    ex_parser.add_argument('--ta-dev-kit-dir', type=str,
                           help='TA dev kit (default: $TA_DEV_KIT_DIR)')
    ex_parser.add_argument(
        '--optee-client-export', type=str,
        help='OP-TEE client export (default: $OPTEE_CLIENT_EXPORT)')
    ex_parser.add_argument('--ta-install-dir', type=str,
                           help='TA install directory (default: tests/shared)')
    ex_parser.add_argument('--ca-install-dir', type=str,
                           help='CA install directory (default: tests/shared)')
    ex_parser.add_argument(
        '--plugin-install-dir', type=str,
        help='Plugin install directory (default: tests/shared)')

    return parser.parse_args(argv)
