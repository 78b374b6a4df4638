#!/usr/bin/env python3
# SPDX-License-Identifier: GPL-2.0+
#

"""cargo-optee - build OP-TEE TAs, CAs and plugins written in Rust

This is normally run by cargo as 'cargo optee ...', in which case cargo
passes 'optee' as the first argument.
"""

import os
import sys
import traceback

from cargo_optee import bintool
from cargo_optee import cmdline
from cargo_optee import control
from u_boot_pylib import tools
from u_boot_pylib import tout

RUSTUP_HELP = ("cargo command not found. Please install Rust: curl "
               "--proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh")

def filter_cargo_args(argv):
    """Drop the extra 'optee' argument provided by cargo

    Args:
        argv (list of str): Arguments, excluding the program name

    Returns:
        list of str: Arguments with the first 'optee' removed
    """
    if 'optee' in argv:
        argv = list(argv)
        argv.remove('optee')
    return argv

def setup_cargo_environment():
    """Make sure that cargo can be found

    If cargo is not on the PATH, the usual rustup install directories are
    added to it, as sourcing ~/.cargo/env would do.
    """
    if tools.tool_find('cargo'):
        return
    dirs = []
    if os.environ.get('HOME'):
        dirs.append(os.path.join(os.environ['HOME'], '.cargo', 'bin'))
    if os.environ.get('CARGO_HOME'):
        dirs.append(os.path.join(os.environ['CARGO_HOME'], 'bin'))
    for dirname in dirs:
        if os.path.isfile(os.path.join(dirname, 'cargo')):
            os.environ['PATH'] = dirname + os.pathsep + os.environ.get('PATH',
                                                                     '')
            tout.detail('Added %s to PATH' % dirname)
            return
    raise ValueError(RUSTUP_HELP)

def run_cargo_optee(args, runner=None):
    """Main entry point to cargo-optee once arguments are parsed

    Args:
        args: Command line arguments Namespace object
        runner (function): Function to use to run commands, None for default

    Returns:
        int: Exit code
    """
    ret_code = 0

    if not args.full_traceback:
        sys.tracebacklimit = 0

    try:
        tout.init(args.verbosity)
        if not runner:
            setup_cargo_environment()
        ret_code = control.CargoOptee(args, runner)
    except Exception as exc:
        print('cargo-optee: %s' % exc, file=sys.stderr)
        if args.full_traceback:
            print()
            traceback.print_exc()
        ret_code = 1
        if isinstance(exc, bintool.ToolError) and exc.return_code:
            ret_code = exc.return_code
    finally:
        tout.uninit()
    return ret_code

def start_cargo_optee(argv=None):
    """Parse the arguments and run cargo-optee

    Args:
        argv (list of str): Arguments, None to use sys.argv

    Returns:
        int: Exit code
    """
    if argv is None:
        argv = sys.argv[1:]
    args = cmdline.parse_args(filter_cargo_args(argv))
    return run_cargo_optee(args)


if __name__ == "__main__":
    sys.exit(start_cargo_optee())
