# SPDX-License-Identifier: GPL-2.0+
#
"""Base class for all bintools

This defines the common functionality for all bintools, i.e. the external
programs (cargo, the cross-compiler, objcopy, the signing script) which
cargo-optee drives, including running them and reporting failures.
"""

import importlib
import os
import sys

from u_boot_pylib import command
from u_boot_pylib import tools
from u_boot_pylib import tout

modules = {}

class ToolError(Exception):
    """An external tool failed

    Properties:
        return_code: Exit code of the tool (None if it could not be run)
    """
    def __init__(self, msg, return_code=None):
        super().__init__(msg)
        self.return_code = return_code


def run_command(args, cwd=None, env=None):
    """Run a command, capturing its output

    Args:
        args (list of str): Program and arguments
        cwd (str): Directory to run in, None for the current one
        env (dict): Environment variables to add to the current environment

    Returns:
        CommandResult: Result of running the command
    """
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)
    return command.run_pipe([list(args)], capture=True, capture_stderr=True,
                            raise_on_error=False, cwd=cwd, env=full_env)


def format_command(args, env=None):
    """Produce a printable version of a command

    Args:
        args (list of str): Program and arguments
        env (dict): Environment overrides for the command

    Returns:
        str: Command line, preceded by the environment overrides
    """
    out = ' '.join(str(arg) for arg in args)
    if env:
        out = '%s %s' % (' '.join('%s=%s' % (key, val)
                                  for key, val in env.items()), out)
    return out


class Bintool:
    """Tool which is run to produce a TA, CA or plugin

    This is the base class for all bintools

    Properties:
        name: Name of the tool, as used to create it
        toolname: Program to run
        runner: Function used to run commands (see run_command())
    """
    def __init__(self, name, runner=None):
        self.name = name
        self.toolname = name
        self.runner = runner or run_command

    @staticmethod
    def find_bintool_class(btype):
        """Look up the bintool class for bintool

        Args:
            btype: Bintool to use, e.g. 'cargo'

        Returns:
            The bintool class object if found, else a tuple:
                module name that could not be found
                exception received
        """
        module_name = btype.replace('-', '_')
        module = modules.get(module_name)

        # Import the module if we have not already done so
        if not module:
            try:
                module = importlib.import_module('cargo_optee.btool.' +
                                                 module_name)
            except ImportError as exc:
                return module_name, exc
            modules[module_name] = module

        # Look up the expected class name
        return getattr(module, 'Bintool%s' % module_name)

    @staticmethod
    def create(name, runner=None, **kwargs):
        """Create a new bintool object

        Args:
            name (str): Bintool to create, e.g. 'objcopy'
            runner (function): Function to use to run commands, None for the
                default
            kwargs: Extra arguments for the bintool constructor

        Returns:
            A new object of the correct type (a subclass of Bintool)
        """
        cls = Bintool.find_bintool_class(name)
        if isinstance(cls, tuple):
            raise ValueError("Cannot import bintool module '%s': %s" % cls)

        # Call its constructor to get the object we want.
        return cls(name, runner=runner, **kwargs)

    def is_present(self):
        """Check if a bintool is available on the system

        Returns:
            bool: True if available, False if not
        """
        return bool(self.get_path())

    def get_path(self):
        """Get the path of a bintool

        Returns:
            str: Path to the tool, if available, else None
        """
        return tools.tool_find(self.toolname)

    def get_args(self, *args):
        """Get the full command line to run the tool with some arguments"""
        return [self.toolname] + [str(arg) for arg in args]

    def run_cmd_result(self, *args, cwd=None, env=None):
        """Run the tool and return the result, whether it succeeds or not

        Args:
            args: Arguments to pass to the tool
            cwd (str): Directory to run in
            env (dict): Environment variables to set for the tool

        Returns:
            CommandResult: Result of the command
        """
        cmd = self.get_args(*args)
        tout.detail('Command: %s' % format_command(cmd, env))
        return self.runner(cmd, cwd=cwd, env=env)

    def run_cmd(self, *args, cwd=None, env=None):
        """Run the tool, raising an error if it fails

        Args:
            args: Arguments to pass to the tool
            cwd (str): Directory to run in
            env (dict): Environment variables to set for the tool

        Returns:
            str: stdout from the tool

        Raises:
            ToolError: the tool failed
        """
        result = self.run_cmd_result(*args, cwd=cwd, env=env)
        self.check_result(result)
        return result.stdout

    def check_result(self, result, what=None):
        """Check the result of running the tool

        On failure the output from the tool is shown so the user can see what
        went wrong.

        Args:
            result (CommandResult): Result to check
            what (str): Name of the operation for the message, None to use the
                tool name

        Raises:
            ToolError: the tool failed
        """
        what = what or self.toolname
        if result.return_code:
            print('%s stdout: %s' % (what, result.stdout or ''),
                  file=sys.stderr)
            print('%s stderr: %s' % (what, result.stderr or ''),
                  file=sys.stderr)
            if result.exception:
                raise ToolError('%s could not be run: %s' %
                                (what, result.exception), result.return_code)
            raise ToolError('%s failed with exit code: %d' %
                            (what, result.return_code), result.return_code)
