# SPDX-License-Identifier: GPL-2.0+
#
"""Bintool implementation for cargo

cargo is the Rust package manager and build tool. cargo-optee uses it to
format, lint, build and clean TA, CA and plugin crates, and to read the
package metadata which holds the OP-TEE build settings.
"""

import json

from cargo_optee import bintool

# Lints which are denied when checking OP-TEE code
CLIPPY_DENY = ['warnings', 'clippy::unwrap_used', 'clippy::expect_used',
               'clippy::panic']

class Bintoolcargo(bintool.Bintool):
    """Handles the 'cargo' tool"""
    def fmt(self, cwd):
        """Format the crate in a directory

        Args:
            cwd (str): Crate directory
        """
        result = self.run_cmd_result('fmt', cwd=cwd)
        self.check_result(result, 'cargo fmt')

    def clippy(self, target, cwd, extra_args=None, env=None):
        """Lint the crate, denying warnings and panicking constructs

        Args:
            target (str): Rust target to check, e.g. 'aarch64-unknown-optee'
            cwd (str): Crate directory
            extra_args (list of str): Extra arguments placed before the
                lint flags
            env (dict): Environment to use
        """
        args = ['clippy', '--target', target] + (extra_args or []) + ['--']
        for lint in CLIPPY_DENY:
            args += ['-D', lint]
        result = self.run_cmd_result(*args, cwd=cwd, env=env)
        self.check_result(result, 'clippy')

    def build(self, args, cwd, env=None):
        """Build the crate

        Args:
            args (list of str): Arguments to follow 'build'
            cwd (str): Crate directory
            env (dict): Environment to use
        """
        result = self.run_cmd_result('build', *args, cwd=cwd, env=env)
        self.check_result(result, 'build')

    def clean(self, cwd):
        """Remove build artifacts of the crate in a directory"""
        result = self.run_cmd_result('clean', cwd=cwd)
        self.check_result(result, 'cargo clean')

    def metadata(self, manifest_path, cwd=None):
        """Read the metadata for a crate, excluding its dependencies

        Args:
            manifest_path (str): Path to Cargo.toml
            cwd (str): Directory to run in

        Returns:
            dict: Decoded output of 'cargo metadata'
        """
        result = self.run_cmd_result(
            'metadata', '--manifest-path', manifest_path, '--format-version',
            '1', '--no-deps', cwd=cwd)
        if result.return_code:
            raise bintool.ToolError('Failed to get cargo metadata',
                                    result.return_code)
        return json.loads(result.stdout)
