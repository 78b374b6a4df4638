# SPDX-License-Identifier: GPL-2.0+
#
"""The cargo project (crate) which is being built"""

import os

from cargo_optee import bintool
from cargo_optee.bintool import Bintool
from u_boot_pylib import tout

DEFAULT_UUID_PATH = os.path.join('..', 'uuid.txt')

def resolve_project_path(manifest_path=None):
    """Work out the project directory

    Args:
        manifest_path (str): Path to Cargo.toml, or None to use the current
            directory

    Returns:
        str: Absolute path to the project directory
    """
    if not manifest_path:
        return os.getcwd()
    parent = os.path.dirname(manifest_path)
    if not parent:
        return os.getcwd()
    if not os.path.isdir(parent):
        raise ValueError('Invalid manifest path: %s' % manifest_path)
    return os.path.realpath(parent)

def read_uuid(uuid_path):
    """Read a UUID from a file such as uuid.txt

    Args:
        uuid_path (str): Path to the file

    Returns:
        str: UUID, with surrounding whitespace removed
    """
    if not os.path.exists(uuid_path):
        raise ValueError('UUID file not found: %s' % uuid_path)
    with open(uuid_path) as inf:
        uuid = inf.read().strip()
    if not uuid:
        raise ValueError('UUID file is empty: %s' % uuid_path)
    return uuid


class Project:
    """A cargo package holding a TA, CA or plugin

    The information comes from 'cargo metadata', which is only run once.

    Properties:
        path: Absolute path to the project directory
        manifest: Path to the Cargo.toml file
        cargo: Bintool used to run cargo
    """
    def __init__(self, path, runner=None):
        self.path = path
        self.manifest = os.path.join(path, 'Cargo.toml')
        self.cargo = Bintool.create('cargo', runner)
        self._cargo_meta = None

    def __str__(self):
        return 'project %s' % self.path

    def has_manifest(self):
        return os.path.isfile(self.manifest)

    def _get_cargo_meta(self):
        if self._cargo_meta is None:
            if not self.has_manifest():
                raise ValueError('Cargo.toml not found in project directory: %s'
                                 % self.path)
            self._cargo_meta = self.cargo.metadata(self.manifest, self.path)
        return self._cargo_meta

    def get_package(self):
        """Find the package for this project in the cargo metadata

        In a workspace the metadata lists every member, so the package is
        chosen by its manifest path.

        Returns:
            dict: Package information
        """
        packages = self._get_cargo_meta().get('packages') or []
        want = os.path.realpath(self.manifest)
        for pkg in packages:
            if os.path.realpath(pkg.get('manifest_path', '')) == want:
                return pkg
        if len(packages) == 1:
            return packages[0]
        raise ValueError('Could not find package for manifest: %s' %
                         self.manifest)

    def get_name(self):
        """Get the package name

        Returns:
            str: Package name from Cargo.toml
        """
        name = self.get_package().get('name')
        if not name:
            raise ValueError('Could not find package name in %s' %
                             self.manifest)
        return name

    def get_optee_metadata(self):
        """Get the [package.metadata] table for the project

        This never fails, since the metadata is optional. If cargo cannot
        provide it, None is returned.

        Returns:
            dict: Metadata, or None if not available
        """
        try:
            return self.get_package().get('metadata') or {}
        except (ValueError, bintool.ToolError) as exc:
            tout.detail('No package metadata for %s: %s' % (self, exc))
            return None

    def get_target_dir(self):
        """Get the directory where cargo writes its output"""
        target_dir = self._get_cargo_meta().get('target_directory')
        if not target_dir:
            raise ValueError(
                'Could not get target directory from cargo metadata')
        return target_dir

    def get_profile_dir(self, target, debug):
        """Get the directory holding the built binaries

        Args:
            target (str): Rust target, e.g. 'aarch64-unknown-linux-gnu'
            debug (bool): True for a debug build, False for release

        Returns:
            str: Path to the directory
        """
        return os.path.join(self.get_target_dir(), target,
                            'debug' if debug else 'release')
