# SPDX-License-Identifier: GPL-2.0+
#
"""Building of Client Applications (CAs) and supplicant plugins

Both run in the normal world and link against the OP-TEE client library, so
they are built for the normal Linux targets with OPTEE_CLIENT_EXPORT set. A
CA binary is stripped in place. A plugin is a shared library which is copied
to <uuid>.plugin.so so that tee-supplicant can find it.
"""

import os
import shutil

from cargo_optee import install
from cargo_optee import project
from cargo_optee import target
from cargo_optee.bintool import Bintool
from u_boot_pylib import tout

class CaBuilder:
    """Builds a CA or a plugin

    Properties:
        proj: Project being built
        arch: Architecture, e.g. target.ARCH_AARCH64
        debug: True for a debug build, False for release
        optee_client_export: OP-TEE client export directory
        plugin: True to build a plugin, False for a CA
        uuid_path: Path to the file holding the plugin's UUID (plugin only)
        env: Dict of extra environment variables for the build
        no_default_features: True to pass --no-default-features
        features: Features to enable, or None
    """
    def __init__(self, proj, arch, debug, optee_client_export, plugin=False,
                 uuid_path=None, env=None, no_default_features=False,
                 features=None, runner=None):
        self.proj = proj
        self.arch = arch
        self.debug = debug
        self.optee_client_export = optee_client_export
        self.plugin = plugin
        self.uuid_path = uuid_path
        self.env = env or {}
        self.no_default_features = no_default_features
        self.features = features
        self._runner = runner
        self.target, self.cross_compile = target.get_target_and_cross_compile(
            arch, target.MODE_CA)
        self.cargo = Bintool.create('cargo', runner)
        self.what = 'Plugin' if plugin else 'CA'

    def get_env(self):
        env = {'OPTEE_CLIENT_EXPORT': self.optee_client_export}
        env.update(self.env)
        return env

    def get_build_args(self):
        """Get the arguments which follow 'build'"""
        args = ['--target', self.target]
        if self.no_default_features:
            args.append('--no-default-features')
        if self.features:
            args += ['--features', self.features]
        if not self.debug:
            args.append('--release')
        args += ['--config', 'target.%s.linker="%sgcc"' %
                 (self.target, self.cross_compile)]
        return args

    def lint(self):
        tout.info('Running cargo fmt and clippy...')
        self.cargo.fmt(self.proj.path)
        self.cargo.clippy(self.target, self.proj.path,
                          env={'OPTEE_CLIENT_EXPORT': self.optee_client_export})

    def compile(self):
        args = self.get_build_args()
        env = self.get_env()
        tout.info('Building %s binary...' % self.what)
        tout.info('  Command: cargo build %s' % ' '.join(args))
        tout.detail('  Environment: %s' %
                    ' '.join('%s=%s' % item for item in env.items()))
        self.cargo.build(args, self.proj.path, env)

    def strip(self):
        """Strip the CA binary in place

        Returns:
            str: Path to the binary
        """
        tout.info('Stripping binary...')
        profile_dir = self.proj.get_profile_dir(self.target, self.debug)
        binary = os.path.join(profile_dir, self.proj.get_name())
        if not os.path.exists(binary):
            raise ValueError('Binary not found at %s' % binary)
        objcopy = Bintool.create('objcopy', self._runner,
                                 cross_compile=self.cross_compile)
        objcopy.strip(binary, binary)
        tout.info('CA binary stripped and saved to: %s' %
                  os.path.realpath(binary))
        return binary

    def copy_plugin(self):
        """Copy the plugin library to <uuid>.plugin.so

        Returns:
            str: Path to the copied plugin
        """
        tout.info('Processing plugin...')
        profile_dir = self.proj.get_profile_dir(self.target, self.debug)

        # cargo names the library after the crate, with '-' replaced
        lib_name = self.proj.get_name().replace('-', '_')
        src = os.path.join(profile_dir, 'lib%s.so' % lib_name)
        if not os.path.exists(src):
            raise ValueError('Plugin library not found at %s' % src)
        if not self.uuid_path:
            raise ValueError('UUID path is required for plugin builds')
        uuid = project.read_uuid(self.uuid_path)
        dest = os.path.join(profile_dir, '%s.plugin.so' % uuid)
        shutil.copy(src, dest)
        tout.info('Plugin copied to: %s' % os.path.realpath(dest))
        return dest

    def build(self, install_dir=None):
        """Build the CA or plugin, optionally installing it

        Args:
            install_dir (str): Directory to copy the result to, or None

        Returns:
            str: Path to the final binary
        """
        if not self.proj.has_manifest():
            raise ValueError(
                'No Cargo.toml found in %s project directory: %s' %
                (self.what, self.proj.path))
        tout.info('Building %s in directory: %s' % (self.what, self.proj.path))
        self.lint()
        self.compile()
        if self.plugin:
            out_fname = self.copy_plugin()
        else:
            out_fname = self.strip()

        if install_dir:
            out_fname = install.install_file(out_fname, install_dir, self.what)
        tout.notice('%s built successfully' % self.what)
        return out_fname
