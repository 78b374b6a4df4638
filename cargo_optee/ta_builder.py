# SPDX-License-Identifier: GPL-2.0+
#
"""Building of Trusted Applications (TAs)

A TA is built in four steps:

    lint (cargo fmt, clippy) -> compile -> strip -> sign

The result is <uuid>.ta in the cargo profile directory, which can optionally
be installed (copied) to another directory.
"""

import os
import tempfile

from cargo_optee import install
from cargo_optee import project
from cargo_optee import target
from cargo_optee.bintool import Bintool
from u_boot_pylib import tout

TOOLCHAIN_HELP = '''Please install the required toolchain:

# For aarch64 host (ARM64 machine):
apt update && apt -y install gcc gcc-arm-linux-gnueabihf

# For x86_64 host (Intel/AMD machine):
apt update && apt -y install gcc-aarch64-linux-gnu gcc-arm-linux-gnueabihf

Or manually install the cross-compilation tools for your target architecture.'''

def split_features(features):
    """Split a comma-separated feature list, dropping empty entries"""
    if not features:
        return []
    return [feat.strip() for feat in features.split(',') if feat.strip()]

def check_toolchain(cross_compile, runner=None):
    """Check that the cross-compile toolchain is available

    Args:
        cross_compile (str): Cross-compile prefix, e.g. 'aarch64-linux-gnu-'
        runner (function): Function to use to run commands
    """
    missing = []
    for name in ['gcc', 'objcopy']:
        btool = Bintool.create(name, runner, cross_compile=cross_compile)
        if not btool.is_present():
            missing.append(btool.toolname)
    if missing:
        tout.error('Error: Required cross-compile toolchain not found!')
        tout.error('Missing tools: %s' % ', '.join(missing))
        tout.error('')
        tout.error(TOOLCHAIN_HELP)
        raise ValueError('Cross-compile toolchain not available')


class TaBuilder:
    """Builds a TA

    Properties:
        proj: Project being built
        arch: Architecture, e.g. target.ARCH_ARM
        std: True to build with std (using xargo and a custom target)
        debug: True for a debug build, False for release
        ta_dev_kit_dir: TA dev kit directory
        signing_key: Path to the key used to sign the TA
        uuid_path: Path to the file containing the TA's UUID
        env: Dict of extra environment variables for the build
        no_default_features: True to pass --no-default-features
        features: Comma-separated features to enable, or None
        target: Rust target, e.g. 'aarch64-unknown-optee'
        cross_compile: Cross-compile prefix, e.g. 'aarch64-linux-gnu-'
    """
    def __init__(self, proj, arch, std, debug, ta_dev_kit_dir, signing_key,
                 uuid_path, env=None, no_default_features=False,
                 features=None, runner=None):
        self.proj = proj
        self.arch = arch
        self.std = std
        self.debug = debug
        self.ta_dev_kit_dir = ta_dev_kit_dir
        self.signing_key = signing_key
        self.uuid_path = uuid_path
        self.env = env or {}
        self.no_default_features = no_default_features
        self.features = features
        self._runner = runner
        self.target, self.cross_compile = target.get_target_and_cross_compile(
            arch, target.ta_mode(std))
        self.builder = Bintool.create('xargo' if std else 'cargo', runner)

    def get_feature_args(self):
        """Get the arguments selecting the crate features

        The 'std' feature is added for std builds.
        """
        args = []
        if self.no_default_features:
            args.append('--no-default-features')
        features = (['std'] if self.std else []) + split_features(self.features)
        if features:
            args += ['--features', ','.join(features)]
        return args

    def get_env(self, target_path=None):
        """Get the environment for building the TA

        Args:
            target_path (str): Directory holding custom target specs, or None

        Returns:
            dict: Environment variables to set
        """
        rustflags = os.environ.get('RUSTFLAGS', '')
        if rustflags:
            rustflags += ' '
        env = {'RUSTFLAGS': rustflags + '-C panic=abort'}
        env.update(self.env)
        env['TA_DEV_KIT_DIR'] = os.path.realpath(self.ta_dev_kit_dir)
        if target_path:
            env['RUST_TARGET_PATH'] = target_path
        return env

    def get_build_args(self):
        """Get the arguments which follow 'build'"""
        args = ['--target', self.target] + self.get_feature_args()
        if not self.debug:
            args.append('--release')
        args += ['--config', 'target.%s.linker="%sgcc"' %
                 (self.target, self.cross_compile)]
        return args

    def lint(self, env):
        tout.info('Running cargo fmt and clippy...')
        Bintool.create('cargo', self._runner).fmt(self.proj.path)
        self.builder.clippy(self.target, self.proj.path,
                            self.get_feature_args(), env)

    def compile(self, env):
        args = self.get_build_args()
        tout.info('Building TA binary...')
        tout.info('  Command: %s build %s' % (self.builder.toolname,
                                              ' '.join(args)))
        tout.detail('  Environment: %s' %
                    ' '.join('%s=%s' % item for item in env.items()))
        self.builder.build(args, self.proj.path, env)

    def strip(self):
        """Strip the TA binary

        Returns:
            str: Path to the stripped binary
        """
        tout.info('Stripping binary...')
        profile_dir = self.proj.get_profile_dir(self.target, self.debug)
        name = self.proj.get_name()
        binary = os.path.join(profile_dir, name)
        if not os.path.exists(binary):
            raise ValueError('Binary not found at %s' % binary)
        stripped = os.path.join(profile_dir, 'stripped_%s' % name)
        objcopy = Bintool.create('objcopy', self._runner,
                                 cross_compile=self.cross_compile)
        objcopy.strip(binary, stripped)
        return stripped

    def sign(self, stripped):
        """Sign the stripped TA

        Args:
            stripped (str): Path to the stripped binary

        Returns:
            str: Path to the signed <uuid>.ta file
        """
        tout.info('Signing TA...')
        uuid = project.read_uuid(self.uuid_path)
        if not os.path.isfile(self.signing_key):
            raise ValueError('Signing key not found at %s' % self.signing_key)
        signer = Bintool.create('sign_encrypt', self._runner,
                                ta_dev_kit_dir=self.ta_dev_kit_dir)
        if not os.path.isfile(signer.script):
            raise ValueError('Sign script not found at %s' % signer.script)
        out_fname = os.path.join(os.path.dirname(stripped), '%s.ta' % uuid)
        signer.sign(uuid, self.signing_key, stripped, out_fname)
        tout.info('SIGN => %s' % uuid)
        tout.info('TA signed and saved to: %s' % os.path.realpath(out_fname))
        return out_fname

    def build(self, install_dir=None):
        """Build the TA, optionally installing it

        Args:
            install_dir (str): Directory to copy the .ta file to, or None

        Returns:
            str: Path to the final .ta file
        """
        check_toolchain(self.cross_compile, self._runner)
        if not self.proj.has_manifest():
            raise ValueError(
                'No Cargo.toml found in TA project directory: %s\n'
                'Please run cargo-optee from a TA project directory or '
                'specify --manifest-path' % self.proj.path)
        tout.info('Building TA in directory: %s' % self.proj.path)

        if self.std:
            with tempfile.TemporaryDirectory(prefix='cargo-optee.') as tmpdir:
                target.write_custom_targets(tmpdir)
                env = self.get_env(tmpdir)
                self.lint(env)
                self.compile(env)
        else:
            env = self.get_env()
            self.lint(env)
            self.compile(env)
        stripped = self.strip()
        out_fname = self.sign(stripped)

        if install_dir:
            out_fname = install.install_file(out_fname, install_dir, 'TA')
        tout.notice('TA built successfully')
        return out_fname
