# SPDX-License-Identifier: GPL-2.0+
#
"""Build configuration for TAs, CAs and plugins

Each setting is resolved with this priority:

    1. Command-line argument
    2. [package.metadata.optee.<component>] in Cargo.toml
    3. Default value, or an error for mandatory settings

For example, a TA might have this in its Cargo.toml:

    [package.metadata.optee.ta]
    arch = "arm"
    std = true
    ta-dev-kit-dir = { aarch64 = "../../optee_os/out/export-ta_arm64",
                       arm = "../../optee_os/out/export-ta_arm32" }
    env = ["RUSTFLAGS=-C target-feature=+crt-static"]

Paths given in the metadata are relative to the project directory. Paths
given on the command line are relative to the current directory.
"""

import os

from cargo_optee import project
from cargo_optee import target
from u_boot_pylib import tout

COMP_TA, COMP_CA, COMP_PLUGIN = 'ta', 'ca', 'plugin'
COMPONENTS = [COMP_TA, COMP_CA, COMP_PLUGIN]

TA_DEV_KIT_HELP = '''ta-dev-kit-dir is MANDATORY but not configured.
Please set it via:
1. Command line: --ta-dev-kit-dir <path>
2. Cargo.toml metadata: [package.metadata.optee.ta] section

Example Cargo.toml:
[package.metadata.optee.ta]
ta-dev-kit-dir = { aarch64 = "/path/to/optee_os/out/arm-plat-vexpress/export-ta_arm64" }
# arm architecture omitted (defaults to null)

For help with available options, run: cargo-optee build ta --help'''

CLIENT_EXPORT_HELP = '''optee-client-export is MANDATORY but not configured.
Please set it via:
1. Command line: --optee-client-export <path>
2. Cargo.toml metadata: [package.metadata.optee.ca] or [package.metadata.optee.plugin] section

Example Cargo.toml:
[package.metadata.optee.ca]
optee-client-export = { aarch64 = "/path/to/optee_client/export_arm64" }
# arm architecture omitted (defaults to null)

For help with available options, run: cargo-optee build ca --help'''

def parse_env_var(text):
    """Parse an environment variable in KEY=VALUE form

    Args:
        text (str): Text to parse

    Returns:
        tuple:
            str: Key
            str: Value (which may contain '=')
    """
    key, sep, value = text.partition('=')
    if not sep:
        raise ValueError(
            "Invalid environment variable format: '%s'. Expected 'KEY=VALUE'"
            % text)
    return key, value

def parse_env_list(items):
    """Parse a list of KEY=VALUE strings from the metadata

    Invalid entries are skipped with a warning.

    Returns:
        list of tuple: (key, value) pairs, in order
    """
    env = []
    for item in items or []:
        if not isinstance(item, str):
            tout.warning('Ignoring non-string environment entry in metadata: %s'
                         % item)
            continue
        try:
            env.append(parse_env_var(item))
        except ValueError:
            tout.warning("Invalid environment variable format in metadata: "
                         "'%s'. Expected 'KEY=VALUE'" % item)
    return env

def get_arch_value(value, arch):
    """Get an architecture-specific string from the metadata

    The value can be a table keyed by architecture or a plain string which
    applies to all architectures. A missing key or empty string means that
    the value is not set.

    Args:
        value: Value from the metadata
        arch (str): Architecture to look up

    Returns:
        str: Value for that architecture, or None
    """
    if isinstance(value, dict):
        value = value.get(arch)
    if isinstance(value, str) and value:
        return value
    return None

def get_component_metadata(metadata, component):
    """Get the metadata table for a component

    Args:
        metadata (dict): Package metadata, or None
        component (str): Component type, e.g. COMP_TA

    Returns:
        dict: Table for the component, or None if there is none
    """
    if not metadata:
        return None
    optee = metadata.get('optee')
    if not isinstance(optee, dict):
        return None
    comp = optee.get(component)
    return comp if isinstance(comp, dict) else None

def get_bool(comp, key):
    value = comp.get(key)
    return value if isinstance(value, bool) else False

def extract_build_config(metadata, component, arch=None):
    """Extract the build configuration from package metadata

    Args:
        metadata (dict): Package metadata (the [package.metadata] table)
        component (str): Component type, e.g. COMP_CA
        arch (str): Architecture to select paths for, or None to use the
            'arch' setting from the metadata

    Returns:
        BuildConfig: Configuration found, with paths as written in the
            metadata, or None if there is no metadata for the component
    """
    comp = get_component_metadata(metadata, component)
    if comp is None:
        return None
    if not arch:
        arch = target.ARCH_AARCH64
        if 'arch' in comp:
            try:
                arch = target.parse_arch(comp['arch'])
            except ValueError as exc:
                tout.warning('%s in metadata, using %s' % (exc, arch))

    cfg = BuildConfig(arch=arch, debug=get_bool(comp, 'debug'),
                      std=get_bool(comp, 'std'),
                      env=parse_env_list(comp.get('env')))
    if component == COMP_TA:
        cfg.ta_dev_kit_dir = get_arch_value(comp.get('ta-dev-kit-dir'), arch)
        signing_key = comp.get('signing-key')
        if isinstance(signing_key, str) and signing_key:
            cfg.signing_key = signing_key
    else:
        cfg.optee_client_export = get_arch_value(
            comp.get('optee-client-export'), arch)
    return cfg

def extract_uuid_path(metadata, component):
    """Find the UUID path in the package metadata

    The component's own table is checked first, then the TA and plugin
    tables.

    Returns:
        str: UUID path from the metadata, or None if not present
    """
    for name in [component, COMP_TA, COMP_PLUGIN]:
        comp = get_component_metadata(metadata, name)
        if comp:
            uuid_path = comp.get('uuid-path')
            if isinstance(uuid_path, str) and uuid_path:
                return uuid_path
    return None

def check_path(path, is_dir, what):
    """Check that a path exists and has the right type

    Args:
        path (str): Path to check
        is_dir (bool): True if a directory is expected, False for a file
        what (str): Description of the path for error messages

    Returns:
        str: The path
    """
    if not os.path.exists(path):
        raise ValueError('%s does not exist: %s' % (what, path))
    if is_dir and not os.path.isdir(path):
        raise ValueError('%s is not a directory: %s' % (what, path))
    if not is_dir and not os.path.isfile(path):
        raise ValueError('%s is not a file: %s' % (what, path))
    return path


class BuildConfig:
    """Settings for building a component

    Properties:
        arch: Architecture, e.g. target.ARCH_AARCH64
        debug: True for a debug build, False for release
        std: True to build a TA with std (TA only)
        ta_dev_kit_dir: TA dev kit directory, or None (TA only)
        optee_client_export: OP-TEE client export directory, or None (CA and
            plugin)
        signing_key: Key to sign the TA with, or None to use the default from
            the dev kit (TA only)
        uuid_path: File holding the UUID (TA and plugin)
        env: List of (key, value) environment variables to pass to the build
    """
    def __init__(self, arch=target.ARCH_AARCH64, debug=False, std=False,
                 ta_dev_kit_dir=None, optee_client_export=None,
                 signing_key=None, uuid_path=None, env=None):
        self.arch = arch
        self.debug = debug
        self.std = std
        self.ta_dev_kit_dir = ta_dev_kit_dir
        self.optee_client_export = optee_client_export
        self.signing_key = signing_key
        self.uuid_path = uuid_path
        self.env = env or []

    @staticmethod
    def resolve(project_path, metadata, component, arch=None, debug=None,
                std=None, ta_dev_kit_dir=None, optee_client_export=None,
                signing_key=None, uuid_path=None, env=None):
        """Resolve the configuration from the command line and metadata

        Arguments which are None are taken from the metadata, or from the
        defaults if the metadata does not set them either.

        Args:
            project_path (str): Project directory
            metadata (dict): Package metadata, or None if not available
            component (str): Component type, e.g. COMP_TA
            arch (str): Architecture from the command line
            debug (bool): Debug build from the command line
            std (bool): std setting from the command line (TA only)
            ta_dev_kit_dir (str): Dev kit directory from the command line
            optee_client_export (str): Client export directory from the
                command line
            signing_key (str): Signing key from the command line
            uuid_path (str): UUID file from the command line
            env (list of tuple): Environment variables from the command line

        Returns:
            BuildConfig: Resolved configuration, with absolute paths
        """
        meta = extract_build_config(metadata, component)
        final_arch = arch or (meta.arch if meta else target.ARCH_AARCH64)

        # Pick up the paths for the architecture actually being built
        if meta and final_arch != meta.arch:
            meta = extract_build_config(metadata, component, final_arch)

        def from_meta(cli_value, meta_value, default=None):
            if cli_value is not None:
                return cli_value
            if meta and meta_value is not None:
                return meta_value
            return default

        def abs_path(cli_path, meta_path):
            if cli_path:
                return os.path.abspath(cli_path)
            if meta and meta_path:
                return os.path.normpath(os.path.join(project_path, meta_path))
            return None

        cfg = BuildConfig(arch=final_arch)
        cfg.debug = from_meta(debug, meta and meta.debug, False)
        if component == COMP_TA:
            cfg.std = from_meta(std, meta and meta.std, False)
        cfg.ta_dev_kit_dir = abs_path(ta_dev_kit_dir,
                                      meta and meta.ta_dev_kit_dir)
        cfg.optee_client_export = abs_path(optee_client_export,
                                           meta and meta.optee_client_export)
        cfg.signing_key = abs_path(signing_key, meta and meta.signing_key)

        if uuid_path:
            cfg.uuid_path = os.path.abspath(uuid_path)
        else:
            cfg.uuid_path = os.path.normpath(os.path.join(
                project_path,
                extract_uuid_path(metadata, component) or
                project.DEFAULT_UUID_PATH))

        cfg.env = list(meta.env if meta else []) + list(env or [])
        return cfg

    def require_ta_dev_kit_dir(self):
        if not self.ta_dev_kit_dir:
            raise ValueError(TA_DEV_KIT_HELP)
        return check_path(self.ta_dev_kit_dir, True,
                          'TA development kit directory')

    def require_optee_client_export(self):
        if not self.optee_client_export:
            raise ValueError(CLIENT_EXPORT_HELP)
        return check_path(self.optee_client_export, True,
                          'OP-TEE client export directory')

    def get_signing_key(self):
        """Get the signing key, falling back to the dev kit's default key

        Returns:
            str: Path to the key, which is checked to exist
        """
        key = self.signing_key
        if not key:
            key = os.path.join(self.require_ta_dev_kit_dir(), 'keys',
                               'default_ta.pem')
        return check_path(key, False, 'Signing key file')

    def get_env(self):
        """Get the environment variables as a dict

        Later entries override earlier ones, so command-line values win over
        metadata values.
        """
        return dict(self.env)

    def show(self, component):
        """Show the settings which will be used for the build

        Args:
            component (str): Component type, e.g. COMP_PLUGIN
        """
        tout.info('Building %s with:' % component.upper())
        tout.info('  Arch: %s' % self.arch)
        tout.info('  Debug: %s' % self.debug)
        if component == COMP_TA:
            tout.info('  Std: %s' % self.std)
            if self.ta_dev_kit_dir:
                tout.info('  TA dev kit dir: %s' % self.ta_dev_kit_dir)
            if self.signing_key:
                tout.info('  Signing key: %s' % self.signing_key)
        else:
            if self.optee_client_export:
                tout.info('  OP-TEE client export: %s' %
                          self.optee_client_export)
        if component in (COMP_TA, COMP_PLUGIN) and self.uuid_path:
            tout.info('  UUID path: %s' % self.uuid_path)
        if self.env:
            tout.info('  Environment variables: %d set' % len(self.env))
