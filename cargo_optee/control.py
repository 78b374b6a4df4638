# SPDX-License-Identifier: GPL-2.0+
#
# Main control for cargo-optee
#

import os
import shutil

from cargo_optee import config
from cargo_optee import examples
from cargo_optee import project
from cargo_optee.ca_builder import CaBuilder
from cargo_optee.config import BuildConfig
from cargo_optee.project import Project
from cargo_optee.ta_builder import TaBuilder
from u_boot_pylib import tout

# Directory under target/ used for intermediate files
INTERMEDIATE_DIR = 'cargo-optee'

def build_ta(args, install_dir=None, runner=None):
    """Build (and perhaps install) a TA

    Args:
        args (Namespace): Arguments from cmdline.parse_args()
        install_dir (str): Directory to install to, or None to just build
        runner (function): Function to use to run commands, None for default

    Returns:
        str: Path to the resulting .ta file
    """
    project_path = project.resolve_project_path(args.manifest_path)
    proj = Project(project_path, runner)
    cfg = BuildConfig.resolve(
        project_path, proj.get_optee_metadata(), config.COMP_TA,
        arch=args.arch, debug=args.debug, std=args.std,
        ta_dev_kit_dir=args.ta_dev_kit_dir, signing_key=args.signing_key,
        uuid_path=args.uuid_path, env=args.env)
    cfg.show(config.COMP_TA)

    builder = TaBuilder(
        proj, cfg.arch, cfg.std, cfg.debug, cfg.require_ta_dev_kit_dir(),
        cfg.get_signing_key(), cfg.uuid_path, cfg.get_env(),
        args.no_default_features, args.features, runner)
    return builder.build(install_dir)

def build_ca(args, plugin, install_dir=None, runner=None):
    """Build (and perhaps install) a CA or plugin

    Args:
        args (Namespace): Arguments from cmdline.parse_args()
        plugin (bool): True to build a plugin, False for a CA
        install_dir (str): Directory to install to, or None to just build
        runner (function): Function to use to run commands, None for default

    Returns:
        str: Path to the resulting binary
    """
    component = config.COMP_PLUGIN if plugin else config.COMP_CA
    project_path = project.resolve_project_path(args.manifest_path)
    proj = Project(project_path, runner)
    cfg = BuildConfig.resolve(
        project_path, proj.get_optee_metadata(), component, arch=args.arch,
        debug=args.debug, optee_client_export=args.optee_client_export,
        uuid_path=getattr(args, 'uuid_path', None), env=args.env)
    cfg.show(component)

    builder = CaBuilder(
        proj, cfg.arch, cfg.debug, cfg.require_optee_client_export(), plugin,
        cfg.uuid_path if plugin else None, cfg.get_env(),
        args.no_default_features, args.features, runner)
    return builder.build(install_dir)

def clean(manifest_path, runner=None):
    """Clean the build artifacts of a project

    Args:
        manifest_path (str): Path to Cargo.toml, or None for the current
            directory
        runner (function): Function to use to run commands, None for default
    """
    project_path = project.resolve_project_path(manifest_path)
    tout.info('Cleaning build artifacts in: %s' % project_path)
    proj = Project(project_path, runner)
    proj.cargo.clean(project_path)

    intermediate = os.path.join(project_path, 'target', INTERMEDIATE_DIR)
    if os.path.exists(intermediate):
        shutil.rmtree(intermediate)
        tout.info('Removed intermediate directory: %s' % intermediate)
    tout.notice('Build artifacts cleaned successfully')

def build_component(args, runner=None):
    """Build or install the component selected by the arguments"""
    install_dir = args.target_dir if args.cmd == 'install' else None
    if args.component == config.COMP_TA:
        return build_ta(args, install_dir, runner)
    return build_ca(args, args.component == config.COMP_PLUGIN, install_dir,
                    runner)

def CargoOptee(args, runner=None):
    """Carry out the command given by the arguments

    Args:
        args (Namespace): Arguments from cmdline.parse_args()
        runner (function): Function to use to run commands, None for default

    Returns:
        int: Exit code (0 for success)
    """
    result = 0
    if args.cmd in ('build', 'install'):
        build_component(args, runner)
    elif args.cmd == 'clean':
        clean(args.manifest_path, runner)
    elif args.cmd == 'build-examples':
        result = examples.build_examples(args, build_component, clean, runner)
    else:
        raise ValueError("Unknown command '%s'" % args.cmd)
    return result
