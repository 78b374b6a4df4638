# SPDX-License-Identifier: GPL-2.0+

"""Tests for resolving the build configuration"""

import os
import unittest

from cargo_optee import config
from cargo_optee import target
from cargo_optee.config import BuildConfig
from cargo_optee.test import fake_tools

PROJECT = '/proj'

class TestMetadata(unittest.TestCase):
    """Tests for reading settings from the package metadata"""
    def test_extract(self):
        metadata = {
            'optee': {
                'ta': {
                    'arch': 'arm',
                    'debug': True,
                    'std': True,
                    'ta-dev-kit-dir': {
                        'aarch64': '/opt/ta_dev_kit_arm64',
                        'arm': '/opt/ta_dev_kit_arm32',
                        },
                    'signing-key': '/opt/signing.pem',
                    'env': [
                        'RUSTFLAGS=-C target-feature=+crt-static',
                        'RUST_LOG=debug',
                        ],
                    },
                },
            }
        cfg = config.extract_build_config(metadata, config.COMP_TA)
        self.assertEqual(target.ARCH_ARM, cfg.arch)
        self.assertTrue(cfg.debug)
        self.assertTrue(cfg.std)
        self.assertEqual('/opt/ta_dev_kit_arm32', cfg.ta_dev_kit_dir)
        self.assertIsNone(cfg.optee_client_export)
        self.assertEqual('/opt/signing.pem', cfg.signing_key)
        self.assertEqual([('RUSTFLAGS', '-C target-feature=+crt-static'),
                          ('RUST_LOG', 'debug')], cfg.env)

    def test_extract_arch_override(self):
        """Paths are chosen for the requested arch, not the metadata one"""
        metadata = {
            'optee': {
                'ca': {
                    'arch': 'arm',
                    'debug': False,
                    'optee-client-export': {
                        'aarch64': '/opt/client_arm64',
                        'arm': '/opt/client_arm32',
                        },
                    'env': ['BUILD_MODE=release'],
                    },
                },
            }
        cfg = config.extract_build_config(metadata, config.COMP_CA,
                                          target.ARCH_AARCH64)
        self.assertEqual(target.ARCH_AARCH64, cfg.arch)
        self.assertFalse(cfg.debug)
        self.assertFalse(cfg.std)
        self.assertIsNone(cfg.ta_dev_kit_dir)
        self.assertEqual('/opt/client_arm64', cfg.optee_client_export)
        self.assertIsNone(cfg.signing_key)
        self.assertEqual([('BUILD_MODE', 'release')], cfg.env)

    def test_extract_defaults(self):
        cfg = config.extract_build_config({'optee': {'plugin': {}}},
                                          config.COMP_PLUGIN)
        self.assertEqual(target.ARCH_AARCH64, cfg.arch)
        self.assertFalse(cfg.debug)
        self.assertFalse(cfg.std)
        self.assertIsNone(cfg.ta_dev_kit_dir)
        self.assertIsNone(cfg.optee_client_export)
        self.assertIsNone(cfg.signing_key)
        self.assertEqual([], cfg.env)

    def test_extract_missing(self):
        """No metadata for the component gives None"""
        self.assertIsNone(config.extract_build_config(None, config.COMP_TA))
        self.assertIsNone(config.extract_build_config({}, config.COMP_TA))
        self.assertIsNone(config.extract_build_config(
            {'optee': {'ca': {}}}, config.COMP_TA))

    def test_extract_invalid_env(self):
        """Entries without '=' are dropped; values may contain '='"""
        metadata = {
            'optee': {
                'ca': {
                    'env': [
                        'VALID_VAR=value',
                        'INVALID_VAR_NO_EQUALS',
                        'ANOTHER_VALID=a=b',
                        ],
                    },
                },
            }
        cfg = config.extract_build_config(metadata, config.COMP_CA)
        self.assertEqual([('VALID_VAR', 'value'), ('ANOTHER_VALID', 'a=b')],
                         cfg.env)

    def test_extract_missing_arch(self):
        """A missing arch key means the path is not set"""
        metadata = {
            'optee': {
                'ta': {
                    'arch': 'aarch64',
                    'ta-dev-kit-dir': {'aarch64': '/opt/ta_dev_kit_arm64'},
                    'signing-key': '/opt/signing.pem',
                    },
                },
            }
        cfg = config.extract_build_config(metadata, config.COMP_TA,
                                          target.ARCH_AARCH64)
        self.assertEqual('/opt/ta_dev_kit_arm64', cfg.ta_dev_kit_dir)
        cfg = config.extract_build_config(metadata, config.COMP_TA,
                                          target.ARCH_ARM)
        self.assertIsNone(cfg.ta_dev_kit_dir)

    def test_extract_plain_path(self):
        """A string path applies to all architectures; empty means unset"""
        metadata = {'optee': {'ca': {'optee-client-export': '/opt/client'}}}
        for arch in target.ARCHES:
            cfg = config.extract_build_config(metadata, config.COMP_CA, arch)
            self.assertEqual('/opt/client', cfg.optee_client_export)
        metadata = {'optee': {'ca': {'optee-client-export': ''}}}
        cfg = config.extract_build_config(metadata, config.COMP_CA)
        self.assertIsNone(cfg.optee_client_export)

    def test_extract_bad_arch(self):
        """An invalid arch in the metadata falls back to aarch64"""
        cfg = config.extract_build_config({'optee': {'ta': {'arch': 'mips'}}},
                                          config.COMP_TA)
        self.assertEqual(target.ARCH_AARCH64, cfg.arch)

    def test_uuid_path(self):
        metadata = {'optee': {'plugin': {'uuid-path': 'plugin_uuid.txt'}}}
        self.assertEqual('plugin_uuid.txt', config.extract_uuid_path(
            metadata, config.COMP_PLUGIN))
        metadata['optee']['ta'] = {'uuid-path': 'ta_uuid.txt'}
        self.assertEqual('ta_uuid.txt', config.extract_uuid_path(
            metadata, config.COMP_TA))
        self.assertEqual('plugin_uuid.txt', config.extract_uuid_path(
            metadata, config.COMP_PLUGIN))
        self.assertIsNone(config.extract_uuid_path({}, config.COMP_TA))

    def test_parse_env_var(self):
        self.assertEqual(('KEY', 'VALUE'), config.parse_env_var('KEY=VALUE'))
        self.assertEqual(('KEY', ''), config.parse_env_var('KEY='))
        with self.assertRaises(ValueError) as exc:
            config.parse_env_var('KEY')
        self.assertIn("Invalid environment variable format: 'KEY'",
                      str(exc.exception))


class TestResolve(unittest.TestCase):
    """Tests for the priority of command line, metadata and defaults"""
    def setUp(self):
        self.metadata = {
            'optee': {
                'ta': {
                    'arch': 'aarch64',
                    'debug': True,
                    'std': True,
                    'ta-dev-kit-dir': {'aarch64': 'kit64', 'arm': 'kit32'},
                    'signing-key': 'keys/ta.pem',
                    'uuid-path': 'my_uuid.txt',
                    'env': ['A=1', 'B=2'],
                    },
                'ca': {
                    'optee-client-export': {'arm': '/opt/client32'},
                    },
                },
            }

    def test_defaults(self):
        """With no metadata and no arguments, defaults apply"""
        cfg = BuildConfig.resolve(PROJECT, None, config.COMP_TA)
        self.assertEqual(target.ARCH_AARCH64, cfg.arch)
        self.assertFalse(cfg.debug)
        self.assertFalse(cfg.std)
        self.assertIsNone(cfg.ta_dev_kit_dir)
        self.assertIsNone(cfg.signing_key)
        self.assertEqual('/uuid.txt', cfg.uuid_path)
        self.assertEqual({}, cfg.get_env())

    def test_metadata(self):
        """Metadata is used when there are no arguments"""
        cfg = BuildConfig.resolve(PROJECT, self.metadata, config.COMP_TA)
        self.assertEqual(target.ARCH_AARCH64, cfg.arch)
        self.assertTrue(cfg.debug)
        self.assertTrue(cfg.std)
        self.assertEqual('/proj/kit64', cfg.ta_dev_kit_dir)
        self.assertEqual('/proj/keys/ta.pem', cfg.signing_key)
        self.assertEqual('/proj/my_uuid.txt', cfg.uuid_path)
        self.assertEqual({'A': '1', 'B': '2'}, cfg.get_env())

    def test_cli_overrides(self):
        """Command-line arguments take priority over metadata"""
        cfg = BuildConfig.resolve(
            PROJECT, self.metadata, config.COMP_TA, arch=target.ARCH_ARM,
            debug=False, std=False, signing_key='/keys/other.pem',
            env=[('B', '3'), ('C', '4')])
        self.assertEqual(target.ARCH_ARM, cfg.arch)
        self.assertFalse(cfg.debug)
        self.assertFalse(cfg.std)

        # The dev kit is looked up for the final arch
        self.assertEqual('/proj/kit32', cfg.ta_dev_kit_dir)
        self.assertEqual('/keys/other.pem', cfg.signing_key)
        self.assertEqual({'A': '1', 'B': '3', 'C': '4'}, cfg.get_env())

    def test_cli_paths(self):
        """Relative command-line paths are relative to the current dir"""
        cfg = BuildConfig.resolve(PROJECT, self.metadata, config.COMP_TA,
                                  ta_dev_kit_dir='kit',
                                  uuid_path='uuid.txt')
        self.assertEqual(os.path.abspath('kit'), cfg.ta_dev_kit_dir)
        self.assertEqual(os.path.abspath('uuid.txt'), cfg.uuid_path)

    def test_ca(self):
        """A CA has no std setting and uses the client export"""
        cfg = BuildConfig.resolve(PROJECT, self.metadata, config.COMP_CA,
                                  std=True)
        self.assertFalse(cfg.std)
        self.assertIsNone(cfg.optee_client_export)
        with self.assertRaises(ValueError) as exc:
            cfg.require_optee_client_export()
        self.assertIn('optee-client-export is MANDATORY', str(exc.exception))

        cfg = BuildConfig.resolve(PROJECT, self.metadata, config.COMP_CA,
                                  arch=target.ARCH_ARM)
        self.assertEqual('/opt/client32', cfg.optee_client_export)

    def test_require_ta_dev_kit_dir(self):
        cfg = BuildConfig.resolve(PROJECT, None, config.COMP_TA)
        with self.assertRaises(ValueError) as exc:
            cfg.require_ta_dev_kit_dir()
        self.assertIn('ta-dev-kit-dir is MANDATORY', str(exc.exception))
        self.assertIn('--ta-dev-kit-dir', str(exc.exception))

        cfg = BuildConfig.resolve(PROJECT, self.metadata, config.COMP_TA)
        with self.assertRaises(ValueError) as exc:
            cfg.require_ta_dev_kit_dir()
        self.assertIn('TA development kit directory does not exist: '
                      '/proj/kit64', str(exc.exception))


class TestPaths(unittest.TestCase):
    """Tests for checking paths on disk"""
    def setUp(self):
        self.tree = fake_tools.FakeTree()

    def tearDown(self):
        self.tree.cleanup()

    def test_default_signing_key(self):
        cfg = BuildConfig.resolve(self.tree.project_dir, None, config.COMP_TA,
                                  ta_dev_kit_dir=self.tree.ta_dev_kit_dir)
        self.assertEqual(self.tree.ta_dev_kit_dir,
                         cfg.require_ta_dev_kit_dir())
        self.assertEqual(self.tree.default_key, cfg.get_signing_key())
        self.assertEqual(self.tree.uuid_path, cfg.uuid_path)

    def test_wrong_types(self):
        """A file given as a directory, or the reverse, is an error"""
        cfg = BuildConfig.resolve(self.tree.project_dir, None, config.COMP_TA,
                                  ta_dev_kit_dir=self.tree.default_key,
                                  signing_key=self.tree.ta_dev_kit_dir)
        with self.assertRaises(ValueError) as exc:
            cfg.require_ta_dev_kit_dir()
        self.assertIn('TA development kit directory is not a directory',
                      str(exc.exception))
        with self.assertRaises(ValueError) as exc:
            cfg.get_signing_key()
        self.assertIn('Signing key file is not a file', str(exc.exception))


if __name__ == "__main__":
    unittest.main()
