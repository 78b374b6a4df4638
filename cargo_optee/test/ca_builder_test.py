# SPDX-License-Identifier: GPL-2.0+

"""Tests for building Client Applications and plugins"""

import os
import unittest

from cargo_optee import target
from cargo_optee.ca_builder import CaBuilder
from cargo_optee.project import Project
from cargo_optee.test import fake_tools
from cargo_optee.test.fake_tools import TA_UUID


class TestCaBuilder(unittest.TestCase):
    def setUp(self):
        self.tree = fake_tools.FakeTree()
        self.runner = fake_tools.FakeRunner(self.tree.project_dir)

    def tearDown(self):
        self.tree.cleanup()

    def make_builder(self, arch=target.ARCH_AARCH64, debug=False, plugin=False,
                     **kwargs):
        proj = Project(self.tree.project_dir, self.runner)
        return CaBuilder(proj, arch, debug, self.tree.client_export, plugin,
                         runner=self.runner, **kwargs)

    def test_ca(self):
        """A CA is built for the Linux target and stripped in place"""
        out = self.make_builder(env={'FOO': 'bar'}).build()
        binary = os.path.join(self.runner.target_dir,
                              'aarch64-unknown-linux-gnu', 'release',
                              fake_tools.PACKAGE_NAME)
        self.assertEqual(binary, out)

        args, cwd, env = self.runner.get_call('build')
        self.assertEqual(
            ['cargo', 'build', '--target', 'aarch64-unknown-linux-gnu',
             '--release', '--config',
             'target.aarch64-unknown-linux-gnu.linker="aarch64-linux-gnu-gcc"'],
            args)
        self.assertEqual(self.tree.project_dir, cwd)
        self.assertEqual({'OPTEE_CLIENT_EXPORT': self.tree.client_export,
                          'FOO': 'bar'}, env)

        _, _, env = self.runner.get_call('clippy')
        self.assertEqual({'OPTEE_CLIENT_EXPORT': self.tree.client_export}, env)

        args, _, _ = self.runner.get_call('--strip-unneeded')
        self.assertEqual(['aarch64-linux-gnu-objcopy', '--strip-unneeded',
                          binary, binary], args)
        self.assertEqual([], self.runner.get_calls('python3'))

    def test_ca_arm_debug(self):
        builder = self.make_builder(target.ARCH_ARM, debug=True,
                                    no_default_features=True,
                                    features='a,b')
        out = builder.build()
        self.assertEqual(os.path.join(self.runner.target_dir,
                                      'arm-unknown-linux-gnueabihf', 'debug',
                                      fake_tools.PACKAGE_NAME), out)
        args, _, _ = self.runner.get_call('build')
        self.assertEqual(
            ['cargo', 'build', '--target', 'arm-unknown-linux-gnueabihf',
             '--no-default-features', '--features', 'a,b', '--config',
             'target.arm-unknown-linux-gnueabihf.linker='
             '"arm-linux-gnueabihf-gcc"'], args)

    def test_plugin(self):
        """A plugin library is copied to <uuid>.plugin.so, not stripped"""
        builder = self.make_builder(plugin=True, uuid_path=self.tree.uuid_path)
        out = builder.build()
        profile_dir = os.path.join(self.runner.target_dir,
                                   'aarch64-unknown-linux-gnu', 'release')
        self.assertEqual(os.path.join(profile_dir, '%s.plugin.so' % TA_UUID),
                         out)
        with open(out) as inf:
            self.assertEqual('so', inf.read())
        self.assertEqual([], self.runner.get_calls('--strip-unneeded'))

    def test_plugin_no_uuid(self):
        builder = self.make_builder(plugin=True)
        with self.assertRaises(ValueError) as exc:
            builder.build()
        self.assertEqual('UUID path is required for plugin builds',
                         str(exc.exception))

    def test_plugin_missing_library(self):
        builder = self.make_builder(plugin=True, uuid_path=self.tree.uuid_path)
        with self.assertRaises(ValueError) as exc:
            builder.copy_plugin()
        self.assertIn('Plugin library not found at', str(exc.exception))
        self.assertIn('libhello_world.so', str(exc.exception))

    def test_install(self):
        install_dir = os.path.join(self.tree.base, 'out')
        out = self.make_builder(plugin=True,
                                uuid_path=self.tree.uuid_path).build(
                                    install_dir)
        self.assertEqual(os.path.join(install_dir, '%s.plugin.so' % TA_UUID),
                         out)
        self.assertTrue(os.path.isfile(out))

        out = self.make_builder().build(install_dir)
        self.assertEqual(os.path.join(install_dir, fake_tools.PACKAGE_NAME),
                         out)
        self.assertTrue(os.path.isfile(out))

    def test_missing_manifest(self):
        os.remove(self.tree.manifest)
        with self.assertRaises(ValueError) as exc:
            self.make_builder(plugin=True).build()
        self.assertIn('No Cargo.toml found in Plugin project directory',
                      str(exc.exception))


if __name__ == "__main__":
    unittest.main()
