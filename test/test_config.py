
import unittest
from argparse import ArgumentParser, Namespace

from imapadmin.config import AdminConfig


class TestAdminConfig(unittest.TestCase):

    def test_defaults(self) -> None:
        config = AdminConfig()
        self.assertTrue(config.caching)
        self.assertEqual(0.0, config.lifetime)
        self.assertTrue(config.enable_rights)
        self.assertTrue(config.enable_quota)
        self.assertTrue(config.enable_namespaces)
        self.assertEqual('.', config.default_delimiter)

    def test_invalid_lifetime(self) -> None:
        with self.assertRaises(ValueError):
            AdminConfig(lifetime=-1.0)

    def test_from_argv(self) -> None:
        config = AdminConfig.from_argv(['--no-cache', '--lifetime', '30',
                                        '--no-quota', '--delimiter', '/'])
        self.assertFalse(config.caching)
        self.assertEqual(30.0, config.lifetime)
        self.assertTrue(config.enable_rights)
        self.assertFalse(config.enable_quota)
        self.assertEqual('/', config.default_delimiter)

    def test_from_args(self) -> None:
        parser = ArgumentParser()
        parser.add_argument('--debug', action='store_true')
        AdminConfig.add_arguments(parser)
        args = parser.parse_args(['--debug', '--no-rights'])
        config = AdminConfig.from_args(args, enable_namespaces=False,
                                       custom=True)
        self.assertIs(args, config.args)
        self.assertTrue(config.debug)
        self.assertFalse(config.enable_rights)
        self.assertFalse(config.enable_namespaces)
        self.assertEqual({'custom': True}, config.extra)

    def test_parse_args_missing(self) -> None:
        kwargs = AdminConfig.parse_args(Namespace())
        self.assertTrue(kwargs['caching'])
        self.assertEqual('.', kwargs['default_delimiter'])
