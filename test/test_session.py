
import io
import unittest

from imapadmin.backend.dict import DictServer
from imapadmin.cache import Info
from imapadmin.config import AdminConfig
from imapadmin.namespace import NamespaceId
from imapadmin.session import SessionContext


class TestSessionContext(unittest.TestCase):

    def setUp(self) -> None:
        self.server = DictServer.demo()
        self.outfile = io.StringIO()

    def _start(self, **kwargs) -> SessionContext:
        return SessionContext.start(self.server, AdminConfig(**kwargs),
                                    outfile=self.outfile)

    def test_start(self) -> None:
        ctx = self._start(caching=False, lifetime=60.0)
        self.assertEqual('INBOX.', ctx.namespaces.personal.prefix)
        self.assertEqual('user.', ctx.namespaces[NamespaceId.OTHERS].prefix)
        self.assertFalse(ctx.cache.caching)
        self.assertEqual(60.0, ctx.cache.lifetime)
        self.assertTrue(ctx.extras.rights_enabled)
        self.assertTrue(ctx.extras.quota_enabled)
        self.assertIs(ctx.cache, ctx.resolver.cache)

    def test_start_disabled(self) -> None:
        ctx = self._start(enable_rights=False, enable_namespaces=False,
                          default_delimiter='/')
        self.assertEqual(0, self.server.calls['fetch_namespaces'])
        self.assertFalse(ctx.namespaces.personal.valid)
        self.assertEqual('/', ctx.namespaces.delimiter)
        self.assertFalse(ctx.extras.rights_enabled)
        self.assertTrue(ctx.extras.quota_enabled)

    def test_start_no_capabilities(self) -> None:
        self.server = DictServer(capabilities=['QUOTA'])
        ctx = self._start()
        self.assertFalse(ctx.namespaces.personal.valid)
        self.assertFalse(ctx.extras.rights_enabled)
        self.assertTrue(ctx.extras.quota_enabled)

    def test_set_namespaces(self) -> None:
        ctx = self._start()
        cache = ctx.cache
        self.assertTrue(cache.load(Info.FOLDERS))
        folders = cache.folders
        assert folders is not None
        self.assertTrue(cache.open_mailbox(folders.at(0), True))
        ctx.set_namespaces(False)
        self.assertFalse(ctx.namespaces_enabled)
        self.assertIsNot(cache, ctx.cache)
        self.assertIsNone(self.server.selected)
        self.assertEqual(Info(0), ctx.cache.valid)
        self.assertFalse(ctx.namespaces.personal.valid)
        ctx.set_namespaces(True)
        self.assertEqual('INBOX.', ctx.namespaces.personal.prefix)

    def test_write(self) -> None:
        ctx = self._start()
        ctx.write('one')
        ctx.write()
        ctx.error('two')
        self.assertEqual('one\n\nError: two\n', self.outfile.getvalue())

    def test_close(self) -> None:
        with self._start() as ctx:
            self.assertTrue(ctx.cache.load(Info.FOLDERS | Info.OTHERS))
            folders = ctx.cache.folders
            assert folders is not None
            ctx.resolver.listed_folders = folders
            self.assertTrue(ctx.cache.open_mailbox(folders.at(0), False))
            self.assertEqual('INBOX', self.server.selected)
        self.assertIsNone(self.server.selected)
        self.assertIsNone(ctx.cache.current)
        self.assertEqual(Info(0), ctx.cache.valid)
        self.assertIsNone(ctx.resolver.listed_folders)
