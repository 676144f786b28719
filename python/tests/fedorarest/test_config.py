import os, sys, logging, tempfile, shutil
import unittest as test

from fedorarest import config
from fedorarest.exceptions import ConfigurationException

datadir = os.path.join(os.path.dirname(__file__), "data")

class TestConnectionConfig(test.TestCase):

    def test_ctor(self):
        conn = config.ConnectionConfig("http://localhost:8080/fedora/")
        self.assertEqual(conn.base_url, "http://localhost:8080/fedora")
        self.assertIsNone(conn.username)
        self.assertIsNone(conn.auth)
        self.assertIsNone(conn.timeout)

        conn = config.ConnectionConfig("http://localhost:8080/fedora", "fedoraAdmin", "secret",
                                       timeout="12")
        self.assertEqual(conn.auth, ("fedoraAdmin", "secret"))
        self.assertEqual(conn.timeout, 12.0)
        self.assertNotIn("secret", repr(conn))

    def test_bad_ctor(self):
        with self.assertRaises(ConfigurationException):
            config.ConnectionConfig("")
        with self.assertRaises(ConfigurationException) as cm:
            config.ConnectionConfig("http://x", "user")
        self.assertEqual(cm.exception.param, "password")
        with self.assertRaises(ConfigurationException):
            config.ConnectionConfig("http://x", timeout="soon")
        with self.assertRaises(ConfigurationException):
            config.ConnectionConfig("http://x", timeout=0)

    def test_from_config(self):
        conn = config.ConnectionConfig.from_config({
            'service_endpoint': "https://repo.example.org/fedora",
            'authentication': { 'user': "me", 'pass': "pw" },
            'timeout': 5
        })
        self.assertEqual(conn.base_url, "https://repo.example.org/fedora")
        self.assertEqual(conn.auth, ("me", "pw"))
        self.assertEqual(conn.timeout, 5.0)

        with self.assertRaises(ConfigurationException) as cm:
            config.ConnectionConfig.from_config({})
        self.assertEqual(cm.exception.param, "service_endpoint")
        with self.assertRaises(ConfigurationException) as cm:
            config.ConnectionConfig.from_config({'service_endpoint': "http://x",
                                                 'authentication': { 'user': "me" }})
        self.assertEqual(cm.exception.param, "authentication.pass")
        with self.assertRaises(ConfigurationException):
            config.ConnectionConfig.from_config({'service_endpoint': "http://x",
                                                 'authentication': "me:pw"})
        with self.assertRaises(ConfigurationException) as cm:
            config.ConnectionConfig.from_config({'service_endpoint': "http://x",
                                                 'ca_bundle': os.path.join(datadir, "goob.pem")})
        self.assertEqual(cm.exception.param, "ca_bundle")
        with self.assertRaises(ConfigurationException):
            config.ConnectionConfig.from_config(["http://x"])

class TestConfigFiles(test.TestCase):

    def setUp(self):
        self.tdir = tempfile.mkdtemp(prefix="_test_config.")

    def tearDown(self):
        shutil.rmtree(self.tdir, ignore_errors=True)

    def test_load_yaml(self):
        cfg = config.load_from_file(os.path.join(datadir, "fedorarest-conf.yml"))
        self.assertEqual(cfg['service_endpoint'], "http://localhost:8080/fedora/")
        self.assertEqual(cfg['authentication']['user'], "fedoraAdmin")
        self.assertEqual(cfg['timeout'], 30)
        self.assertEqual(cfg['logging']['loglevel'], "DEBUG")

        conn = config.ConnectionConfig.from_config(cfg)
        self.assertEqual(conn.base_url, "http://localhost:8080/fedora")

    def test_load_json(self):
        cfg = config.load_from_file(os.path.join(datadir, "fedorarest-conf.json"))
        self.assertEqual(cfg, {'service_endpoint': "https://repo.example.org/fedora",
                               'timeout': 10})

    def test_load_errors(self):
        bad = os.path.join(self.tdir, "bad.json")
        with open(bad, 'w') as fd:
            fd.write("{ goob")
        with self.assertRaises(ConfigurationException):
            config.load_from_file(bad)

        bad = os.path.join(self.tdir, "bad.yml")
        with open(bad, 'w') as fd:
            fd.write("- a\n- b\n")
        with self.assertRaises(ConfigurationException):
            config.load_from_file(bad)

        empty = os.path.join(self.tdir, "empty.yml")
        with open(empty, 'w') as fd:
            fd.write("")
        self.assertEqual(config.load_from_file(empty), {})

        with self.assertRaises(IOError):
            config.load_from_file(os.path.join(self.tdir, "goob.yml"))

    def test_merge_config(self):
        defc = { 'service_endpoint': "http://x", 'timeout': 10,
                 'authentication': { 'user': "a", 'pass': "b" } }
        out = config.merge_config({ 'timeout': 5, 'authentication': { 'pass': "c" } }, defc)
        self.assertEqual(out, { 'service_endpoint': "http://x", 'timeout': 5,
                                'authentication': { 'user': "a", 'pass': "c" } })
        self.assertEqual(defc['authentication']['pass'], "b")

class TestLogging(test.TestCase):

    def setUp(self):
        self.tdir = tempfile.mkdtemp(prefix="_test_config.")
        self.rootlog = logging.getLogger()
        self.handlers = list(self.rootlog.handlers)
        self.level = self.rootlog.level

    def tearDown(self):
        for h in list(self.rootlog.handlers):
            if h not in self.handlers:
                self.rootlog.removeHandler(h)
                h.close()
        self.rootlog.setLevel(self.level)
        shutil.rmtree(self.tdir, ignore_errors=True)

    def test_configure_log(self):
        logfile = os.path.join(self.tdir, "client.log")
        config.configure_log(config={ 'logfile': logfile, 'loglevel': "DEBUG" })
        self.assertEqual(self.rootlog.level, logging.DEBUG)

        log = logging.getLogger("fedorarest.test")
        log.debug("hello")
        config.blab(log, "too much detail")
        for h in self.rootlog.handlers:
            h.flush()
        with open(logfile) as fd:
            content = fd.read()
        self.assertIn("hello", content)
        self.assertNotIn("too much detail", content)

    def test_bad_level(self):
        with self.assertRaises(ConfigurationException):
            config.configure_log(level="LOUD")

    def test_blab_level(self):
        self.assertEqual(config.BLAB, logging.DEBUG - 1)
        self.assertEqual(logging.getLevelName(config.BLAB), "BLAB")

    def test_blab_at_blab_level(self):
        logfile = os.path.join(self.tdir, "blab.log")
        config.configure_log(logfile, config.BLAB)
        config.blab(logging.getLogger("fedorarest.test"), "GET %s headers=%s", "http://x/y", {})
        for h in self.rootlog.handlers:
            h.flush()
        with open(logfile) as fd:
            content = fd.read()
        self.assertIn("BLAB: GET http://x/y headers={}", content)


if __name__ == '__main__':
    test.main()
