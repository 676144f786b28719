import os, sys, logging, tempfile
import unittest as test
from unittest.mock import Mock, patch
from io import BytesIO

import requests

from fedorarest import cli

datadir = os.path.join(os.path.dirname(__file__), "data")
pngfile = os.path.join(datadir, "tn.png")
baseurl = "http://localhost:8080/fedora"

class TestCLI(test.TestCase):

    def setUp(self):
        self.out = BytesIO()
        self.rootlog = logging.getLogger()
        self.handlers = list(self.rootlog.handlers)
        self.level = self.rootlog.level

    def tearDown(self):
        for h in list(self.rootlog.handlers):
            if h not in self.handlers:
                self.rootlog.removeHandler(h)
        self.rootlog.setLevel(self.level)

    def mkresp(self, status=200, reason="OK", content=b"<objectProfile/>"):
        return Mock(status_code=status, reason=reason, content=content)

    def test_define_options(self):
        parser = cli.define_options("fedorarest")
        opts = parser.parse_args("-u http://x/fedora -U me -P pw find -t demo* -f pid -f label".split())
        self.assertEqual(opts.url, "http://x/fedora")
        self.assertEqual(opts.user, "me")
        self.assertEqual(opts.cmd, "find")
        self.assertEqual(opts.terms, "demo*")
        self.assertEqual(opts.fields, ["pid", "label"])

        opts = parser.parse_args("purge demo:1".split())
        self.assertEqual(opts.pid, "demo:1")
        self.assertIsNone(opts.dsid)

    def test_no_command(self):
        with self.assertRaises(cli.Failure) as cm:
            cli.main("fedorarest", ["-q"], self.out)
        self.assertEqual(cm.exception.exitcode, 2)

    def test_no_endpoint(self):
        with self.assertRaises(cli.Failure) as cm:
            cli.main("fedorarest", ["-q", "profile", "demo:1"], self.out)
        self.assertEqual(cm.exception.exitcode, 2)
        self.assertIn("service_endpoint", str(cm.exception))

    def test_bad_config_file(self):
        with self.assertRaises(cli.Failure) as cm:
            cli.main("fedorarest", ["-q", "-c", os.path.join(datadir, "goob.yml"),
                                    "profile", "demo:1"], self.out)
        self.assertEqual(cm.exception.exitcode, 2)

    @patch('requests.Session.request')
    def test_profile(self, mock_request):
        mock_request.return_value = self.mkresp()
        self.assertEqual(cli.main("fedorarest", ["-q", "-u", baseurl, "profile", "demo:1"],
                                  self.out), 0)
        self.assertEqual(self.out.getvalue(), b"<objectProfile/>")
        args, kw = mock_request.call_args
        self.assertEqual(args, ("GET", baseurl+"/objects/demo%3A1?format=xml"))
        self.assertNotIn('auth', kw)

    @patch('requests.Session.request')
    def test_config_file(self, mock_request):
        mock_request.return_value = self.mkresp(content=b"<pidList/>")
        cli.main("fedorarest", ["-q", "-c", os.path.join(datadir, "fedorarest-conf.yml"),
                                "nextpid", "-n", "2", "-N", "demo"], self.out)
        args, kw = mock_request.call_args
        self.assertEqual(args, ("POST", baseurl+"/objects/nextPID?numPIDS=2&namespace=demo&format=xml"))
        self.assertEqual(kw['auth'], ("fedoraAdmin", "fedoraAdmin"))
        self.assertEqual(kw['timeout'], 30.0)
        self.assertEqual(self.out.getvalue(), b"<pidList/>")

        # command-line credentials override the file's
        cli.main("fedorarest", ["-q", "-c", os.path.join(datadir, "fedorarest-conf.yml"),
                                "-U", "me", "-P", "pw", "datastreams", "demo:1"], self.out)
        args, kw = mock_request.call_args
        self.assertEqual(args, ("GET", baseurl+"/objects/demo%3A1/datastreams?format=xml"))
        self.assertEqual(kw['auth'], ("me", "pw"))

    @patch('requests.Session.request')
    def test_add_ds(self, mock_request):
        mock_request.return_value = self.mkresp(201, "Created", b"TN")
        cli.main("fedorarest", ["-q", "-u", baseurl, "add-ds", "demo:1", "TN",
                                "-L", "http://example.org/img.png", "-t", "image/png"], self.out)
        args, kw = mock_request.call_args
        self.assertEqual(args, ("POST", baseurl+"/objects/demo%3A1/datastreams/TN"
                                "?dsLocation=http%3A%2F%2Fexample.org%2Fimg.png&mimeType=image%2Fpng"))
        self.assertEqual(kw['headers'], {'Content-Type': "image/png"})
        self.assertIsNone(kw['data'])

        cli.main("fedorarest", ["-q", "-u", baseurl, "add-ds", "demo:1", "TN", "-f", pngfile],
                 self.out)
        args, kw = mock_request.call_args
        self.assertTrue(kw['headers']['Content-Type'].startswith("multipart/form-data; boundary="))
        self.assertIn(b'filename="tn.png"', kw['data'])

    @patch('requests.Session.request')
    def test_invalid_request(self, mock_request):
        with self.assertRaises(cli.Failure) as cm:
            cli.main("fedorarest", ["-q", "-u", baseurl, "add-ds", "demo:1", "TN",
                                    "-f", pngfile, "-L", "http://example.org/img.png"], self.out)
        self.assertEqual(cm.exception.exitcode, 2)
        with self.assertRaises(cli.Failure) as cm:
            cli.main("fedorarest", ["-q", "-u", baseurl, "add-ds", "demo:1", "TN"], self.out)
        self.assertEqual(cm.exception.exitcode, 2)
        mock_request.assert_not_called()

    @patch('requests.Session.request')
    def test_error_status(self, mock_request):
        mock_request.return_value = self.mkresp(404, "Not Found", b"no such object")
        with self.assertRaises(cli.Failure) as cm:
            cli.main("fedorarest", ["-q", "-u", baseurl, "purge", "demo:1", "TN"], self.out)
        self.assertEqual(cm.exception.exitcode, 1)
        self.assertIn("404", str(cm.exception))
        self.assertEqual(self.out.getvalue(), b"no such object")
        self.assertEqual(mock_request.call_args[0],
                         ("DELETE", baseurl+"/objects/demo%3A1/datastreams/TN"))

    @patch('requests.Session.request')
    def test_unreachable(self, mock_request):
        mock_request.side_effect = requests.ConnectionError("connection refused")
        with self.assertRaises(cli.Failure) as cm:
            cli.main("fedorarest", ["-q", "-u", baseurl, "find", "-t", "demo*"], self.out)
        self.assertEqual(cm.exception.exitcode, 3)
        self.assertIsInstance(cm.exception.cause, requests.ConnectionError)


if __name__ == '__main__':
    test.main()
