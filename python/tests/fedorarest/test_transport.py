import logging
import unittest as test
from unittest.mock import Mock

import requests

from fedorarest.config import ConnectionConfig
from fedorarest.transport import Transport
from fedorarest.version import __version__

baseurl = "http://localhost:8080/fedora"

class TestTransport(test.TestCase):

    def setUp(self):
        self.session = Mock()
        self.resp = Mock(status_code=200)
        self.session.request.return_value = self.resp

    def test_default_session(self):
        tr = Transport(ConnectionConfig(baseurl))
        self.assertIsInstance(tr.session, requests.Session)
        self.assertTrue(tr.session.headers['User-Agent'].startswith("fedorarest/"+__version__))
        self.assertEqual(tr.log.name, "fedorarest.transport")
        tr.close()

    def test_send(self):
        conn = ConnectionConfig(baseurl, "fedoraAdmin", "pw", timeout=10)
        tr = Transport(conn, session=self.session)
        resp = tr.send(baseurl+"/objects/demo%3A1")
        self.assertIs(resp, self.resp)
        self.session.request.assert_called_once_with("GET", baseurl+"/objects/demo%3A1",
                                                     headers=None, data=None, stream=False,
                                                     auth=("fedoraAdmin", "pw"), timeout=10.0)

    def test_send_body(self):
        tr = Transport(ConnectionConfig(baseurl), session=self.session)
        hdrs = {'Content-Type': "multipart/form-data; boundary=bb"}
        tr.send(baseurl+"/upload", "post", hdrs, b"--bb--", stream=True)
        self.session.request.assert_called_once_with("POST", baseurl+"/upload", headers=hdrs,
                                                     data=b"--bb--", stream=True)

    def test_ca_bundle(self):
        tr = Transport(ConnectionConfig(baseurl, ca_bundle="/etc/ssl/ca.pem"), session=self.session)
        tr.send(baseurl+"/describe")
        self.assertEqual(self.session.request.call_args[1]['verify'], "/etc/ssl/ca.pem")

    def test_bad_method(self):
        tr = Transport(ConnectionConfig(baseurl), session=self.session)
        with self.assertRaises(ValueError):
            tr.send(baseurl+"/objects", "PATCH")
        self.session.request.assert_not_called()

    def test_errors_propagate(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        tr = Transport(ConnectionConfig(baseurl), session=self.session)
        with self.assertRaises(requests.RequestException):
            tr.send(baseurl+"/objects")

    def test_close(self):
        tr = Transport(ConnectionConfig(baseurl), session=self.session)
        tr.close()
        self.session.close.assert_called_once_with()


if __name__ == '__main__':
    test.main()
