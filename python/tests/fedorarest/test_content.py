import os
import unittest as test

from fedorarest import content as cnt
from fedorarest.exceptions import (NoContentSpecified, AmbiguousContentSpecified, EncodingError,
                                   InvalidRequest)

datadir = os.path.join(os.path.dirname(__file__), "data")
pngfile = os.path.join(datadir, "tn.png")

class TestSources(test.TestCase):

    def test_filepath(self):
        fp = cnt.FilePath(pngfile)
        self.assertEqual(fp.path, pngfile)
        self.assertEqual(fp.filename, "tn.png")
        self.assertEqual(len(fp.read()), 20)
        self.assertEqual(cnt.FilePath("@"+pngfile), fp)
        self.assertEqual(hash(cnt.FilePath("@"+pngfile)), hash(fp))
        self.assertIn("tn.png", repr(fp))

        with self.assertRaises(ValueError):
            cnt.FilePath("@")
        with self.assertRaises(OSError):
            cnt.FilePath(os.path.join(datadir, "goob.png")).read()

    def test_inline_string(self):
        s = cnt.InlineString("<a>é</a>")
        self.assertEqual(s.read(), b"<a>\xc3\xa9</a>")
        self.assertEqual(cnt.InlineString("<a>é</a>", "latin-1").read(), b"<a>\xe9</a>")
        self.assertNotEqual(cnt.InlineString("a"), cnt.InlineString("a", "ascii"))
        with self.assertRaises(EncodingError):
            cnt.InlineString("é", "ascii").read()
        with self.assertRaises(EncodingError):
            cnt.InlineString("a", "no-such-codec").read()
        with self.assertRaises(ValueError):
            cnt.InlineString(None)

    def test_location(self):
        loc = cnt.DsLocationURI("http://example.org/img.png")
        self.assertEqual(loc.uri, "http://example.org/img.png")
        self.assertEqual(loc, cnt.DsLocationURI("http://example.org/img.png"))
        with self.assertRaises(ValueError):
            cnt.DsLocationURI("")

    def test_as_source(self):
        self.assertEqual(cnt.as_source(pngfile, cnt.FilePath), cnt.FilePath(pngfile))
        loc = cnt.DsLocationURI("http://x/y")
        self.assertIs(cnt.as_source(loc, cnt.FilePath), loc)
        self.assertEqual(cnt.as_source("<a/>", cnt.InlineString), cnt.InlineString("<a/>"))
        s = cnt.InlineString("x", "ascii")
        self.assertIs(cnt.as_source(s, cnt.InlineString), s)

class TestSelectContent(test.TestCase):

    def test_one(self):
        self.assertEqual(cnt.select_content(file=pngfile, string=None, location=None),
                         ("file", pngfile))
        self.assertEqual(cnt.select_content(file=None, string="", location="http://x/y"),
                         ("location", "http://x/y"))

    def test_none(self):
        with self.assertRaises(NoContentSpecified) as cm:
            cnt.select_content("ingest", file=None, string=None)
        self.assertEqual(cm.exception.operation, "ingest")
        self.assertIsInstance(cm.exception, InvalidRequest)
        self.assertIsNone(cnt.select_content(required=False, file=None, string=None))

    def test_ambiguous(self):
        with self.assertRaises(AmbiguousContentSpecified) as cm:
            cnt.select_content("add_datastream", file=pngfile, string="hello", location=None)
        self.assertEqual(cm.exception.sources, ["file", "string"])
        self.assertIn("add_datastream", str(cm.exception))

        with self.assertRaises(AmbiguousContentSpecified):
            cnt.select_content(required=False, file=pngfile, location="http://x/y")


if __name__ == '__main__':
    test.main()
