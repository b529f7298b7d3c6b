import unittest

from safescan.app.domain import extract_domain, normalize_url


class TestExtractDomain(unittest.TestCase):
    def test_scheme_is_optional(self):
        self.assertEqual(extract_domain("https://foo.com/x"), "foo.com")
        self.assertEqual(extract_domain("foo.com/x"), "foo.com")
        self.assertEqual(extract_domain("https://foo.com/x"), extract_domain("foo.com/x"))

    def test_hostname_is_lowercased(self):
        self.assertEqual(extract_domain("HTTPS://Shop.Example.COM/Cart"), "shop.example.com")

    def test_scheme_detection_ignores_case_and_kind(self):
        self.assertEqual(extract_domain("HTTP://Foo.com/x"), "foo.com")
        self.assertEqual(extract_domain("ftp://files.example.com/a"), "files.example.com")
        self.assertEqual(extract_domain("Https://foo.com"), extract_domain("foo.com"))

    def test_port_and_credentials_are_dropped(self):
        self.assertEqual(extract_domain("http://user:pw@10.0.0.1:8080/login"), "10.0.0.1")

    def test_unparseable_falls_back_to_first_segment(self):
        self.assertEqual(extract_domain("http://[broken/path"), "http:")

    def test_plain_text_never_raises(self):
        for raw in ["", "hello world", "BEGIN:VCARD", "/just/a/path", "://"]:
            self.assertIsInstance(extract_domain(raw), str)
        self.assertEqual(extract_domain("/just/a/path"), "")


class TestNormalizeUrl(unittest.TestCase):
    def test_normalize(self):
        self.assertEqual(normalize_url("Example.COM/Path/?q=1#frag"), "https://example.com/Path?q=1")
        self.assertEqual(normalize_url("http://EXAMPLE.com/"), "http://example.com")
        self.assertEqual(normalize_url("HTTP://EXAMPLE.com/a/"), "http://example.com/a")


if __name__ == '__main__':
    unittest.main()
