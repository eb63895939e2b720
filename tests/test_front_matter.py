from unittest import TestCase

from sitepipe.errors import ParseError
from sitepipe.utils import front_matter


class TestReadString(TestCase):
    def test_yaml(self):
        parsed = front_matter.read_string("---\ntitle: Foo\ntags: [a, b]\n---\nbody\n")
        self.assertEqual(parsed.fmt, "yaml")
        self.assertEqual(parsed.meta, {"title": "Foo", "tags": ["a", "b"]})
        self.assertEqual(parsed.body, "body\n")
        self.assertEqual(parsed.body_line, 5)

    def test_yaml_dots_terminator(self):
        parsed = front_matter.read_string("---\ntitle: Foo\n...\nbody\n")
        self.assertEqual(parsed.meta, {"title": "Foo"})
        self.assertEqual(parsed.body, "body\n")

    def test_empty_yaml(self):
        parsed = front_matter.read_string("---\n---\nbody")
        self.assertEqual(parsed.fmt, "yaml")
        self.assertEqual(parsed.meta, {})
        self.assertEqual(parsed.body, "body")

    def test_toml(self):
        parsed = front_matter.read_string('+++\ntitle = "Foo"\n+++\nbody')
        self.assertEqual(parsed.fmt, "toml")
        self.assertEqual(parsed.meta, {"title": "Foo"})
        self.assertEqual(parsed.body, "body")
        self.assertEqual(parsed.body_line, 4)

    def test_json(self):
        parsed = front_matter.read_string('{\n"title": "Foo"\n}\nbody\n')
        self.assertEqual(parsed.fmt, "json")
        self.assertEqual(parsed.meta, {"title": "Foo"})
        self.assertEqual(parsed.body, "body\n")
        self.assertEqual(parsed.body_line, 4)

    def test_no_front_matter(self):
        parsed = front_matter.read_string("# Title\n\ntext\n")
        self.assertIsNone(parsed.fmt)
        self.assertEqual(parsed.meta, {})
        self.assertEqual(parsed.body, "# Title\n\ntext\n")
        self.assertEqual(parsed.body_line, 1)

    def test_empty(self):
        parsed = front_matter.read_string("")
        self.assertIsNone(parsed.fmt)
        self.assertEqual(parsed.body, "")

    def test_bom(self):
        parsed = front_matter.read_string("\ufeff---\na: 1\n---\n")
        self.assertEqual(parsed.meta, {"a": 1})

    def test_unterminated(self):
        for content in ("---\ntitle: Foo\nbody\n", "+++\ntitle = 'Foo'\n"):
            with self.subTest(content=content):
                with self.assertRaises(ParseError) as e:
                    front_matter.read_string(content, "test.md")
                self.assertEqual(e.exception.path, "test.md")
                self.assertEqual(e.exception.line, 1)
                self.assertIn("unterminated", str(e.exception))

    def test_invalid_yaml(self):
        with self.assertRaises(ParseError) as e:
            front_matter.read_string("---\ntitle: Foo\nbad: [\n---\n", "test.md")
        self.assertEqual(e.exception.path, "test.md")
        self.assertIsNotNone(e.exception.line)
        self.assertGreater(e.exception.line, 1)
        self.assertTrue(str(e.exception).startswith("test.md:"))

    def test_invalid_json(self):
        with self.assertRaises(ParseError) as e:
            front_matter.read_string('{\n"title": \n}\n', "test.md")
        self.assertIsNotNone(e.exception.line)

    def test_invalid_toml(self):
        with self.assertRaises(ParseError) as e:
            front_matter.read_string("+++\ntitle = \n+++\n", "test.md")
        self.assertEqual(e.exception.path, "test.md")

    def test_not_a_mapping(self):
        with self.assertRaises(ParseError) as e:
            front_matter.read_string("---\n- a\n- b\n---\n", "test.md")
        self.assertEqual(e.exception.line, 1)
        self.assertIn("not a mapping", str(e.exception))


class TestHasFrontMatter(TestCase):
    def test_detect(self):
        self.assertTrue(front_matter.has_front_matter(b"---\ntitle: x"))
        self.assertTrue(front_matter.has_front_matter(b"+++\ntitle"))
        self.assertFalse(front_matter.has_front_matter(b"{\n\"title\""))
        self.assertTrue(front_matter.has_front_matter(b"{\n\"title\"", allow_json=True))
        self.assertTrue(front_matter.has_front_matter(b"---\n", allow_json=True))
        self.assertTrue(front_matter.has_front_matter(b"\xef\xbb\xbf---\n"))
        self.assertFalse(front_matter.has_front_matter(b"body {}"))
        self.assertFalse(front_matter.has_front_matter(b"\x89PNG\r\n"))
        self.assertFalse(front_matter.has_front_matter(b""))


class TestWrite(TestCase):
    def test_json(self):
        text = front_matter.write({"title": "Foo"}, style="json")
        self.assertEqual(front_matter.read_string(text).meta, {"title": "Foo"})

    def test_yaml(self):
        text = front_matter.write({"title": "Foo"}, style="yaml")
        self.assertTrue(text.startswith("---\n"))
        self.assertTrue(text.endswith("---\n"))
        self.assertEqual(front_matter.read_string(text).meta, {"title": "Foo"})

    def test_unsupported(self):
        with self.assertRaises(ValueError):
            front_matter.write({}, style="xml")
