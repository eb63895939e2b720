from __future__ import annotations

import itertools
from unittest import TestCase

from sitepipe.defaults import DefaultRule, apply_defaults, merge_values, resolve_front_matter
from sitepipe.errors import ConfigError

from . import utils as test_utils


class TestMerge(TestCase):
    def test_merge_one_level(self):
        base = {"a": 1, "author": {"name": "Site", "email": "site@example.org"}, "x": {"y": {"z": 1}}}
        overlay = {"a": 2, "author": {"name": "Post"}, "x": {"y": {"w": 2}}}
        res = merge_values(base, overlay)
        self.assertEqual(res["a"], 2)
        self.assertEqual(res["author"], {"name": "Post", "email": "site@example.org"})
        # Deeper mappings are replaced as a whole
        self.assertEqual(res["x"], {"y": {"w": 2}})
        # Inputs are not modified
        self.assertEqual(base["author"], {"name": "Site", "email": "site@example.org"})

    def test_mapping_replaces_scalar(self):
        self.assertEqual(merge_values({"a": 1}, {"a": {"b": 2}}), {"a": {"b": 2}})
        self.assertEqual(merge_values({"a": {"b": 2}}, {"a": None}), {"a": None})


class TestDefaultRule(TestCase):
    def test_from_config(self):
        rule = DefaultRule.from_config({"scope": {"path": "/blog/", "type": "posts"}, "values": {"layout": "post"}})
        self.assertEqual(rule.path_pattern, "blog")
        self.assertEqual(rule.type_filter, "posts")
        self.assertEqual(rule.values, {"layout": "post"})

        rule = DefaultRule.from_config({"path": "", "values": {"layout": "default"}})
        self.assertIsNone(rule.path_pattern)
        self.assertIsNone(rule.type_filter)

        rule = DefaultRule.from_config({"scope": None, "values": None})
        self.assertIsNone(rule.path_pattern)
        self.assertEqual(rule.values, {})

    def test_from_config_invalid(self):
        for rule in ("layout: post", {"scope": "blog", "values": {}}, {"values": ["a"]}):
            with self.subTest(rule=rule):
                with self.assertRaises(ConfigError):
                    DefaultRule.from_config(rule)

    def test_matches(self):
        post = test_utils.mock_document("_posts/2024-01-10-first.md", "posts")
        draft = test_utils.mock_document("_drafts/wip.md", "posts", draft=True)
        page = test_utils.mock_document("blog/about.md")
        project = test_utils.mock_document("_projects/foo.md", "projects")

        def matching(**scope):
            rule = DefaultRule.from_config({"scope": scope, "values": {}})
            return [d.source_path for d in (post, draft, page, project) if rule.matches(d)]

        self.assertEqual(matching(), ["_posts/2024-01-10-first.md", "_drafts/wip.md", "blog/about.md",
                                      "_projects/foo.md"])
        self.assertEqual(matching(type="posts"), ["_posts/2024-01-10-first.md", "_drafts/wip.md"])
        self.assertEqual(matching(type="drafts"), ["_drafts/wip.md"])
        self.assertEqual(matching(type="pages"), ["blog/about.md"])
        self.assertEqual(matching(path="blog"), ["blog/about.md"])
        # Prefixes only match whole path components
        self.assertEqual(matching(path="blo"), [])
        self.assertEqual(matching(path="_p*/*.md"), ["_posts/2024-01-10-first.md", "_projects/foo.md"])
        self.assertEqual(matching(path="_p*/*.md", type="projects"), ["_projects/foo.md"])


class TestResolve(TestCase):
    def test_document_wins(self):
        post = test_utils.mock_document("_posts/2024-01-10-first.md", "posts", {"comments": False})
        rules = [DefaultRule.from_config({"scope": {"type": "posts"}, "values": {"comments": True, "layout": "post"}})]
        apply_defaults(rules, [post])
        self.assertEqual(post.meta, {"comments": False, "layout": "post"})
        # The authored front matter is kept
        self.assertEqual(post.front_matter, {"comments": False})

    def test_rule_order(self):
        page = test_utils.mock_document("blog/about.md")
        rules = [
            DefaultRule.from_config({"values": {"layout": "default", "author": {"name": "Site"}}}),
            DefaultRule.from_config({"scope": {"path": "blog"}, "values": {"layout": "blog",
                                                                            "author": {"email": "b@example.org"}}}),
        ]
        self.assertEqual(resolve_front_matter(rules, page), {
            "layout": "blog",
            "author": {"name": "Site", "email": "b@example.org"},
        })
        self.assertEqual(resolve_front_matter(reversed(rules), page), {
            "layout": "default",
            "author": {"name": "Site", "email": "b@example.org"},
        })

    def test_idempotent(self):
        front_matter = {"title": "About", "author": {"name": "Me"}}
        page = test_utils.mock_document("blog/about.md", front_matter=front_matter)
        rules = [
            DefaultRule.from_config({"values": {"layout": "default", "author": {"email": "site@example.org"}}}),
        ]
        once = resolve_front_matter(rules, page)
        again = resolve_front_matter(rules, test_utils.mock_document("blog/about.md", front_matter=once))
        self.assertEqual(once, again)

    def test_document_values_never_overwritten(self):
        front_matter = {"layout": "mine", "comments": False, "author": {"name": "Me"}}
        page = test_utils.mock_document("blog/about.md", front_matter=front_matter)
        rules = [
            DefaultRule.from_config({"values": {"layout": "default", "comments": True}}),
            DefaultRule.from_config({"scope": {"path": "blog"}, "values": {"layout": "blog", "author": "Site"}}),
            DefaultRule.from_config({"scope": {"path": "*.md"}, "values": {"author": {"name": "Other"}}}),
            DefaultRule.from_config({"scope": {"type": "pages"}, "values": {"comments": "maybe", "toc": True}}),
        ]
        for order in itertools.permutations(rules):
            with self.subTest(order=order):
                meta = resolve_front_matter(order, page)
                for key, value in front_matter.items():
                    self.assertEqual(meta[key], value)
                self.assertTrue(meta["toc"])

    def test_set_meta_once(self):
        page = test_utils.mock_document("about.md")
        apply_defaults([], [page])
        with self.assertRaises(RuntimeError):
            apply_defaults([], [page])


class TestSiteDefaults(test_utils.MockSiteTestMixin, TestCase):
    def test_comments(self):
        files = {
            "_posts/2024-01-10-first.md": "---\ntitle: First\ncomments: false\n---\n",
            "_posts/2024-02-10-second.md": "---\ntitle: Second\n---\n",
            "about.md": "---\ntitle: About\n---\n",
        }
        settings = {"DEFAULTS": [{"scope": {"path": "", "type": "posts"}, "values": {"comments": True}}]}
        with self.site(test_utils.MockSite(files, settings=settings)) as mocksite:
            first, second, about = mocksite.document(
                    "_posts/2024-01-10-first.md", "_posts/2024-02-10-second.md", "about.md")
            self.assertIs(first.meta["comments"], False)
            self.assertIs(second.meta["comments"], True)
            self.assertNotIn("comments", about.meta)
