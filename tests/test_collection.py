from __future__ import annotations

import datetime
from unittest import TestCase

import pytz

from sitepipe.collection import Collection, CollectionRegistry, sort_args, sort_documents
from sitepipe.defaults import apply_defaults
from sitepipe.errors import ConfigError, UnknownCollectionError

from . import utils as test_utils


def dated(source_path: str, month: int, collection: str = "posts", **front_matter):
    doc = test_utils.mock_document(
            source_path, collection, front_matter,
            date=datetime.datetime(2024, month, 1, tzinfo=pytz.utc))
    apply_defaults([], [doc])
    return doc


class TestSort(TestCase):
    def test_sort_args(self):
        self.assertEqual(sort_args(None), (None, False, None))
        field, reverse, key = sort_args("-date")
        self.assertEqual(field, "date")
        self.assertTrue(reverse)
        field, reverse, key = sort_args("title")
        self.assertEqual(field, "title")
        self.assertFalse(reverse)

    def test_sort_by_date(self):
        jan = dated("_posts/jan.md", 1)
        feb = dated("_posts/feb.md", 2)
        mar = dated("_posts/mar.md", 3)
        self.assertEqual(sort_documents([feb, jan, mar], "-date"), [mar, feb, jan])
        self.assertEqual(sort_documents([feb, jan, mar], "date"), [jan, feb, mar])

    def test_ties(self):
        b = dated("_posts/b.md", 1)
        a = dated("_posts/a.md", 1)
        c = dated("_posts/c.md", 2)
        self.assertEqual(sort_documents([b, c, a], "-date"), [c, a, b])
        self.assertEqual(sort_documents([b, c, a], "date"), [a, b, c])

    def test_missing_field(self):
        a = dated("_projects/a.md", 1, "projects", title="Zeta")
        b = dated("_projects/b.md", 1, "projects")
        c = dated("_projects/c.md", 1, "projects", title="Alpha")
        d = dated("_projects/d.md", 1, "projects")
        self.assertEqual(sort_documents([d, c, b, a], "title"), [c, a, b, d])
        self.assertEqual(sort_documents([d, c, b, a], "-title"), [a, c, b, d])

    def test_unsorted(self):
        b = dated("_projects/b.md", 3, "projects")
        a = dated("_projects/a.md", 1, "projects")
        self.assertEqual(sort_documents([b, a], None), [a, b])

    def test_incomparable(self):
        a = dated("_projects/a.md", 1, "projects", order=1)
        b = dated("_projects/b.md", 1, "projects", order="first")
        with self.assertRaises(ConfigError):
            sort_documents([a, b], "order")


class TestRegistry(TestCase):
    def test_build(self):
        ctx = test_utils.make_context(COLLECTIONS=["projects", "team"])
        jan = dated("_posts/jan.md", 1)
        mar = dated("_posts/mar.md", 3)
        about = dated("about.md", 1, "pages")
        hidden = dated("hidden.md", 1, "pages", published=False)
        future = dated("_posts/future.md", 7)
        registry = CollectionRegistry.build(ctx, [jan, about, hidden, mar, future])

        self.assertEqual(list(registry), ["posts", "projects", "team", "pages"])
        self.assertEqual(list(registry["posts"]), [mar, jan])
        self.assertEqual(list(registry["pages"]), [about])
        self.assertEqual(len(registry["team"]), 0)
        self.assertEqual(list(registry.iter_documents()), [mar, jan, about])
        self.assertTrue(registry["posts"].output)

        with self.assertRaises(UnknownCollectionError) as e:
            registry["nonexistent"]
        self.assertEqual(e.exception.name, "nonexistent")

        with self.assertRaises(UnknownCollectionError) as e:
            registry.lookup("nonexistent", "feed")
        self.assertEqual(str(e.exception), "feed references unknown collection 'nonexistent'")

    def test_future(self):
        ctx = test_utils.make_context(FUTURE=True)
        future = dated("_posts/future.md", 7)
        registry = CollectionRegistry.build(ctx, [future])
        self.assertEqual(list(registry["posts"]), [future])

    def test_output(self):
        ctx = test_utils.make_context(COLLECTIONS={"team": {"output": False}})
        registry = CollectionRegistry.build(ctx, [])
        self.assertFalse(registry["team"].output)

    def test_sequence(self):
        docs = [dated("_posts/a.md", 1), dated("_posts/b.md", 2)]
        collection = Collection("posts", docs)
        self.assertEqual(len(collection), 2)
        self.assertEqual(collection[0].source_path, "_posts/a.md")
        self.assertEqual(collection.to_dict(), {
            "name": "posts",
            "sort_key": None,
            "documents": ["_posts/a.md", "_posts/b.md"],
        })
