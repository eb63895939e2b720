from __future__ import annotations

import datetime
from unittest import TestCase

import pytz

from sitepipe.errors import ConfigError

from . import utils as test_utils


class TestBuildContext(TestCase):
    def test_defaults(self):
        ctx = test_utils.make_context()
        self.assertEqual(ctx.project_root, "/nonexistent")
        self.assertEqual(ctx.content_root, "/nonexistent")
        self.assertEqual(ctx.output_root, "/nonexistent/_site")
        self.assertEqual(ctx.layouts_root, "/nonexistent/_layouts")
        self.assertEqual(ctx.site_root, "/")
        self.assertEqual(list(ctx.collections), ["posts"])
        self.assertEqual(ctx.collections["posts"].directory, "_posts")
        self.assertEqual(ctx.collections["posts"].sort_by, "-date")
        self.assertEqual(ctx.jobs, 2)
        self.assertEqual(ctx.generation_time, datetime.datetime(2024, 6, 1, 12, 30, tzinfo=pytz.utc))
        self.assertEqual(ctx.generation_time.tzinfo.zone, "Europe/Rome")

    def test_immutable(self):
        ctx = test_utils.make_context()
        with self.assertRaises(AttributeError):
            ctx.paginate = 3
        with self.assertRaises(TypeError):
            ctx.collections["projects"] = None
        with self.assertRaises(TypeError):
            ctx.site_meta["foo"] = "bar"

    def test_site_url(self):
        ctx = test_utils.make_context(SITE_URL="https://example.org/", SITE_ROOT="/blog/")
        self.assertEqual(ctx.site_url, "https://example.org")
        self.assertEqual(ctx.site_root, "/blog")
        self.assertEqual(ctx.site_path("/about/"), "/blog/about/")
        self.assertEqual(ctx.absolute_url(ctx.site_path("/about/")), "https://example.org/blog/about/")

        ctx = test_utils.make_context(SITE_URL=None)
        self.assertEqual(ctx.absolute_url("/about/"), "/about/")

    def test_collections(self):
        ctx = test_utils.make_context(COLLECTIONS=["projects"])
        self.assertEqual(list(ctx.collections), ["posts", "projects"])
        self.assertEqual(ctx.collections["projects"].directory, "_projects")
        self.assertIsNone(ctx.collections["projects"].sort_by)

        ctx = test_utils.make_context(COLLECTIONS={
            "projects": {"directory": "work/", "sort_by": "title", "output": False, "paginate": 4},
            "posts": {"permalink": "pretty"},
        })
        spec = ctx.collections["projects"]
        self.assertEqual(spec.directory, "work")
        self.assertEqual(spec.sort_by, "title")
        self.assertFalse(spec.output)
        self.assertEqual(spec.paginate, 4)
        self.assertEqual(ctx.collections["posts"].permalink, "pretty")

    def test_invalid(self):
        with self.assertRaises(ConfigError):
            test_utils.make_context(TIMEZONE="Nowhere/Atlantis")
        with self.assertRaises(ConfigError):
            test_utils.make_context(PAGINATE=0)
        with self.assertRaises(ConfigError):
            test_utils.make_context(PAGINATE="5")
        with self.assertRaises(ConfigError):
            test_utils.make_context(FEED_LIMIT=-1)
        with self.assertRaises(ConfigError):
            test_utils.make_context(COLLECTIONS={"pages": {}})
        with self.assertRaises(ConfigError):
            test_utils.make_context(COLLECTIONS={"a": {"directory": "_x"}, "b": {"directory": "_x"}})
        with self.assertRaises(ConfigError):
            test_utils.make_context(COLLECTIONS={"projects": {"paginate": -2}})
        with self.assertRaises(ConfigError):
            test_utils.make_context(DEFAULTS={"values": {}})

    def test_sort_by_url(self):
        # Collection order is fixed before URLs exist
        for sort_by in ("url", "-url"):
            with self.assertRaises(ConfigError) as e:
                test_utils.make_context(COLLECTIONS={"projects": {"sort_by": sort_by}})
            self.assertEqual(e.exception.source, "collections.projects.sort_by")

    def test_clean_date(self):
        ctx = test_utils.make_context()
        rome = pytz.timezone("Europe/Rome")
        self.assertEqual(ctx.clean_date("2024-01-31"), rome.localize(datetime.datetime(2024, 1, 31)))
        self.assertEqual(ctx.clean_date(datetime.date(2024, 1, 31)), rome.localize(datetime.datetime(2024, 1, 31)))
        self.assertEqual(
            ctx.clean_date("2024-01-31 10:00:00Z"),
            datetime.datetime(2024, 1, 31, 10, tzinfo=pytz.utc))
        self.assertEqual(
            ctx.clean_date("2024-01-31 10:00:00+02:00"),
            datetime.datetime(2024, 1, 31, 8, tzinfo=pytz.utc))
        self.assertEqual(
            ctx.clean_date("2024-07-01 10:00"),
            rome.localize(datetime.datetime(2024, 7, 1, 10)))

        with self.assertRaises(ValueError):
            ctx.clean_date("not a date")
        with self.assertRaises(ValueError):
            ctx.clean_date(12)
