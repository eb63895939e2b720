from __future__ import annotations

import datetime
import logging
import os
import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional, Union

import jinja2
import markdown
import markupsafe

from .errors import RenderError
from .utils import format_date_rfc822, format_date_rfc3339
from .utils import front_matter as fm
from .utils.arrange import arrange

if TYPE_CHECKING:
    from .collection import CollectionRegistry
    from .context import BuildContext
    from .manifest import ManifestEntry

log = logging.getLogger("render")


class Renderer:
    """
    Turn the body of a manifest entry into the contents of its output file
    """
    def render(self, body: str, front_matter: Mapping[str, Any], layout: Optional[str]) -> str:
        """
        Render body, with its effective front matter, using the given layout
        """
        raise NotImplementedError(f"{self.__class__.__name__}.render")

    def render_entry(self, entry: ManifestEntry) -> str:
        """
        Render a manifest entry
        """
        return self.render(entry.body, entry.front_matter, entry.layout)


class PassthroughRenderer(Renderer):
    """
    Renderer that outputs document bodies unchanged
    """
    def render(self, body: str, front_matter: Mapping[str, Any], layout: Optional[str]) -> str:
        return body


class LayoutLoader(jinja2.BaseLoader):
    """
    Load layouts from the site layouts directory, falling back to the
    builtin templates.

    Layouts can have front matter, which is stored in ``meta``.
    """
    def __init__(self, layouts_root: str):
        self.layouts_root = layouts_root
        self.loader_builtin = jinja2.PackageLoader("sitepipe", "templates")
        # Front matter of the layouts loaded so far
        self.meta: dict[str, Mapping[str, Any]] = {}

    def get_source(self, environment, template):
        path = os.path.join(self.layouts_root, template)
        if not os.path.isfile(path):
            self.meta.setdefault(template, {})
            return self.loader_builtin.get_source(environment, template)

        with open(path, "rt", encoding="utf-8") as fd:
            content = fd.read()
        parsed = fm.read_string(content, os.path.relpath(path))
        self.meta[template] = parsed.meta

        mtime = os.path.getmtime(path)
        return parsed.body, path, lambda: os.path.getmtime(path) == mtime

    def list_templates(self):
        result = set(self.loader_builtin.list_templates())
        if os.path.isdir(self.layouts_root):
            for root, dirs, files in os.walk(self.layouts_root):
                for fname in files:
                    result.add(os.path.relpath(os.path.join(root, fname), self.layouts_root))
        return sorted(result)


class Jinja2Renderer(Renderer):
    """
    Render markdown bodies with python-markdown, and wrap them in Jinja2
    layouts.

    A layout ``name`` is looked up as ``_layouts/name.html``. Layouts can
    have a ``layout`` front matter entry, to be rendered inside another
    layout.
    """
    def __init__(self, ctx: BuildContext, collections: Optional[CollectionRegistry] = None):
        self.ctx = ctx
        self.collections = collections
        self.loader = LayoutLoader(ctx.layouts_root)
        self.jinja2 = jinja2.Environment(
            loader=self.loader,
            autoescape=True,
        )
        # python-markdown instances are not thread safe
        self.markdown_lock = threading.Lock()
        self.markdown = markdown.Markdown(
            extensions=list(ctx.markdown_extensions),
            extension_configs=dict(ctx.markdown_extension_configs),
            output_format="html",
        )

        self.jinja2.globals["site"] = self.site_data()
        self.jinja2.globals["now"] = ctx.generation_time
        self.jinja2.filters["datetime_format"] = self.jinja2_datetime_format
        self.jinja2.filters["markdown"] = self.jinja2_markdown
        self.jinja2.filters["relative_url"] = self.jinja2_relative_url
        self.jinja2.filters["absolute_url"] = self.jinja2_absolute_url
        self.jinja2.filters["arrange"] = arrange

    def site_data(self) -> dict[str, Any]:
        """
        Site-wide values available to layouts as ``site``
        """
        data = dict(self.ctx.site_meta)
        data.update(
            title=self.ctx.site_name,
            url=self.ctx.site_url,
            baseurl=self.ctx.site_root,
            author=self.ctx.site_author,
            time=self.ctx.generation_time,
        )
        if self.collections is not None:
            data["collections"] = self.collections
            for name, collection in self.collections.items():
                data.setdefault(name, collection)
        return data

    def render_markdown(self, text: str) -> str:
        with self.markdown_lock:
            self.markdown.reset()
            return self.markdown.convert(text)

    def jinja2_markdown(self, text: str) -> markupsafe.Markup:
        return markupsafe.Markup(self.render_markdown(text))

    def jinja2_relative_url(self, url: str) -> str:
        return self.ctx.site_path(url)

    def jinja2_absolute_url(self, url: str) -> str:
        return self.ctx.absolute_url(self.ctx.site_path(url))

    @jinja2.pass_context
    def jinja2_datetime_format(
            self, context, dt: Union[str, datetime.datetime], format: Optional[str] = None) -> str:
        if not isinstance(dt, datetime.datetime):
            dt = self.ctx.clean_date(dt)
        if format in ("rss2", "rfc822"):
            return format_date_rfc822(dt)
        elif format in ("atom", "rfc3339"):
            return format_date_rfc3339(dt)
        elif format == "iso8601" or not format:
            return dt.isoformat()
        elif format[0] == '%':
            return dt.strftime(format)
        else:
            log.warning("%s: invalid datetime format %r requested", context.name, format)
            return f"(unknown datetime format {format})"

    def template_name(self, layout: str) -> str:
        if "." in os.path.basename(layout):
            return layout
        return layout + ".html"

    def render(self, body: str, front_matter: Mapping[str, Any], layout: Optional[str],
               page: Optional[Mapping[str, Any]] = None) -> str:
        if page is None:
            page = front_matter
        content = body
        seen: list[str] = []
        while layout:
            if layout in seen:
                raise RenderError(
                    page.get("source_path", "<string>"), "layout loop: " + " → ".join(seen + [layout]))
            seen.append(layout)

            name = self.template_name(layout)
            try:
                template = self.jinja2.get_template(name)
            except jinja2.TemplateNotFound:
                log.warning("%s: layout %r not found", page.get("source_path", "<string>"), layout)
                break

            layout_meta = self.loader.meta.get(name, {})
            content = template.render(
                page=page,
                content=markupsafe.Markup(content),
                layout=layout_meta,
                **{k: v for k, v in front_matter.items() if k in ("paginator", "feed")},
            )
            layout = layout_meta.get("layout")
        return content

    def page_data(self, entry: ManifestEntry) -> dict[str, Any]:
        """
        Values available to layouts as ``page``
        """
        page = dict(entry.front_matter)
        page["url"] = entry.url
        page["output_path"] = entry.output_path
        page["source_path"] = entry.source_name
        if entry.kind == "document":
            doc = entry.source
            page["date"] = doc.publish_date
            page["collection"] = doc.collection
            page["categories"] = doc.categories
            page["tags"] = doc.tags
            page["excerpt"] = markupsafe.Markup(self.render_markdown(doc.excerpt(self.ctx.excerpt_separator)))
        return page

    def render_entry(self, entry: ManifestEntry) -> str:
        body = entry.body
        if entry.fmt in self.ctx.markdown_file_extensions:
            body = self.render_markdown(body)
        page = self.page_data(entry)
        page["content"] = markupsafe.Markup(body)
        return self.render(body, entry.front_matter, entry.layout, page=page)
