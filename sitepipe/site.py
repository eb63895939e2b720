from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Optional

from .collection import CollectionRegistry
from .context import BuildContext
from .defaults import apply_defaults
from .feed import assemble_feed
from .loader import Loader
from .manifest import SiteManifest
from .paginator import paginate_site
from .permalink import PermalinkResolver
from .settings import Settings
from .utils import timings

if TYPE_CHECKING:
    from .document import Document
    from .errors import UnresolvedPlaceholderError
    from .feed import Feed
    from .file import File
    from .paginator import Listing
    from .render import Renderer

log = logging.getLogger("site")


class Site:
    """
    A sitepipe site.

    This class runs the generation pipeline, and holds the results of each
    stage.
    """
    # Identifiers for steps of the site loading
    LOAD_STEP_INITIAL = 0
    LOAD_STEP_CONTENTS = 1
    LOAD_STEP_DEFAULTS = 2
    LOAD_STEP_COLLECTIONS = 3
    LOAD_STEP_PERMALINKS = 4
    LOAD_STEP_PAGINATE = 5
    LOAD_STEP_FEED = 6
    LOAD_STEP_MANIFEST = 7
    LOAD_STEP_ALL = LOAD_STEP_MANIFEST

    def __init__(self, settings: Optional[Settings] = None, generation_time: Optional[datetime.datetime] = None):
        # Site settings
        if settings is None:
            settings = Settings()
        self.settings: Settings = settings

        # Immutable build configuration, validated from settings
        self.ctx: BuildContext = BuildContext.from_settings(settings, generation_time=generation_time)

        # Last load step performed
        self.last_load_step = self.LOAD_STEP_INITIAL

        # Results of each pipeline stage
        self.documents: tuple[Document, ...] = ()
        self.static_files: tuple[File, ...] = ()
        self.collections: CollectionRegistry
        self.listings: tuple[Listing, ...] = ()
        self.feed: Optional[Feed] = None
        self.manifest: SiteManifest

        # Recoverable problems found while building
        self.warnings: list[UnresolvedPlaceholderError] = []

    @property
    def content_root(self) -> str:
        return self.ctx.content_root

    @property
    def generation_time(self) -> datetime.datetime:
        return self.ctx.generation_time

    def load_contents(self):
        """
        Load documents and static files from the content directory
        """
        res = Loader(self.ctx).load()
        self.documents = res.documents
        self.static_files = res.static_files

    def resolve_defaults(self):
        """
        Compute the effective front matter of all documents
        """
        apply_defaults(self.ctx.defaults, self.documents)

    def register_collections(self):
        """
        Group documents in collections
        """
        self.collections = CollectionRegistry.build(self.ctx, self.documents)

    def resolve_permalinks(self):
        """
        Compute URLs and output paths of published documents
        """
        resolver = PermalinkResolver(self.ctx)
        self.warnings.extend(resolver.resolve_all(self.collections.iter_documents()))

    def paginate(self):
        self.listings = paginate_site(self.ctx, self.collections)

    def assemble_feed(self):
        if not self.ctx.feed_path:
            log.debug("feed disabled")
            return
        self.feed = assemble_feed(self.ctx, self.collections)

    def build_manifest(self):
        self.manifest = SiteManifest.build(
            self.collections,
            listings=self.listings,
            feed=self.feed,
            static_files=self.static_files)

    def load(self, until: int = LOAD_STEP_ALL):
        """
        Run the generation pipeline up to the given step
        """
        if until <= self.last_load_step:
            return

        if self.last_load_step < self.LOAD_STEP_CONTENTS:
            with timings("Loaded contents in %fs"):
                self.load_contents()
            self.last_load_step = self.LOAD_STEP_CONTENTS
        if until <= self.last_load_step:
            return

        if self.last_load_step < self.LOAD_STEP_DEFAULTS:
            with timings("Resolved defaults in %fs"):
                self.resolve_defaults()
            self.last_load_step = self.LOAD_STEP_DEFAULTS
        if until <= self.last_load_step:
            return

        if self.last_load_step < self.LOAD_STEP_COLLECTIONS:
            with timings("Registered collections in %fs"):
                self.register_collections()
            self.last_load_step = self.LOAD_STEP_COLLECTIONS
        if until <= self.last_load_step:
            return

        if self.last_load_step < self.LOAD_STEP_PERMALINKS:
            with timings("Resolved permalinks in %fs"):
                self.resolve_permalinks()
            self.last_load_step = self.LOAD_STEP_PERMALINKS
        if until <= self.last_load_step:
            return

        if self.last_load_step < self.LOAD_STEP_PAGINATE:
            with timings("Paginated collections in %fs"):
                self.paginate()
            self.last_load_step = self.LOAD_STEP_PAGINATE
        if until <= self.last_load_step:
            return

        if self.last_load_step < self.LOAD_STEP_FEED:
            with timings("Assembled feed in %fs"):
                self.assemble_feed()
            self.last_load_step = self.LOAD_STEP_FEED
        if until <= self.last_load_step:
            return

        if self.last_load_step < self.LOAD_STEP_MANIFEST:
            with timings("Built site manifest in %fs"):
                self.build_manifest()
            self.last_load_step = self.LOAD_STEP_MANIFEST
        if until <= self.last_load_step:
            return

    def make_renderer(self) -> Renderer:
        """
        Create the default renderer for this site
        """
        from .render import Jinja2Renderer
        return Jinja2Renderer(self.ctx, self.collections)

    def render(self, renderer: Optional[Renderer] = None):
        """
        Render all manifest entries, loading the site first if needed
        """
        self.load()
        if renderer is None:
            renderer = self.make_renderer()
        with timings("Rendered site in %fs"):
            self.manifest.render(renderer)

    def find_document(self, source_path: str) -> Document:
        """
        Return a document given its path relative to the content root
        """
        for doc in self.documents:
            if doc.source_path == source_path:
                return doc
        raise KeyError(source_path)
