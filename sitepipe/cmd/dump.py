from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING, Any

from sitepipe.utils import dump_meta

from .command import SiteCommand, register

if TYPE_CHECKING:
    from ..site import Site

log = logging.getLogger("dump")


@register
class Dump(SiteCommand):
    "dump information about a site"

    @classmethod
    def add_subparser(cls, subparsers):
        parser = super().add_subparser(subparsers)
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument("--manifest", action="store_true",
                           help="dump the output paths of the site, and where they come from")
        group.add_argument("--collections", action="store_true",
                           help="dump the collections and their documents")
        group.add_argument("--defaults", action="store_true",
                           help="dump the effective front matter of all documents")
        return parser

    def print(self, data: Any) -> None:
        json.dump(dump_meta(data), sys.stdout, indent=2)
        sys.stdout.write("\n")

    def dump_manifest(self, site: Site) -> None:
        self.print(site.manifest)

    def dump_collections(self, site: Site) -> None:
        self.print(site.collections)

    def dump_defaults(self, site: Site) -> None:
        self.print({doc.source_path: doc.meta for doc in site.documents})

    def run(self) -> None:
        site = self.load_site()
        if self.args.manifest:
            self.dump_manifest(site)
        elif self.args.collections:
            self.dump_collections(site)
        elif self.args.defaults:
            self.dump_defaults(site)
