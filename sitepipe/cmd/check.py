from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING

from sitepipe.utils import timings

from .command import SiteCommand, register

if TYPE_CHECKING:
    from ..site import Site

log = logging.getLogger("check")


@register
class Check(SiteCommand):
    "check the site, going through all the motions of rendering it without writing anything"

    def run(self) -> None:
        site = self.load_site()
        with timings("Checked site in %fs"):
            self.check(site)

    def check(self, site: Site) -> None:
        site.render()

        counts: dict[str, int] = Counter()
        for entry in site.manifest.values():
            counts[entry.kind] += 1

        for kind, count in sorted(counts.items()):
            print(f"{count} {kind} entries")
        if site.warnings:
            print(f"{len(site.warnings)} warnings")
