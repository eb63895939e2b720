from __future__ import annotations

import logging

from ..build import Builder
from .command import SiteCommand, register

log = logging.getLogger("build")


@register
class Build(SiteCommand):
    "build the site into the output directory of the project"

    def run(self) -> None:
        site = self.load_site()
        site.render()
        builder = Builder(site.manifest, site.ctx.output_root)
        builder.write()
