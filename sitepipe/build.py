from __future__ import annotations

import contextlib
import logging
import os
import shutil
import time
from collections import Counter
from typing import TYPE_CHECKING, Generator

from . import utils
from .file import File

if TYPE_CHECKING:
    from .manifest import ManifestEntry, SiteManifest

log = logging.getLogger("build")


class RenderStats:
    """
    Statistics collected while writing output files
    """
    def __init__(self):
        self.sums: Counter[str] = Counter()
        self.counts: Counter[str] = Counter()

    @contextlib.contextmanager
    def collect(self, entry: ManifestEntry) -> Generator[None, None, None]:
        start = time.perf_counter_ns()
        yield
        end = time.perf_counter_ns()
        self.sums[entry.kind] += end - start
        self.counts[entry.kind] += 1

    def log(self):
        for kind in sorted(self.sums.keys()):
            log.info("%s: %d in %.3fs", kind, self.counts[kind], self.sums[kind] / 1_000_000_000)


def copy_file(src: File, dst: str):
    """
    Copy a static file to dst, unless dst is already up to date
    """
    try:
        st = os.stat(dst)
    except FileNotFoundError:
        st = None

    if st is None or (
            src.stat.st_mtime > st.st_mtime
            or src.stat.st_size != st.st_size):
        shutil.copyfile(src.abspath, dst)
        shutil.copystat(src.abspath, dst)


class Builder:
    """
    Write the contents of a site manifest to the output directory
    """
    def __init__(self, manifest: SiteManifest, output_root: str):
        self.manifest = manifest
        self.output_root = output_root
        # Paths written, relative to output_root
        self.written: set[str] = set()

    def output_abspath(self, relpath: str) -> str:
        abspath = os.path.join(self.output_root, *relpath.split("/"))
        os.makedirs(os.path.dirname(abspath), exist_ok=True)
        return abspath

    def write_entry(self, entry: ManifestEntry):
        dst = self.output_abspath(entry.output_path)
        if isinstance(entry.source, File):
            copy_file(entry.source, dst)
        else:
            if entry.rendered_content is None:
                raise RuntimeError(f"{entry.output_path}: entry has not been rendered")
            with open(dst, "wt", encoding="utf-8") as out:
                out.write(entry.rendered_content)
        self.written.add(entry.output_path)

    def cleanup_leftovers(self):
        """
        Remove files and directories from a previous build that are not part
        of the site anymore
        """
        keep_dirs: set[str] = set()
        for relpath in self.written:
            parts = relpath.split("/")[:-1]
            for i in range(1, len(parts) + 1):
                keep_dirs.add("/".join(parts[:i]))

        # Walk bottom-up, so that directories are visited after their contents
        for root, dirs, files in os.walk(self.output_root, topdown=False):
            relroot = os.path.relpath(root, self.output_root).replace(os.sep, "/")
            prefix = "" if relroot == "." else relroot + "/"
            for fname in files:
                if prefix + fname not in self.written:
                    log.debug("%s: removing leftover file", prefix + fname)
                    os.unlink(os.path.join(root, fname))
            for dname in dirs:
                if prefix + dname not in keep_dirs:
                    path = os.path.join(root, dname)
                    if os.path.islink(path):
                        os.unlink(path)
                    else:
                        shutil.rmtree(path)

    def write(self):
        """
        Generate output
        """
        stats = RenderStats()
        with utils.timings("Wrote site in %fs"):
            os.makedirs(self.output_root, exist_ok=True)
            for entry in self.manifest.values():
                with stats.collect(entry):
                    self.write_entry(entry)
            self.cleanup_leftovers()
        stats.log()
