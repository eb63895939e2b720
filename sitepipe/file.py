from __future__ import annotations

import logging
import os
from collections.abc import Callable, Generator
from typing import NamedTuple, Optional

log = logging.getLogger("file")


class File(NamedTuple):
    """
    Information about a file in the file system.
    """

    # Path relative to the content root, using / as separator
    relpath: str
    # Absolute path to the file
    abspath: str
    # File stats
    stat: os.stat_result

    def __str__(self) -> str:
        return self.relpath

    @property
    def name(self) -> str:
        """
        File name without directory
        """
        return os.path.basename(self.relpath)

    @property
    def ext(self) -> str:
        """
        File extension, including the leading dot
        """
        return os.path.splitext(self.relpath)[1]

    def read_head(self, size: int = 16) -> bytes:
        """
        Read the first bytes of the file
        """
        with open(self.abspath, "rb") as fd:
            return fd.read(size)

    @classmethod
    def with_stat(cls, relpath: str, abspath: str) -> File:
        return cls(relpath, abspath, os.stat(abspath))

    @classmethod
    def scan(
        cls, abspath: str,
        skip: Optional[Callable[[str, bool], bool]] = None,
        follow_symlinks: bool = True,
    ) -> Generator[File, None, None]:
        """
        Scan the tree at abspath, generating File entries with paths relative
        to it.

        Hidden files and directories are ignored. If ``skip`` is given, it is
        called with the relative path of each entry and a bool telling if it
        is a directory, and entries for which it returns True are ignored.
        """
        for root, dnames, fnames, dirfd in os.fwalk(abspath, follow_symlinks=follow_symlinks):
            reldir = os.path.relpath(root, abspath)
            if reldir == ".":
                reldir = ""

            filtered = []
            for d in sorted(dnames):
                if d.startswith("."):
                    continue
                relpath = f"{reldir}/{d}" if reldir else d
                if skip is not None and skip(relpath, True):
                    log.debug("%s: skipping directory", relpath)
                    continue
                filtered.append(d)
            dnames[::] = filtered

            for f in sorted(fnames):
                if f.startswith("."):
                    continue
                relpath = f"{reldir}/{f}" if reldir else f
                if skip is not None and skip(relpath, False):
                    continue
                try:
                    st = os.stat(f, dir_fd=dirfd)
                except FileNotFoundError:
                    # Skip broken links
                    continue
                yield cls(relpath=relpath, abspath=os.path.join(root, f), stat=st)
