from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from ..errors import BuildError, SiteError
from . import build, check, dump, serve  # noqa: F401
from .command import COMMANDS, Fail, Success

log = logging.getLogger("spipe")


def log_error(e: SiteError) -> None:
    """
    Log an error, and all the errors it collects
    """
    if isinstance(e, BuildError):
        for error in e.errors:
            log.error("%s", error)
    else:
        log.error("%s", e)


def make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build static web sites from content with front matter.")
    subparsers = parser.add_subparsers(help="sub-command help", dest="command")
    subparsers.required = True
    for c in COMMANDS:
        c.add_subparser(subparsers)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = make_parser()
    args = parser.parse_args(argv)

    try:
        cmd = args.command(args)
        res = cmd.run()
    except Success:
        res = 0
    except Fail as e:
        print(e, file=sys.stderr)
        res = 1
    except SiteError as e:
        log_error(e)
        res = 1

    return res or 0
