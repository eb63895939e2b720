from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any, Optional, Type

from sitepipe.settings import Settings
from sitepipe.site import Site
from sitepipe.utils import timings

try:
    import coloredlogs
except ModuleNotFoundError:
    coloredlogs = None

log = logging.getLogger("command")

COMMANDS: list[Type["Command"]] = []

# Settings files looked up in the project directory, in order
SETTINGS_FILES = ["settings.py", ".sitepipe.py"]

# Jekyll-style configuration files looked up in the project directory, in
# order
CONFIG_FILES = ["_config.yml", "_config.yaml", "_config.toml", "_config.json"]

LOG_FORMAT = "%(asctime)-15s %(levelname)s %(name)s %(message)s"


class Fail(BaseException):
    """
    Failure that makes spipe exit with an error message and no stack trace
    """


class Success(BaseException):
    """
    A command finished its work early, and spipe should exit successfully
    """


def register(c: Type["Command"]) -> Type["Command"]:
    COMMANDS.append(c)
    return c


class Command:
    """
    Base class for spipe subcommands
    """
    NAME: Optional[str] = None

    def __init__(self, args: argparse.Namespace):
        if self.NAME is None:
            self.NAME = self.__class__.__name__.lower()
        self.args = args
        self.setup_logging()
        self.settings = Settings()
        self.settings.BUILD_COMMAND = self.NAME

    def setup_logging(self) -> None:
        if self.args.debug:
            level = logging.DEBUG
        elif self.args.verbose:
            level = logging.INFO
        else:
            level = logging.WARN

        if coloredlogs is not None:
            coloredlogs.install(level=level, fmt=LOG_FORMAT)
        else:
            logging.basicConfig(level=level, stream=sys.stderr, format=LOG_FORMAT)

    @classmethod
    def add_subparser(cls, subparsers: "argparse._SubParsersAction[Any]") -> argparse.ArgumentParser:
        if cls.NAME is None:
            cls.NAME = cls.__name__.lower()
        if cls.__doc__ is None:
            raise RuntimeError(f"{cls.__name__} lacks a docstring")
        parser = subparsers.add_parser(cls.NAME, help=cls.__doc__.strip().splitlines()[0])
        parser.set_defaults(command=cls)
        parser.add_argument("-v", "--verbose", action="store_true", help="verbose output")
        parser.add_argument("--debug", action="store_true", help="debugging output")
        return parser

    def run(self) -> Optional[int]:
        raise NotImplementedError(f"{self.__class__.__name__}.run")

    def load_site(self) -> Site:
        # Instantiate site
        site = Site(settings=self.settings)
        with timings("Loaded site in %fs"):
            site.load()
        for warning in site.warnings:
            log.debug("warning: %s", warning)
        return site


class SiteCommand(Command):
    def __init__(self, *args: Any, **kw: Any):
        super().__init__(*args, **kw)

        # Look for extra settings
        settings_files = SETTINGS_FILES + CONFIG_FILES
        if self.args.project:
            if os.path.isfile(self.args.project):
                # If a project file is mentioned, take its directory as default
                # project root
                settings_file = os.path.abspath(self.args.project)
                settings_dir, settings_file = os.path.split(settings_file)
                settings_files = [settings_file]
            else:
                # If a project directory is mentioned, take it as default
                # project root
                settings_dir = os.path.abspath(self.args.project)
        else:
            settings_dir = os.getcwd()

        # Load the first settings file found (if any)
        for relpath in settings_files:
            abspath = os.path.join(settings_dir, relpath)
            if os.path.isfile(abspath):
                log.info("%s: loading settings", abspath)
                if abspath.endswith(".py"):
                    self.settings.load(abspath)
                else:
                    self.settings.load_config(abspath)
                break

        # Set default project root if undefined
        if self.settings.PROJECT_ROOT is None:
            self.settings.PROJECT_ROOT = settings_dir

        # Command line overrides for settings
        if self.args.content:
            self.settings.CONTENT = os.path.abspath(self.args.content)
        if self.args.output:
            self.settings.OUTPUT = os.path.abspath(self.args.output)
        if self.args.draft:
            self.settings.DRAFT_MODE = True

    @classmethod
    def add_subparser(cls, subparsers: "argparse._SubParsersAction[Any]") -> argparse.ArgumentParser:
        parser = super().add_subparser(subparsers)

        parser.add_argument("project", nargs="?",
                            help="project directory, .py settings file or _config.yml file"
                                 " (default: the current directory)")
        parser.add_argument("--content", help="content directory location. Overrides settings.CONTENT")
        parser.add_argument("-o", "--output", help="output directory location. Override settings.OUTPUT")
        parser.add_argument("--draft", action="store_true",
                            help="also load drafts, and do not ignore documents with date in the future")

        return parser
