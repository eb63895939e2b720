#!/usr/bin/env python3

from setuptools import setup

setup(
    name="sitepipe",
    python_requires=">= 3.9",
    install_requires=[
        'markdown', 'markupsafe',
        'toml', 'ruamel.yaml', 'pyyaml',
        'jinja2',
        'python_dateutil', 'python_slugify', 'pytz'],

    # http://setuptools.readthedocs.io/en/latest/setuptools.html#declaring-extras-optional-features-with-their-own-dependencies
    extras_require={
        'serve': ['livereload'],
        'colors': ['coloredlogs'],
    },
    version="0.1",
    description="Static site generation pipeline for front matter content",
    license="http://www.gnu.org/licenses/gpl-3.0.html",
    packages=["sitepipe", "sitepipe.utils", "sitepipe.cmd"],
    package_data={"sitepipe": ["templates/*"]},
    scripts=['spipe']
)
