#!/usr/bin/env python

from setuptools import setup


VERSION = "0.1a1"

setup(
    name="dendropath",
    version=VERSION,
    description="XPath 1.0 queries over in-memory document trees",
    license="AGPL-3.0-or-later",
    packages=[
        "dendropath",
        "_dendropath",
        "_dendropath.plugins",
        "_dendropath.xpath",
    ],
    python_requires=">=3.10",
    install_requires=["cssselect<1.2", "lxml"],
    extras_require={"test": ["pytest"]},
)
