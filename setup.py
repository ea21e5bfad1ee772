#!/usr/bin/env python3
from setuptools import setup

setup(
    name="zkbarrier",
    version="0.1.0",
    description="Distributed barriers on top of ZooKeeper",
    author="zkbarrier developers",
    license="GPL-3.0-or-later",
    python_requires=">=3.8",
    packages=["zkbarrier"],
    install_requires=["kazoo"],
    extras_require={"tests": ["pytest"]},
    entry_points={"console_scripts": ["zkbarrier=zkbarrier.__main__:main"]},
)
