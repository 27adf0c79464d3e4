#!/usr/bin/env python3
import setuptools

setuptools.setup(
    name="gogroup",
    version="0.1.0",
    packages=["gogroup"],
    python_requires=">=3.11",
    install_requires=[
        "click>=8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gogroup = gogroup.cli:main",
        ],
    },
    author="",
    description="Command-line tool to check and fix the grouping of imports in Go source files",
    license="MIT",
)
