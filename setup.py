#!/usr/bin/env python
# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import re
import typing as tp
from pathlib import Path
from setuptools import setup
from setuptools import find_packages


# read requirements

requirements: tp.Dict[str, tp.List[str]] = {}
for extra in ["dev", "bench", "main"]:
    requirements[extra] = Path(f"requirements/{extra}.txt").read_text().splitlines()


# build long description

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()


# find version

init_str = Path("swarmanneal/__init__.py").read_text()
match = re.search(r"^__version__ = \"(?P<version>[\w\.]+?)\"$", init_str, re.MULTILINE)
assert match is not None, "Could not find version in swarmanneal/__init__.py"
version = match.group("version")


# setup
setup(
    name="swarmanneal",
    version=version,
    license="MIT",
    description="Firefly swarm and simulated annealing optimizers for continuous black-box functions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["swarmanneal", "swarmanneal.*"]),
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering",
        "Programming Language :: Python",
    ],
    install_requires=requirements["main"],
    extras_require={
        "all": requirements["dev"] + requirements["bench"],
        "dev": requirements["dev"] + requirements["bench"],
        "benchmark": requirements["bench"],
    },
    package_data={"swarmanneal": ["py.typed"]},
    python_requires=">=3.8",
)
