#!/usr/bin/env python3
import os.path
import runpy

from setuptools import setup, find_packages

here = os.path.abspath(os.path.dirname(__file__))

with open(os.path.join(here, "README.rst"), encoding="utf-8") as f:
    long_description = f.read()

version_mod = runpy.run_path("netsasl/version.py")

setup(
    name="netsasl",
    version=version_mod["__version__"],
    description="Pure-python, protocol agnostic client-side SASL mechanisms",
    long_description=long_description,
    license="LGPLv3+",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.6",
        "Programming Language :: Python :: 3.7",
        "Programming Language :: Python :: 3.8",
        "License :: OSI Approved :: GNU Lesser General Public License v3 or later (LGPLv3+)",
        "Topic :: Security",
    ],
    keywords="sasl authentication scram digest-md5 library",
    packages=find_packages(exclude=["tests*"]),
    python_requires=">=3.6",
    extras_require={
        "test": ["pytest"],
    },
)
