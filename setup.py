#!/usr/bin/env python3
from setuptools import setup

import hapclient.const as hapclient_const

NAME = "HAP-client"
DESCRIPTION = "HomeKit Accessory Protocol client for HAP bridges on the local network"
URL = "https://github.com/hap-client/{}".format(NAME)
AUTHOR = "HAP-client contributors"


PROJECT_URLS = {
    "Bug Reports": "{}/issues".format(URL),
    "Source": "{}/tree/master".format(URL),
}


MIN_PY_VERSION = ".".join(map(str, hapclient_const.REQUIRED_PYTHON_VER))

with open("README.md", "r", encoding="utf-8") as f:
    README = f.read()


REQUIRES = ["zeroconf>=0.32.0", "aiohttp>=3.8"]


setup(
    name=NAME,
    version=hapclient_const.__version__,
    description=DESCRIPTION,
    long_description=README,
    long_description_content_type="text/markdown",
    url=URL,
    author=AUTHOR,
    packages=["hapclient"],
    package_data={"hapclient": ["resources/*.json"]},
    include_package_data=True,
    project_urls=PROJECT_URLS,
    python_requires=">={}".format(MIN_PY_VERSION),
    install_requires=REQUIRES,
    license="Apache License 2.0",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: Apache Software License",
        "Natural Language :: English",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Home Automation",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    extras_require={
        "test": ["pytest", "pytest-asyncio"],
    },
)
