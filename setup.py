# setup.py
from setuptools import setup, find_packages
import codecs
import os

here = os.path.abspath(os.path.dirname(__file__))

with codecs.open(os.path.join(here, "README.md"), encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="PyKV4P",
    version="0.1.0",
    author="Kris Kirby",
    author_email="ke4ahr@example.com",
    description="Host-side driver for ESP32-bridged VHF/UHF radio transceivers",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/ke4ahr/PyKV4P",
    packages=find_packages(include=["pykv4p", "pykv4p.*"]),
    install_requires=[
        "pyserial>=3.5",
        "async-timeout>=4.0"
    ],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Telecommunications Industry",
        "License :: OSI Approved :: GNU Lesser General Public License v3 or later (LGPLv3+)",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
        "Topic :: Communications :: Ham Radio"
    ],
    python_requires=">=3.8",
    extras_require={
        "dev": ["pytest>=7.0", "pytest-asyncio>=0.21", "twine>=4.0"],
        "test": ["pytest>=7.0", "pytest-asyncio>=0.21"]
    },
    keywords=[
        "kv4p",
        "esp32",
        "amateurradio",
        "vhf",
        "serial"
    ],
    project_urls={
        "Bug Tracker": "https://github.com/ke4ahr/PyKV4P/issues",
        "Documentation": "https://github.com/ke4ahr/PyKV4P/wiki"
    },
    license="LGPLv3.0"
)
