"""Legacy entry point; package metadata lives in pyproject.toml."""

from setuptools import setup

if __name__ == "__main__":
    # `python setup.py ...` builds from the [project] table like pip does.
    setup()
