"""Setuptools entrypoint for tools that still call ``setup.py`` directly.

Project metadata lives in ``pyproject.toml``; this file only forwards to it.
"""

from setuptools import setup

setup()
