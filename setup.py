#!/usr/bin/env python3
"""
Setup script for devtrack.
Installs the SDK and the command-line client.
"""

from setuptools import setup, find_packages

# Most configuration is in pyproject.toml
# This file exists for compatibility with older pip versions

setup(
    packages=find_packages(include=["devtrack_sdk", "devtrack_sdk.*", "devtrack_client", "devtrack_client.*"]),
)
