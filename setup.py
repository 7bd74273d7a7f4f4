#!/usr/bin/env python3
"""
Setup script for the Agno Playground API
Installs the agno-playground command that serves validation and the Agno proxy
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    name="agno-playground",
    version="1.0.0",
    description="Agno Playground - agent configuration validation and Agno runtime streaming proxy",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),

    entry_points={
        "console_scripts": [
            "agno-playground=agno_playground.main:main",
        ],
    },

    # Dependencies
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "pydantic>=2.5.0",
        "httpx>=0.27.0",
        "loguru>=0.7.0",
        "python-dotenv>=1.0.0",
        "python-multipart>=0.0.9",
    ],

    # Optional dependencies
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },

    python_requires=">=3.9",

    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],

    keywords="agno, ai, agents, streaming, validation, playground",
)
