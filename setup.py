"""
couchtree setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="couchtree",
    version="1.0.0",
    description="couchtree — CouchDB design documents as plain file trees",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "couchtree=couchtree.cli:main",
        ],
    },
    install_requires=[
        "pydantic>=2.5",
        "pyyaml>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
)
