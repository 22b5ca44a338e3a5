#!/usr/bin/env python
"""
Setup script for the linked micromaps package.
"""

from setuptools import setup, find_packages

# Core dependencies required for the package
requirements = [
    "pandas>=1.0.0",
    "numpy>=1.18.0",
    "matplotlib>=3.1.0",
    "seaborn>=0.11.0",
    "jinja2>=2.11.0",
    "pyyaml>=5.1.0",
]

setup(
    name="micromap_package",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=requirements,
    extras_require={
        "dev": ["pytest>=6.0.0", "pytest-cov>=2.10.0", "black>=20.8b1"],
    },
    entry_points={
        "console_scripts": [
            "micromap-tools=micromap_package.cli:main",
        ],
    },
    description="Layout and linking engine for linked micromaps displays",
    author="Analytics Team",
    author_email="analytics@example.com",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
    ],
    python_requires=">=3.7",
    include_package_data=True,
)
