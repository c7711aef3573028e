#!/usr/bin/env python3
"""
Setup configuration for Content Build Pipeline.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the contents of README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

# Read requirements from requirements.txt
requirements = []
if (this_directory / "requirements.txt").exists():
    requirements = (this_directory / "requirements.txt").read_text().strip().split('\n')
    requirements = [req.strip() for req in requirements if req.strip() and not req.startswith('#')]

setup(
    name="content-build-pipeline",
    version="1.0.0",
    description="Stage folder-per-post content into a deployable output tree with JSON manifests",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=['pipeline*']),
    py_modules=[
        'base_classes',
        'build_errors',
        'build_site',
        'compression_codecs',
        'content_build_pipeline',
        'pipeline_configs',
        'pipeline_monitoring',
        'security_validation',
        'run_tests',
    ],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Internet :: WWW/HTTP :: Site Management",
        "Topic :: Software Development :: Build Tools",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov",
            "black",
            "flake8",
            "mypy",
        ],
        "test": [
            "pytest>=6.0",
            "pytest-cov",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "build-content=build_site:main",
            "run-pipeline-tests=run_tests:main",
        ],
    },
    keywords=[
        "static-site",
        "blog",
        "content-pipeline",
        "manifest",
        "brotli",
    ],
)
