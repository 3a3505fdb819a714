#!/usr/bin/env python3
"""
Setup script for UMBRAMOL (fingerprint-screened molecule storage)
64-bit Dalke substructure fingerprints with bare/prefixed/struct RDKit buffers
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="umbramol",
    version="1.0.0",
    author="UMBRAMOL Contributors",
    author_email="",
    description="Fingerprint-screened RDKit molecule storage with fast substructure and exact-match search",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    install_requires=[
        "numpy>=1.19.0",
        "rdkit>=2020.09.1",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=3.0.0",
        ],
        "progress": [
            "tqdm>=4.0.0",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Chemistry",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
    keywords="cheminformatics substructure-search fingerprints rdkit molecule-storage",
    zip_safe=False,
)
