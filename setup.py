"""
SeedGen - Synthetic Seed Data for MongoDB Entities
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="seedgen",
    version="0.1.0",
    author="Diegoproggramer",
    author_email="",
    description="🌱 Generate realistic seed data from Mongoose/Zod schemas",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/Diegoproggramer/seedgen",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Testing",
        "Topic :: Database",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
        "faker>=18.0.0",
        "pymongo>=4.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "seedgen=seedgen.cli:cli_main",
        ],
    },
    keywords="mongodb, mongoose, zod, seed, faker, fixtures, test-data",
    project_urls={
        "Bug Reports": "https://github.com/Diegoproggramer/seedgen/issues",
        "Source": "https://github.com/Diegoproggramer/seedgen",
    },
)
