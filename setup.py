"""
Setup configuration for dupfind package.
"""

from setuptools import setup, find_namespace_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]
    # Remove comments from requirements
    requirements = [req.split("#")[0].strip() for req in requirements]

setup(
    name="dupfind",
    version="0.1.0",
    author="",
    author_email="",
    description="Fast parallel duplicate file finder with tiered hashing",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["dupfind", "dupfind.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Filesystems",
        "Topic :: Utilities",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "dupfind=dupfind.cli:main",
        ],
    },
    keywords="duplicate files finder hashing filesystem utility",
)
