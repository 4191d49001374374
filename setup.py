"""Setup script for textframe package.

For development installation:
    pip install -e ".[test]"

For production installation:
    pip install .
"""

from setuptools import setup

# Read requirements from requirements.txt
with open("requirements.txt") as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]

setup(
    name="textframe",
    version="0.1.0",
    description="Query large plain text files by Unicode offset without loading them into memory",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=["textframe"],
    python_requires=">=3.12",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=8.0"],
    },
    entry_points={
        "console_scripts": ["textframe=textframe.cli:main"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Text Processing :: Linguistic",
    ],
)
