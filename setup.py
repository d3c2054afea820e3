"""Setup script for pagestamp."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README
readme = Path("README.md").read_text(encoding="utf-8")

setup(
    name="pagestamp",
    version="1.0.0",
    description="Template stamping and selective page access for PDF and SVG documents",
    long_description=readme,
    long_description_content_type="text/markdown",
    author="Ludora Team",
    license="MIT",

    packages=find_packages(exclude=["tests*", "docs*", "examples*"]),

    python_requires=">=3.9",

    install_requires=[
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
        "PyMuPDF>=1.23.0",
        "Pillow>=10.0.0",
        "lxml>=4.9.0",
        "loguru>=0.7.0"
    ],

    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.4.0",
            "isort>=5.12.0"
        ]
    },

    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Multimedia :: Graphics",
        "Topic :: Office/Business",
    ],

    keywords="pdf svg watermark template preview",
)
