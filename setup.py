"""Setup script for the Artify application."""

from setuptools import setup, find_packages
import os

# Read the contents of your README file
with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

# Get the version from the package
with open(os.path.join("artify", "__init__.py"), "r") as f:
    for line in f:
        if line.startswith("__version__"):
            version = line.split('"')[1]
            break

setup(
    name="artify",
    version=version,
    author="Artify Team",
    author_email="example@example.com",
    description="Turn photos into art with AI style presets",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/username/artify",
    packages=find_packages(include=["artify", "artify.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.19.0",
        "opencv-python>=4.5.0",
        "Pillow>=8.0.0",
        "requests>=2.25.0",
    ],
    extras_require={
        "web": ["streamlit>=1.37.0"],
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "artify=artify.cli:run_cli",
            "artify-web=artify.web:run_web_app",
        ],
    },
)
