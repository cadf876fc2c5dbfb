"""
Setup script for windlines package.
"""

from setuptools import setup, find_packages

setup(
    name="windlines",
    version="0.1.0",
    description="Colored streamline renderings of gridded wind fields",
    author="Andrey",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["render_streamlines"],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20",
        "numba>=0.56",
        "matplotlib>=3.5",
    ],
    extras_require={
        "dev": ["pytest>=7.0", "black", "flake8"],
    },
)
