"""
Setup configuration for the cahn-hilliard package.
"""
from setuptools import setup, find_packages

setup(
    name="cahn-hilliard",
    version="1.0.0",
    packages=find_packages(exclude=['tests', 'tests.*', 'examples']),
    py_modules=['run_cahn_hilliard'],
    install_requires=[
        'numpy>=1.20.0',
        'matplotlib>=3.4.0',
        'numba>=0.56.0'
    ],
    description="Explicit Euler solver for the Cahn-Hilliard equation on a periodic 2D lattice",
    long_description=open('README.md').read(),
    long_description_content_type="text/markdown",
    python_requires='>=3.8',
)
