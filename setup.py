"""
SurfVis: Monte Carlo surface visibility estimation

Installation:
    pip install -e .
"""

from setuptools import setup, find_packages

setup(
    name="surfvis",
    version="0.1.0",
    author="SurfVis Contributors",
    description="Estimate the visible fraction of a mesh surface from a camera with stochastic ray sampling",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    python_requires=">=3.8",
    install_requires=[
        "torch>=2.0.0",
        "numpy>=1.20.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "trimesh>=3.0",
        ],
        "full": [
            "trimesh>=3.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Visualization",
    ],
    include_package_data=True,
)
