# setup.py
from setuptools import setup, find_packages

setup(
    name="linear_descent",
    version="0.1.0",
    description="Derivative-free local search over scalar and small vector inputs",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "sympy",
        "matplotlib",
        "numpy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "linear-descent = linear_descent.cli:main",
        ],
    },
)
