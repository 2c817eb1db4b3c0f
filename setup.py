"""Setup configuration for devmetrics"""

from setuptools import setup, find_packages

setup(
    name="dev-metrics",
    version="0.1.0",
    description=(
        "CLI tool for weekly GitHub development metrics: commits, pull requests, "
        "deployments and optional Asana tasks, exported as JSON and SVG charts."
    ),
    author="Dev Metrics Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
        "python-dateutil>=2.8",
        "matplotlib>=3.6",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "dev-metrics=devmetrics.main:main",
        ],
    },
)
