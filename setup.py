"""Setup script for the agent-customization Python package."""

from setuptools import setup, find_packages

setup(
    name="agent-customization",
    version="0.1.0",
    description="Prompt and command template engine for a coding agent",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"customization.config": ["customization_compiled_in.yaml"]},
    python_requires=">=3.8",
    install_requires=["PyYAML>=6.0"],
    extras_require={
        "dev": ["pytest", "black", "mypy"],
    },
    entry_points={
        "console_scripts": ["customization=customization.cli:main"],
    },
)
