from setuptools import setup, find_packages

setup(
    name="weave-lang",
    version="0.1.0",
    description="Weave — a small scripting language with structs, string unions and type-directed methods",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "weave=weave.cli:main",
        ],
    },
)
