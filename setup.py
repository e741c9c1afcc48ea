"""
schemahoist: Module-Level Hoisting of Schema Construction

Rewrites Python modules so that side-effect-free schema expressions built
inside functions (``z.object({...})``, ``z.string().min(1)``, ...) are
constructed once at import time and shared:
1. Scope-aware detection of the schema namespace
2. Conservative hoist-safety analysis
3. Deduplication of identical schemas by canonical source
4. Two-phase rewrite that keeps the import prelude first
"""

from setuptools import setup, find_packages

setup(
    name="schemahoist",
    version="1.0.0",
    description="Hoist repeated schema construction out of Python functions",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="schemahoist contributors",
    python_requires=">=3.10",
    packages=find_packages(include=["schemahoist", "schemahoist.*"]),
    install_requires=[],
    extras_require={
        "dev": [
            "pytest>=7.0",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Compilers",
        "Topic :: Software Development :: Code Generators",
    ],
)
