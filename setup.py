"""
Setup script for pathfinder-engine.

Pathfinder is the adaptive planning engine behind an early-learning
product. It serves three roles:

1. Memory Model - Spaced-repetition style skill strength/stability updates
2. Planner - Daily task plans from due reviews, frontier lessons and drills
3. Evidence Ingestion - Learner results with partial credit up the skill graph

The 'pathfinder' command is an operator CLI over the same engine.
"""

from setuptools import find_packages, setup

setup(
    name="pathfinder-engine",
    version="1.0.0",
    description="Adaptive task planner and memory model for early learning",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Pathfinder Learning",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy[asyncio]>=2.0.0",
        "aiosqlite>=0.19.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
        "postgres": [
            "asyncpg>=0.28.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pathfinder=pathfinder.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition adaptive planner education",
)
