"""
Setup script for quizmastery.

quizmastery is the mastery-tracking and quiz-session engine of an adaptive
quiz platform. It serves three roles:

1. Quiz Engine - Check answers and run topic quiz sessions
2. Mastery Tracking - Fold completed sessions into per-topic mastery
3. Cohort Analytics - Summaries for instructor and admin dashboards

The 'quizmastery' command is the CLI entry point; the HTTP API is served
from quizmastery.api.main:app.
"""

from setuptools import find_packages, setup

setup(
    name="quizmastery",
    version="1.0.0",
    description="Mastery tracking and quiz session engine for adaptive quizzes",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Quiz Mastery",
    packages=find_packages(include=["quizmastery", "quizmastery.*"]),
    py_modules=["config", "main"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # API
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "quizmastery=quizmastery.cli.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="quiz mastery learning analytics education",
)
