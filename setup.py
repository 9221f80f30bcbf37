# setup.py
from setuptools import setup, find_packages

setup(
    name="fintrack",
    version="0.1.0",
    description="A personal finance ledger with categories, transactions and monthly dashboards",
    author="Your Name",
    author_email="you@example.com",
    url="https://github.com/yourusername/fintrack",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "click>=7.0",
        "pyyaml>=5.3",
        "python-dotenv>=0.19",
        "fastapi>=0.100",
        "pydantic>=2.0",
        "uvicorn>=0.20",
        "bcrypt>=4.0",
        "python-jose>=3.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "httpx>=0.24",
        ],
    },
    entry_points={
        "console_scripts": [
            "fintrack=finance_tracker.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
