"""Setup configuration for the Naples community Discord bot."""

from setuptools import setup, find_packages

setup(
    name="naplesbot",
    version="0.1.0",
    description="A Discord community bot with permission-gated slash commands and request workflows",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.6",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "prompt_toolkit>=3.0",
        "aiomysql>=0.2",
        "PyMySQL>=1.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "naplesbot=naplesbot.main:main",
        ],
    },
)
