"""Setup configuration for the Joinguard IRC bot."""

from setuptools import setup, find_packages

setup(
    name="joinguard",
    version="0.0.1",
    description="An IRC bot that quiets users joining from VPNs, proxies, Tor or relays",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "pydle>=1.0",
        "requests>=2.31",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "joinguard=joinguard.main:main",
        ],
    },
)
