"""
Setup script for the Exa SDK
"""
from setuptools import setup, find_packages

setup(
    name="exa-sdk",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "httpx>=0.27.0",
        "pydantic>=2.8.0",
        "python-dotenv>=1.0.1",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    description="Exa SDK - thin HTTP client and MCP error formatting for the Exa search API",
    author="Exa SDK Team",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
