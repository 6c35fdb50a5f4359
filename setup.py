from setuptools import setup, find_packages

setup(
    name="entprep-core",
    version="0.1.0",
    packages=find_packages(include=["entprep", "entprep.*"]),
    install_requires=[
        "aiohttp>=3.8.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "python-dotenv>=0.19.0",
        "pyyaml>=6.0",
        "redis>=5.0.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    python_requires=">=3.9",
)
