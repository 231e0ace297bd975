"""Setup file for development installation."""

from setuptools import setup, find_packages

setup(
    name="recruit-chat",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "fastapi",
        "pydantic>=2",
        "structlog",
        "prometheus-client",
        "opentelemetry-instrumentation-fastapi",
        "python-multipart",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
)
