"""Setup configuration for the storefront-gateway project."""

from setuptools import setup, find_packages

setup(
    name="storefront-gateway",
    version="1.0.0",
    description="Square and Pinecone proxy routes for a nonprofit bookstore storefront",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "redis>=5.0.0",
        "requests>=2.31.0",
        "pinecone>=6.0.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.25.0",
        ],
    },
)
