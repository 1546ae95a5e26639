"""
Setup configuration for pubsub_subscriptions package.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="pubsub-subscriptions",
    version="0.1.0",
    description="List, create, publish/pull and delete Google Cloud Pub/Sub subscriptions",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5.0",
        "google-cloud-pubsub>=2.18.0",
        "google-api-core>=2.11.0",
        "google-auth>=2.22.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pubsub-subscriptions=pubsub_subscriptions.cli:main",
        ],
    },
)
