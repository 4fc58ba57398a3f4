"""Package setup for the ZIP Tax Rate Engine."""

from setuptools import setup, find_packages

setup(
    name="ziptax-rate-engine",
    version="1.0.0",
    description="Layered sales tax rate resolution by U.S. ZIP code",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"ziptax": ["data/*.csv"]},
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "rich>=13.0",
        "pandas>=2.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "ziptax=ziptax.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Financial and Insurance Industry",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business :: Financial :: Point-Of-Sale",
    ],
    keywords="sales-tax zip-code point-of-sale excise jurisdiction",
)
