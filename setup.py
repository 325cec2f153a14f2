"""Package setup for lemma_crawler."""

from setuptools import setup, find_packages

setup(
    name="lemma-crawler",
    version="1.0.0",
    description="Time- and depth-bounded concurrent web crawler producing "
                "per-page lemma frequency tables",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",
        "beautifulsoup4>=4.12.0",
        "lxml>=5.0.0",
        "urllib3>=2.0.0",
        "colorlog>=6.8.0",
        "nltk>=3.9.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "lemma-crawler=lemma_crawler.cli:main",
        ],
    },
)
