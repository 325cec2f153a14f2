"""
Main entry point for the lemma_crawler package.

Allows running the crawler as: python -m lemma_crawler
"""

from lemma_crawler.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
