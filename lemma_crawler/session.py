"""
HTTP session creation for the crawler.

Provides sessions with:
* Automatic retry logic on 5xx errors
* A connection pool sized to the worker count
* Browser-like default headers
"""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from lemma_crawler.config import MAX_RETRIES, MAX_WORKERS, USER_AGENT


def build_session(
    verify_ssl: bool = True,
    pool_size: int = MAX_WORKERS,
) -> requests.Session:
    """Return a ``requests.Session`` with retry logic, keep-alive and a
    connection pool large enough for *pool_size* concurrent workers."""
    session = requests.Session()
    retry = Retry(
        total=MAX_RETRIES,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=frozenset({"GET", "HEAD"}),
    )
    adapter = HTTPAdapter(
        max_retries=retry,
        pool_connections=pool_size,
        pool_maxsize=pool_size,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = verify_ssl
    session.headers.update({
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
    })
    return session
