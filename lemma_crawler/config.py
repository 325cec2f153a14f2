"""
Configuration constants for the lemma crawler.
"""

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_START_URL = "https://en.wikipedia.org/wiki/Open-source_intelligence"
DEFAULT_MAX_DEPTH = 3          # link hops from the seed page
DEFAULT_MAX_TIME = 60.0        # seconds of wall-clock time per run
DEFAULT_OUTPUT = "output"      # directory for per-page frequency CSVs

# Fixed size of the worker pool.  Every worker spends most of its time
# blocked on network I/O, so this is well above the CPU count.
MAX_WORKERS = 32

# ---------------------------------------------------------------------------
# HTTP tuning
# ---------------------------------------------------------------------------
REQUEST_TIMEOUT = 15
MAX_RETRIES = 2

# Schemes a link must use to become a crawl task
CRAWLABLE_SCHEMES = frozenset({"http", "https"})

# Content-Type values handed to the HTML parser; anything else is a
# failed acquisition and its body is never read.
HTML_CONTENT_TYPES = frozenset({
    "text/html",
    "application/xhtml+xml",
})

# Page bodies are read in chunks and truncated past this size (2 MiB)
MAX_PAGE_BYTES = 2 * 1024 * 1024
READ_CHUNK_SIZE = 64 * 1024

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

# ---------------------------------------------------------------------------
# Text analysis
# ---------------------------------------------------------------------------
STOPWORDS_LANGUAGE = "english"

# nltk resources fetched on first use: (lookup path, download id)
NLTK_RESOURCES = (
    ("corpora/wordnet", "wordnet"),
    ("corpora/omw-1.4", "omw-1.4"),
    ("corpora/stopwords", "stopwords"),
    ("taggers/averaged_perceptron_tagger_eng", "averaged_perceptron_tagger_eng"),
)

CSV_HEADER = ("Word", "Frequency")
