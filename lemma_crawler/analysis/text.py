"""
Lemma frequency analysis of page text.

Text is reduced to lowercase ASCII letters and tokenized.  Tokens are
part-of-speech tagged with nltk's perceptron tagger so WordNet can
lemmatize verbs and adjectives as well as nouns ("was" -> "be"), then
stopwords are dropped and the lemmas counted; the sorted table is
written to one CSV per page.
"""

import re
from collections import Counter
from pathlib import Path
from typing import Callable, Iterable

import nltk
from nltk.tokenize import wordpunct_tokenize

from lemma_crawler.analysis.storage import save_frequencies
from lemma_crawler.config import NLTK_RESOURCES, STOPWORDS_LANGUAGE
from lemma_crawler.utils.log import log

_NON_LETTER_RE = re.compile(r"[^a-zA-Z ]")

# First letter of a Penn Treebank tag -> WordNet part of speech
_PENN_TO_WORDNET = {"J": "a", "V": "v", "R": "r"}

Lemmatizer = Callable[[list[str]], list[str]]


def ensure_nltk_data() -> None:
    """Download the nltk corpora the analyzer needs, if missing."""
    for path, package in NLTK_RESOURCES:
        try:
            nltk.data.find(path)
        except LookupError:
            log.info("Downloading nltk resource '%s'", package)
            nltk.download(package, quiet=True)


def wordnet_pos(tag: str) -> str:
    """Map a Penn Treebank tag to a WordNet POS; anything unknown is a noun."""
    return _PENN_TO_WORDNET.get(tag[:1], "n")


def tagged_lemmatizer(
    tag: Callable[[list[str]], list[tuple[str, str]]],
    lemmatize: Callable[[str, str], str],
) -> Lemmatizer:
    """Build a lemmatizer that tags the whole token sequence first, so
    each word is looked up under its own part of speech."""

    def lemmatize_tokens(tokens: list[str]) -> list[str]:
        return [lemmatize(word, wordnet_pos(pos)) for word, pos in tag(tokens)]

    return lemmatize_tokens


def _wordnet_lemmatizer() -> Lemmatizer:
    from nltk.corpus import wordnet
    from nltk.stem import WordNetLemmatizer
    from nltk.tag.perceptron import PerceptronTagger

    # Both load lazily and neither load is thread-safe; do it here,
    # before the workers share them.
    wordnet.ensure_loaded()
    tagger = PerceptronTagger()
    return tagged_lemmatizer(tagger.tag, WordNetLemmatizer().lemmatize)


def _english_stopwords() -> frozenset[str]:
    from nltk.corpus import stopwords

    return frozenset(stopwords.words(STOPWORDS_LANGUAGE))


def prepare_text(text: str) -> str:
    """Replace everything but ASCII letters and spaces, then lowercase."""
    return _NON_LETTER_RE.sub(" ", text).lower()


def count_frequencies(lemmas: Iterable[str]) -> list[tuple[str, int]]:
    """Return ``(lemma, count)`` pairs, most frequent first."""
    return Counter(lemmas).most_common()


class PageAnalyzer:
    """
    Text-analysis sink shared by all crawl workers.

    Collaborators not passed in are built from nltk, downloading the
    corpora on first use.  After construction the analyzer holds no
    mutable state, so one instance may serve every worker thread.

    Parameters
    ----------
    output_dir : Path
        Directory receiving one frequency CSV per processed page.
    lemmatize : callable, optional
        Maps a token sequence to the lemma of each token, in order.
    stopwords : iterable of str, optional
        Words dropped before counting, whether they appear as the token
        or as its lemma.
    """

    def __init__(
        self,
        output_dir: Path,
        lemmatize: Lemmatizer | None = None,
        stopwords: Iterable[str] | None = None,
    ) -> None:
        if lemmatize is None or stopwords is None:
            ensure_nltk_data()
        self.output_dir = Path(output_dir)
        self.lemmatize = lemmatize if lemmatize is not None else _wordnet_lemmatizer()
        self.stopwords = (
            frozenset(stopwords) if stopwords is not None else _english_stopwords()
        )

    def lemmas(self, text: str) -> list[str]:
        """Tokenize and lemmatize *text*, dropping stopwords."""
        tokens = wordpunct_tokenize(prepare_text(text))
        # the full sequence is tagged so stopwords still give context
        pairs = zip(tokens, self.lemmatize(tokens))
        return [
            lemma for token, lemma in pairs
            if token not in self.stopwords and lemma not in self.stopwords
        ]

    def process(self, text: str, source_address: str) -> list[tuple[str, int]]:
        """Build and store the lemma frequency table for one page."""
        rows = count_frequencies(self.lemmas(text))
        save_frequencies(rows, source_address, self.output_dir)
        return rows
