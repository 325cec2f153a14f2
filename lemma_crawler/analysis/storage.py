"""
Storage for per-page lemma frequency tables.
"""

import csv
import urllib.parse
from pathlib import Path
from typing import Iterable

from lemma_crawler.config import CSV_HEADER
from lemma_crawler.utils.log import log


def frequency_path(url: str, output_dir: Path) -> Path:
    """Map *url* to its CSV file inside *output_dir*.

    The whole URL is form-encoded into a single file name, so every page
    gets its own flat file.
    """
    return output_dir / (urllib.parse.quote_plus(url, safe="") + ".csv")


def save_frequencies(
    rows: Iterable[tuple[str, int]],
    url: str,
    output_dir: Path,
) -> Path | None:
    """Write *rows* as ``Word,Frequency`` CSV for *url*.

    Returns the written path, or ``None`` if the file could not be
    written (the failure is logged, never raised).
    """
    path = frequency_path(url, output_dir)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerow(CSV_HEADER)
            writer.writerows(rows)
    except OSError as exc:
        log.warning("[ERR] Failed to save frequencies for %s – %s", url, exc)
        return None
    log.debug("[SAVE] %s → %s", url, path)
    return path
