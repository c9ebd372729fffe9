"""
Vocabulary entries, the built-in word list, weighted selection and the CSV
dataset loader.

A dataset is swapped wholesale: entries are frozen and the engine never
patches them in place. ``parse_vocabulary_csv`` returns ``None`` for a table
with no usable rows so the caller can fall back to ``default_dataset()``.
"""

import csv
import io
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from .matching import LANGS

logger = logging.getLogger(__name__)

TRUTHY = ("true", "1", "yes", "y")

DEFAULT_WORDS = {
    "apple": {"ko": "사과", "en": "apple", "vi": "táo", "th": "แอปเปิล"},
    "car": {"ko": "자동차", "en": "car", "vi": "ô tô", "th": "รถยนต์"},
    "person": {"ko": "사람", "en": "person", "vi": "người", "th": "คน"},
    "motorcycle": {"ko": "오토바이", "en": "motorcycle", "vi": "xe máy", "th": "รถมอเตอร์ไซค์"},
}


@dataclass(frozen=True)
class VocabularyEntry:
    id: str
    texts: Mapping = field(default_factory=dict, hash=False)
    weight: float = 1.0
    active: bool = True

    def __post_init__(self):
        object.__setattr__(self, "texts", MappingProxyType(dict(self.texts)))

    def text_for(self, lang):
        return self.texts.get(lang) or ""


class Dataset:
    """An ordered, immutable set of vocabulary entries.

    ``entries`` keeps insertion order, which is the selection pool order.
    ``words`` maps each id to its per-language texts for matching.
    """

    def __init__(self, words, entries=None):
        self.words = MappingProxyType({key: dict(texts) for key, texts in words.items()})
        if entries is None:
            entries = [VocabularyEntry(id=key, texts=texts) for key, texts in self.words.items()]

        kept = []
        for entry in entries:
            if entry.id not in self.words:
                logger.warning("Dropping entry %r: id missing from vocabulary mapping", entry.id)
                continue
            kept.append(entry)
        self.entries = tuple(kept)

    def __len__(self):
        return len(self.entries)

    def __contains__(self, key):
        return key in self.words

    def texts_for(self, key):
        return self.words.get(key, {})


def default_dataset():
    return Dataset(DEFAULT_WORDS)


def pick_weighted(entries, lang, rng):
    """Roulette-wheel pick among active entries that have text for ``lang``.

    Returns ``None`` when no entry is eligible.
    """
    pool = [e for e in entries if e.active is not False and e.texts.get(lang)]
    if not pool:
        return None

    total = sum(e.weight if e.weight is not None else 1 for e in pool)
    r = rng.random() * total
    for entry in pool:
        r -= entry.weight if entry.weight is not None else 1
        if r <= 0:
            return entry
    return pool[-1]


# --- CSV loading ---

def _parse_weight(raw):
    try:
        weight = float(raw.strip())
    except ValueError:
        return 1.0
    if not math.isfinite(weight) or weight <= 0:
        return 1.0
    return weight


def parse_vocabulary_csv(text):
    """Build a ``Dataset`` from CSV text with an ``id`` column and language columns.

    Optional ``weight`` and ``active`` columns are honoured. Rows without an id,
    with a duplicate id, or with no language text are skipped. Returns ``None``
    when the table has no header row, no ``id`` column or no usable rows.
    """
    if not text:
        return None

    rows = [
        row for row in csv.reader(io.StringIO(text))
        if len(row) > 1 or (len(row) == 1 and row[0].strip())
    ]
    if len(rows) < 2:
        return None

    headers = [h.strip().lower() for h in rows[0]]
    if "id" not in headers:
        return None

    def column(name):
        return headers.index(name) if name in headers else -1

    def cell(row, index):
        return row[index].strip() if 0 <= index < len(row) else ""

    id_col = column("id")
    lang_cols = [(lang, column(lang)) for lang in LANGS]
    weight_col = column("weight")
    active_col = column("active")

    words = {}
    entries = []
    for row in rows[1:]:
        key = cell(row, id_col)
        if not key or key in words:
            continue

        texts = {}
        for lang, index in lang_cols:
            value = cell(row, index)
            if value:
                texts[lang] = value
        if not texts:
            continue

        weight = _parse_weight(cell(row, weight_col)) if weight_col >= 0 else 1.0
        active_raw = cell(row, active_col).lower() if active_col >= 0 else ""
        active = active_raw == "" or active_raw in TRUTHY

        words[key] = texts
        entries.append(VocabularyEntry(id=key, texts=texts, weight=weight, active=active))

    if not entries:
        logger.warning("Vocabulary CSV contained no usable rows")
        return None

    logger.info("Parsed %d vocabulary entries from CSV", len(entries))
    return Dataset(words, entries)


def load_vocabulary_csv(path):
    path = Path(path)
    return parse_vocabulary_csv(path.read_text(encoding="utf-8-sig"))
