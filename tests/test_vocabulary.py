"""
Tests for vocabulary datasets, weighted selection and CSV loading.
"""

from collections import Counter

import pytest

from typing_rain.rng import LcgRandom
from typing_rain.vocabulary import (
    DEFAULT_WORDS,
    Dataset,
    VocabularyEntry,
    default_dataset,
    load_vocabulary_csv,
    parse_vocabulary_csv,
    pick_weighted,
)


class StubRng:
    """Returns a fixed value from ``random()``."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


# ---------------------------------------------------------------------------
# Dataset
# ---------------------------------------------------------------------------

class TestDataset:

    def test_default_dataset_keeps_insertion_order(self):
        dataset = default_dataset()
        assert [e.id for e in dataset.entries] == list(DEFAULT_WORDS)
        assert all(e.weight == 1 and e.active for e in dataset.entries)

    def test_words_mapping_is_read_only(self):
        dataset = default_dataset()
        with pytest.raises(TypeError):
            dataset.words["new"] = {"en": "new"}

    def test_entries_without_mapping_are_dropped(self):
        words = {"a": {"en": "a"}}
        entries = [VocabularyEntry("a", {"en": "a"}), VocabularyEntry("ghost", {"en": "boo"})]
        dataset = Dataset(words, entries)
        assert [e.id for e in dataset.entries] == ["a"]
        assert "ghost" not in dataset

    def test_entry_texts_are_a_read_only_copy(self):
        texts = {"en": "sun"}
        entry = VocabularyEntry("sun", texts)
        texts["en"] = "moon"
        assert entry.text_for("en") == "sun"
        with pytest.raises(TypeError):
            entry.texts["en"] = "star"

    def test_entries_are_hashable(self):
        a = VocabularyEntry("a", {"en": "a"})
        assert a in {a}
        assert hash(a) == hash(VocabularyEntry("a", {"en": "b"}))

    def test_csv_entries_do_not_share_the_words_mapping(self):
        dataset = parse_vocabulary_csv("id,en\nsun,sun\n")
        with pytest.raises(TypeError):
            dataset.entries[0].texts["en"] = "moon"
        assert dataset.texts_for("sun") == {"en": "sun"}

    def test_texts_for_unknown_key(self):
        assert default_dataset().texts_for("nope") == {}


# ---------------------------------------------------------------------------
# Weighted selection
# ---------------------------------------------------------------------------

class TestPickWeighted:

    def test_uniform_weights_converge(self):
        entries = [VocabularyEntry(k, {"en": k}) for k in ("a", "b", "c")]
        rng = LcgRandom(2024)
        draws = 30000
        counts = Counter(pick_weighted(entries, "en", rng).id for _ in range(draws))
        for key in ("a", "b", "c"):
            assert abs(counts[key] / draws - 1 / 3) < 0.02

    def test_weights_bias_selection(self):
        entries = [
            VocabularyEntry("heavy", {"en": "heavy"}, weight=3),
            VocabularyEntry("light", {"en": "light"}, weight=1),
        ]
        rng = LcgRandom(7)
        draws = 20000
        counts = Counter(pick_weighted(entries, "en", rng).id for _ in range(draws))
        assert abs(counts["heavy"] / draws - 0.75) < 0.02

    def test_inactive_and_missing_language_are_excluded(self):
        entries = [
            VocabularyEntry("off", {"en": "off"}, active=False),
            VocabularyEntry("ko_only", {"ko": "한"}),
            VocabularyEntry("on", {"en": "on"}),
        ]
        rng = LcgRandom(1)
        assert {pick_weighted(entries, "en", rng).id for _ in range(50)} == {"on"}

    def test_empty_pool_returns_none(self):
        entries = [VocabularyEntry("ko_only", {"ko": "한"})]
        assert pick_weighted(entries, "th", LcgRandom(1)) is None
        assert pick_weighted([], "en", LcgRandom(1)) is None

    def test_walk_order_follows_pool(self):
        entries = [VocabularyEntry(k, {"en": k}) for k in ("a", "b", "c")]
        assert pick_weighted(entries, "en", StubRng(0.0)).id == "a"
        assert pick_weighted(entries, "en", StubRng(0.5)).id == "b"
        assert pick_weighted(entries, "en", StubRng(0.99)).id == "c"

    def test_exhausted_walk_returns_last(self):
        entries = [VocabularyEntry(k, {"en": k}) for k in ("a", "b")]
        assert pick_weighted(entries, "en", StubRng(1.5)).id == "b"

    def test_none_weight_counts_as_one(self):
        entries = [VocabularyEntry("a", {"en": "a"}, weight=None), VocabularyEntry("b", {"en": "b"})]
        assert pick_weighted(entries, "en", StubRng(0.49)).id == "a"
        assert pick_weighted(entries, "en", StubRng(0.51)).id == "b"


# ---------------------------------------------------------------------------
# CSV loading
# ---------------------------------------------------------------------------

CSV_TEXT = """id,ko,en,vi,th,weight,active
apple,사과,apple,táo,แอปเปิล,2,true
car,자동차,car,ô tô,รถยนต์,,
"bike","자전거","bicycle, pushbike",xe đạp,จักรยาน,abc,no
apple,dup,dup,dup,dup,1,true
empty,,,,,1,true
,,orphan,,,1,true
"""


class TestParseVocabularyCsv:

    def test_parses_rows(self):
        dataset = parse_vocabulary_csv(CSV_TEXT)
        assert [e.id for e in dataset.entries] == ["apple", "car", "bike"]

    def test_weight_and_active_columns(self):
        entries = {e.id: e for e in parse_vocabulary_csv(CSV_TEXT).entries}
        assert entries["apple"].weight == 2
        assert entries["car"].weight == 1
        assert entries["car"].active is True
        assert entries["bike"].weight == 1
        assert entries["bike"].active is False

    def test_quoted_field_with_comma(self):
        dataset = parse_vocabulary_csv(CSV_TEXT)
        assert dataset.texts_for("bike")["en"] == "bicycle, pushbike"

    def test_duplicate_ids_keep_first(self):
        dataset = parse_vocabulary_csv(CSV_TEXT)
        assert dataset.texts_for("apple")["ko"] == "사과"

    def test_header_is_case_insensitive(self):
        dataset = parse_vocabulary_csv("ID, EN \nx,hello\n")
        assert dataset.texts_for("x") == {"en": "hello"}

    def test_missing_language_columns_are_optional(self):
        dataset = parse_vocabulary_csv("id,vi\np,người\n")
        assert dataset.entries[0].texts == {"vi": "người"}

    @pytest.mark.parametrize("text", [
        "",
        "id,en\n",
        "name,en\nx,hello\n",
        "id,en\nx,\ny,\n",
    ])
    def test_malformed_tables_return_none(self, text):
        assert parse_vocabulary_csv(text) is None

    def test_crlf_line_endings(self):
        dataset = parse_vocabulary_csv("id,en\r\na,alpha\r\nb,beta\r\n")
        assert [e.id for e in dataset.entries] == ["a", "b"]

    def test_load_from_file_with_bom(self, tmp_path):
        path = tmp_path / "words.csv"
        path.write_text("\ufeffid,en\nx,hello\n", encoding="utf-8")
        dataset = load_vocabulary_csv(path)
        assert dataset.texts_for("x") == {"en": "hello"}
