from .config import EngineConfig
from .engine import ConfirmOutcome, ConfirmResult, TypingRainEngine
from .entities import EntityStore, FallingEntity
from .matching import LANGS, TONE_MODES, any_full_equal, equals_vi, find_cross_prefix_match
from .rng import LcgRandom
from .vocabulary import (
    DEFAULT_WORDS,
    Dataset,
    VocabularyEntry,
    default_dataset,
    load_vocabulary_csv,
    parse_vocabulary_csv,
    pick_weighted,
)

__version__ = "0.1.0"
