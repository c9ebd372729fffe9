import pytest

from helpers import TWO_WORDS, FakeClock
from typing_rain.config import EngineConfig
from typing_rain.engine import TypingRainEngine


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_engine(clock):
    def factory(words=None, **config):
        engine = TypingRainEngine(config=EngineConfig(**config), clock=clock, seed=42)
        if words is not None:
            engine.load_dataset(words)
        return engine
    return factory


@pytest.fixture
def engine(make_engine):
    """English display, two words sharing a prefix, session not started."""
    return make_engine(TWO_WORDS, display_lang="en")
