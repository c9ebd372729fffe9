"""
The typing-rain simulation: falling words, the spawn policy, lives, score,
the countdown and the preview/confirm protocol for typed input.

The engine is single-threaded and frame driven. A host calls ``tick`` once
per rendered frame and calls the mutation points (``on_input_changed``,
``confirm_input``, ``load_dataset``, ``on_resize``, the setters) between
ticks. Nothing here renders, sleeps, touches the network or persists.
"""

import itertools
import logging
import math
import time
from dataclasses import asdict, dataclass
from enum import Enum

from .config import (
    FALL_SPEED_RANGE,
    MAX_CONCURRENT_RANGE,
    SPAWN_INTERVAL_RANGE,
    TIME_LIMIT_RANGE,
    EngineConfig,
    clamp,
)
from .entities import EntityStore, FallingEntity, lowest
from .matching import LANGS, TONE_MODES, any_full_equal, find_cross_prefix_match
from .rng import LcgRandom
from .scheduler import H_MARGIN, SPAWN_Y, SpawnScheduler, box_width, spawn_x
from .vocabulary import Dataset, default_dataset, pick_weighted

logger = logging.getLogger(__name__)

FONT_SIZE_PX = 16


def default_measure(text):
    return len(text) * FONT_SIZE_PX * 0.6


def monotonic_ms():
    return time.monotonic() * 1000


class ConfirmOutcome(Enum):
    IGNORED = "ignored"
    HIT = "hit"
    NO_MATCH = "no_match"
    MISMATCH = "mismatch"


GUIDE_MESSAGES = {
    ConfirmOutcome.NO_MATCH: "No matching word found",
    ConfirmOutcome.MISMATCH: "Input does not fully match the word",
}


@dataclass
class ConfirmResult:
    outcome: ConfirmOutcome
    entity: FallingEntity = None
    points: int = 0


@dataclass
class Session:
    score: int = 0
    lives: int = 3
    time_left: float = 120.0
    running: bool = False


@dataclass
class Preview:
    target_id: str = None
    length: int = 0
    is_cross: bool = False
    cross_lang: str = None
    variant_text: str = None
    label: str = ""
    cross_info: str = ""


@dataclass
class Feedback:
    banner: str = None
    last_error_at: float = None
    error_until: float = 0.0
    guide_text: str = ""
    guide_until: float = 0.0


class TypingRainEngine:
    INITIAL_LIVES = 3
    FLOOR_OFFSET = 60
    MAX_TICK_DT = 0.05
    ERROR_COOLDOWN_MS = 450
    ERROR_FX_MS = 320
    GUIDE_DURATION_MS = 1000

    def __init__(
        self,
        config=None,
        measure=None,
        clock=None,
        seed=None,
        field_width=600,
        field_height=420,
        on_settings_changed=None,
        on_feedback=None,
    ):
        self.config = config or EngineConfig()
        self.measure = measure or default_measure
        self.clock = clock or monotonic_ms
        self.rng = LcgRandom(seed)
        self.field_width = field_width
        self.field_height = field_height
        self.on_settings_changed = on_settings_changed
        self.on_feedback = on_feedback

        self.dataset = default_dataset()
        self.entities = EntityStore()
        self.scheduler = SpawnScheduler()
        self.session = Session(lives=self.INITIAL_LIVES, time_left=self.config.time_limit)
        self.input = ""
        self.preview = Preview()
        self.feedback = Feedback()
        self.last_solved_id = None

        self._serial = itertools.count(1)
        self._last_ts = None

    @property
    def running(self):
        return self.session.running

    @property
    def floor_y(self):
        return self.field_height - self.FLOOR_OFFSET

    # --- Session control ---

    def start(self):
        self.reset()
        self.session.running = True
        logger.info("Session started (time limit %ss, lives %d)", self.config.time_limit, self.session.lives)
        if len(self.entities) < self.config.max_concurrent:
            self._spawn_one()

    def pause(self):
        if self.session.running:
            logger.info("Session paused")
        self.session.running = False
        self._last_ts = None

    def resume(self):
        if self.session.running:
            return True
        if self.session.time_left <= 0 or self.session.lives <= 0:
            return False
        self.session.running = True
        self._last_ts = None
        logger.info("Session resumed")
        return True

    def reset(self):
        self.entities.clear()
        self.session = Session(lives=self.INITIAL_LIVES, time_left=self.config.time_limit)
        self.input = ""
        self.preview = Preview()
        self.feedback = Feedback()
        self.last_solved_id = None
        self.scheduler.reset()
        self._last_ts = None

    def _stop(self, reason):
        self.session.running = False
        self._last_ts = None
        logger.info("Session ended: %s (score %d)", reason, self.session.score)

    # --- Spawning ---

    def _spawn_one(self):
        lang = self.config.display_lang
        entry = pick_weighted(self.dataset.entries, lang, self.rng)
        if entry is None:
            return self._abort_spawn("No active words for selected language.")

        text = entry.text_for(lang).strip()
        if not text:
            return self._abort_spawn("Selected word has empty text.")

        width = box_width(self.measure(text))
        entity = FallingEntity(
            id=f"{entry.id}_{next(self._serial)}",
            key=entry.id,
            text=text,
            x=spawn_x(self.field_width, width, self.rng),
            y=SPAWN_Y,
            vy=self.config.fall_speed,
            born_at=self.clock(),
            width=width,
        )
        self.entities.add(entity)
        logger.debug("Spawned %s at x=%s", entity.id, entity.x)
        return entity

    def _abort_spawn(self, message):
        logger.warning("Spawn aborted: %s", message)
        self.feedback.banner = message
        self._stop(message)
        return None

    # --- Tick loop ---

    def tick(self, ts=None):
        """Advance one frame. Returns whether the session is still running."""
        if not self.session.running:
            return False

        if ts is None:
            ts = self.clock()
        if self._last_ts is None:
            self._last_ts = ts
        dt = min(self.MAX_TICK_DT, max(0.0, (ts - self._last_ts) / 1000))
        self._last_ts = ts

        crossed = self.entities.advance(dt, self.floor_y)
        if crossed:
            self.session.lives = max(0, self.session.lives - len(crossed))
            logger.debug("%d word(s) reached the floor, lives now %d", len(crossed), self.session.lives)

        self.session.time_left = max(0.0, self.session.time_left - dt)

        spawn = self.scheduler.should_spawn(
            dt,
            self.session.time_left,
            self.session.lives,
            len(self.entities),
            self.config.spawn_interval_ms,
            self.config.max_concurrent,
        )
        if spawn:
            self._spawn_one()

        if self.session.running and self.session.time_left <= 0:
            self._stop("time up")
        elif self.session.running and self.session.lives <= 0:
            self._stop("out of lives")
        return self.session.running

    # --- Input, preview and confirm ---

    def _candidates(self, text):
        lang = self.config.display_lang
        tone = self.config.tone_mode
        found = []
        for entity in self.entities:
            match = find_cross_prefix_match(self.dataset.texts_for(entity.key), text, lang, tone)
            if match.ok:
                found.append((entity, match))
        return found

    def on_input_changed(self, text):
        self.input = text
        self.preview = self._compute_preview(text)
        return self.preview

    def _compute_preview(self, text):
        if not text:
            return Preview()
        candidates = self._candidates(text)
        if not candidates:
            return Preview()

        target = lowest(e for e, _ in candidates)
        match = next(m for e, m in candidates if e is target)
        cross_info = ""
        if match.is_cross:
            cross_info = f'({self.config.display_lang} ← {match.lang}: "{match.variant_text}")'
        return Preview(
            target_id=target.id,
            length=len(text),
            is_cross=match.is_cross,
            cross_lang=match.lang if match.is_cross else None,
            variant_text=match.variant_text if match.is_cross else None,
            label=f'Matching: "{target.text}"',
            cross_info=cross_info,
        )

    def highlight_length(self, entity):
        """How many leading characters of ``entity`` render as already typed."""
        if entity.id != self.preview.target_id or self.preview.is_cross:
            return 0
        return min(self.preview.length, len(entity.text))

    def score_for(self, entity):
        base = 100 + max(0, len(entity.text) - 2) * 5
        ratio = max(0.0, 1 - entity.y / max(1, self.field_height))
        return base + math.floor(50 * ratio + 0.5)

    def confirm_input(self):
        text = self.input
        if not text:
            return ConfirmResult(ConfirmOutcome.IGNORED)

        now = self.clock()
        candidates = self._candidates(text)
        if not candidates:
            self._signal_error(ConfirmOutcome.NO_MATCH, now)
            return ConfirmResult(ConfirmOutcome.NO_MATCH)

        target = lowest(e for e, _ in candidates)
        if not any_full_equal(self.dataset.texts_for(target.key), text, self.config.tone_mode):
            self._signal_error(ConfirmOutcome.MISMATCH, now)
            return ConfirmResult(ConfirmOutcome.MISMATCH, entity=target)

        self.entities.remove(target.id)
        points = 0
        # score is frozen once the last life is gone
        if self.session.lives > 0:
            points = self.score_for(target)
            self.session.score += points
        self.last_solved_id = target.key
        self.input = ""
        self.preview = Preview()
        logger.debug("Cleared %s for %d points", target.id, points)
        if self.on_feedback:
            self.on_feedback(ConfirmOutcome.HIT)
        return ConfirmResult(ConfirmOutcome.HIT, entity=target, points=points)

    def _signal_error(self, outcome, now):
        feedback = self.feedback
        if feedback.last_error_at is not None and now - feedback.last_error_at < self.ERROR_COOLDOWN_MS:
            return False
        feedback.last_error_at = now
        feedback.error_until = now + self.ERROR_FX_MS
        feedback.guide_text = GUIDE_MESSAGES[outcome]
        feedback.guide_until = now + self.GUIDE_DURATION_MS
        if self.on_feedback:
            self.on_feedback(outcome)
        return True

    def error_active(self, now=None):
        now = self.clock() if now is None else now
        return now < self.feedback.error_until

    def guide_message(self, now=None):
        now = self.clock() if now is None else now
        if now < self.feedback.guide_until:
            return self.feedback.guide_text
        return ""

    # --- Dataset and playfield ---

    def load_dataset(self, words=None, entries=None):
        """Swap the active vocabulary and purge everything that referenced the old one.

        ``words`` may be a ``Dataset``, an id -> texts mapping or ``None`` for
        the built-in vocabulary. A weighted ``entries`` list replaces the
        entries of either form.
        """
        if words is None:
            dataset = default_dataset()
        elif isinstance(words, Dataset):
            dataset = words if entries is None else Dataset(words.words, entries)
        else:
            dataset = Dataset(words, entries)
        if not len(dataset):
            logger.warning("Dataset has no entries, using the built-in vocabulary")
            dataset = default_dataset()

        self.dataset = dataset
        self.entities.clear()
        self.preview = Preview()
        self.feedback = Feedback(banner=self.feedback.banner)
        self.scheduler.reset()
        self._last_ts = None
        logger.info("Loaded dataset with %d entries", len(dataset))

        if self.session.running and self.session.time_left > 0 and self.session.lives > 0:
            self._spawn_one()

    def on_resize(self, width, height=None):
        self.field_width = width
        if height is not None:
            self.field_height = height
        self.entities.clamp_x(width, H_MARGIN)

    # --- Settings ---

    def _settings_changed(self):
        if self.on_settings_changed:
            self.on_settings_changed(self.config.to_dict())

    def set_display_language(self, code):
        if code not in LANGS:
            raise ValueError(f"Unknown language code: {code!r}")
        self.config.display_lang = code
        self._settings_changed()

    def set_tone_mode(self, mode):
        if mode not in TONE_MODES:
            raise ValueError(f"Unknown tone mode: {mode!r}")
        self.config.tone_mode = mode
        self._settings_changed()

    def set_fall_speed(self, speed):
        self.config.fall_speed = clamp(speed, FALL_SPEED_RANGE)
        self._settings_changed()

    def set_spawn_interval_ms(self, interval_ms):
        self.config.spawn_interval_ms = clamp(interval_ms, SPAWN_INTERVAL_RANGE)
        self._settings_changed()

    def set_max_concurrent(self, count):
        self.config.max_concurrent = int(clamp(count, MAX_CONCURRENT_RANGE))
        self._settings_changed()

    def set_time_limit(self, seconds):
        self.config.time_limit = clamp(seconds, TIME_LIMIT_RANGE)
        self._settings_changed()

    def snapshot(self):
        return {
            "session": asdict(self.session),
            "entities": self.entities.to_list(),
            "input": self.input,
            "preview": asdict(self.preview),
            "banner": self.feedback.banner,
            "last_solved_id": self.last_solved_id,
            "config": self.config.to_dict(),
        }
