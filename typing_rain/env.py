import math
import os
import string
import unicodedata

import gymnasium as gym
import numpy as np
import pygame
import pygame.gfxdraw

from .config import EngineConfig
from .engine import ConfirmOutcome, TypingRainEngine
from .matching import strip_vi_diacritics
from .scheduler import H_MARGIN

if __name__ != "__main__":
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")


class TypingRainEnv(gym.Env):
    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    user_guide = (
        "Controls: type a falling word in any of its languages and press Enter. "
        "F2 starts a new round, Esc pauses."
    )

    game_description = (
        "Words rain down the screen in Korean, English, Vietnamese or Thai. "
        "Type one before it hits the floor; three misses and the round is over."
    )

    auto_advance = True

    def __init__(self, render_mode="rgb_array", config=None, dataset=None, max_input_length=32):
        super().__init__()

        # Screen dimensions (the whole screen is the playfield)
        self.WIDTH, self.HEIGHT = 640, 420
        self.FPS = self.metadata["render_fps"]
        self.BOX_HEIGHT = 28
        self.MAX_INPUT_LENGTH = max_input_length

        # Pygame setup
        pygame.init()
        pygame.font.init()
        self.screen = pygame.Surface((self.WIDTH, self.HEIGHT))
        self.clock = pygame.time.Clock()
        fonts = "notosanscjkkr,nanumgothic,malgungothic,notosansthai,tahoma,arialunicodems,dejavusans"
        self.font_word = pygame.font.SysFont(fonts, 16)
        self.font_ui = pygame.font.SysFont(fonts, 18, bold=True)
        self.font_large = pygame.font.SysFont(fonts, 40, bold=True)

        # Colors
        self.COLOR_BG_TOP = (11, 18, 32)
        self.COLOR_BG_BOTTOM = (24, 38, 60)
        self.COLOR_BOX = (30, 41, 59)
        self.COLOR_BOX_BORDER = (71, 85, 105)
        self.COLOR_TARGET = (16, 185, 129)
        self.COLOR_TEXT = (229, 231, 235)
        self.COLOR_TYPED = (110, 231, 183)
        self.COLOR_SCORE = (250, 204, 21)
        self.COLOR_LIFE = (248, 113, 113)
        self.COLOR_ERROR = (239, 68, 68)
        self.COLOR_FLOOR = (51, 65, 85)
        self.COLOR_BANNER = (254, 243, 199)

        # Initialize state variables
        self.sim_time_ms = 0.0
        self.steps = 0
        self.particles = []
        self.game_over_message = None

        self.engine = TypingRainEngine(
            config=config or EngineConfig(),
            measure=lambda text: self.font_word.size(text)[0],
            clock=lambda: self.sim_time_ms,
            field_width=self.WIDTH,
            field_height=self.HEIGHT,
        )
        if dataset is not None:
            self.engine.load_dataset(dataset)

        self.observation_space = gym.spaces.Box(
            low=0, high=255, shape=(self.HEIGHT, self.WIDTH, 3), dtype=np.uint8
        )
        self._build_action_space()

        self.reset()
        self.validate_implementation()

    def _build_action_space(self):
        # (typed text, submit flag); the charset covers every spelling the matcher folds onto a vocabulary word
        chars = set(string.ascii_letters + " ")
        for texts in self.engine.dataset.words.values():
            for text in texts.values():
                for form in (text, unicodedata.normalize("NFD", text), strip_vi_diacritics(text)):
                    chars.update(form, form.lower(), form.upper())
        self.action_space = gym.spaces.Tuple((
            gym.spaces.Text(min_length=0, max_length=self.MAX_INPUT_LENGTH, charset="".join(sorted(chars))),
            gym.spaces.Discrete(2),
        ))

    def load_dataset(self, dataset):
        self.engine.load_dataset(dataset)
        self._build_action_space()

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)
        if seed is not None:
            self.engine.rng.seed(seed)

        self.sim_time_ms = 0.0
        self.steps = 0
        self.particles = []
        self.game_over_message = None

        self.engine.start()
        self.engine.tick(self.sim_time_ms)

        return self._get_observation(), self._get_info()

    def step(self, action):
        text, submit = action[0], int(action[1]) == 1
        reward = 0.0
        lives_before = self.engine.session.lives

        # --- Handle Input ---
        if text != self.engine.input:
            self.engine.on_input_changed(text)

        if submit:
            result = self.engine.confirm_input()
            if result.outcome is ConfirmOutcome.HIT:
                # SFX: word_clear
                reward += 1 + result.points / 100
                self._create_particles(result.entity)
            elif result.outcome is not ConfirmOutcome.IGNORED:
                # SFX: error_buzz
                reward -= 0.1

        # --- Update Game Logic ---
        self.steps += 1
        self.sim_time_ms += 1000 / self.FPS
        self.engine.tick(self.sim_time_ms)
        self._update_particles()

        lives_lost = lives_before - self.engine.session.lives
        if lives_lost > 0:
            # SFX: life_lost
            reward -= lives_lost

        # --- Check Termination ---
        session = self.engine.session
        terminated = not self.engine.running and (
            session.time_left <= 0 or session.lives <= 0 or bool(self.engine.feedback.banner)
        )
        if terminated:
            if self.engine.feedback.banner:
                self.game_over_message = "NO WORDS"
            elif session.lives <= 0:
                self.game_over_message = "GAME OVER"
            else:
                self.game_over_message = "TIME'S UP"

        return (
            self._get_observation(),
            reward,
            terminated,
            False,
            self._get_info()
        )

    def _create_particles(self, entity):
        cx = entity.x + entity.width / 2
        cy = entity.y + self.BOX_HEIGHT / 2
        for _ in range(16):
            angle = self.np_random.uniform(0, 2 * math.pi)
            speed = self.np_random.uniform(1, 4)
            self.particles.append({
                "pos": np.array([cx, cy], dtype=np.float32),
                "vel": np.array([math.cos(angle), math.sin(angle)], dtype=np.float32) * speed,
                "lifetime": 20,
            })

    def _update_particles(self):
        self.particles = [p for p in self.particles if p["lifetime"] > 0]
        for p in self.particles:
            p["lifetime"] -= 1
            p["pos"] += p["vel"]
            p["vel"][1] += 0.15  # Gravity

    def _get_observation(self):
        self._render_background()
        self._render_game()
        self._render_ui()

        if self.game_over_message:
            self._render_game_over()

        arr = pygame.surfarray.array3d(self.screen)
        return np.transpose(arr, (1, 0, 2)).astype(np.uint8)

    def _render_background(self):
        for y in range(self.HEIGHT):
            interp = y / self.HEIGHT
            color = tuple(
                int(top * (1 - interp) + bottom * interp)
                for top, bottom in zip(self.COLOR_BG_TOP, self.COLOR_BG_BOTTOM)
            )
            pygame.draw.line(self.screen, color, (0, y), (self.WIDTH, y))

        floor_y = int(self.engine.floor_y)
        pygame.draw.line(self.screen, self.COLOR_FLOOR, (0, floor_y), (self.WIDTH, floor_y), 2)

    def _render_game(self):
        preview = self.engine.preview
        for entity in self.engine.entities:
            rect = pygame.Rect(int(entity.x), int(entity.y), entity.width, self.BOX_HEIGHT)
            is_target = entity.id == preview.target_id
            border = self.COLOR_TARGET if is_target else self.COLOR_BOX_BORDER
            pygame.draw.rect(self.screen, self.COLOR_BOX, rect, border_radius=6)
            pygame.draw.rect(self.screen, border, rect, 2 if is_target else 1, border_radius=6)

            # Typed prefix in a brighter colour, the rest plain
            k = self.engine.highlight_length(entity)
            text_x = rect.x + (rect.width - self.font_word.size(entity.text)[0]) // 2
            text_y = rect.centery - self.font_word.get_height() // 2
            if k > 0:
                head_surf = self.font_word.render(entity.text[:k], True, self.COLOR_TYPED)
                self.screen.blit(head_surf, (text_x, text_y))
                text_x += head_surf.get_width()
            if k < len(entity.text):
                tail_surf = self.font_word.render(entity.text[k:], True, self.COLOR_TEXT)
                self.screen.blit(tail_surf, (text_x, text_y))

        for p in self.particles:
            pos = p["pos"].astype(int)
            alpha = int(255 * (p["lifetime"] / 20))
            pygame.gfxdraw.filled_circle(self.screen, pos[0], pos[1], 2, (*self.COLOR_TARGET, alpha))

    def _render_ui(self):
        session = self.engine.session

        # Score
        score_text = self.font_ui.render(f"SCORE: {session.score}", True, self.COLOR_SCORE)
        self.screen.blit(score_text, (10, 10))

        # Time
        time_text = self.font_ui.render(f"TIME: {math.ceil(session.time_left)}", True, self.COLOR_TEXT)
        self.screen.blit(time_text, ((self.WIDTH - time_text.get_width()) // 2, 10))

        # Lives
        for i in range(session.lives):
            cx = self.WIDTH - 20 - i * 22
            pygame.gfxdraw.filled_circle(self.screen, cx, 20, 8, self.COLOR_LIFE)
            pygame.gfxdraw.aacircle(self.screen, cx, 20, 8, self.COLOR_LIFE)

        # Input bar
        now = self.sim_time_ms
        bar = pygame.Rect(H_MARGIN, self.engine.floor_y + 10, self.WIDTH - 2 * H_MARGIN, 30)
        bar_border = self.COLOR_ERROR if self.engine.error_active(now) else self.COLOR_BOX_BORDER
        pygame.draw.rect(self.screen, self.COLOR_BOX, bar, border_radius=8)
        pygame.draw.rect(self.screen, bar_border, bar, 2, border_radius=8)
        input_surf = self.font_word.render(self.engine.input or "Type then press Enter...", True,
                                           self.COLOR_TEXT if self.engine.input else self.COLOR_BOX_BORDER)
        self.screen.blit(input_surf, (bar.x + 10, bar.centery - input_surf.get_height() // 2))

        # Preview / guide line under the bar
        guide = self.engine.guide_message(now)
        preview = self.engine.preview
        if guide:
            line = self.font_word.render(guide, True, self.COLOR_ERROR)
            self.screen.blit(line, (bar.x + 4, bar.bottom + 2))
        elif preview.target_id:
            line = self.font_word.render(f"{preview.label} {preview.cross_info}".strip(), True, self.COLOR_TYPED)
            self.screen.blit(line, (bar.x + 4, bar.bottom + 2))

        if self.engine.feedback.banner:
            banner = self.font_ui.render(self.engine.feedback.banner, True, self.COLOR_BANNER)
            self.screen.blit(banner, ((self.WIDTH - banner.get_width()) // 2, 40))

    def _render_game_over(self):
        overlay = pygame.Surface((self.WIDTH, self.HEIGHT), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 150))

        text = self.font_large.render(self.game_over_message, True, self.COLOR_TEXT)
        text_rect = text.get_rect(center=(self.WIDTH / 2, self.HEIGHT / 2))

        self.screen.blit(overlay, (0, 0))
        self.screen.blit(text, text_rect)

    def _get_info(self):
        session = self.engine.session
        return {
            "score": session.score,
            "lives": session.lives,
            "time_left": session.time_left,
            "steps": self.steps,
            "entities": len(self.engine.entities),
            "last_solved_id": self.engine.last_solved_id,
            "banner": self.engine.feedback.banner,
        }

    def close(self):
        pygame.quit()

    def validate_implementation(self):
        """
        Call this at the end of __init__ to verify implementation.
        """
        # Test action space
        assert len(self.action_space.spaces) == 2
        text, submit = self.action_space.sample()
        assert isinstance(text, str) and len(text) <= self.MAX_INPUT_LENGTH

        # Test observation space
        test_obs = self._get_observation()
        assert test_obs.shape == (self.HEIGHT, self.WIDTH, 3)
        assert test_obs.dtype == np.uint8

        # Test reset
        obs, info = self.reset()
        assert obs.shape == (self.HEIGHT, self.WIDTH, 3)
        assert isinstance(info, dict)
        assert info["entities"] <= self.engine.config.max_concurrent

        # Test step
        obs, reward, term, trunc, info = self.step((text, submit))
        assert obs.shape == (self.HEIGHT, self.WIDTH, 3)
        assert isinstance(reward, (int, float))
        assert isinstance(term, bool)
        assert trunc is False
        assert isinstance(info, dict)

        self.reset()
        print("✓ Implementation validated successfully")


if __name__ == "__main__":
    # To run and play the game manually
    env = TypingRainEnv(render_mode="rgb_array")

    # --- Pygame setup for human play ---
    pygame.display.set_caption("Typing Rain")
    screen = pygame.display.set_mode((env.WIDTH, env.HEIGHT))
    clock = pygame.time.Clock()
    pygame.key.start_text_input()

    obs, info = env.reset()
    typed = ""
    quit_requested = False

    print(env.user_guide)

    while not quit_requested:
        submit = 0

        # --- Event handling ---
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                quit_requested = True
            elif event.type == pygame.TEXTINPUT:
                typed = (typed + event.text)[:env.MAX_INPUT_LENGTH]
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_BACKSPACE:
                    typed = typed[:-1]
                elif event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                    submit = 1
                elif event.key == pygame.K_F2 and not env.engine.running:
                    print("Starting new round.")
                    obs, info = env.reset()
                    typed = ""
                elif event.key == pygame.K_ESCAPE:
                    if env.engine.running:
                        env.engine.pause()
                    else:
                        env.engine.resume()

        # --- Environment step ---
        was_running = env.engine.running
        obs, reward, terminated, truncated, info = env.step((typed, submit))
        typed = env.engine.input
        if was_running and terminated:
            print(f"Round over! Final Score: {info['score']}")

        # --- Rendering ---
        surf = pygame.surfarray.make_surface(np.transpose(obs, (1, 0, 2)))
        screen.blit(surf, (0, 0))
        pygame.display.flip()

        # --- Frame rate ---
        clock.tick(env.FPS)

    env.close()
