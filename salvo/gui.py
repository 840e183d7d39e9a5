from __future__ import annotations

import logging
import sys
import threading
from typing import List, Optional

import pygame

from .battleship.game import MAX_DIMENSION
from .config import HostConfig, parse_host_config
from .errors import ConfigError, SalvoError
from .host import MatchCoordinator
from .reporting import QueueReporter, winner_text

logger = logging.getLogger(__name__)

# --------------------------- Pygame rendering ---------------------------

WINDOW_BG = (15, 18, 25)
PANEL_BG = (23, 28, 38)
TEXT = (230, 235, 245)
SUBTEXT = (155, 165, 185)
ACCENT = (58, 123, 213)
INVALID = (210, 75, 90)
VICTORY = (90, 200, 120)

WIDTH = 600
HEIGHT = 600
PADDING = 28
MAX_LINES = 14


class HostWindow:
    def __init__(self, config: HostConfig) -> None:
        pygame.init()
        pygame.display.set_caption("Salvo - Host")
        self.screen = pygame.display.set_mode((WIDTH, HEIGHT))
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("Arial", 22)
        self.font_small = pygame.font.SysFont("Arial", 18)
        self.font_big = pygame.font.SysFont("Arial", 48, bold=True)

        self.config = config
        self.dimension = config.dimension
        self.port_text = str(config.port)
        self.port_focused = False

        self.reporter = QueueReporter()
        self.worker: Optional[threading.Thread] = None
        self.state = "setup"  # "setup" | "running" | "over"
        self.error_message = ""
        self.messages: List[str] = []
        self.winner: Optional[int] = None
        self.running = True

        self.minus_rect = pygame.Rect(PADDING + 220, 150, 40, 40)
        self.plus_rect = pygame.Rect(PADDING + 320, 150, 40, 40)
        self.port_rect = pygame.Rect(PADDING + 220, 220, 140, 40)
        self.start_rect = pygame.Rect(PADDING, HEIGHT - 100, 160, 48)
        self.quit_rect = pygame.Rect(WIDTH - PADDING - 160, HEIGHT - 100, 160, 48)

    # --------------------------- Match ---------------------------
    def start_match(self) -> None:
        try:
            config = parse_host_config(str(self.dimension), self.port_text,
                                       bind=self.config.bind, timeout=self.config.timeout)
        except ConfigError as exc:
            self.reporter.error(str(exc))
            return
        coordinator = MatchCoordinator(config, reporter=self.reporter)
        self.messages = [f"Waiting for two players on port {config.port}..."]
        self.error_message = ""
        self.winner = None
        self.state = "running"
        self.worker = threading.Thread(target=self._serve, args=(coordinator,), daemon=True)
        self.worker.start()

    def _serve(self, coordinator: MatchCoordinator) -> None:
        try:
            coordinator.serve()
        except SalvoError as exc:
            # Already reported through the queue; the window goes back to setup
            logger.info("Match ended without a winner: %s", exc)

    def poll_events(self) -> None:
        event = self.reporter.try_get(0.0)
        while event is not None:
            kind, value = event
            if kind == "status":
                self.messages.append(str(value))
                self.messages = self.messages[-MAX_LINES:]
            elif kind == "error":
                self.error_message = str(value)
                self.state = "setup"
            elif kind == "game_over":
                self.winner = int(value)
                self.messages.append(winner_text(self.winner))
                self.state = "over"
            event = self.reporter.try_get(0.0)

    # --------------------------- Input ---------------------------
    def handle_click(self, pos) -> None:
        if self.quit_rect.collidepoint(pos):
            self.running = False
            return
        if self.state != "setup":
            return
        self.port_focused = self.port_rect.collidepoint(pos)
        if self.minus_rect.collidepoint(pos):
            self.dimension = max(1, self.dimension - 1)
        elif self.plus_rect.collidepoint(pos):
            self.dimension = min(MAX_DIMENSION, self.dimension + 1)
        elif self.start_rect.collidepoint(pos):
            self.start_match()

    def handle_key(self, event) -> None:
        if event.key == pygame.K_ESCAPE:
            self.running = False
        elif self.state == "setup" and event.key == pygame.K_RETURN:
            self.start_match()
        elif self.state == "setup" and self.port_focused:
            if event.key == pygame.K_BACKSPACE:
                self.port_text = self.port_text[:-1]
            elif event.unicode and event.unicode.isprintable() and len(self.port_text) < 8:
                self.port_text += event.unicode

    # --------------------------- Draw ---------------------------
    def draw_button(self, rect: pygame.Rect, label: str, color=PANEL_BG) -> None:
        pygame.draw.rect(self.screen, color, rect, border_radius=8)
        txt = self.font.render(label, True, TEXT)
        self.screen.blit(txt, (rect.centerx - txt.get_width() // 2, rect.centery - txt.get_height() // 2))

    def draw_setup(self) -> None:
        self.screen.blit(self.font.render("Board dimension", True, TEXT), (PADDING, 158))
        self.draw_button(self.minus_rect, "-")
        dim = self.font.render(str(self.dimension), True, TEXT)
        self.screen.blit(dim, (PADDING + 290 - dim.get_width() // 2, 158))
        self.draw_button(self.plus_rect, "+")
        side = 2 * self.dimension
        hint = self.font_small.render(f"{side} x {side} board", True, SUBTEXT)
        self.screen.blit(hint, (PADDING + 380, 162))

        self.screen.blit(self.font.render("Port", True, TEXT), (PADDING, 228))
        pygame.draw.rect(self.screen, PANEL_BG, self.port_rect, border_radius=6)
        if self.port_focused:
            pygame.draw.rect(self.screen, ACCENT, self.port_rect, 2, border_radius=6)
        self.screen.blit(self.font.render(self.port_text, True, TEXT), (self.port_rect.x + 10, self.port_rect.y + 8))

        if self.error_message:
            err = self.font_small.render(self.error_message, True, INVALID)
            self.screen.blit(err, (PADDING, 300))
        self.draw_button(self.start_rect, "Start", ACCENT)

    def draw_match(self) -> None:
        y = 130
        for line in self.messages:
            self.screen.blit(self.font_small.render(line, True, SUBTEXT), (PADDING, y))
            y += 26
        if self.state == "over" and self.winner is not None:
            banner = self.font_big.render(winner_text(self.winner), True, VICTORY)
            if banner.get_width() > WIDTH - 2 * PADDING:
                banner = self.font.render(winner_text(self.winner), True, VICTORY)
            self.screen.blit(banner, (WIDTH // 2 - banner.get_width() // 2, HEIGHT - 170))

    def draw(self) -> None:
        self.screen.fill(WINDOW_BG)
        title = self.font_big.render("Salvo", True, TEXT)
        self.screen.blit(title, (WIDTH // 2 - title.get_width() // 2, 40))
        if self.state == "setup":
            self.draw_setup()
        else:
            self.draw_match()
        self.draw_button(self.quit_rect, "Quit")
        pygame.display.flip()

    # --------------------------- Loop ---------------------------
    def run(self) -> None:
        while self.running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    self.running = False
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    self.handle_click(event.pos)
                elif event.type == pygame.KEYDOWN:
                    self.handle_key(event)
            self.poll_events()
            self.draw()
            self.clock.tick(30)
        pygame.quit()


# --------------------------- Entrypoints ---------------------------

def run_host_gui(config: HostConfig) -> None:
    window = HostWindow(config)
    window.run()
    # A match thread may still be blocked in accept(); quitting ends the process
    sys.exit(0)
