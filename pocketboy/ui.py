"""The pygame window: the game screen, a VRAM tile viewer and keyboard input."""

from __future__ import annotations

import os

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame  # noqa: E402

from .pipeline import XRES, YRES  # noqa: E402

SCREEN_WIDTH = 1024
SCREEN_HEIGHT = 768

TILE_COLORS = (0xFFFFFFFF, 0xFFAAAAAA, 0xFF555555, 0xFF000000)
_DEBUG_BACKGROUND = 0xFF111111
_DEBUG_GAP = 10

_KEY_BUTTONS = {
    pygame.K_z: "b",
    pygame.K_x: "a",
    pygame.K_RETURN: "start",
    pygame.K_TAB: "select",
    pygame.K_UP: "up",
    pygame.K_DOWN: "down",
    pygame.K_LEFT: "left",
    pygame.K_RIGHT: "right",
}


def _rgb(argb: int) -> tuple[int, int, int]:
    return (argb >> 16) & 0xFF, (argb >> 8) & 0xFF, argb & 0xFF


class Ui:
    """Draws the emulator's frames and feeds key presses into its gamepad."""

    scale = 4

    def __init__(self, emulator) -> None:
        self.emulator = emulator
        pygame.display.init()
        s = self.scale
        self.screen = pygame.Surface((SCREEN_WIDTH, SCREEN_HEIGHT))
        self.debug_screen = pygame.Surface((16 * 8 * s + 16 * s, 32 * 8 * s + 64 * s))
        dw, dh = self.debug_screen.get_size()
        self._debug_size = (dw * SCREEN_HEIGHT // dh, SCREEN_HEIGHT)
        self.window = pygame.display.set_mode(
            (SCREEN_WIDTH + _DEBUG_GAP + self._debug_size[0], SCREEN_HEIGHT)
        )
        pygame.display.set_caption("pocketboy")

    def draw_tile(self, surface, start: int, tile_num: int, x: int, y: int) -> None:
        """Draw one 8x8 tile read from ``start + tile_num * 16`` at (x, y)."""
        s = self.scale
        read = self.emulator.bus.read
        base = start + tile_num * 16
        for tile_y in range(0, 16, 2):
            b1 = read(base + tile_y)
            b2 = read(base + tile_y + 1)
            for bit in range(7, -1, -1):
                hi = 2 if b1 & (1 << bit) else 0
                lo = 1 if b2 & (1 << bit) else 0
                rect = pygame.Rect(x + (7 - bit) * s, y + (tile_y // 2) * s, s, s)
                surface.fill(_rgb(TILE_COLORS[hi | lo]), rect)

    def _update_debug_window(self) -> None:
        s = self.scale
        self.debug_screen.fill(_rgb(_DEBUG_BACKGROUND))
        tile_num = 0
        # 384 tiles laid out 16 wide and 24 high.
        for row in range(24):
            for col in range(16):
                self.draw_tile(
                    self.debug_screen,
                    0x8000,
                    tile_num,
                    col * 8 * s + col * s,
                    row * 8 * s + row * s,
                )
                tile_num += 1

    def update(self) -> None:
        """Redraw the game screen and the tile viewer from the current frame."""
        s = self.scale
        buffer = self.emulator.ppu.video_buffer
        for line in range(YRES):
            row = line * XRES
            for x in range(XRES):
                self.screen.fill(_rgb(buffer[x + row]), pygame.Rect(x * s, line * s, s, s))

        self._update_debug_window()

        self.window.blit(self.screen, (0, 0))
        debug = pygame.transform.scale(self.debug_screen, self._debug_size)
        self.window.blit(debug, (SCREEN_WIDTH + _DEBUG_GAP, 0))
        pygame.display.flip()

    def on_key(self, down: bool, key: int) -> None:
        button = _KEY_BUTTONS.get(key)
        if button is not None:
            setattr(self.emulator.gamepad.state, button, bool(down))

    def handle_events(self) -> None:
        """Process pending window events; closing the window ends the emulator."""
        for event in pygame.event.get():
            if event.type == pygame.KEYDOWN:
                self.on_key(True, event.key)
            elif event.type == pygame.KEYUP:
                self.on_key(False, event.key)
            elif event.type in (pygame.QUIT, getattr(pygame, "WINDOWCLOSE", pygame.QUIT)):
                self.emulator.die = True