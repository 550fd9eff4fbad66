from __future__ import annotations

import argparse
import logging
import os
from typing import Dict, Optional, Tuple

import pygame

from block_blast.advisor import Hint
from block_blast.game import BlockBlastGame, GameConfig, Shape
from block_blast.logs import setup_logging
from block_blast.services import AudioService, JsonFileStore, KeyValueStore, MemoryStore, Settings, SoundEffect
from block_blast.session import GameSession


logger = logging.getLogger(__name__)

PALETTE = {
    0: (40, 40, 48),
    1: (235, 87, 87),
    2: (86, 204, 242),
    3: (111, 207, 151),
}
HINT_COLOR = (255, 215, 0)
SETTINGS_FILE = "settings.json"


def _color_for_value(v: int) -> tuple[int, int, int]:
    return PALETTE.get(v, (200, 180, 60))


def load_sounds(sound_dir: Optional[str]):
    """Build a sound player from `<sound_dir>/<effect>.wav` files, or None"""
    if not sound_dir:
        return None
    try:
        pygame.mixer.init()
    except pygame.error as exc:
        logger.warning("Audio unavailable: %s", exc)
        return None
    sounds: Dict[SoundEffect, pygame.mixer.Sound] = {}
    for effect in SoundEffect:
        path = os.path.join(sound_dir, f"{effect.value}.wav")
        if os.path.exists(path):
            sounds[effect] = pygame.mixer.Sound(path)
    logger.info("Loaded %d sound effects from %s", len(sounds), sound_dir)

    def player(effect: SoundEffect) -> None:
        sound = sounds.get(effect)
        if sound is not None:
            sound.play()

    return player


def open_store(data_dir: Optional[str]) -> KeyValueStore:
    """Settings and high score live in `<data_dir>/settings.json`; in memory without a directory"""
    if not data_dir:
        return MemoryStore()
    path = os.path.join(data_dir, SETTINGS_FILE)
    logger.info("Using settings file %s", path)
    return JsonFileStore(path)


def board_cell_at(game: BlockBlastGame, x: int, y: int, cell_size: int,
                  margin: int) -> Optional[Tuple[int, int]]:
    """Board (row, col) under pixel (x, y), or None off the board"""
    row = (y - margin) // cell_size
    col = (x - margin) // cell_size
    if not game.grid.is_inside(row, col):
        return None
    return row, col


def draw_board(screen: pygame.Surface, board, cell_size: int, margin: int) -> None:
    h, w = board.shape
    screen.fill((15, 15, 20))
    for y in range(h):
        for x in range(w):
            rect = pygame.Rect(margin + x * cell_size, margin + y * cell_size, cell_size - 1, cell_size - 1)
            pygame.draw.rect(screen, _color_for_value(int(board[y, x])), rect)


def draw_shape_outline(screen: pygame.Surface, shape: Shape, row: int, col: int, color,
                       cell_size: int, margin: int) -> None:
    for r, c in shape.cells_at(row, col):
        rect = pygame.Rect(margin + c * cell_size, margin + r * cell_size, cell_size - 1, cell_size - 1)
        pygame.draw.rect(screen, color, rect, 2)


def draw_pieces(screen: pygame.Surface, game: BlockBlastGame, cell_size: int, margin: int,
                selected_piece: int) -> None:
    # Active set stacked on the right side
    x0 = margin * 2 + game.size * cell_size
    y0 = margin
    small = cell_size // 2
    for idx, shape in enumerate(game.current_pieces):
        off_y = y0 + idx * (small * 6)
        for r, c in shape.cells:
            rect = pygame.Rect(x0 + c * small, off_y + r * small, small - 1, small - 1)
            pygame.draw.rect(screen, _color_for_value(idx + 1), rect)
        if idx == selected_piece:
            outline = pygame.Rect(x0 - 2, off_y - 2, shape.width * small + 4, shape.height * small + 4)
            pygame.draw.rect(screen, (255, 255, 255), outline, 2)


def draw_ghost(screen: pygame.Surface, game: BlockBlastGame, row: int, col: int, cell_size: int,
               margin: int, selected_piece: int) -> None:
    if not (0 <= selected_piece < len(game.current_pieces)):
        return
    shape = game.current_pieces[selected_piece]
    color = (120, 220, 140) if game.can_place(shape, row, col) else (220, 120, 120)
    draw_shape_outline(screen, shape, row, col, color, cell_size, margin)


def draw_hint(screen: pygame.Surface, game: BlockBlastGame, hint: Optional[Hint], cell_size: int,
              margin: int) -> None:
    if hint is None or hint.piece_index >= len(game.current_pieces):
        return
    shape = game.current_pieces[hint.piece_index]
    draw_shape_outline(screen, shape, hint.row, hint.col, HINT_COLOR, cell_size, margin)


def run(config: Optional[GameConfig] = None, sound_dir: Optional[str] = None,
        data_dir: Optional[str] = None) -> None:
    pygame.init()
    try:
        store = open_store(data_dir)
        audio = AudioService(Settings.load(store), load_sounds(sound_dir))
        session = GameSession(BlockBlastGame(config), store=store, audio=audio)
        game = session.game

        cell_size = 40
        margin = 20
        board_px = game.size * cell_size
        side_panel_w = 7 * cell_size
        width = margin * 3 + board_px + side_panel_w
        height = margin * 3 + board_px + 10 * 20
        screen = pygame.display.set_mode((width, height))
        pygame.display.set_caption(f"Block Blast ({game.size}x{game.size})")
        font = pygame.font.SysFont(None, 24)

        selected_piece = 0
        hint: Optional[Hint] = None

        key_to_index = {
            pygame.K_1: 0,
            pygame.K_2: 1,
            pygame.K_3: 2,
            pygame.K_KP1: 0,
            pygame.K_KP2: 1,
            pygame.K_KP3: 2,
        }

        running = True
        clock = pygame.time.Clock()
        while running:
            mx, my = pygame.mouse.get_pos()
            target = board_cell_at(game, mx, my, cell_size, margin)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key in key_to_index:
                        idx = key_to_index[event.key]
                        if idx < len(game.current_pieces):
                            selected_piece = idx
                    elif event.key == pygame.K_h:
                        hint = session.suggest_move()
                        if hint is not None:
                            selected_piece = hint.piece_index
                    elif event.key == pygame.K_u:
                        if session.undo():
                            hint = None
                    elif event.key == pygame.K_m:
                        audio.toggle_sound(store)
                    elif event.key == pygame.K_n:
                        session.reset()
                        selected_piece = 0
                        hint = None
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and target is not None:
                    outcome = session.try_place(selected_piece, *target)
                    if outcome.accepted:
                        selected_piece = 0
                        hint = None

            draw_board(screen, game.board, cell_size, margin)
            draw_hint(screen, game, hint, cell_size, margin)
            if target is not None:
                draw_ghost(screen, game, *target, cell_size, margin, selected_piece)
            draw_pieces(screen, game, cell_size, margin, selected_piece)

            stats = session.get_statistics()
            info_lines = [
                f"Score: {stats.score}",
                f"Best: {stats.best_score}",
                f"Combo: x{stats.current_combo}",
                f"Lines: {stats.total_lines_cleared}",
                f"Fill: {session.fill_ratio():.0%}",
                "Select: 1/2/3  Place: click",
                "Hint: H  Undo: U",
                "Reset: N  Sound: M",
            ]
            if hint is not None:
                info_lines.append(f"Hint confidence: {hint.confidence:.0%}")
            x_text = margin
            y_text = margin * 2 + board_px
            for i, txt in enumerate(info_lines):
                img = font.render(txt, True, (230, 230, 230))
                screen.blit(img, (x_text, y_text + i * 20))
            if session.is_game_over():
                over = font.render("Game Over - Press N to reset", True, (255, 100, 100))
                screen.blit(over, (margin, 2))

            pygame.display.flip()
            clock.tick(60)
    finally:
        pygame.quit()


def main() -> None:
    p = argparse.ArgumentParser(description="Play Block Blast")
    p.add_argument("--size", type=int, default=8)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--sounds", type=str, default=None, help="Directory with <effect>.wav files")
    p.add_argument("--data-dir", type=str, default=os.path.join(os.path.expanduser("~"), ".block_blast"),
                   help="Directory for the settings and high score file")
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args()
    setup_logging(args.verbose)
    run(GameConfig(board_size=args.size, random_seed=args.seed), args.sounds, args.data_dir)


if __name__ == "__main__":  # pragma: no cover
    main()
