import logging
from pathlib import Path

import cv2
import numpy as np

from darts_sync.models import MatchState

logger = logging.getLogger(__name__)

FONT = cv2.FONT_HERSHEY_SIMPLEX
WHITE = (255, 255, 255)
GREY = (170, 170, 170)
ACCENT = (235, 99, 37)  # BGR blue
HIGHLIGHT = (0, 215, 255)


class ScoreboardRenderer:
    """
    Draws the TV-style darts scoreboard used by the overlay view.

    Layout (bottom centre of the frame):
    - title bar: match title + tournament info
    - one row per player: active marker, name, sets, legs, remaining score
    - footer: "FIRST TO N LEGS"
    """

    def __init__(self, width: int = 1920, height: int = 1080):
        if width <= 0 or height <= 0:
            raise ValueError("width and height must be positive")

        self.width = width
        self.height = height

    def render(self, state: MatchState) -> np.ndarray:
        """
        Transparent BGRA canvas with only the scoreboard painted.
        """
        canvas = np.zeros((self.height, self.width, 4), dtype=np.uint8)

        bgr = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self.draw(bgr, state, alpha=1.0)

        x1, y1, x2, y2 = self._box(bgr.shape)
        canvas[..., :3] = bgr
        canvas[y1:y2 + 1, x1:x2 + 1, 3] = 255
        return canvas

    def save_png(self, path: Path, state: MatchState):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if not cv2.imwrite(str(path), self.render(state)):
            raise RuntimeError(f"Cannot write image: {path}")

        logger.debug("Wrote overlay to %s", path)

    # ----------------------------------------------------
    # DRAWING
    # ----------------------------------------------------

    def draw(self, frame: np.ndarray, state: MatchState, alpha: float = 0.75):
        """
        Paint the scoreboard onto a BGR frame in place.
        """
        x1, y1, x2, y2 = self._box(frame.shape)

        # background box
        overlay = frame.copy()
        cv2.rectangle(overlay, (x1, y1), (x2, y2), (20, 20, 20), -1)
        cv2.rectangle(overlay, (x1, y1), (x2, y1 + 40), ACCENT, -1)
        cv2.addWeighted(overlay, alpha, frame, 1 - alpha, 0, frame)

        # title bar
        cv2.putText(frame, _ascii(state.match_title), (x1 + 15, y1 + 28), FONT, 0.7, WHITE, 2)
        info = _ascii(state.tournament_info)
        info_size, _ = cv2.getTextSize(info, FONT, 0.5, 1)
        cv2.putText(
            frame,
            info,
            (x2 - info_size[0] - 15, y1 + 26),
            FONT,
            0.5,
            WHITE,
            1,
        )

        # column headers
        header_y = y1 + 62
        cv2.putText(frame, "S", (x2 - 230, header_y), FONT, 0.5, GREY, 1)
        cv2.putText(frame, "L", (x2 - 180, header_y), FONT, 0.5, GREY, 1)

        for index, player in enumerate(state.players):
            row_y = y1 + 100 + index * 45
            colour = HIGHLIGHT if index == state.active_player_index else WHITE

            if index == state.active_player_index:
                cv2.circle(frame, (x1 + 22, row_y - 9), 7, HIGHLIGHT, -1)

            # Hershey fonts are ASCII only; the flag is left to richer overlays
            cv2.putText(frame, _ascii(player.name), (x1 + 40, row_y), FONT, 0.8, colour, 2)
            cv2.putText(frame, str(player.sets), (x2 - 232, row_y), FONT, 0.8, WHITE, 2)
            cv2.putText(frame, str(player.legs), (x2 - 182, row_y), FONT, 0.8, WHITE, 2)
            cv2.putText(frame, str(player.score), (x2 - 110, row_y), FONT, 1.0, colour, 2)

        footer = f"FIRST TO {state.first_to_legs} LEGS"
        cv2.putText(frame, footer, (x1 + 15, y2 - 12), FONT, 0.5, GREY, 1)

    def _box(self, shape):
        height, width = shape[:2]

        board_width = min(720, width - 40)
        board_height = min(200, height - 40)
        margin = 60 if height > board_height + 120 else 20

        x1 = (width - board_width) // 2
        y1 = height - board_height - margin
        return x1, y1, x1 + board_width, y1 + board_height


def _ascii(text: str) -> str:
    return text.encode("ascii", "ignore").decode("ascii").strip() or "?"
