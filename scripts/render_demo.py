from pathlib import Path

from darts_sync.models import SubtractScore
from darts_sync.timeline import build_match_timeline
from render.renderer import ScoreboardRenderer


def main():

    actions = [
        SubtractScore(amount=180),
        SubtractScore(amount=100),
        SubtractScore(amount=180),
        SubtractScore(amount=85),
        SubtractScore(amount=141),  # nine-darter
    ]

    timeline = build_match_timeline(actions)

    renderer = ScoreboardRenderer()
    out_dir = Path("demo_frames")

    for index, state in enumerate(timeline, start=1):
        renderer.save_png(out_dir / f"visit_{index:02d}.png", state)

    print(f"Wrote {len(timeline)} frames to {out_dir}")


if __name__ == "__main__":
    main()
