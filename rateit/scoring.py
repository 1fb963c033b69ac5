"""Score quantization and slider math."""

from .config import SCORE_MAX, SCORE_MIN, SCORE_STEP
from .models import TrackRating

# The 21 distribution buckets: 0.0, 0.5, ..., 10.0
BUCKETS: tuple[float, ...] = tuple(i * SCORE_STEP for i in range(int(SCORE_MAX / SCORE_STEP) + 1))


def clamp(value: float, low: float = SCORE_MIN, high: float = SCORE_MAX) -> float:
    return max(low, min(high, value))


def snap_score(score: float) -> float:
    """Quantize a score to the nearest 0.5 step within 0-10.

    Ties round half away from zero so 7.25 snaps to 7.5, the way a slider
    handle reads to a user.

    Args:
        score: Raw score

    Returns:
        Snapped score
    """
    steps = score / SCORE_STEP
    rounded = int(steps + 0.5) if steps >= 0 else -int(-steps + 0.5)
    return clamp(rounded * SCORE_STEP)


def round1(value: float) -> float:
    """Round to one decimal, half away from zero (``round(x * 10) / 10``)."""
    scaled = value * 10
    rounded = int(scaled + 0.5) if scaled >= 0 else -int(-scaled + 0.5)
    return rounded / 10


def position_to_score(x: float, width: float) -> float:
    """Map a drag position along a slider track to a snapped score.

    Positions outside the track clamp to the ends.
    """
    if width <= 0:
        return SCORE_MIN
    ratio = max(0.0, min(1.0, x / width))
    return snap_score(ratio * SCORE_MAX)


def score_to_progress(score: float) -> float:
    """Fraction of the slider track filled for a score (0.0-1.0)."""
    return clamp(score) / SCORE_MAX


def track_average(tracks: list[TrackRating] | None) -> float | None:
    """Mean score of scored tracks (score > 0), or None if none are scored."""
    scored = [t.score for t in tracks or [] if t.score > 0]
    if not scored:
        return None
    return round1(sum(scored) / len(scored))


def format_score(score: float | None) -> str:
    """Format a score for display, e.g. ``8.5/10``."""
    if score is None:
        return "-"
    return f"{score:.1f}/10"
