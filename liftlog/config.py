"""
LiftLog — Configuration

Read-only lookup tables for the analytics engine: tracked rep counts,
the muscle taxonomy and its push/pull/upper/lower partitions, and the
progression thresholds. Engine functions take these as keyword arguments
defaulting to the values below, so callers can vary them per call.
"""
import os
from dataclasses import dataclass

# ── Runtime defaults ─────────────────────────────────────────────────
VOLUME_WEEKS = int(os.environ.get("LIFTLOG_VOLUME_WEEKS", "8"))
HISTORY_LIMIT = int(os.environ.get("LIFTLOG_HISTORY_LIMIT", "5"))
DATA_FILE = os.environ.get("LIFTLOG_DATA_FILE", "")

# ── PR tracking ──────────────────────────────────────────────────────
TRACKED_REP_COUNTS = (1, 3, 5, 8, 10)

# ── Progression ──────────────────────────────────────────────────────
MIN_SESSIONS_FOR_SUGGESTION = 2
RPE_WINDOW = 3  # most recent sessions scanned for RPE
STALL_WINDOW = 4  # sessions that must share one max weight
STALL_RPE = 8.5

# Upper edges of the RPE bands: too easy / good zone / challenging
RPE_EASY = 6.5
RPE_GOOD = 7.5
RPE_HARD = 8.5

WEIGHT_STEP_EASY = 5
WEIGHT_STEP_GOOD = 2.5
DELOAD_STEP = -5
REPS_STEP_EASY = 2
REPS_STEP_GOOD = 1
TARGET_RPE = "7-8"

DEFAULT_REP_RANGE = (1, 15)

# ── Balance thresholds (percent) ─────────────────────────────────────
BALANCED_RANGE = (40, 60)
SLIGHT_RANGE = (30, 70)

UNCATEGORIZED = "Uncategorized"


# ═════════════════════════════════════════════════════════════════════
# MUSCLE TAXONOMY
# ═════════════════════════════════════════════════════════════════════

MUSCLE_GROUPS = (
    "Chest",
    "Back",
    "Shoulders",
    "Biceps",
    "Triceps",
    "Quads",
    "Hamstrings",
    "Glutes",
    "Core",
    "Calves",
)


@dataclass(frozen=True)
class MuscleTaxonomy:
    """Muscle names and the partitions used for balance ratios."""
    muscle_groups: tuple
    push: frozenset
    pull: frozenset
    upper: frozenset
    lower: frozenset


DEFAULT_TAXONOMY = MuscleTaxonomy(
    muscle_groups=MUSCLE_GROUPS,
    push=frozenset({"Chest", "Shoulders", "Triceps"}),
    pull=frozenset({"Back", "Biceps"}),
    upper=frozenset({"Chest", "Back", "Shoulders", "Biceps", "Triceps"}),
    lower=frozenset({"Quads", "Hamstrings", "Glutes", "Calves"}),
)
