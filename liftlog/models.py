"""
LiftLog — Records and input coercion

Every engine input passes through the constructors here, which replace bad
values with safe defaults instead of raising:
- weight: missing, non-numeric or negative → 0
- reps: missing, non-numeric or non-positive → 0
- rpe: anything but a whole number in 1–10 → None

Results are dataclasses with ``to_dict()`` for whatever transport the caller
uses. Enumerations subclass ``str`` so they compare equal to their wire value.
"""
import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import NamedTuple

import pandas as pd

logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round .5 away from zero (``round()`` rounds half to even)."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def format_number(value, grouped: bool = False) -> str:
    """``100.0`` → ``"100"``, ``2.5`` → ``"2.5"``; optional thousands separators."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}" if grouped else str(value)


def date_key(value) -> str | None:
    """Normalise a str / date / datetime / Timestamp to ``YYYY-MM-DD``."""
    if value is None:
        return None
    try:
        return pd.Timestamp(value).strftime("%Y-%m-%d")
    except (ValueError, TypeError):
        return str(value)


def parse_date(value) -> pd.Timestamp | None:
    """Timestamp for a date-like value; missing or unparsable → None."""
    try:
        stamp = pd.Timestamp(value)
    except (ValueError, TypeError):
        return None
    return None if pd.isna(stamp) else stamp


def parse_sets_data(sets_data) -> list:
    """Parse a stored JSON array of sets. Malformed input gives ``[]``."""
    if not sets_data:
        return []
    if isinstance(sets_data, (list, tuple)):
        return list(sets_data)
    try:
        sets = json.loads(sets_data)
    except (TypeError, ValueError) as e:
        logger.warning("Could not parse sets data %r: %s", sets_data, e)
        return []
    return sets if isinstance(sets, list) else []


# ── Coercion ─────────────────────────────────────────────────────────

def _number(value) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = value
    else:
        try:
            num = float(str(value).strip())
        except ValueError:
            return None
    if isinstance(num, float) and not math.isfinite(num):
        return None
    return num


def coerce_weight(value) -> float:
    num = _number(value)
    return num if num is not None and num > 0 else 0


def coerce_reps(value) -> int:
    num = _number(value)
    return int(num) if num is not None and num >= 1 else 0


def coerce_rpe(value) -> int | None:
    num = _number(value)
    if num is None or num != int(num) or not 1 <= num <= 10:
        return None
    return int(num)


# ═════════════════════════════════════════════════════════════════════
# ENUMS
# ═════════════════════════════════════════════════════════════════════

class ProgressionStatus(str, Enum):
    READY = "ready"
    MAINTAIN = "maintain"
    ATTENTION = "attention"
    NO_DATA = "no_data"


class RecommendationType(str, Enum):
    INCREASE_WEIGHT = "increase_weight"
    INCREASE_REPS = "increase_reps"
    MAINTAIN = "maintain"
    DECREASE_WEIGHT = "decrease_weight"


class BalanceStatus(str, Enum):
    BALANCED = "balanced"
    SLIGHT = "slight"
    IMBALANCED = "imbalanced"


class PRKind(str, Enum):
    FIRST = "first"
    E1RM = "e1rm"
    REP_MAX = "rep_max"
    VOLUME = "volume"


@dataclass(frozen=True)
class PRType:
    """A PR category. ``reps`` is set only for rep maxes."""
    kind: PRKind
    reps: int | None = None

    @property
    def key(self) -> str:
        if self.kind is PRKind.REP_MAX:
            return f"{self.reps}rm"
        return self.kind.value

    @property
    def label(self) -> str:
        if self.kind is PRKind.REP_MAX:
            return f"{self.reps} Rep Max"
        return {
            PRKind.FIRST: "First Time",
            PRKind.E1RM: "Estimated 1RM",
            PRKind.VOLUME: "Volume PR",
        }[self.kind]

    @classmethod
    def parse(cls, key: str) -> "PRType":
        if key in ("first", "e1rm", "volume"):
            return cls(PRKind(key))
        if key.endswith("rm") and key[:-2].isdigit():
            return cls(PRKind.REP_MAX, int(key[:-2]))
        raise ValueError(f"Unknown PR type: {key!r}")

    def __str__(self) -> str:
        return self.key


FIRST = PRType(PRKind.FIRST)
E1RM = PRType(PRKind.E1RM)
VOLUME = PRType(PRKind.VOLUME)


def rep_max(reps: int) -> PRType:
    return PRType(PRKind.REP_MAX, reps)


# ═════════════════════════════════════════════════════════════════════
# SERIALISATION
# ═════════════════════════════════════════════════════════════════════

def _plain(value):
    if isinstance(value, PRType):
        return value.key
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {_plain(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class Record:
    def to_dict(self) -> dict:
        return _plain(self)


# ═════════════════════════════════════════════════════════════════════
# INPUTS
# ═════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SetRecord(Record):
    weight: float = 0
    reps: int = 0
    rpe: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "weight", coerce_weight(self.weight))
        object.__setattr__(self, "reps", coerce_reps(self.reps))
        object.__setattr__(self, "rpe", coerce_rpe(self.rpe))

    @property
    def volume(self) -> float:
        return self.weight * self.reps

    @property
    def is_working(self) -> bool:
        return self.weight > 0 and self.reps > 0

    @classmethod
    def from_dict(cls, raw: Mapping) -> "SetRecord":
        return cls(raw.get("weight"), raw.get("reps"), raw.get("rpe"))


def as_set(value) -> SetRecord:
    if isinstance(value, SetRecord):
        return value
    if isinstance(value, Mapping):
        return SetRecord.from_dict(value)
    raise TypeError(f"Expected a set mapping or SetRecord, got {type(value).__name__}")


def as_sets(sets) -> tuple:
    """Coerce a list of sets (or a stored JSON string) to SetRecords."""
    if isinstance(sets, str):
        sets = parse_sets_data(sets)
    if not isinstance(sets, (list, tuple)):
        return ()
    return tuple(as_set(s) for s in sets)


def _raw_sets(raw: Mapping):
    if raw.get("sets") is not None:
        return raw["sets"]
    return raw.get("setsData") or raw.get("sets_data")


@dataclass(frozen=True)
class SessionEntry(Record):
    """One exercise performed on one date."""
    date: object
    sets: tuple = ()
    title: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "sets", as_sets(self.sets))

    @classmethod
    def from_dict(cls, raw: Mapping) -> "SessionEntry":
        return cls(
            raw.get("date"),
            _raw_sets(raw),
            raw.get("workoutTitle") or raw.get("title"),
        )


def as_session(value) -> SessionEntry:
    if isinstance(value, SessionEntry):
        return value
    if isinstance(value, Mapping):
        return SessionEntry.from_dict(value)
    raise TypeError(f"Expected a session mapping or SessionEntry, got {type(value).__name__}")


def as_history(history) -> list:
    """Coerce an exercise history. Anything that is not a list is empty."""
    if not isinstance(history, (list, tuple)):
        return []
    return [as_session(entry) for entry in history]


@dataclass(frozen=True)
class WorkoutExercise(Record):
    name: str
    sets: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "sets", as_sets(self.sets))

    @classmethod
    def from_dict(cls, raw: Mapping) -> "WorkoutExercise":
        return cls(raw.get("name", ""), _raw_sets(raw))


def as_exercise(value) -> WorkoutExercise:
    if isinstance(value, WorkoutExercise):
        return value
    if isinstance(value, Mapping):
        return WorkoutExercise.from_dict(value)
    raise TypeError(f"Expected an exercise mapping or WorkoutExercise, got {type(value).__name__}")


@dataclass(frozen=True)
class Workout(Record):
    date: object
    exercises: tuple = ()

    def __post_init__(self):
        exercises = self.exercises if isinstance(self.exercises, (list, tuple)) else ()
        object.__setattr__(self, "exercises", tuple(as_exercise(e) for e in exercises))

    @classmethod
    def from_dict(cls, raw: Mapping) -> "Workout":
        return cls(raw.get("date"), raw.get("exercises") or ())


def as_workout(value) -> Workout:
    if isinstance(value, Workout):
        return value
    if isinstance(value, Mapping):
        return Workout.from_dict(value)
    raise TypeError(f"Expected a workout mapping or Workout, got {type(value).__name__}")


# ═════════════════════════════════════════════════════════════════════
# RESULTS
# ═════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SessionSummary(Record):
    total_sets: int = 0
    total_reps: int = 0
    max_weight: float = 0
    total_volume: float = 0
    average_rpe: float | None = None
    max_rpe: float | None = None


@dataclass(frozen=True)
class LastSession(Record):
    date: object
    max_weight: float
    total_reps: int
    total_sets: int
    avg_reps: int
    avg_rpe: float | None


@dataclass(frozen=True)
class PRRecord(Record):
    value: float
    date: object
    weight: float
    reps: int


@dataclass(frozen=True)
class PRSet(Record):
    e1rm: PRRecord | None = None
    rep_maxes: dict = field(default_factory=dict)
    volume_pr: PRRecord | None = None
    has_data: bool = False


@dataclass(frozen=True)
class SetPRCheck(Record):
    is_e1rm_pr: bool = False
    is_rep_max_pr: bool = False
    is_volume_pr: bool = False
    rep_max_type: int | None = None


@dataclass(frozen=True)
class PREvent(Record):
    exercise_name: str
    pr_type: PRType
    value: float
    previous_value: float
    weight: float
    reps: int

    @property
    def kind(self) -> PRKind:
        return self.pr_type.kind


@dataclass(frozen=True)
class EntryPRInfo(Record):
    has_pr: bool = False
    pr_types: tuple = ()


class RepRange(NamedTuple):
    min: int
    max: int


@dataclass(frozen=True)
class Recommendation(Record):
    type: RecommendationType
    message: str
    weight_change: float = 0
    rep_change: int = 0
    target_rpe: str | None = None


@dataclass(frozen=True)
class RPEAnalysis(Record):
    has_rpe_data: bool = False
    recommendation: Recommendation | None = None
    last_session_rpe: float | None = None
    max_rpe: float | None = None
    rpe_trend: float = 0
    fatigue: str | None = None
    readiness: str | None = None


@dataclass(frozen=True)
class ProgressionSuggestion(Record):
    status: ProgressionStatus
    message: str
    short_message: str
    suggested_weight: float | None = None
    suggested_reps: int | None = None
    weight_change: float = 0
    rep_change: int = 0
    sessions_analyzed: int = 0
    last_session: LastSession | None = None
    recommendation_type: RecommendationType | None = None
    last_session_rpe: float | None = None
    rpe_trend: float | None = None
    fatigue: str | None = None
    readiness: str | None = None


@dataclass(frozen=True)
class CategorizedExercise(Record):
    name: str
    suggestion: ProgressionSuggestion


@dataclass(frozen=True)
class ProgressionCategories(Record):
    ready_to_progress: list = field(default_factory=list)
    maintain: list = field(default_factory=list)
    needs_attention: list = field(default_factory=list)
    no_data: list = field(default_factory=list)

    def counts(self) -> dict:
        return {
            "total_exercises": sum(
                len(b) for b in (self.ready_to_progress, self.maintain, self.needs_attention, self.no_data)
            ),
            "ready_count": len(self.ready_to_progress),
            "maintain_count": len(self.maintain),
            "attention_count": len(self.needs_attention),
            "no_data_count": len(self.no_data),
        }


@dataclass(frozen=True)
class WeeklyVolume(Record):
    week_key: str
    label: str
    total: float = 0
    by_muscle: dict = field(default_factory=dict)


@dataclass(frozen=True)
class TrainingBalance(Record):
    push: int = 0
    pull: int = 0
    upper: int = 0
    lower: int = 0
    push_volume: float = 0
    pull_volume: float = 0
    upper_volume: float = 0
    lower_volume: float = 0


@dataclass(frozen=True)
class VolumeAnalytics(Record):
    weekly_trend: list
    this_week_total: int
    this_week_by_muscle: dict
    this_week_workout_count: int
    balance: TrainingBalance
