"""
LiftLog — Volume Aggregator

Volume = weight × reps, summed per set, exercise, workout and week.
An exercise's volume is split evenly across the muscles it is mapped to;
exercises without a mapping land in "Uncategorized".
"""
from collections.abc import Mapping

import pandas as pd

from liftlog.config import (
    BALANCED_RANGE,
    DEFAULT_TAXONOMY,
    SLIGHT_RANGE,
    UNCATEGORIZED,
    VOLUME_WEEKS,
    MuscleTaxonomy,
)
from liftlog.models import (
    BalanceStatus,
    TrainingBalance,
    VolumeAnalytics,
    WeeklyVolume,
    as_sets,
    as_workout,
    format_number,
    parse_date,
    round_half_up,
)


def calculate_exercise_volume(sets) -> float:
    """Σ weight × reps; accepts a list of sets or a stored JSON string."""
    return sum(s.volume for s in as_sets(sets))


def calculate_workout_volume(workout) -> tuple:
    """Return ``(total, {exercise_name: volume})`` for one workout."""
    if workout is None:
        return 0, {}
    workout = as_workout(workout)
    by_exercise = {}
    total = 0
    for exercise in workout.exercises:
        volume = calculate_exercise_volume(exercise.sets)
        by_exercise[exercise.name] = by_exercise.get(exercise.name, 0) + volume
        total += volume
    return total, by_exercise


def iso_week_key(date) -> str | None:
    """ISO-8601 week as ``YYYY-Www`` (ISO year, Thursday-anchored); None for a bad date."""
    stamp = parse_date(date)
    if stamp is None:
        return None
    year, week, _ = stamp.isocalendar()
    return f"{year}-W{week:02d}"


def week_label(week_key: str) -> str:
    return f"W{week_key.split('-W')[-1]}"


def _muscles_for(name: str, muscle_group_map) -> list:
    muscles = (muscle_group_map or {}).get(name)
    if isinstance(muscles, str):
        muscles = [m.strip() for m in muscles.split(",") if m.strip()]
    return list(muscles) if muscles else [UNCATEGORIZED]


def _distribute(by_muscle: dict, name: str, volume: float, muscle_group_map) -> None:
    muscles = _muscles_for(name, muscle_group_map)
    share = volume / len(muscles)
    for muscle in muscles:
        by_muscle[muscle] = by_muscle.get(muscle, 0) + share


def aggregate_volume_by_week(workouts, muscle_group_map=None, weeks_to_include: int = VOLUME_WEEKS) -> list:
    """
    Weekly volume totals and per-muscle split.

    Returns at most ``weeks_to_include`` of the most recent ISO weeks,
    oldest first. Workouts without a usable date are skipped.
    """
    if not isinstance(workouts, (list, tuple)):
        return []

    weekly = {}
    for raw in workouts:
        workout = as_workout(raw)
        key = iso_week_key(workout.date)
        if key is None:
            continue
        week = weekly.setdefault(key, {"total": 0, "by_muscle": {}})
        for exercise in workout.exercises:
            volume = calculate_exercise_volume(exercise.sets)
            week["total"] += volume
            _distribute(week["by_muscle"], exercise.name, volume, muscle_group_map)

    if weeks_to_include <= 0:
        return []
    recent = sorted(weekly)[-weeks_to_include:]
    return [
        WeeklyVolume(key, week_label(key), weekly[key]["total"], weekly[key]["by_muscle"])
        for key in recent
    ]


def calculate_volume_by_muscle_group(workouts, muscle_group_map=None) -> dict:
    """Total volume per muscle across the given workouts."""
    if not isinstance(workouts, (list, tuple)):
        return {}
    by_muscle = {}
    for raw in workouts:
        for exercise in as_workout(raw).exercises:
            _distribute(by_muscle, exercise.name, calculate_exercise_volume(exercise.sets), muscle_group_map)
    return by_muscle


def _pct(part: float, total: float) -> int:
    return round(part / total * 100) if total > 0 else 0


def calculate_training_balance(volume_by_muscle: Mapping, taxonomy: MuscleTaxonomy = DEFAULT_TAXONOMY) -> TrainingBalance:
    """
    Push/pull and upper/lower shares as whole percentages.

    Rounding is half-to-even, so each pair always sums to 100 (or both 0).
    """
    push = pull = upper = lower = 0
    for muscle, volume in (volume_by_muscle or {}).items():
        if muscle in taxonomy.push:
            push += volume
        if muscle in taxonomy.pull:
            pull += volume
        if muscle in taxonomy.upper:
            upper += volume
        if muscle in taxonomy.lower:
            lower += volume

    return TrainingBalance(
        push=_pct(push, push + pull),
        pull=_pct(pull, push + pull),
        upper=_pct(upper, upper + lower),
        lower=_pct(lower, upper + lower),
        push_volume=push,
        pull_volume=pull,
        upper_volume=upper,
        lower_volume=lower,
    )


def get_balance_status(percentage: float) -> BalanceStatus:
    lo, hi = BALANCED_RANGE
    if lo <= percentage <= hi:
        return BalanceStatus.BALANCED
    lo, hi = SLIGHT_RANGE
    if lo <= percentage <= hi:
        return BalanceStatus.SLIGHT
    return BalanceStatus.IMBALANCED


def get_this_week_workouts(workouts, today=None) -> list:
    """Workouts that fall in the same ISO week as ``today``."""
    if not isinstance(workouts, (list, tuple)):
        return []
    current = iso_week_key(today if today is not None else pd.Timestamp.today())
    if current is None:
        return []
    return [w for w in map(as_workout, workouts) if iso_week_key(w.date) == current]


def format_volume(volume: float) -> str:
    if volume >= 1000:
        return f"{volume / 1000:.1f}k"
    return format_number(volume, grouped=True)


def build_muscle_group_map(template_exercises) -> dict:
    """
    ``{exercise_name: [muscles]}`` from template exercises whose
    ``muscleGroups`` is a comma-separated string.
    """
    mapping = {}
    for te in template_exercises or ():
        name = te.get("exerciseName") or te.get("exercise_name")
        raw = te.get("muscleGroups") or te.get("muscle_groups")
        if not name or not raw:
            continue
        muscles = _muscles_for(name, {name: raw})
        if muscles != [UNCATEGORIZED]:
            mapping[name] = muscles
    return mapping


def calculate_volume_analytics(workouts, muscle_group_map=None, today=None,
                               weeks_to_include: int = VOLUME_WEEKS,
                               taxonomy: MuscleTaxonomy = DEFAULT_TAXONOMY) -> VolumeAnalytics:
    """Weekly trend plus this week's totals, muscle split and balance."""
    weekly_trend = aggregate_volume_by_week(workouts, muscle_group_map, weeks_to_include)
    this_week = get_this_week_workouts(workouts, today)
    by_muscle = calculate_volume_by_muscle_group(this_week, muscle_group_map)
    return VolumeAnalytics(
        weekly_trend=weekly_trend,
        this_week_total=round_half_up(sum(by_muscle.values())),
        this_week_by_muscle={k: round_half_up(v) for k, v in by_muscle.items()},
        this_week_workout_count=len(this_week),
        balance=calculate_training_balance(by_muscle, taxonomy),
    )


def weekly_volume_frame(weekly_trend) -> pd.DataFrame:
    """Pivot a weekly trend to a week × muscle table with a ``total`` column."""
    if not weekly_trend:
        return pd.DataFrame()
    rows = [
        {"week": w.week_key, "muscle_group": muscle, "volume_kg": volume}
        for w in weekly_trend
        for muscle, volume in w.by_muscle.items()
    ]
    weeks = [w.week_key for w in weekly_trend]
    if rows:
        table = pd.DataFrame(rows).pivot_table(
            index="week", columns="muscle_group", values="volume_kg", aggfunc="sum", fill_value=0,
        ).reindex(weeks, fill_value=0)
    else:
        table = pd.DataFrame(index=pd.Index(weeks, name="week"))
    table.columns.name = None
    table["total"] = [w.total for w in weekly_trend]
    return table
