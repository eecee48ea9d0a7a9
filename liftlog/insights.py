"""
LiftLog — Insights Orchestrator
Run manually: python -m liftlog.insights path/to/history.json

Input file layout (camelCase or snake_case keys):
    {
      "histories": {"Bench Press": [{"date": "2025-01-03", "sets": [...]}, ...]},
      "workouts": [{"date": "2025-01-03", "exercises": [{"name": ..., "sets": [...]}]}],
      "muscleGroupMap": {"Bench Press": ["Chest", "Triceps"]},
      "templateExercises": [{"exerciseName": ..., "muscleGroups": "Chest, Triceps"}],
      "targetRepRanges": {"Bench Press": "8-12"}
    }
"""
import json
import sys
from pathlib import Path

import pandas as pd

from liftlog.config import DATA_FILE, HISTORY_LIMIT, VOLUME_WEEKS
from liftlog.models import as_history, parse_date
from liftlog.progression import categorize_exercises, format_suggestion_text
from liftlog.prs import calculate_prs_from_history, format_pr_value, pr_table
from liftlog.volume import (
    build_muscle_group_map,
    calculate_volume_analytics,
    format_volume,
    get_balance_status,
)


def _recency(entry) -> tuple:
    stamp = parse_date(entry.date)
    return (True, stamp) if stamp is not None else (False, pd.Timestamp.min)


def newest_first(history) -> list:
    """Sort a history by date, most recent session first; undated sessions last."""
    return sorted(as_history(history), key=_recency, reverse=True)


def build_insights(
    histories: dict,
    workouts: list = None,
    muscle_group_map: dict = None,
    target_rep_ranges: dict = None,
    today=None,
    history_limit: int = HISTORY_LIMIT,
    weeks_to_include: int = VOLUME_WEEKS,
) -> dict:
    """
    Combine progression, PRs and volume into one payload:
    1. Order each exercise history newest-first
    2. Suggest progression from the last ``history_limit`` sessions
    3. Compute PRs from the full history
    4. Aggregate workout volume and training balance
    """
    target_rep_ranges = target_rep_ranges or {}
    ordered = {name: newest_first(history) for name, history in (histories or {}).items()}

    exercises = [
        {
            "name": name,
            "history": history[:history_limit],
            "target_rep_range": target_rep_ranges.get(name),
        }
        for name, history in sorted(ordered.items())
    ]
    categories = categorize_exercises(exercises)

    return {
        "summary": categories.counts(),
        "categories": categories,
        "prs": {name: calculate_prs_from_history(history) for name, history in ordered.items()},
        "pr_table": pr_table(ordered),
        "volume": calculate_volume_analytics(
            workouts or [], muscle_group_map, today=today, weeks_to_include=weeks_to_include,
        ),
    }


def _pick(data: dict, *keys, default=None):
    for key in keys:
        if key in data:
            return data[key]
    return default


def load_insights_file(path) -> dict:
    """Read an insights input file and run ``build_insights`` on it."""
    data = json.loads(Path(path).read_text())
    muscle_map = _pick(data, "muscleGroupMap", "muscle_group_map")
    if muscle_map is None:
        muscle_map = build_muscle_group_map(_pick(data, "templateExercises", "template_exercises", default=[]))
    return build_insights(
        _pick(data, "histories", default={}),
        workouts=_pick(data, "workouts", default=[]),
        muscle_group_map=muscle_map,
        target_rep_ranges=_pick(data, "targetRepRanges", "target_rep_ranges", default={}),
        today=_pick(data, "today"),
    )


def print_report(insights: dict) -> None:
    summary = insights["summary"]
    categories = insights["categories"]

    print(f"\n{'='*50}")
    print("📊 Progression:")
    print(f"   Exercises: {summary['total_exercises']}")
    print(f"   🟢 Ready: {summary['ready_count']} | 🔵 Maintain: {summary['maintain_count']} | "
          f"🟠 Attention: {summary['attention_count']} | ⬜ No data: {summary['no_data_count']}")
    for bucket, icon in (
        (categories.ready_to_progress, "🟢"),
        (categories.maintain, "🔵"),
        (categories.needs_attention, "🟠"),
    ):
        for item in bucket:
            print(f"   {icon} {item.name}: {item.suggestion.short_message} — {format_suggestion_text(item.suggestion)}")

    table = insights["pr_table"]
    if not table.empty:
        print("\n🏆 Top PRs:")
        for _, row in table.head(5).iterrows():
            print(f"   {row['exercise']}: {row['top_set']} (e1RM {format_pr_value('e1rm', row['e1rm'])})")

    volume = insights["volume"]
    balance = volume.balance
    print("\n📦 This week:")
    print(f"   Workouts: {volume.this_week_workout_count} | Volume: {format_volume(volume.this_week_total)} kg")
    print(f"   Push/Pull: {balance.push}/{balance.pull} ({get_balance_status(balance.push).value})")
    print(f"   Upper/Lower: {balance.upper}/{balance.lower} ({get_balance_status(balance.upper).value})")
    if volume.weekly_trend:
        print("\n📈 Weekly trend:")
        for week in volume.weekly_trend:
            print(f"   {week.label}: {format_volume(week.total)} kg")


def run_report(path) -> dict:
    print("🔄 LiftLog Insights — Starting...")
    print(f"\n📥 Loading {path}...")
    insights = load_insights_file(path)
    print(f"   {insights['summary']['total_exercises']} exercises, "
          f"{len(insights['volume'].weekly_trend)} weeks of volume")
    print_report(insights)
    return insights


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    path = args[0] if args else DATA_FILE
    if not path:
        print("❌ No input file. Pass a path or set LIFTLOG_DATA_FILE.")
        sys.exit(1)
    try:
        run_report(path)
    except Exception as e:
        print(f"\n❌ Insights FAILED: {e}")
        sys.exit(1)
    print("\nDone.")
