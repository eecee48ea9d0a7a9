"""
LiftLog — Progression Advisor

Autoregulated progressive overload from RPE. History is newest-first:
``history[0]`` is the last session.

RPE bands (session average):
- ≤ 6.5: too easy → +5kg and reset reps at the top of the range, else +2 reps
- ≤ 7.5: good zone → +2.5kg and reset reps at the top of the range, else +1 rep
- ≤ 8.5: challenging → maintain
- > 8.5: too hard → -5kg

Four sessions at one max weight averaging RPE ≥ 8.5 count as a stall and
override the status to ATTENTION.

Only the last three sessions are searched for RPE; older RPE data never
feeds a suggestion.
"""
import re
from collections.abc import Mapping

import numpy as np

from liftlog.config import (
    DEFAULT_REP_RANGE,
    DELOAD_STEP,
    MIN_SESSIONS_FOR_SUGGESTION,
    REPS_STEP_EASY,
    REPS_STEP_GOOD,
    RPE_EASY,
    RPE_GOOD,
    RPE_HARD,
    RPE_WINDOW,
    STALL_RPE,
    STALL_WINDOW,
    TARGET_RPE,
    WEIGHT_STEP_EASY,
    WEIGHT_STEP_GOOD,
)
from liftlog.models import (
    CategorizedExercise,
    ProgressionCategories,
    ProgressionStatus,
    ProgressionSuggestion,
    Recommendation,
    RecommendationType,
    RepRange,
    RPEAnalysis,
    SessionSummary,
    as_history,
    format_number,
    round_half_up,
)
from liftlog.summary import calculate_session_summary, get_last_session_summary, has_rpe_data

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _leading_int(text: str) -> int | None:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def parse_rep_range(rep_range) -> RepRange:
    """
    "8-12" → (8, 12); "5" → (4, 6); missing or unparsable → (1, 15).
    A hyphenated range falls back per side.
    """
    default_min, default_max = DEFAULT_REP_RANGE
    if not rep_range:
        return RepRange(default_min, default_max)
    text = str(rep_range)
    if "-" in text:
        low, high = (text.split("-") + [""])[:2]
        return RepRange(_leading_int(low) or default_min, _leading_int(high) or default_max)
    target = _leading_int(text)
    if target is None:
        return RepRange(default_min, default_max)
    return RepRange(target - 1, target + 1)


def generate_recommendation(last_sets, summary: SessionSummary, rep_range: RepRange) -> Recommendation:
    """Weight/rep change from the session's average RPE and its final set."""
    if not summary.average_rpe:
        return Recommendation(
            RecommendationType.MAINTAIN,
            "Continue with current weights - no RPE data available",
        )

    avg_rpe = summary.average_rpe
    current_reps = last_sets[-1].reps if last_sets else 0
    at_top = current_reps >= rep_range.max
    reset_reps = -(current_reps - rep_range.min)

    if avg_rpe <= RPE_EASY:
        if at_top:
            return Recommendation(
                RecommendationType.INCREASE_WEIGHT,
                "RPE too low - increase weight and reset reps",
                WEIGHT_STEP_EASY, reset_reps, TARGET_RPE,
            )
        return Recommendation(
            RecommendationType.INCREASE_REPS,
            "RPE too low - add more reps",
            0, REPS_STEP_EASY, TARGET_RPE,
        )
    if avg_rpe <= RPE_GOOD:
        if at_top:
            return Recommendation(
                RecommendationType.INCREASE_WEIGHT,
                "Perfect RPE - increase weight and reset reps",
                WEIGHT_STEP_GOOD, reset_reps, TARGET_RPE,
            )
        return Recommendation(
            RecommendationType.INCREASE_REPS,
            "Perfect RPE - add one more rep",
            0, REPS_STEP_GOOD, TARGET_RPE,
        )
    if avg_rpe <= RPE_HARD:
        return Recommendation(
            RecommendationType.MAINTAIN,
            "Good intensity - maintain weight and reps",
            0, 0, TARGET_RPE,
        )
    return Recommendation(
        RecommendationType.DECREASE_WEIGHT,
        "RPE too high - reduce weight to improve form",
        DELOAD_STEP, 0, TARGET_RPE,
    )


def analyze_rpe_data(history, target_rep_range=None) -> RPEAnalysis:
    """RPE analysis of the most recent RPE-bearing session in the last few."""
    history = as_history(history)
    with_rpe = [entry for entry in history[:RPE_WINDOW] if has_rpe_data(entry)]
    if not with_rpe:
        return RPEAnalysis()

    last = with_rpe[0]
    summary = calculate_session_summary(last.sets)
    recommendation = generate_recommendation(last.sets, summary, parse_rep_range(target_rep_range))

    rpe_history = [
        avg for avg in (calculate_session_summary(e.sets).average_rpe for e in with_rpe) if avg
    ]
    rpe_trend = round_half_up(rpe_history[0] - rpe_history[1], 1) if len(rpe_history) > 1 else 0

    avg_rpe = summary.average_rpe
    fatigue = "high" if avg_rpe >= 8.5 else "moderate" if avg_rpe >= 7 else "low"
    readiness = "good" if avg_rpe <= 7 else "moderate" if avg_rpe <= 8.5 else "poor"

    return RPEAnalysis(
        has_rpe_data=True,
        recommendation=recommendation,
        last_session_rpe=avg_rpe,
        max_rpe=summary.max_rpe,
        rpe_trend=rpe_trend,
        fatigue=fatigue,
        readiness=readiness,
    )


def is_stalled(history) -> bool:
    """Same max weight for the last four sessions at an average RPE ≥ 8.5."""
    history = as_history(history)
    if len(history) < STALL_WINDOW:
        return False

    summaries = [calculate_session_summary(e.sets) for e in history[:STALL_WINDOW]]
    if len({s.max_weight for s in summaries}) != 1:
        return False

    rpes = [s.average_rpe for s in summaries if s.average_rpe]
    if not rpes:
        return False
    return float(np.mean(rpes)) >= STALL_RPE


def _status_for(recommendation: Recommendation) -> tuple:
    rtype = recommendation.type
    if rtype is RecommendationType.INCREASE_WEIGHT:
        return ProgressionStatus.READY, f"+{format_number(recommendation.weight_change)}kg"
    if rtype is RecommendationType.INCREASE_REPS:
        return ProgressionStatus.READY, f"+{recommendation.rep_change} reps"
    if rtype is RecommendationType.DECREASE_WEIGHT:
        return ProgressionStatus.ATTENTION, "Consider deload"
    return ProgressionStatus.MAINTAIN, "On track"


def get_progression_suggestion(history, target_rep_range=None, current_weight=0) -> ProgressionSuggestion:
    """
    Progression suggestion for one exercise.

    Args:
        history: sessions of the exercise, newest first
        target_rep_range: e.g. "8-12" or "5"; None means 1-15
        current_weight: fallback when the last session has no weighted sets
    """
    history = as_history(history)
    if len(history) < MIN_SESSIONS_FOR_SUGGESTION:
        return ProgressionSuggestion(
            status=ProgressionStatus.NO_DATA,
            message="Need more sessions for suggestions",
            short_message="Not enough data",
            sessions_analyzed=len(history),
        )

    analysis = analyze_rpe_data(history, target_rep_range)
    last_session = get_last_session_summary(history)

    if not analysis.has_rpe_data:
        return ProgressionSuggestion(
            status=ProgressionStatus.NO_DATA,
            message="Record RPE to get suggestions",
            short_message="No RPE data",
            sessions_analyzed=len(history),
            last_session=last_session,
        )

    recommendation = analysis.recommendation
    status, short_message = _status_for(recommendation)
    if is_stalled(history):
        status, short_message = ProgressionStatus.ATTENTION, "Stalled"

    last_weight = (last_session.max_weight if last_session else 0) or current_weight or 0
    suggested_reps = None
    if last_session and last_session.avg_reps:
        suggested_reps = round_half_up(last_session.avg_reps + recommendation.rep_change)

    return ProgressionSuggestion(
        status=status,
        message=recommendation.message,
        short_message=short_message,
        suggested_weight=last_weight + recommendation.weight_change,
        suggested_reps=suggested_reps,
        weight_change=recommendation.weight_change,
        rep_change=recommendation.rep_change,
        sessions_analyzed=len(history),
        last_session=last_session,
        recommendation_type=recommendation.type,
        last_session_rpe=analysis.last_session_rpe,
        rpe_trend=analysis.rpe_trend,
        fatigue=analysis.fatigue,
        readiness=analysis.readiness,
    )


def _field(exercise, *names, default=None):
    for name in names:
        value = exercise.get(name) if isinstance(exercise, Mapping) else getattr(exercise, name, None)
        if value is not None:
            return value
    return default


def categorize_exercises(exercises) -> ProgressionCategories:
    """
    Group exercises by progression status.

    Each exercise is a dict (or object) with ``name``, ``history`` and
    optionally ``target_rep_range`` / ``targetRepRange`` and
    ``current_weight`` / ``currentWeight``.
    """
    categories = ProgressionCategories()
    buckets = {
        ProgressionStatus.READY: categories.ready_to_progress,
        ProgressionStatus.MAINTAIN: categories.maintain,
        ProgressionStatus.ATTENTION: categories.needs_attention,
        ProgressionStatus.NO_DATA: categories.no_data,
    }
    for exercise in exercises or ():
        suggestion = get_progression_suggestion(
            _field(exercise, "history"),
            _field(exercise, "target_rep_range", "targetRepRange"),
            _field(exercise, "current_weight", "currentWeight", default=0),
        )
        buckets[suggestion.status].append(CategorizedExercise(_field(exercise, "name", default=""), suggestion))
    return categories


def format_suggestion_text(suggestion: ProgressionSuggestion | None) -> str:
    """One-line summary, e.g. "Last: 100kg × 10 @ RPE 7 → Try 105kg"."""
    if suggestion is None or suggestion.status is ProgressionStatus.NO_DATA:
        return "Complete more sessions to get suggestions"

    last = suggestion.last_session
    if last is None:
        return suggestion.message

    weight = last.max_weight
    text = f"Last: {format_number(weight)}kg × {last.avg_reps}"
    if suggestion.last_session_rpe:
        text += f" @ RPE {format_number(suggestion.last_session_rpe)}"

    if suggestion.weight_change > 0:
        text += f" → Try {format_number(weight + suggestion.weight_change)}kg"
    elif suggestion.rep_change > 0:
        text += f" → Aim for {last.avg_reps + suggestion.rep_change} reps"
    elif suggestion.weight_change < 0:
        text += f" → Consider {format_number(weight + suggestion.weight_change)}kg (deload)"
    return text
