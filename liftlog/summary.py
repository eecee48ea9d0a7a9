"""
LiftLog — Set Summary Calculator

Reduces the sets of one session to counts, top weight, volume and RPE
statistics. The PR engine, progression advisor and volume aggregator all
read sessions through these helpers.
"""
import numpy as np
import pandas as pd

from liftlog.models import (
    LastSession,
    SessionSummary,
    as_history,
    as_sets,
    round_half_up,
)


def calculate_session_summary(sets) -> SessionSummary:
    """
    Summarise an ordered sequence of sets.

    RPE statistics only use sets that carry a valid RPE; without any, both
    are None. Empty input gives an all-zero summary.
    """
    sets = as_sets(sets)
    if not sets:
        return SessionSummary()

    rpes = [s.rpe for s in sets if s.rpe]
    average_rpe = round_half_up(float(np.mean(rpes)), 1) if rpes else None

    return SessionSummary(
        total_sets=len(sets),
        total_reps=sum(s.reps for s in sets),
        max_weight=max(s.weight for s in sets),
        total_volume=sum(s.volume for s in sets),
        average_rpe=average_rpe,
        max_rpe=max(rpes) if rpes else None,
    )


def has_rpe_data(entry) -> bool:
    return any(s.rpe for s in entry.sets)


def get_last_session_summary(history) -> LastSession | None:
    """Summary of ``history[0]``, the most recent session."""
    history = as_history(history)
    if not history:
        return None
    last = history[0]
    summary = calculate_session_summary(last.sets)
    avg_reps = round_half_up(summary.total_reps / summary.total_sets) if summary.total_sets else 0
    return LastSession(
        date=last.date,
        max_weight=summary.max_weight,
        total_reps=summary.total_reps,
        total_sets=summary.total_sets,
        avg_reps=avg_reps,
        avg_rpe=summary.average_rpe,
    )


def session_table(history) -> pd.DataFrame:
    """One row per session with its summary columns, in history order."""
    history = as_history(history)
    if not history:
        return pd.DataFrame()
    rows = []
    for entry in history:
        summary = calculate_session_summary(entry.sets)
        rows.append({
            "date": entry.date,
            "title": entry.title,
            **summary.to_dict(),
        })
    return pd.DataFrame(rows)
