"""
LiftLog — PR Engine

PRs are derived on demand from exercise history, nothing is stored:
- e1RM: Epley estimate, best across all sets
- Rep maxes: heaviest weight for exactly n reps, n in TRACKED_REP_COUNTS
- Volume PR: best single set weight × reps

"Best so far" uses strict ``>``, so on equal values the set met first in
iteration order keeps the record.
"""
import pandas as pd

from liftlog.config import TRACKED_REP_COUNTS
from liftlog.models import (
    E1RM,
    FIRST,
    VOLUME,
    EntryPRInfo,
    PREvent,
    PRRecord,
    PRSet,
    PRType,
    SetPRCheck,
    as_exercise,
    as_history,
    as_session,
    as_set,
    date_key,
    format_number,
    rep_max,
    round_half_up,
)


def calculate_e1rm(weight, reps) -> float:
    """Epley: weight × (1 + reps/30), one decimal. A single is its own 1RM."""
    if not weight or not reps or weight <= 0 or reps <= 0:
        return 0
    if reps == 1:
        return weight
    return round_half_up(weight * (1 + reps / 30), 1)


def calculate_prs_from_history(history, tracked_reps=TRACKED_REP_COUNTS) -> PRSet:
    """Best e1RM, rep maxes and single-set volume across the whole history."""
    history = as_history(history)
    if not history:
        return PRSet()

    best_e1rm = None
    best_volume = None
    rep_maxes = {}

    for entry in history:
        for s in entry.sets:
            if not s.is_working:
                continue

            e1rm = calculate_e1rm(s.weight, s.reps)
            if best_e1rm is None or e1rm > best_e1rm.value:
                best_e1rm = PRRecord(e1rm, entry.date, s.weight, s.reps)

            if s.reps in tracked_reps:
                current = rep_maxes.get(s.reps)
                if current is None or s.weight > current.weight:
                    rep_maxes[s.reps] = PRRecord(s.weight, entry.date, s.weight, s.reps)

            if best_volume is None or s.volume > best_volume.value:
                best_volume = PRRecord(s.volume, entry.date, s.weight, s.reps)

    return PRSet(
        e1rm=best_e1rm,
        rep_maxes=dict(sorted(rep_maxes.items())),
        volume_pr=best_volume,
        has_data=True,
    )


def check_set_for_prs(candidate, existing_prs: PRSet | None, tracked_reps=TRACKED_REP_COUNTS) -> SetPRCheck:
    """Classify one set against previously computed PRs."""
    s = as_set(candidate)
    if not s.is_working:
        return SetPRCheck()

    tracked = s.reps in tracked_reps
    if existing_prs is None or not existing_prs.has_data:
        return SetPRCheck(
            is_e1rm_pr=True,
            is_rep_max_pr=tracked,
            is_volume_pr=True,
            rep_max_type=s.reps if tracked else None,
        )

    e1rm = calculate_e1rm(s.weight, s.reps)
    is_e1rm_pr = e1rm > existing_prs.e1rm.value if existing_prs.e1rm else True

    is_rep_max_pr = False
    rep_max_type = None
    if tracked:
        current = existing_prs.rep_maxes.get(s.reps)
        if current is None or s.weight > current.weight:
            is_rep_max_pr = True
            rep_max_type = s.reps

    is_volume_pr = s.volume > existing_prs.volume_pr.value if existing_prs.volume_pr else True

    return SetPRCheck(is_e1rm_pr, is_rep_max_pr, is_volume_pr, rep_max_type)


def _first_time_event(exercise) -> PREvent | None:
    best_set = None
    best_e1rm = 0
    for s in exercise.sets:
        e1rm = calculate_e1rm(s.weight, s.reps)
        if e1rm > best_e1rm:
            best_e1rm = e1rm
            best_set = s
    if best_set is None:
        return None
    return PREvent(exercise.name, FIRST, best_e1rm, 0, best_set.weight, best_set.reps)


def detect_new_prs(workout_exercises, exercise_histories, tracked_reps=TRACKED_REP_COUNTS) -> list:
    """
    PR events for a candidate workout against each exercise's prior history.

    An exercise without history yields one ``first`` event for its best-e1RM
    set. Otherwise at most one event per category (e1RM, each rep max,
    volume), keeping only the best qualifying set of the workout.
    """
    exercise_histories = exercise_histories or {}
    events = []

    for raw in workout_exercises or ():
        exercise = as_exercise(raw)
        history = as_history(exercise_histories.get(exercise.name))

        if not history:
            event = _first_time_event(exercise)
            if event:
                events.append(event)
            continue

        existing = calculate_prs_from_history(history, tracked_reps)
        prev_e1rm = existing.e1rm.value if existing.e1rm else 0
        prev_volume = existing.volume_pr.value if existing.volume_pr else 0

        best_e1rm = None
        best_rep_maxes = {}
        best_volume = None

        for s in exercise.sets:
            if not s.is_working:
                continue
            check = check_set_for_prs(s, existing, tracked_reps)

            if check.is_e1rm_pr:
                e1rm = calculate_e1rm(s.weight, s.reps)
                if best_e1rm is None or e1rm > best_e1rm.value:
                    best_e1rm = PREvent(exercise.name, E1RM, e1rm, prev_e1rm, s.weight, s.reps)

            if check.is_rep_max_pr and check.rep_max_type:
                n = check.rep_max_type
                if n not in best_rep_maxes or s.weight > best_rep_maxes[n].weight:
                    previous = existing.rep_maxes[n].weight if n in existing.rep_maxes else 0
                    best_rep_maxes[n] = PREvent(exercise.name, rep_max(n), s.weight, previous, s.weight, n)

            if check.is_volume_pr:
                if best_volume is None or s.volume > best_volume.value:
                    best_volume = PREvent(exercise.name, VOLUME, s.volume, prev_volume, s.weight, s.reps)

        if best_e1rm:
            events.append(best_e1rm)
        events.extend(best_rep_maxes[n] for n in sorted(best_rep_maxes))
        if best_volume:
            events.append(best_volume)

    return events


def get_entry_pr_info(entry, all_prs: PRSet | None, tracked_reps=TRACKED_REP_COUNTS) -> EntryPRInfo:
    """
    Which PRs a history entry holds.

    A PR belongs to an entry when the record's date equals the entry's date
    and one of the entry's sets reproduces the recorded value. Two sessions on
    the same date cannot be told apart, so both may claim the badge.
    """
    if entry is None or all_prs is None:
        return EntryPRInfo()
    entry = as_session(entry)
    day = date_key(entry.date)

    def on_day(record):
        return record is not None and date_key(record.date) == day

    pr_types = []
    for s in entry.sets:
        if not s.is_working:
            continue

        if on_day(all_prs.e1rm) and calculate_e1rm(s.weight, s.reps) == all_prs.e1rm.value:
            if E1RM not in pr_types:
                pr_types.append(E1RM)

        for n in tracked_reps:
            record = all_prs.rep_maxes.get(n)
            if on_day(record) and s.reps == n and s.weight == record.weight:
                if rep_max(n) not in pr_types:
                    pr_types.append(rep_max(n))

        if on_day(all_prs.volume_pr) and s.volume == all_prs.volume_pr.value:
            if VOLUME not in pr_types:
                pr_types.append(VOLUME)

    return EntryPRInfo(has_pr=bool(pr_types), pr_types=tuple(pr_types))


# ═════════════════════════════════════════════════════════════════════
# DISPLAY HELPERS
# ═════════════════════════════════════════════════════════════════════

def _as_pr_type(pr_type) -> PRType | None:
    if isinstance(pr_type, PRType):
        return pr_type
    try:
        return PRType.parse(pr_type)
    except ValueError:
        return None


def get_pr_type_label(pr_type) -> str:
    parsed = _as_pr_type(pr_type)
    return parsed.label if parsed else str(pr_type)


def format_pr_value(pr_type, value) -> str:
    if _as_pr_type(pr_type) == VOLUME:
        return f"{format_number(value, grouped=True)} kg"
    return f"{format_number(value)} kg"


def pr_table(exercise_histories, tracked_reps=TRACKED_REP_COUNTS) -> pd.DataFrame:
    """One row per exercise with its PRs, strongest e1RM first."""
    rows = []
    for name, history in (exercise_histories or {}).items():
        prs = calculate_prs_from_history(history, tracked_reps)
        if not prs.has_data or prs.e1rm is None:
            continue
        row = {
            "exercise": name,
            "e1rm": prs.e1rm.value,
            "top_set": f"{format_number(prs.e1rm.weight)}kg x {prs.e1rm.reps}",
            "date": prs.e1rm.date,
            "volume_pr": prs.volume_pr.value if prs.volume_pr else 0,
        }
        for n in tracked_reps:
            record = prs.rep_maxes.get(n)
            row[f"{n}rm"] = record.weight if record else None
        rows.append(row)
    if not rows:
        return pd.DataFrame()
    table = pd.DataFrame(rows).sort_values("e1rm", ascending=False).reset_index(drop=True)
    table.index = table.index + 1
    return table
