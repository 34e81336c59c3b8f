"""Weekly micro-workout plan (Mon–Fri, fixed time slots) and week boundary helpers."""

from datetime import date, datetime, timedelta

WORKOUT_DAYS: tuple[str, ...] = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")

# Time slot -> exercises offered in that slot (first one is the checklist default)
SCHEDULE: dict[str, list[str]] = {
    "9:00 AM": ["Plank (2x20–30 sec)", "Russian Twists (2x12)"],
    "10:30 AM": ["Bench Press (3x8–10)", "Bent-Over Rows (3x8–10)"],
    "12:30 PM": ["Squats (3x8–10)", "Lunges (3x8/leg)"],
    "2:30 PM": ["Overhead Press (3x10–12)", "Bicep Curls (3x10–12)"],
    "4:30 PM": ["Deadlifts (3x8)", "Sit-ups (3x10–12)"],
    "6:30 PM": ["Barbell Complex (3x6)", "Barbell Complex (3x6)"],
    "8:00 PM": ["Hip Openers (20–30 sec)", "Shoulder Rolls (20–30 sec)"],
}

SLOTS_PER_WEEK = len(WORKOUT_DAYS) * len(SCHEDULE)


def get_week_start(ref: date | datetime | None = None) -> date:
    """Monday of ref's week (local date; time of day ignored). Sunday belongs to the week that started 6 days earlier."""
    if ref is None:
        ref = date.today()
    if isinstance(ref, datetime):
        ref = ref.date()
    return ref - timedelta(days=ref.weekday())


def schedule_payload() -> dict:
    return {
        "days": list(WORKOUT_DAYS),
        "slots": [{"time": t, "exercises": list(ex)} for t, ex in SCHEDULE.items()],
    }


def progress_percent(completed: int, total: int = SLOTS_PER_WEEK) -> int:
    if total <= 0:
        return 0
    return min(100, round(completed / total * 100))
