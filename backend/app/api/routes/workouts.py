"""Workouts API: weekly checklist entries (list, toggle/upsert, reset week, progress)."""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.models.workout import Workout
from app.schemas.workout import UpsertResult, WeekProgress, WorkoutList, WorkoutOut, WorkoutUpsert
from app.services.schedule import SLOTS_PER_WEEK, WORKOUT_DAYS, get_week_start, progress_percent

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/workouts", tags=["workouts"])


def _row_to_response(row: Workout) -> WorkoutOut:
    return WorkoutOut(
        id=row.id,
        day=row.day,
        time=row.time,
        exercise=row.exercise,
        completed=bool(row.completed),
        week_start=row.week_start.isoformat(),
    )


async def _find_slot(session: AsyncSession, user_id: str, day: str, time: str, week_start: date) -> Workout | None:
    r = await session.execute(
        select(Workout).where(
            Workout.user_id == user_id,
            Workout.day == day,
            Workout.time == time,
            Workout.week_start == week_start,
        )
    )
    return r.scalar_one_or_none()


async def _upsert_slot(
    session: AsyncSession,
    user_id: str,
    day: str,
    time: str,
    exercise: str,
    completed: bool,
    week_start: date,
) -> tuple[Workout, bool]:
    """Update the slot's row in place or insert it. Returns (row, created)."""
    existing = await _find_slot(session, user_id, day, time, week_start)
    if existing is None:
        row = Workout(
            user_id=user_id,
            day=day,
            time=time,
            exercise=exercise,
            completed=completed,
            week_start=week_start,
        )
        try:
            async with session.begin_nested():
                session.add(row)
                await session.flush()
            return row, True
        except IntegrityError:
            # Concurrent toggle inserted the same slot first; fall through and update it
            existing = await _find_slot(session, user_id, day, time, week_start)
            if existing is None:
                raise
    existing.completed = completed
    existing.exercise = exercise
    await session.flush()
    return existing, False


@router.get(
    "",
    response_model=WorkoutList,
    summary="List checklist entries for a week",
    responses={401: {"description": "Not authenticated"}},
)
async def list_workouts(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    week_start: date | None = None,
) -> WorkoutList:
    """Entries for the given week (default: current week), ordered by time slot then day."""
    week = week_start or get_week_start()
    try:
        r = await session.execute(
            select(Workout)
            .where(Workout.user_id == user.id, Workout.week_start == week)
            .order_by(Workout.time, Workout.day)
        )
        rows = r.scalars().all()
    except SQLAlchemyError as e:
        logger.exception("Error fetching workouts: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch workouts") from e
    return WorkoutList(workouts=[_row_to_response(row) for row in rows])


@router.post(
    "",
    response_model=UpsertResult,
    summary="Create or update one checklist entry",
    responses={
        200: {"description": "Existing entry updated"},
        201: {"description": "Entry created"},
        400: {"description": "Missing, blank or invalid fields"},
        401: {"description": "Not authenticated"},
    },
)
async def upsert_workout(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    body: WorkoutUpsert,
    response: Response,
) -> UpsertResult:
    day = body.day.strip()
    time = body.time.strip()
    exercise = body.exercise.strip()
    if not day or not time or not exercise:
        raise HTTPException(status_code=400, detail="Fields cannot be empty")
    if day not in WORKOUT_DAYS:
        raise HTTPException(status_code=400, detail="Invalid day")
    week = body.week_start or get_week_start()
    try:
        row, created = await _upsert_slot(session, user.id, day, time, exercise, body.completed, week)
        await session.commit()
    except SQLAlchemyError as e:
        logger.exception("Error saving workout: %s", e)
        raise HTTPException(status_code=500, detail="Failed to save workout") from e
    response.status_code = 201 if created else 200
    return UpsertResult(id=row.id)


@router.delete(
    "",
    summary="Reset (delete) all checklist entries for a week",
    responses={401: {"description": "Not authenticated"}},
)
async def reset_week(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    week_start: date | None = None,
) -> dict:
    week = week_start or get_week_start()
    try:
        r = await session.execute(
            delete(Workout).where(Workout.user_id == user.id, Workout.week_start == week)
        )
        await session.commit()
    except SQLAlchemyError as e:
        logger.exception("Error deleting workouts: %s", e)
        raise HTTPException(status_code=500, detail="Failed to delete workouts") from e
    logger.debug("Reset week %s for user %s (%s rows)", week.isoformat(), user.id, r.rowcount)
    return {"success": True}


@router.get(
    "/progress",
    response_model=WeekProgress,
    summary="Completed slots for a week",
    responses={401: {"description": "Not authenticated"}},
)
async def week_progress(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    week_start: date | None = None,
) -> WeekProgress:
    week = week_start or get_week_start()
    try:
        r = await session.execute(
            select(func.count()).select_from(Workout).where(
                Workout.user_id == user.id,
                Workout.week_start == week,
                Workout.completed.is_(True),
            )
        )
        completed = r.scalar() or 0
    except SQLAlchemyError as e:
        logger.exception("Error computing progress: %s", e)
        raise HTTPException(status_code=500, detail="Failed to fetch progress") from e
    return WeekProgress(
        week_start=week.isoformat(),
        completed=completed,
        total=SLOTS_PER_WEEK,
        percent=progress_percent(completed),
    )
