"""Pydantic schemas for the weekly checklist API."""

from datetime import date

from pydantic import BaseModel, Field, StrictBool


class WorkoutUpsert(BaseModel):
    """Body for toggling one checklist slot. week_start defaults to the current week's Monday."""

    # Limits match the workouts column lengths
    day: str = Field(max_length=16)
    time: str = Field(max_length=32)
    exercise: str = Field(max_length=255)
    completed: StrictBool
    week_start: date | None = None


class WorkoutOut(BaseModel):
    id: str
    day: str
    time: str
    exercise: str
    completed: bool
    week_start: str


class WorkoutList(BaseModel):
    workouts: list[WorkoutOut]


class UpsertResult(BaseModel):
    id: str
    success: bool = True


class WeekProgress(BaseModel):
    week_start: str
    completed: int
    total: int
    percent: int
