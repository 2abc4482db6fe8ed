from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CreateEventRequest(BaseModel):
    room_id: str
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    start_time: datetime | None = None
    end_time: datetime | None = None
    max_guests: int | None = Field(default=None, ge=1)
    min_age: int | None = Field(default=None, ge=0)
    max_age: int | None = Field(default=None, ge=0)


class CreateEventResponse(BaseModel):
    event_id: str
    credits_held: int


class DeleteEventResponse(BaseModel):
    success: bool = True
    credits_released: int
