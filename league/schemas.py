from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class DriverCreate(BaseModel):
    nickname: str = Field(min_length=1, max_length=128)


class TeamCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)


class MapCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)


class PointsUpdate(BaseModel):
    # Raw values; numeric strings are accepted and cleaned by the points rules.
    points: list[Any]


class ResultUpsert(BaseModel):
    driver_id: int
    team_id: Optional[int] = None
    map_id: int
    place: int = Field(ge=1)
    time_ms: Optional[int] = Field(default=None, ge=0)
