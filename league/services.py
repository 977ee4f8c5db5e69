from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Any, Iterable, Optional

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from league.models import AppSetting, Driver, RaceMap, RaceResult, Team
from league.rules import (
    DEFAULT_POINTS,
    EmptyPointsArray,
    ResultRow,
    clean_points,
    compute_driver_details,
    compute_leaderboard,
    last_team_for_driver,
)


logger = logging.getLogger(__name__)

POINTS_SETTING_KEY = "points_json"
POINTS_RULE = "points = points[place-1]; places beyond the table score 0"

RESULTS_LIMIT_DEFAULT = 200
RESULTS_LIMIT_MAX = 1000


def get_or_404(db: Session, model: Any, obj_id: int, label: str):
    obj = db.get(model, obj_id)
    if not obj:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


# ---------------------------------------------------------------- points


def get_points(db: Session) -> list[int]:
    """
    Active points table. Any storage or parsing problem falls back to the
    default table so the public leaderboard stays available.
    """
    try:
        raw = db.scalar(select(AppSetting.value).where(AppSetting.key == POINTS_SETTING_KEY))
        if raw is None:
            return list(DEFAULT_POINTS)
        parsed = json.loads(raw)
        if not isinstance(parsed, list):
            logger.warning("Setting %s is not a JSON array, using default points", POINTS_SETTING_KEY)
            return list(DEFAULT_POINTS)
        cleaned = clean_points(parsed)
    except (SQLAlchemyError, ValueError, TypeError, OverflowError) as exc:
        db.rollback()
        logger.warning("Could not read points setting, using default points: %s", exc)
        return list(DEFAULT_POINTS)
    return cleaned or list(DEFAULT_POINTS)


def set_points(db: Session, candidate: Iterable[Any]) -> list[int]:
    cleaned = clean_points(candidate)
    if not cleaned:
        raise EmptyPointsArray()

    value = json.dumps(cleaned)
    setting = db.get(AppSetting, POINTS_SETTING_KEY)
    if setting:
        setting.value = value
    else:
        db.add(AppSetting(key=POINTS_SETTING_KEY, value=value))
    logger.info("Points table set to %s", value)
    return cleaned


# ---------------------------------------------------------------- reads


def _result_rows_query():
    return (
        select(
            RaceResult.id,
            RaceResult.driver_id,
            Driver.nickname,
            RaceResult.team_id,
            Team.name,
            RaceResult.map_id,
            RaceMap.name,
            RaceResult.place,
            RaceResult.time_ms,
        )
        .join(Driver, Driver.id == RaceResult.driver_id)
        .outerjoin(Team, Team.id == RaceResult.team_id)
        .join(RaceMap, RaceMap.id == RaceResult.map_id)
    )


def _to_result_row(row: Any) -> ResultRow:
    return ResultRow(
        result_id=row[0],
        driver_id=row[1],
        driver_name=row[2],
        team_id=row[3],
        team_name=row[4],
        map_id=row[5],
        map_name=row[6],
        place=row[7],
        time_ms=row[8],
    )


def fetch_result_rows(db: Session, driver_id: Optional[int] = None) -> list[ResultRow]:
    query = _result_rows_query()
    if driver_id is not None:
        query = query.where(RaceResult.driver_id == driver_id)
    rows = db.execute(query.order_by(RaceResult.id.asc())).all()
    return [_to_result_row(row) for row in rows]


def leaderboard(db: Session) -> dict[str, Any]:
    points = get_points(db)
    board = compute_leaderboard(fetch_result_rows(db), points)
    return {
        "points": points,
        "leaderboard": [asdict(s) for s in board.driver_standings],
        "teamboard": [asdict(s) for s in board.team_standings],
    }


def driver_details(db: Session, driver_id: int) -> dict[str, Any]:
    points = get_points(db)
    details = compute_driver_details(driver_id, fetch_result_rows(db, driver_id), points)
    return {"driver_id": driver_id, "details": [asdict(d) for d in details]}


def driver_last_team(db: Session, driver_id: int) -> Optional[dict[str, Any]]:
    last = last_team_for_driver(driver_id, fetch_result_rows(db, driver_id))
    return asdict(last) if last else None


# ---------------------------------------------------------------- admin CRUD


def delete_referenced_entity(db: Session, model: Any, obj_id: int, label: str) -> None:
    """
    Drivers, teams and maps cannot be removed while race results point at them.
    """
    obj = get_or_404(db, model, obj_id, label)
    column = {
        Driver: RaceResult.driver_id,
        Team: RaceResult.team_id,
        RaceMap: RaceResult.map_id,
    }[model]
    in_use = db.scalar(select(func.count(RaceResult.id)).where(column == obj_id))
    if in_use:
        logger.warning("Refusing to delete %s %s: referenced by %s results", label, obj_id, in_use)
        raise HTTPException(
            status_code=409,
            detail=f"Cannot delete {label.lower()}: race results reference it. Delete those results first.",
        )
    db.delete(obj)
    logger.info("Deleted %s %s", label, obj_id)


def _check_result_references(
    db: Session, driver_id: int, team_id: Optional[int], map_id: int
) -> None:
    if db.get(Driver, driver_id) is None:
        raise HTTPException(status_code=400, detail="Driver does not exist")
    if db.get(RaceMap, map_id) is None:
        raise HTTPException(status_code=400, detail="Map does not exist")
    if team_id is not None and db.get(Team, team_id) is None:
        raise HTTPException(status_code=400, detail="Team does not exist")


def create_result(
    db: Session,
    driver_id: int,
    team_id: Optional[int],
    map_id: int,
    place: int,
    time_ms: Optional[int],
) -> RaceResult:
    _check_result_references(db, driver_id, team_id, map_id)
    result = RaceResult(
        driver_id=driver_id,
        team_id=team_id,
        map_id=map_id,
        place=place,
        time_ms=time_ms,
    )
    db.add(result)
    return result


def update_result(
    db: Session,
    result_id: int,
    driver_id: int,
    team_id: Optional[int],
    map_id: int,
    place: int,
    time_ms: Optional[int],
) -> RaceResult:
    result = get_or_404(db, RaceResult, result_id, "Result")
    _check_result_references(db, driver_id, team_id, map_id)
    result.driver_id = driver_id
    result.team_id = team_id
    result.map_id = map_id
    result.place = place
    result.time_ms = time_ms
    return result


def list_results(db: Session, limit: int = RESULTS_LIMIT_DEFAULT) -> list[dict[str, Any]]:
    limit = min(max(limit, 1), RESULTS_LIMIT_MAX)
    rows = db.execute(_result_rows_query().order_by(RaceResult.id.desc()).limit(limit)).all()
    payload = []
    for row in rows:
        item = asdict(_to_result_row(row))
        item["id"] = item.pop("result_id")
        payload.append(item)
    return payload
