from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select
from sqlalchemy.orm import Session

from league import config
from league.auth import require_admin
from league.database import Base, engine, get_db
from league.models import Driver, RaceMap, RaceResult, Team
from league.rules import EmptyPointsArray
from league.schemas import DriverCreate, MapCreate, PointsUpdate, ResultUpsert, TeamCreate
from league.services import (
    POINTS_RULE,
    RESULTS_LIMIT_DEFAULT,
    create_result,
    delete_referenced_entity,
    driver_details,
    driver_last_team,
    get_or_404,
    get_points,
    leaderboard,
    list_results,
    set_points,
    update_result,
)


logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Racing League Leaderboard",
    version="1.0.0",
    description="All-time driver and team standings with a password-protected admin API.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready")


def _required_name(value: str, field: str) -> str:
    name = value.strip()
    if not name:
        raise HTTPException(status_code=400, detail=f"{field} required")
    return name


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ---------------------------------------------------------------- public API


@app.get("/api/config")
def get_config(db: Session = Depends(get_db)):
    return {"points": get_points(db), "rule": POINTS_RULE}


@app.get("/api/leaderboard")
def get_leaderboard(db: Session = Depends(get_db)):
    return leaderboard(db)


@app.get("/api/driver/{driver_id}")
def get_driver_details(driver_id: int, db: Session = Depends(get_db)):
    return driver_details(db, driver_id)


@app.get("/api/driver/{driver_id}/last-team")
def get_driver_last_team(driver_id: int, db: Session = Depends(get_db)):
    return driver_last_team(db, driver_id)


# ---------------------------------------------------------------- admin API

admin = APIRouter(prefix="/api/admin", dependencies=[Depends(require_admin)])


@admin.get("/points")
def admin_get_points(db: Session = Depends(get_db)):
    return {"points": get_points(db)}


@admin.put("/points")
def admin_set_points(payload: PointsUpdate, db: Session = Depends(get_db)):
    try:
        saved = set_points(db, payload.points)
    except EmptyPointsArray as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    db.commit()
    return {"points": saved}


@admin.get("/drivers")
def admin_list_drivers(db: Session = Depends(get_db)):
    rows = db.scalars(select(Driver).order_by(Driver.id.desc())).all()
    return [{"id": d.id, "nickname": d.nickname} for d in rows]


@admin.post("/drivers")
def admin_create_driver(payload: DriverCreate, db: Session = Depends(get_db)):
    d = Driver(nickname=_required_name(payload.nickname, "nickname"))
    db.add(d)
    db.commit()
    db.refresh(d)
    logger.info("Created driver %s (%s)", d.id, d.nickname)
    return {"id": d.id, "nickname": d.nickname}


@admin.delete("/drivers/{driver_id}")
def admin_delete_driver(driver_id: int, db: Session = Depends(get_db)):
    delete_referenced_entity(db, Driver, driver_id, "Driver")
    db.commit()
    return {"ok": True}


@admin.get("/teams")
def admin_list_teams(db: Session = Depends(get_db)):
    rows = db.scalars(select(Team).order_by(Team.id.desc())).all()
    return [{"id": t.id, "name": t.name} for t in rows]


@admin.post("/teams")
def admin_create_team(payload: TeamCreate, db: Session = Depends(get_db)):
    t = Team(name=_required_name(payload.name, "name"))
    db.add(t)
    db.commit()
    db.refresh(t)
    logger.info("Created team %s (%s)", t.id, t.name)
    return {"id": t.id, "name": t.name}


@admin.delete("/teams/{team_id}")
def admin_delete_team(team_id: int, db: Session = Depends(get_db)):
    delete_referenced_entity(db, Team, team_id, "Team")
    db.commit()
    return {"ok": True}


@admin.get("/maps")
def admin_list_maps(db: Session = Depends(get_db)):
    rows = db.scalars(select(RaceMap).order_by(RaceMap.id.desc())).all()
    return [{"id": m.id, "name": m.name} for m in rows]


@admin.post("/maps")
def admin_create_map(payload: MapCreate, db: Session = Depends(get_db)):
    m = RaceMap(name=_required_name(payload.name, "name"))
    db.add(m)
    db.commit()
    db.refresh(m)
    logger.info("Created map %s (%s)", m.id, m.name)
    return {"id": m.id, "name": m.name}


@admin.delete("/maps/{map_id}")
def admin_delete_map(map_id: int, db: Session = Depends(get_db)):
    delete_referenced_entity(db, RaceMap, map_id, "Map")
    db.commit()
    return {"ok": True}


@admin.get("/results")
def admin_list_results(
    limit: int = Query(default=RESULTS_LIMIT_DEFAULT),
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    return list_results(db, limit)


@admin.post("/results")
def admin_create_result(payload: ResultUpsert, db: Session = Depends(get_db)):
    result = create_result(
        db=db,
        driver_id=payload.driver_id,
        team_id=payload.team_id,
        map_id=payload.map_id,
        place=payload.place,
        time_ms=payload.time_ms,
    )
    db.commit()
    db.refresh(result)
    logger.info("Created result %s for driver %s", result.id, result.driver_id)
    return {"id": result.id}


@admin.put("/results/{result_id}")
def admin_update_result(result_id: int, payload: ResultUpsert, db: Session = Depends(get_db)):
    update_result(
        db=db,
        result_id=result_id,
        driver_id=payload.driver_id,
        team_id=payload.team_id,
        map_id=payload.map_id,
        place=payload.place,
        time_ms=payload.time_ms,
    )
    db.commit()
    return {"ok": True}


@admin.delete("/results/{result_id}")
def admin_delete_result(result_id: int, db: Session = Depends(get_db)):
    result = get_or_404(db, RaceResult, result_id, "Result")
    db.delete(result)
    db.commit()
    logger.info("Deleted result %s", result_id)
    return {"ok": True}


app.include_router(admin)
