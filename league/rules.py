from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence


DEFAULT_POINTS: tuple[int, ...] = (25, 18, 15, 12, 10, 8, 6, 4, 2, 1)


class EmptyPointsArray(ValueError):
    def __init__(self) -> None:
        super().__init__("Points array is empty")


@dataclass(frozen=True)
class ResultRow:
    result_id: int
    driver_id: int
    driver_name: str
    team_id: Optional[int]
    team_name: Optional[str]
    map_id: int
    map_name: str
    place: int
    time_ms: Optional[int] = None


@dataclass(frozen=True)
class DriverStanding:
    id: int
    name: str
    primary_team_id: Optional[int]
    primary_team_name: Optional[str]
    total_points: int
    results_count: int


@dataclass(frozen=True)
class TeamStanding:
    id: int
    name: str
    total_points: int
    drivers_count: int


@dataclass(frozen=True)
class DriverDetail:
    result_id: int
    map_name: str
    team_name: Optional[str]
    place: int
    time_ms: Optional[int]
    points_awarded: int


@dataclass(frozen=True)
class LastTeam:
    result_id: int
    team_id: Optional[int]
    team_name: Optional[str]


@dataclass(frozen=True)
class Leaderboard:
    driver_standings: List[DriverStanding]
    team_standings: List[TeamStanding]


@dataclass
class TeamHits:
    name: Optional[str]
    count: int = 0


@dataclass
class _DriverTally:
    id: int
    name: str
    total_points: int = 0
    results_count: int = 0
    team_hits: Dict[int, TeamHits] = field(default_factory=dict)


@dataclass
class _TeamTally:
    id: int
    name: Optional[str]
    total_points: int = 0
    driver_ids: set[int] = field(default_factory=set)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return math.inf
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def clean_points(candidate: Iterable[Any]) -> List[int]:
    """
    Keep finite, non-negative numbers (numeric strings included), truncated to int.
    """
    cleaned: List[int] = []
    for value in candidate:
        number = _as_number(value)
        if number is None or not math.isfinite(number) or number < 0:
            continue
        cleaned.append(int(number))
    return cleaned


def points_for_place(place: Any, table: Sequence[int]) -> int:
    """
    points = table[place - 1]; anything outside the table scores 0.
    """
    number = _as_number(place)
    if number is None or not math.isfinite(number) or number < 1:
        return 0
    idx = int(number) - 1
    return table[idx] if idx < len(table) else 0


def primary_team(team_hits: Dict[int, TeamHits]) -> tuple[Optional[int], Optional[str]]:
    """
    Most frequent team in a driver's history. Ties go to the team that
    reached the top count first, since only a strictly greater count wins.
    """
    best_id: Optional[int] = None
    best_name: Optional[str] = None
    best_count = 0
    for team_id, hits in team_hits.items():
        if hits.count > best_count:
            best_count = hits.count
            best_id = team_id
            best_name = hits.name
    return best_id, best_name


def _by_result_id(rows: Iterable[ResultRow]) -> List[ResultRow]:
    return sorted(rows, key=lambda row: row.result_id)


def compute_leaderboard(rows: Iterable[ResultRow], table: Sequence[int]) -> Leaderboard:
    drivers: Dict[int, _DriverTally] = {}
    teams: Dict[int, _TeamTally] = {}

    for row in _by_result_id(rows):
        pts = points_for_place(row.place, table)

        driver = drivers.get(row.driver_id)
        if driver is None:
            driver = _DriverTally(id=row.driver_id, name=row.driver_name)
            drivers[row.driver_id] = driver
        driver.total_points += pts
        driver.results_count += 1

        if row.team_id is None:
            continue

        hits = driver.team_hits.setdefault(row.team_id, TeamHits(name=row.team_name))
        hits.count += 1

        team = teams.get(row.team_id)
        if team is None:
            team = _TeamTally(id=row.team_id, name=row.team_name)
            teams[row.team_id] = team
        team.total_points += pts
        team.driver_ids.add(row.driver_id)

    driver_standings: List[DriverStanding] = []
    for driver in drivers.values():
        team_id, team_name = primary_team(driver.team_hits)
        driver_standings.append(
            DriverStanding(
                id=driver.id,
                name=driver.name,
                primary_team_id=team_id,
                primary_team_name=team_name,
                total_points=driver.total_points,
                results_count=driver.results_count,
            )
        )
    driver_standings.sort(key=lambda s: (-s.total_points, -s.results_count))

    team_standings = [
        TeamStanding(
            id=team.id,
            name=team.name,
            total_points=team.total_points,
            drivers_count=len(team.driver_ids),
        )
        for team in teams.values()
    ]
    team_standings.sort(key=lambda s: -s.total_points)

    return Leaderboard(driver_standings=driver_standings, team_standings=team_standings)


def compute_driver_details(
    driver_id: int, rows: Iterable[ResultRow], table: Sequence[int]
) -> List[DriverDetail]:
    return [
        DriverDetail(
            result_id=row.result_id,
            map_name=row.map_name,
            team_name=row.team_name,
            place=row.place,
            time_ms=row.time_ms,
            points_awarded=points_for_place(row.place, table),
        )
        for row in _by_result_id(rows)
        if row.driver_id == driver_id
    ]


def last_team_for_driver(driver_id: int, rows: Iterable[ResultRow]) -> Optional[LastTeam]:
    """
    Team on the driver's most recently inserted result (highest id).
    Not the same thing as the primary team used in standings.
    """
    latest: Optional[ResultRow] = None
    for row in rows:
        if row.driver_id != driver_id:
            continue
        if latest is None or row.result_id > latest.result_id:
            latest = row
    if latest is None:
        return None
    return LastTeam(result_id=latest.result_id, team_id=latest.team_id, team_name=latest.team_name)
