from __future__ import annotations

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from league.database import Base


class Driver(Base):
    __tablename__ = "drivers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nickname: Mapped[str] = mapped_column(String(128), nullable=False)

    results: Mapped[list["RaceResult"]] = relationship("RaceResult", back_populates="driver")


class Team(Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)

    results: Mapped[list["RaceResult"]] = relationship("RaceResult", back_populates="team")


class RaceMap(Base):
    __tablename__ = "maps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)

    results: Mapped[list["RaceResult"]] = relationship("RaceResult", back_populates="race_map")


class RaceResult(Base):
    __tablename__ = "race_results"

    # Insertion order of ids doubles as chronological order.
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    driver_id: Mapped[int] = mapped_column(ForeignKey("drivers.id"), nullable=False, index=True)
    team_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True, index=True)
    map_id: Mapped[int] = mapped_column(ForeignKey("maps.id"), nullable=False, index=True)
    place: Mapped[int] = mapped_column(Integer, nullable=False)
    time_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    driver: Mapped[Driver] = relationship("Driver", back_populates="results")
    team: Mapped[Optional[Team]] = relationship("Team", back_populates="results")
    race_map: Mapped[RaceMap] = relationship("RaceMap", back_populates="results")


class AppSetting(Base):
    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
