import json

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from league.database import Base
from league.models import AppSetting
from league.rules import DEFAULT_POINTS, EmptyPointsArray
from league.services import POINTS_SETTING_KEY, get_points, set_points


def _session() -> Session:
    engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=True, autocommit=False)
    return SessionLocal()


def _store(db: Session, raw: str) -> None:
    db.add(AppSetting(key=POINTS_SETTING_KEY, value=raw))
    db.commit()


def test_get_points_defaults_when_unset():
    db = _session()
    assert get_points(db) == list(DEFAULT_POINTS)
    db.close()


@pytest.mark.parametrize("raw", ["not json", '{"a": 1}', "[-1, \"x\"]", "[]", "42"])
def test_get_points_defaults_on_bad_setting(raw):
    db = _session()
    _store(db, raw)
    assert get_points(db) == list(DEFAULT_POINTS)
    db.close()


def test_get_points_defaults_when_table_missing():
    engine = create_engine("sqlite:///:memory:")
    db = sessionmaker(bind=engine)()
    assert get_points(db) == list(DEFAULT_POINTS)
    db.close()


def test_get_points_cleans_stored_value():
    db = _session()
    _store(db, "[30, 20.5, -1, 10]")
    assert get_points(db) == [30, 20, 10]
    db.close()


def test_set_points_round_trip_and_overwrite():
    db = _session()

    saved = set_points(db, [25.9, -3, "18"])
    db.commit()
    assert saved == [25, 18]
    assert get_points(db) == [25, 18]

    set_points(db, [10, 5])
    db.commit()
    assert get_points(db) == [10, 5]
    stored = db.get(AppSetting, POINTS_SETTING_KEY)
    assert json.loads(stored.value) == [10, 5]
    db.close()


@pytest.mark.parametrize("candidate", [[], [-1, -2], ["abc", None]])
def test_set_points_rejects_empty(candidate):
    db = _session()
    with pytest.raises(EmptyPointsArray):
        set_points(db, candidate)
    assert db.get(AppSetting, POINTS_SETTING_KEY) is None
    db.close()


def test_get_points_skips_oversized_stored_integer():
    db = _session()
    _store(db, "[" + "9" * 400 + ", 12]")
    assert get_points(db) == [12]
    db.close()


def test_get_points_defaults_when_only_oversized_integer_stored():
    db = _session()
    _store(db, "[" + "9" * 400 + "]")
    assert get_points(db) == list(DEFAULT_POINTS)
    db.close()


def test_set_points_drops_oversized_integer():
    db = _session()
    assert set_points(db, [10 ** 400, 5]) == [5]
    db.commit()
    assert get_points(db) == [5]
    db.close()
