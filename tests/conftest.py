"""
Shared fixtures: a throwaway SQLite warehouse with a small, fully known set of
incidents.

Seed shape (23 incidents):
  blocks    A:6 B:5 C:4 D:3 E:2 F:2 G:1   -> E and F tie for 5th place
  offenses  THEFT:8 ROBBERY:6 BURGLARY:5 ASSAULT:2 ARSON:2
  durations THEFT 30, ROBBERY 10/12/15 (avg 12.33), BURGLARY 45,
            ASSAULT 5/6 (avg 5.5), ARSON 90/91 (avg 90.5)
  report_dt 2024-01..03, month = 1 + i % 3, day = 1 + i, 10:00
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine

from incident_explorer.config import load_settings
from incident_explorer.gateway import Gateway, QueryResult
from incident_explorer.schema import (
    dim_block,
    dim_method,
    dim_offense,
    dim_shift,
    fact_incident,
)
from run_migrations import run_migrations

SHIFTS = ["DAY", "EVENING", "MIDNIGHT"]
METHODS = ["GUN", "KNIFE", "OTHERS"]

OFFENSE_DURATIONS = (
    [("THEFT", 30)] * 8
    + [("ROBBERY", d) for d in (10, 12, 15, 10, 12, 15)]
    + [("BURGLARY", 45)] * 5
    + [("ASSAULT", 5), ("ASSAULT", 6)]
    + [("ARSON", 90), ("ARSON", 91)]
)

BLOCKS = ["A"] * 6 + ["B"] * 5 + ["C"] * 4 + ["D"] * 3 + ["E"] * 2 + ["F"] * 2 + ["G"]


def _seed_rows():
    rows = []
    for i, ((offense, minutes), block) in enumerate(zip(OFFENSE_DURATIONS, BLOCKS)):
        reported = datetime(2024, 1 + i % 3, 1 + i, 10, 0)
        rows.append({
            "ccn": f"24{i:06d}",
            "report_dt": reported,
            "start_dt": reported,
            "end_dt": reported + timedelta(minutes=minutes),
            "shift_code": SHIFTS[i % 3],
            "method_code": METHODS[i % 3],
            "offense_code": offense,
            "block": block,
            "x": 390000.0 + i,
            "y": 137000.0 + i,
            "latitude": 38.9 + i / 1000,
            "longitude": -77.0 - i / 1000,
        })
    return rows


SEED_ROWS = _seed_rows()


@pytest.fixture
def properties_path(tmp_path):
    db_path = tmp_path / "warehouse.db"
    path = tmp_path / "db.properties"
    path.write_text(
        "# test warehouse\n"
        f"db.url=sqlite:///{db_path}\n"
        "db.user=\n"
        "db.password=\n",
        encoding="utf-8",
    )
    run_migrations(str(path))
    return str(path)


@pytest.fixture
def engine(properties_path):
    engine = create_engine(load_settings(properties_path).sqlalchemy_url())
    yield engine
    engine.dispose()


@pytest.fixture
def seeded(engine):
    with engine.begin() as conn:
        conn.execute(dim_shift.insert(), [{"shift_code": s} for s in SHIFTS])
        conn.execute(dim_method.insert(), [{"method_code": m} for m in METHODS])
        conn.execute(
            dim_offense.insert(),
            [{"offense_code": o} for o in sorted({o for o, _ in OFFENSE_DURATIONS})],
        )
        conn.execute(dim_block.insert(), [{"block": b} for b in sorted(set(BLOCKS))])
        conn.execute(fact_incident.insert(), SEED_ROWS)
    return engine


@pytest.fixture
def gateway(properties_path, seeded):
    return Gateway(properties_path)


class RecordingGateway:
    """Stands in for the warehouse; remembers every statement it is asked to run."""

    dialect = "sqlite"

    def __init__(self):
        self.calls = []

    def execute(self, sql, params=()):
        self.calls.append((sql, list(params)))
        return QueryResult(["n"], [(1,)])

    def execute_raw(self, sql):
        return self.execute(sql)

    def execute_update(self, sql, params=()):
        self.calls.append((sql, list(params)))
        return 1


@pytest.fixture
def recording_gateway():
    return RecordingGateway()
