"""
Star schema of the incident warehouse: one fact table, four dimensions and the
query history table written by the audit logger.
"""
from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()

dim_shift = Table(
    "dim_shift", metadata,
    Column("shift_code", String(32), primary_key=True),
)

dim_method = Table(
    "dim_method", metadata,
    Column("method_code", String(32), primary_key=True),
)

dim_offense = Table(
    "dim_offense", metadata,
    Column("offense_code", String(64), primary_key=True),
)

dim_block = Table(
    "dim_block", metadata,
    Column("block", String(128), primary_key=True),
)

fact_incident = Table(
    "fact_incident", metadata,
    Column("ccn", String(32), primary_key=True),
    Column("report_dt", DateTime, index=True),
    Column("start_dt", DateTime),
    Column("end_dt", DateTime),
    Column("shift_code", String(32), ForeignKey("dim_shift.shift_code")),
    Column("method_code", String(32), ForeignKey("dim_method.method_code")),
    Column("offense_code", String(64), ForeignKey("dim_offense.offense_code")),
    Column("block", String(128), ForeignKey("dim_block.block")),
    Column("x", Float),
    Column("y", Float),
    Column("latitude", Float),
    Column("longitude", Float),
)

query_history = Table(
    "query_history", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("sql_text", Text, nullable=False),
    Column("executed_at", DateTime, nullable=False),
)
