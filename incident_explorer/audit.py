"""
Query history. Every statement the analyst runs is recorded here, on a best
effort basis: a broken history table must never stop the query itself.
"""
import logging
from datetime import datetime

logger = logging.getLogger(__name__)

INSERT_HISTORY_SQL = "INSERT INTO query_history (sql_text, executed_at) VALUES (:p0, :p1)"


class AuditLogger:
    def __init__(self, gateway, clock=datetime.now):
        self.gateway = gateway
        self.clock = clock

    def record(self, sql_text: str) -> bool:
        """Insert one history row; returns False (and logs) instead of raising."""
        try:
            self.gateway.execute_update(INSERT_HISTORY_SQL, [sql_text, self.clock()])
        except Exception as e:
            logger.warning("query history not recorded: %s", e)
            return False
        return True
