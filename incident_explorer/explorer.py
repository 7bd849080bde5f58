"""
The explorer window's state and actions, independent of how they are drawn:
the filter bar, the current results, and the search/report commands that feed
them through the background runner.
"""
import logging

from .audit import AuditLogger
from .criteria import DIMENSIONS, FilterState, describe_selection
from .errors import InvalidInputError
from .gateway import Gateway
from .reports import (
    MONTHLY_TREND,
    REPORTS,
    SEARCH,
    dimension_values,
    monthly_series,
    run_report,
)
from .runner import QueryRunner

logger = logging.getLogger(__name__)


class Explorer:
    def __init__(self, gateway=None, runner=None, audit=None):
        self.gateway = gateway or Gateway()
        self.audit = audit or AuditLogger(self.gateway)
        self.runner = runner or QueryRunner()
        self.filters = FilterState()
        self._options = None

    @property
    def sink(self):
        return self.runner.sink

    def dimension_options(self):
        """Codes offered by the multi-selects; loaded once, reloaded on search and reset."""
        if self._options is None:
            options = {dimension: dimension_values(self.gateway, dimension) for dimension in DIMENSIONS}
            if not any(options.values()):
                # lookup failed; try again on the next page load
                return options
            self._options = options
        return self._options

    def refresh_options(self):
        self._options = None

    def selection_summary(self):
        return {
            dimension: describe_selection(self.filters.selection(dimension))
            for dimension in DIMENSIONS
        }

    def reset_filters(self):
        self.filters.reset()
        self.refresh_options()

    def search(self):
        self.refresh_options()
        criteria = self.filters.criteria()
        logger.info("search %s", criteria)
        return self.runner.submit(
            REPORTS[SEARCH].title, run_report, self.gateway, SEARCH, criteria, audit=self.audit
        )

    def report(self, name, *args):
        """
        Queue a catalog report. Unusable arguments (bad top N, missing trend
        window) are rejected here, before anything is queued, so a query that
        is already running keeps its place. Returns None in that case.
        """
        report = REPORTS[name]
        if name == SEARCH:
            return self.search()
        if name == MONTHLY_TREND and not args:
            args = (self.filters.from_date, self.filters.to_date)
        try:
            report.bind(*args)
        except InvalidInputError as e:
            logger.info("%s not run: %s", name, e)
            return None

        if name == MONTHLY_TREND:
            # chart data is not written to the query history
            return self.runner.submit(
                report.title, run_report, self.gateway, name, *args, present=monthly_series
            )
        return self.runner.submit(
            report.title, run_report, self.gateway, name, *args, audit=self.audit
        )
