"""
Filter state behind the search bar.

`FilterState` is the mutable holder the presentation edits between searches;
`FilterCriteria` is the frozen snapshot handed to the query builder.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, Optional, Tuple, Union

ALL = "All"
ALL_SELECTION = (ALL,)

DEFAULT_WINDOW_DAYS = 7

# dimension -> (table, column); fixed, never taken from user input
DIMENSIONS = {
    "shift": ("dim_shift", "shift_code"),
    "method": ("dim_method", "method_code"),
    "offense": ("dim_offense", "offense_code"),
    "block": ("dim_block", "block"),
}

DateBound = Optional[Union[date, datetime]]


def normalize_selection(values: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """
    Collapse a raw selection to either ("All",) or the distinct concrete codes
    in the order they were picked. Nothing picked means "All", as does any
    selection that includes "All".
    """
    picked = []
    for value in values or ():
        value = (value or "").strip()
        if not value:
            continue
        if value == ALL:
            return ALL_SELECTION
        if value not in picked:
            picked.append(value)
    return tuple(picked) if picked else ALL_SELECTION


def describe_selection(selection: Tuple[str, ...]) -> str:
    if selection == ALL_SELECTION:
        return ALL
    return f"{len(selection)} selected"


@dataclass(frozen=True)
class FilterCriteria:
    from_date: DateBound = None
    to_date: DateBound = None
    shifts: Tuple[str, ...] = ALL_SELECTION
    methods: Tuple[str, ...] = ALL_SELECTION
    offenses: Tuple[str, ...] = ALL_SELECTION
    blocks: Tuple[str, ...] = ALL_SELECTION

    def __post_init__(self):
        for name in ("shifts", "methods", "offenses", "blocks"):
            object.__setattr__(self, name, normalize_selection(getattr(self, name)))

    def selection(self, dimension: str) -> Tuple[str, ...]:
        return getattr(self, dimension + "s")


def default_window(today: Optional[date] = None) -> Tuple[date, date]:
    today = today or date.today()
    return today - timedelta(days=DEFAULT_WINDOW_DAYS), today


@dataclass
class FilterState:
    from_date: DateBound = field(default_factory=lambda: default_window()[0])
    to_date: DateBound = field(default_factory=lambda: default_window()[1])
    selections: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self):
        for dimension in DIMENSIONS:
            self.selections[dimension] = normalize_selection(self.selections.get(dimension))

    def reset(self, today: Optional[date] = None):
        self.from_date, self.to_date = default_window(today)
        self.selections = {dimension: ALL_SELECTION for dimension in DIMENSIONS}

    def set_dates(self, from_date: DateBound, to_date: DateBound):
        self.from_date = from_date
        self.to_date = to_date

    def select(self, dimension: str, values: Optional[Iterable[str]]):
        if dimension not in DIMENSIONS:
            raise KeyError(f"unknown dimension {dimension!r}")
        self.selections[dimension] = normalize_selection(values)

    def selection(self, dimension: str) -> Tuple[str, ...]:
        return self.selections.get(dimension, ALL_SELECTION)

    @property
    def shifts(self):
        return self.selection("shift")

    @property
    def methods(self):
        return self.selection("method")

    @property
    def offenses(self):
        return self.selection("offense")

    @property
    def blocks(self):
        return self.selection("block")

    def criteria(self) -> FilterCriteria:
        return FilterCriteria(
            from_date=self.from_date,
            to_date=self.to_date,
            shifts=self.shifts,
            methods=self.methods,
            offenses=self.offenses,
            blocks=self.blocks,
        )
