"""
Public listing state: filter/search composition over shortage rows.

Rows are plain dicts shaped like the listing payload: shortage columns plus
a nested "centers" dict (or None). Everything here is pure; views own the
current ListingState and replace it through reduce().
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

ALL = "all"  # select-box value meaning "no constraint"

FILTER_KEYS = ("blood_type", "district", "status")

Row = Dict[str, Any]


def _constraint(value: Optional[str]) -> Optional[str]:
    """'' / None / 'all' all mean the predicate is absent."""
    if value is None:
        return None
    v = str(value).strip()
    if not v or v == ALL:
        return None
    return v


@dataclass(frozen=True)
class ListingFilters:
    search: str = ""
    blood_type: Optional[str] = None
    district: Optional[str] = None
    status: Optional[str] = None

    def normalized(self) -> "ListingFilters":
        return ListingFilters(
            search=self.search or "",
            blood_type=_constraint(self.blood_type),
            district=_constraint(self.district),
            status=_constraint(self.status),
        )

    @property
    def is_empty(self) -> bool:
        n = self.normalized()
        return not (n.search or n.blood_type or n.district or n.status)


def matches_search(row: Row, query: str) -> bool:
    q = query.lower()
    center = row.get("centers") or {}
    fields = (
        center.get("name"),
        center.get("district"),
        center.get("address"),
        row.get("blood_type"),
    )
    return any(f and q in str(f).lower() for f in fields)


def matches(row: Row, filters: ListingFilters) -> bool:
    f = filters.normalized()
    if f.search and not matches_search(row, f.search):
        return False
    if f.blood_type and row.get("blood_type") != f.blood_type:
        return False
    if f.district and (row.get("centers") or {}).get("district") != f.district:
        return False
    if f.status and row.get("status") != f.status:
        return False
    return True


def apply_filters(rows: Sequence[Row], filters: ListingFilters) -> List[Row]:
    return [r for r in rows if matches(r, filters)]


def count_by_status(rows: Sequence[Row], status: str) -> int:
    return sum(1 for r in rows if r.get("status") == status)


def unique_districts(centers: Sequence[Row]) -> List[str]:
    return sorted({c["district"] for c in centers if c.get("district")})


# ----------------------------------------------------------------------
# state + reducer
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class ListingState:
    rows: Tuple[Row, ...] = ()
    filters: ListingFilters = field(default_factory=ListingFilters)
    filtered: Tuple[Row, ...] = ()
    districts: Tuple[str, ...] = ()
    loading: bool = True

    @property
    def critical_count(self) -> int:
        return count_by_status(self.filtered, "critical")

    @property
    def low_count(self) -> int:
        return count_by_status(self.filtered, "low")

    @property
    def show_banner(self) -> bool:
        return self.critical_count > 0 or self.low_count > 0

    @property
    def empty_message(self) -> Optional[str]:
        if self.loading or self.filtered:
            return None
        if not self.rows:
            return "No blood shortages reported at this time."
        return "No shortages match your filters."


@dataclass(frozen=True)
class Loaded:
    rows: Sequence[Row]
    districts: Optional[Sequence[str]] = None


@dataclass(frozen=True)
class FilterChanged:
    key: str  # blood_type | district | status
    value: Optional[str]


@dataclass(frozen=True)
class SearchChanged:
    query: str


@dataclass(frozen=True)
class Cleared:
    pass


Action = Union[Loaded, FilterChanged, SearchChanged, Cleared]


def _recompute(state: ListingState) -> ListingState:
    return replace(state, filtered=tuple(apply_filters(state.rows, state.filters)))


def reduce(state: ListingState, action: Action) -> ListingState:
    if isinstance(action, Loaded):
        districts = state.districts if action.districts is None else tuple(action.districts)
        return _recompute(replace(state, rows=tuple(action.rows), districts=districts, loading=False))

    if isinstance(action, FilterChanged):
        if action.key not in FILTER_KEYS:
            raise ValueError(f"Unknown filter: {action.key}")
        filters = replace(state.filters, **{action.key: _constraint(action.value)})
        return _recompute(replace(state, filters=filters))

    if isinstance(action, SearchChanged):
        filters = replace(state.filters, search=action.query or "")
        return _recompute(replace(state, filters=filters))

    if isinstance(action, Cleared):
        return _recompute(replace(state, filters=ListingFilters()))

    raise TypeError(f"Unsupported action: {action!r}")


def render(state: ListingState) -> Dict[str, Any]:
    f = state.filters.normalized()
    return {
        "shortages": list(state.filtered),
        "total": len(state.rows),
        "matched": len(state.filtered),
        "criticalCount": state.critical_count,
        "lowCount": state.low_count,
        "showBanner": state.show_banner,
        "emptyMessage": state.empty_message,
        "districts": list(state.districts),
        "filters": {
            "search": f.search,
            "bloodType": f.blood_type or ALL,
            "district": f.district or ALL,
            "status": f.status or ALL,
        },
        "hasFilters": not state.filters.is_empty,
    }
