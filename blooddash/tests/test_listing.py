import pytest

from blooddash.services.listing import (
    ALL,
    Cleared,
    FilterChanged,
    ListingFilters,
    ListingState,
    Loaded,
    SearchChanged,
    apply_filters,
    count_by_status,
    reduce,
    render,
    unique_districts,
)

KANDY_O_NEG = {"id": "1", "blood_type": "O-", "status": "critical", "centers": {"name": "Kandy GH", "district": "Kandy", "address": None}}
COLOMBO_A_POS = {"id": "2", "blood_type": "A+", "status": "normal", "centers": {"name": "NBC", "district": "Colombo", "address": "Narahenpita"}}
GALLE_O_POS = {"id": "3", "blood_type": "O+", "status": "low", "centers": {"name": "Karapitiya", "district": "Galle", "address": None}}

ROWS = [KANDY_O_NEG, COLOMBO_A_POS, GALLE_O_POS]


def ids(rows):
    return [r["id"] for r in rows]


def test_status_and_district_scenario():
    rows = [KANDY_O_NEG, COLOMBO_A_POS]

    assert ids(apply_filters(rows, ListingFilters(status="critical"))) == ["1"]
    assert ids(apply_filters(rows, ListingFilters(district="Colombo"))) == ["2"]
    assert apply_filters(rows, ListingFilters(status="critical", district="Colombo")) == []


def test_filter_order_does_not_matter():
    s1 = reduce(ListingState(), Loaded(rows=ROWS))
    a = reduce(reduce(s1, FilterChanged("status", "critical")), FilterChanged("district", "Kandy"))
    b = reduce(reduce(s1, FilterChanged("district", "Kandy")), FilterChanged("status", "critical"))

    assert a.filtered == b.filtered
    assert ids(a.filtered) == ["1"]


def test_filters_are_idempotent():
    f = ListingFilters(status="low")
    once = apply_filters(ROWS, f)
    assert apply_filters(once, f) == once

    s = reduce(ListingState(), Loaded(rows=ROWS))
    s1 = reduce(s, FilterChanged("status", "low"))
    s2 = reduce(s1, FilterChanged("status", "low"))
    assert s1 == s2


def test_search_is_case_insensitive_and_or_across_fields():
    rows = [GALLE_O_POS, COLOMBO_A_POS]

    # "o+" hits the O+ blood type; "colombo" does not contain "o+"
    assert ids(apply_filters(rows, ListingFilters(search="o+"))) == ["3"]
    assert ids(apply_filters(rows, ListingFilters(search="NARAHEN"))) == ["2"]
    assert ids(apply_filters(rows, ListingFilters(search="kara"))) == ["3"]


def test_search_is_anded_with_filters():
    assert apply_filters(ROWS, ListingFilters(search="o+", status="critical")) == []
    assert ids(apply_filters(ROWS, ListingFilters(search="o", status="critical"))) == ["1"]


def test_whitespace_search_is_a_literal_query():
    # only "Kandy GH" contains a space
    assert ids(apply_filters(ROWS, ListingFilters(search=" "))) == ["1"]
    assert not ListingFilters(search=" ").is_empty
    assert ListingFilters(search="").is_empty


@pytest.mark.parametrize("value", [ALL, "", None, "  "])
def test_all_sentinel_means_no_constraint(value):
    f = ListingFilters(blood_type=value, district=value, status=value)
    assert apply_filters(ROWS, f) == ROWS
    assert f.is_empty


def test_counts_follow_the_filtered_set():
    s = reduce(ListingState(), Loaded(rows=ROWS, districts=["Colombo", "Galle", "Kandy"]))
    assert (s.critical_count, s.low_count) == (1, 1)
    assert s.show_banner

    s = reduce(s, FilterChanged("district", "Colombo"))
    assert (s.critical_count, s.low_count) == (0, 0)
    assert not s.show_banner


def test_clear_resets_every_filter():
    s = reduce(ListingState(), Loaded(rows=ROWS))
    s = reduce(s, SearchChanged("kandy"))
    s = reduce(s, FilterChanged("status", "critical"))
    s = reduce(s, Cleared())

    assert s.filters == ListingFilters()
    assert len(s.filtered) == 3


def test_reload_keeps_filters():
    s = reduce(ListingState(), Loaded(rows=ROWS))
    s = reduce(s, FilterChanged("blood_type", "O-"))
    s = reduce(s, Loaded(rows=ROWS[1:]))

    assert s.filters.blood_type == "O-"
    assert s.filtered == ()
    assert s.empty_message == "No shortages match your filters."


def test_unknown_filter_key():
    with pytest.raises(ValueError):
        reduce(ListingState(), FilterChanged("center", "x"))


def test_empty_messages():
    assert ListingState().empty_message is None  # still loading
    assert reduce(ListingState(), Loaded(rows=[])).empty_message == "No blood shortages reported at this time."


def test_render_shape():
    s = reduce(ListingState(), Loaded(rows=ROWS, districts=["Galle", "Kandy"]))
    s = reduce(s, FilterChanged("status", "low"))
    page = render(s)

    assert page["total"] == 3
    assert page["matched"] == 1
    assert page["lowCount"] == 1
    assert page["filters"] == {"search": "", "bloodType": ALL, "district": ALL, "status": "low"}
    assert page["hasFilters"] is True
    assert page["districts"] == ["Galle", "Kandy"]


def test_unique_districts_sorted():
    centers = [{"district": "Kandy"}, {"district": "Colombo"}, {"district": "Kandy"}, {"district": None}]
    assert unique_districts(centers) == ["Colombo", "Kandy"]


def test_count_by_status():
    assert count_by_status(ROWS, "normal") == 1
