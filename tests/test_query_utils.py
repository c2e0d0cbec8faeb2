"""Tests for utils/query.py — bucket-item filter SQL builders."""
from datetime import date

from utils.query import BucketItemFilter, build_page_clause, build_where_clause, date_bounds


class TestBuildWhereClause:
    def test_no_filters(self):
        where, params = build_where_clause(BucketItemFilter())
        assert where == ""
        assert params == []

    def test_bucket_filter(self):
        where, params = build_where_clause(BucketItemFilter(bucket_id=3))
        assert where == "WHERE bucketID = ?"
        assert params == [3]

    def test_date_range(self):
        where, params = build_where_clause(
            BucketItemFilter(date_start=date(2024, 1, 1), date_end=date(2024, 1, 31))
        )
        assert '"transaction" >= ?' in where
        assert '"transaction" < ?' in where
        assert params == ["2024-01-01", "2024-02-01"]

    def test_name_part_lowercased(self):
        where, params = build_where_clause(BucketItemFilter(name_part="PayCheck"))
        assert "instr(lower(name), ?) > 0" in where
        assert params == ["paycheck"]

    def test_empty_name_part_ignored(self):
        where, _ = build_where_clause(BucketItemFilter(name_part=""))
        assert where == ""

    def test_multiple_combined_with_and(self):
        where, params = build_where_clause(
            BucketItemFilter(bucket_id=1, date_start=date(2024, 1, 1), name_part="x")
        )
        assert where.count(" AND ") == 2
        assert params == [1, "2024-01-01", "x"]

    def test_paging_fields_not_in_where(self):
        where, params = build_where_clause(BucketItemFilter(page_size=5, page_offset=2))
        assert where == ""
        assert params == []


class TestBuildPageClause:
    def test_no_page_size(self):
        assert build_page_clause(None, 3) == ("", [])

    def test_first_page(self):
        assert build_page_clause(10) == ("LIMIT ? OFFSET ?", [10, 0])

    def test_page_index_multiplies(self):
        assert build_page_clause(10, 2) == ("LIMIT ? OFFSET ?", [10, 20])

    def test_negative_index_clamped(self):
        assert build_page_clause(10, -1) == ("LIMIT ? OFFSET ?", [10, 0])


class TestDateBounds:
    def test_none(self):
        assert date_bounds(None, None) == (None, None)

    def test_end_is_next_day(self):
        assert date_bounds(None, date(2024, 12, 31)) == (None, "2025-01-01")

    def test_latest_date_has_no_upper_bound(self):
        assert date_bounds(date(2024, 1, 1), date.max) == ("2024-01-01", None)

    def test_where_clause_with_latest_date(self):
        where, params = build_where_clause(BucketItemFilter(date_end=date.max))
        assert where == ""
        assert params == []
