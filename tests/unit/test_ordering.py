from datetime import datetime, timezone

from manage_easy.board.ordering import MISSING_ORDER, normalize_timestamp, sort_key, sort_works


class TestSortKey:
    def test_missing_order_sorts_last(self):
        assert sort_key(None, "", "a")[0] == MISSING_ORDER
        assert sort_key(True, "", "a")[0] == MISSING_ORDER
        assert sort_key(5, "", "a") < sort_key(None, "", "a")

    def test_ties_break_on_created_then_id(self):
        works = [
            {"id": "b", "order": 1, "createdAt": "2024-01-02T00:00:00+00:00"},
            {"id": "c", "order": 1, "createdAt": "2024-01-01T00:00:00+00:00"},
            {"id": "a", "order": 1, "createdAt": "2024-01-02T00:00:00+00:00"},
            {"id": "z", "order": 0, "createdAt": "2025-01-01T00:00:00+00:00"},
        ]
        assert [w["id"] for w in sort_works(works)] == ["z", "c", "a", "b"]

    def test_sort_is_stable_across_input_order(self):
        works = [{"id": str(i), "order": i % 3} for i in range(9)]
        assert sort_works(works) == sort_works(list(reversed(works)))


class TestNormalizeTimestamp:
    def test_naive_datetime_is_utc(self):
        assert normalize_timestamp(datetime(2024, 1, 1)) == "2024-01-01T00:00:00+00:00"

    def test_firestore_timestamp(self):
        class Stamp:
            def to_datetime(self):
                return datetime(2024, 1, 1, tzinfo=timezone.utc)

        assert normalize_timestamp(Stamp()) == "2024-01-01T00:00:00+00:00"

    def test_none(self):
        assert normalize_timestamp(None) == ""

    def test_iso_strings_normalised_to_utc(self):
        assert normalize_timestamp("2024-01-01T00:00:00Z") == "2024-01-01T00:00:00+00:00"
        assert normalize_timestamp("2024-01-01T02:00:00+02:00") == "2024-01-01T00:00:00+00:00"

    def test_rfc822_string_from_json(self):
        """Test timestamps serialised by Flask's JSON provider compare by time"""
        assert normalize_timestamp("Mon, 01 Jan 2024 00:00:00 GMT") == "2024-01-01T00:00:00+00:00"

    def test_mixed_formats_sort_by_time(self):
        works = [
            {"id": "a", "order": 1, "createdAt": "Tue, 02 Jan 2024 00:00:00 GMT"},
            {"id": "b", "order": 1, "createdAt": "Mon, 01 Jan 2024 00:00:00 GMT"},
            {"id": "c", "order": 1, "createdAt": "2024-01-01T12:00:00Z"},
        ]
        assert [w["id"] for w in sort_works(works)] == ["b", "c", "a"]

    def test_unparseable_string_kept(self):
        assert normalize_timestamp("sometime") == "sometime"
