"""Tests for place normalization and the JSON interchange format."""

import json
import math

import pytest

from travellog.domain.entities import Place
from travellog.domain.errors import ParseError, ValidationError
from travellog.domain.place import (
    dump_places,
    new_place,
    normalize,
    normalize_changes,
    parse_places,
    place_to_json,
)


class TestNormalize:
    """Tests for normalizing raw place input."""

    def test_full_interchange_document(self):
        place = normalize(
            {
                "id": "abc",
                "name": "  Lake Bled ",
                "country": "Slovenia",
                "countryCode": "si",
                "city": "Bled",
                "lat": "46.36",
                "lng": 14.09,
                "status": "visited",
                "dateVisited": "2025-10-23",
                "rating": "5",
                "notes": "Boat ride",
                "tags": ["lake", " hiking ", ""],
            }
        )
        assert place == Place(
            id="abc",
            name="Lake Bled",
            country="Slovenia",
            country_code="SI",
            city="Bled",
            lat=46.36,
            lng=14.09,
            status="visited",
            date_visited="2025-10-23",
            rating=5,
            notes="Boat ride",
            tags=("lake", "hiking"),
        )

    def test_attribute_names_are_accepted(self):
        place = normalize({"name": "Oslo", "country_code": "no", "date_visited": "2024-01-02"})
        assert place.country_code == "NO"
        assert place.date_visited == "2024-01-02"

    def test_missing_fields_get_defaults(self):
        place = normalize({}, default_coords=(1.5, 2.5))
        assert place.id
        assert place.name == ""
        assert place.country_code is None
        assert (place.lat, place.lng) == (1.5, 2.5)
        assert place.status == "wishlist"
        assert place.rating == 0
        assert place.tags == ()

    def test_non_mapping_input_is_treated_as_empty(self):
        for raw in (None, "Paris", 42, ["Paris"]):
            place = normalize(raw)
            assert place.name == ""
            assert place.status == "wishlist"

    @pytest.mark.parametrize("status", ["Visited", "VISITED", "been", None, 1])
    def test_only_exact_visited_status_is_visited(self, status):
        assert normalize({"status": status}).status == "wishlist"

    @pytest.mark.parametrize("value", [None, "", "abc", float("nan"), float("inf"), True])
    def test_bad_coordinates_fall_back(self, value):
        place = normalize({"lat": value, "lng": value}, default_coords=(10.0, 20.0))
        assert (place.lat, place.lng) == (10.0, 20.0)
        assert math.isfinite(place.lat)

    def test_tags_from_comma_string(self):
        assert normalize({"tags": "food, ,wine,food"}).tags == ("food", "wine", "food")

    def test_rating_is_not_clamped(self):
        assert normalize({"rating": 9}).rating == 9
        assert normalize({"rating": "4.7"}).rating == 4
        assert normalize({"rating": "many"}).rating == 0

    def test_visit_date_is_kept_as_given(self):
        assert normalize({"dateVisited": " 2024-05-01T10:00:00 "}).date_visited == "2024-05-01T10:00:00"
        assert normalize({"dateVisited": None}).date_visited == ""

    def test_empty_country_code_becomes_none(self):
        assert normalize({"countryCode": "  "}).country_code is None

    def test_numeric_id_is_kept_as_string(self):
        assert normalize({"id": 17, "name": "x"}).id == "17"

    def test_generated_ids_are_unique(self):
        assert normalize({}).id != normalize({}).id


class TestNewPlace:
    """Tests for the form path used when creating places."""

    def test_name_is_required(self):
        with pytest.raises(ValidationError):
            new_place({"name": "   "}, (0.0, 0.0))

    def test_supplied_id_is_replaced(self):
        place = new_place({"id": "keep-me", "name": "Rome"}, (0.0, 0.0))
        assert place.id != "keep-me"

    def test_default_coordinates_apply(self):
        place = new_place({"name": "Rome"}, (47.4979, 19.0402))
        assert (place.lat, place.lng) == (47.4979, 19.0402)


class TestNormalizeChanges:
    """Tests for coercing partial edits."""

    def test_only_named_fields_are_returned(self):
        assert normalize_changes({"rating": "3", "countryCode": "at"}) == {
            "rating": 3,
            "country_code": "AT",
        }

    def test_unknown_field(self):
        with pytest.raises(ValidationError, match="Unknown place field 'id'"):
            normalize_changes({"id": "other"})

    def test_empty_name(self):
        with pytest.raises(ValidationError):
            normalize_changes({"name": ""})


class TestInterchange:
    """Tests for import and export documents."""

    def test_place_to_json_uses_camel_case(self):
        document = place_to_json(
            Place(id="1", name="Oslo", country_code="NO", date_visited="2024-01-02", tags=("a",))
        )
        assert document["countryCode"] == "NO"
        assert document["dateVisited"] == "2024-01-02"
        assert document["tags"] == ["a"]
        assert "country_code" not in document

    def test_missing_country_code_is_omitted(self):
        assert "countryCode" not in place_to_json(Place(id="1", name="Oslo"))

    def test_dump_is_pretty_printed_and_ordered(self, sample_places):
        text = dump_places(sample_places)
        assert "\n  " in text
        assert [doc["name"] for doc in json.loads(text)] == ["Paris", "Rome"]

    def test_dump_keeps_non_ascii(self):
        assert "Kraków" in dump_places([Place(id="1", name="Kraków")])

    def test_export_then_import_gives_equal_places(self, sample_places):
        assert parse_places(dump_places(sample_places)) == sample_places

    def test_import_keeps_every_element(self):
        places = parse_places('[{"name": "Paris"}, {}, 5, {"name": ""}]')
        assert len(places) == 4
        assert [p.name for p in places] == ["Paris", "", "", ""]

    def test_import_keeps_visit_date_text(self):
        places = parse_places('[{"name": "Oslo", "dateVisited": "2024-05-01T10:00:00"}]')
        assert places[0].date_visited == "2024-05-01T10:00:00"

    def test_import_keeps_ids(self):
        assert [p.id for p in parse_places('[{"id": "a"}, {"id": "b"}]')] == ["a", "b"]

    @pytest.mark.parametrize("payload", ['{"name": "Paris"}', '"Paris"', "null", "nope", ""])
    def test_import_rejects_non_arrays(self, payload):
        with pytest.raises(ParseError):
            parse_places(payload)
