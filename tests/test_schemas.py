"""Tests for raw annotation validation and the fragment acceptance predicate."""

from __future__ import annotations

from factories import note_region, time_frame
from scoresync.schemas import parse_annotation


class TestParseAnnotation:
    def test_time_frame_is_fragment(self):
        annotation = parse_annotation(time_frame("t=0,4.852608"))
        assert annotation.is_fragment
        assert annotation.body.selector.value == "t=0,4.852608"
        assert annotation.body.selector.conforms_to.startswith("https://www.w3.org/TR/media-frags")

    def test_target_value(self):
        assert parse_annotation(note_region(2, "nh_1593_1999")).target_value == "nh_1593_1999"

    def test_extra_fields_kept(self):
        annotation = parse_annotation(note_region(2, "n1"))
        assert annotation.model_extra["annotation_concept"] == "note-region"

    def test_missing_selector_type_is_not_fragment(self):
        entry = time_frame("t=1,2")
        del entry["body"]["selector"]["type"]
        assert not parse_annotation(entry).is_fragment

    def test_missing_body(self):
        assert not parse_annotation({"id": 1}).is_fragment

    def test_non_dict_is_rejected(self):
        assert parse_annotation(["not", "an", "annotation"]) is None

    def test_malformed_body_is_rejected(self):
        assert parse_annotation({"body": {"source": "x", "selector": {"value": 12}}}) is None

    def test_iri_target_is_accepted(self):
        entry = time_frame("t=1,2")
        entry["target"] = "https://neuma.example/score.mei#nh_1"
        annotation = parse_annotation(entry)
        assert annotation.is_fragment
        assert annotation.target_value is None

    def test_list_conforms_to_is_accepted(self):
        entry = time_frame("t=1,2")
        entry["body"]["selector"]["conformsTo"] = [
            "http://www.w3.org/TR/media-frags/",
            "https://www.w3.org/TR/media-frags/#naming-time",
        ]
        assert parse_annotation(entry).is_fragment
