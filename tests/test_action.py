"""
Tests for the LoadAction ledger and its serialized form.
"""
from __future__ import annotations

import json
from dataclasses import FrozenInstanceError
from datetime import timedelta

import pytest

from image_loader.action import LoadAction, format_duration


class TestLoadAction:
    """Test ledger value semantics."""

    def test_steps_return_new_values(self):
        """Test that ledger steps never mutate the original."""
        base = LoadAction(digest="sha256:aaa")
        step = base.mark_loaded("sha256:bbb").with_tag_present("app:v1").with_tag_added("app:v2")

        assert base == LoadAction(digest="sha256:aaa")
        assert step.digest == "sha256:bbb"
        assert step.already_loaded is True
        assert step.tags_already_present == ("app:v1",)
        assert step.tags_added == ("app:v2",)

    def test_ledger_is_frozen(self):
        """Test that fields cannot be reassigned."""
        action = LoadAction(digest="sha256:aaa")
        with pytest.raises(FrozenInstanceError):
            action.already_loaded = True  # type: ignore[misc]

    def test_to_dict_uses_stable_field_names(self):
        """Test the machine-readable record layout."""
        action = (
            LoadAction(digest="sha256:aaa")
            .mark_loaded("sha256:aaa")
            .with_tag_present("app:v1")
            .with_tag_added("app:v2")
            .finalize(timedelta(milliseconds=250))
        )

        assert action.to_dict() == {
            "digest": "sha256:aaa",
            "alreadyLoaded": True,
            "tagsAdded": ["app:v2"],
            "tagsAlreadyPresent": ["app:v1"],
            "loadTime": "250ms",
        }

    def test_to_json_round_trips_through_json_loads(self):
        """Test that to_json emits the same record as to_dict."""
        action = LoadAction(digest="sha256:aaa").finalize(timedelta(seconds=1.5))
        assert json.loads(action.to_json()) == action.to_dict()

    def test_empty_tag_lists_serialize_as_empty_arrays(self):
        """Test that no tags yields [] rather than null."""
        record = LoadAction(digest="sha256:aaa").to_dict()
        assert record["tagsAdded"] == []
        assert record["tagsAlreadyPresent"] == []
        assert record["loadTime"] == ""


class TestFormatDuration:
    """Test human-readable duration rendering."""

    @pytest.mark.parametrize("delta, expected", [
        (timedelta(0), "0s"),
        (timedelta(microseconds=1), "1µs"),
        (timedelta(microseconds=1500), "1.5ms"),
        (timedelta(milliseconds=250), "250ms"),
        (timedelta(seconds=1), "1s"),
        (timedelta(seconds=1.5), "1.5s"),
        (timedelta(minutes=2, seconds=3.5), "2m3.5s"),
        (timedelta(minutes=2), "2m0s"),
        (timedelta(hours=1, minutes=1, seconds=1), "1h1m1s"),
        (timedelta(seconds=-1.5), "-1.5s"),
    ])
    def test_format(self, delta, expected):
        """Test representative durations across units."""
        assert format_duration(delta) == expected
