"""Tests for premisehub.ingestion.normalize: premise normalization."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest

from premisehub.ingestion.normalize import (
    RawItem,
    SourceSnapshot,
    normalize,
    parse_timestamp,
    short_description,
    to_first_person,
)

_SOURCE = SourceSnapshot(
    id="src-1",
    platform="reddit",
    url="https://www.reddit.com/r/writingprompts",
    name="WritingPrompts",
)


def _raw(**overrides) -> RawItem:
    defaults = {
        "external_id": "abc",
        "link": "https://www.reddit.com/r/writingprompts/comments/abc/",
        "body_text": "A lighthouse keeper finds a letter from the future.",
    }
    defaults.update(overrides)
    return RawItem(**defaults)


class TestShortDescription:
    def test_short_text_unchanged(self):
        assert short_description("Short premise.") == "Short premise."

    def test_exactly_150_unchanged(self):
        text = "x" * 150
        assert short_description(text) == text

    def test_151_truncated_with_ellipsis(self):
        text = "y" * 151
        result = short_description(text)
        assert result == "y" * 150 + "..."
        assert len(result) == 153


class TestToFirstPerson:
    def test_basic_rewrite(self):
        assert to_first_person("Ela encontrou um tesouro.") == "Eu ela encontrou um tesouro."

    @pytest.mark.parametrize("text", ["Run away!", "Run away?", "Run away.", "Run away"])
    def test_strips_one_terminal_mark(self, text):
        assert to_first_person(text) == "Eu run away."

    def test_only_one_mark_stripped(self):
        assert to_first_person("Wait...") == "Eu wait..."

    def test_trims_whitespace(self):
        assert to_first_person("   Cats rule the world   ") == "Eu cats rule the world."

    def test_blank_returns_empty(self):
        assert to_first_person("   ") == ""

    def test_not_idempotent(self):
        once = to_first_person("Dogs bark.")
        assert to_first_person(once) == "Eu eu dogs bark."


class TestParseTimestamp:
    def test_z_suffix(self):
        assert parse_timestamp("2025-03-01T12:00:00Z") == datetime(
            2025, 3, 1, 12, tzinfo=timezone.utc
        )

    def test_offset_converted_to_utc(self):
        assert parse_timestamp("2025-03-01T12:00:00-03:00").hour == 15

    def test_naive_taken_as_utc(self):
        assert parse_timestamp("2025-03-01T12:00:00").tzinfo == timezone.utc

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")


class TestNormalize:
    def test_basic_fields(self):
        premise = normalize(
            _raw(
                title="Letter",
                author="keeper",
                published_at="2025-03-01T12:00:00Z",
                like_count=40,
                comment_count=5,
                view_count=900,
            ),
            _SOURCE,
        )
        uuid.UUID(premise.id)
        assert premise.source == _SOURCE
        assert premise.body == "A lighthouse keeper finds a letter from the future."
        assert premise.short_description == premise.body
        assert premise.first_person == "Eu a lighthouse keeper finds a letter from the future."
        assert premise.observed_at == "2025-03-01T12:00:00+00:00"
        assert (premise.likes, premise.comments, premise.views) == (40, 5, 900)
        assert premise.niche == ""
        assert premise.sub_niche == ""
        assert premise.used is False
        assert premise.created_at == premise.updated_at

    def test_long_body_gets_truncated_summary(self):
        body = "word " * 60
        premise = normalize(_raw(body_text=body), _SOURCE)
        assert premise.short_description == body.strip()[:150] + "..."
        assert premise.body == body.strip()

    def test_adapter_summary_is_kept(self):
        premise = normalize(_raw(short_description="Custom summary..."), _SOURCE)
        assert premise.short_description == "Custom summary..."

    def test_missing_published_at_uses_ingestion_time(self):
        before = datetime.now(timezone.utc)
        premise = normalize(_raw(), _SOURCE)
        assert parse_timestamp(premise.observed_at) >= before.replace(microsecond=0)

    def test_missing_views_stored_as_zero(self):
        assert normalize(_raw(view_count=None), _SOURCE).views == 0

    def test_simulated_flag_carried(self):
        assert normalize(_raw(simulated=True), _SOURCE).simulated is True

    def test_each_call_gets_new_id(self):
        assert normalize(_raw(), _SOURCE).id != normalize(_raw(), _SOURCE).id

    def test_blank_body_raises(self):
        with pytest.raises(ValueError, match="body_text"):
            normalize(_raw(body_text="   "), _SOURCE)

    def test_missing_link_raises(self):
        with pytest.raises(ValueError, match="link"):
            normalize(_raw(link=""), _SOURCE)

    def test_bad_timestamp_raises(self):
        with pytest.raises(ValueError, match="published_at"):
            normalize(_raw(published_at="not a date"), _SOURCE)

    def test_as_dict_nests_source_and_metrics(self):
        data = normalize(_raw(like_count=3), _SOURCE).as_dict()
        assert data["source"] == {
            "id": "src-1",
            "platform": "reddit",
            "url": "https://www.reddit.com/r/writingprompts",
            "name": "WritingPrompts",
        }
        assert data["metrics"]["likes"] == 3
        assert set(data["metrics"]) == {"observed_at", "likes", "comments", "views"}
