"""Premise normalization: map adapter raw items onto the canonical Premise shape.

Everything here is pure: no network, no store access.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

SHORT_DESCRIPTION_LENGTH = 150
ELLIPSIS = "..."
FIRST_PERSON_SUBJECT = "Eu"
_TERMINAL_PUNCTUATION = (".", "!", "?")


@dataclass(frozen=True)
class RawItem:
    """Item emitted by a source adapter, already flattened to a common shape."""

    external_id: str
    link: str
    body_text: str
    title: str = ""
    author: str = ""
    short_description: str | None = None
    published_at: str | None = None
    like_count: int = 0
    comment_count: int = 0
    view_count: int | None = None  # absent on platforms that do not expose views
    simulated: bool = False


@dataclass(frozen=True)
class SourceSnapshot:
    """Denormalized copy of the owning source at extraction time."""

    id: str
    platform: str
    url: str
    name: str

    @classmethod
    def from_source(cls, source: dict) -> SourceSnapshot:
        return cls(
            id=source["id"],
            platform=source["platform"],
            url=source["url"],
            name=source["name"],
        )


@dataclass(frozen=True)
class CanonicalPremise:
    """Canonical internal representation of an extracted premise."""

    id: str
    source: SourceSnapshot
    link: str
    body: str
    short_description: str
    first_person: str
    title: str
    author: str
    observed_at: str
    likes: int
    comments: int
    views: int
    simulated: bool
    niche: str
    sub_niche: str
    used: bool
    created_at: str
    updated_at: str

    def as_dict(self) -> dict:
        """API-facing nested representation."""
        return {
            "id": self.id,
            "source": {
                "id": self.source.id,
                "platform": self.source.platform,
                "url": self.source.url,
                "name": self.source.name,
            },
            "link": self.link,
            "body": self.body,
            "short_description": self.short_description,
            "first_person": self.first_person,
            "title": self.title,
            "author": self.author,
            "metrics": {
                "observed_at": self.observed_at,
                "likes": self.likes,
                "comments": self.comments,
                "views": self.views,
            },
            "niche": self.niche,
            "sub_niche": self.sub_niche,
            "used": self.used,
            "simulated": self.simulated,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def short_description(text: str) -> str:
    """Cut text to 150 characters, appending an ellipsis only when something was cut."""
    if len(text) <= SHORT_DESCRIPTION_LENGTH:
        return text
    return text[:SHORT_DESCRIPTION_LENGTH] + ELLIPSIS


def to_first_person(text: str) -> str:
    """Rewrite a premise as a first-person sentence.

    "Ela encontrou um tesouro." -> "Eu ela encontrou um tesouro."

    Not idempotent: applying it twice prepends the subject twice. Apply once,
    to the original body text.
    """
    text = text.strip()
    if not text:
        return ""
    if text.endswith(_TERMINAL_PUNCTUATION):
        text = text[:-1]
    if text:
        text = text[0].lower() + text[1:]
    return f"{FIRST_PERSON_SUBJECT} {text}."


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed); naive values are taken as UTC."""
    value = value.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _count(value: int | None) -> int:
    if value is None:
        return 0
    return max(int(value), 0)


def _validate_raw_item(raw: RawItem) -> list[str]:
    """Validate a RawItem against the adapter output contract. Returns a list of errors."""
    errors: list[str] = []
    if not raw.link or not raw.link.strip():
        errors.append("link is required and must be non-empty")
    if not raw.body_text or not raw.body_text.strip():
        errors.append("body_text is required and must be non-empty")
    if raw.published_at is not None:
        try:
            parse_timestamp(raw.published_at)
        except ValueError:
            errors.append(f"published_at '{raw.published_at}' is not valid ISO 8601")
    for name in ("like_count", "comment_count", "view_count"):
        value = getattr(raw, name)
        if value is None:
            continue
        try:
            int(value)
        except (TypeError, ValueError):
            errors.append(f"{name} '{value}' is not an integer")
    return errors


def normalize(raw: RawItem, source: SourceSnapshot) -> CanonicalPremise:
    """Transform a RawItem into a CanonicalPremise owned by ``source``.

    Generates a UUID, derives the short description when the adapter did not
    supply one, computes the first-person rewrite from the body, and falls
    back to ingestion time if published_at is missing. Curation fields start
    at their defaults.

    Raises ValueError if validation fails.
    """
    errors = _validate_raw_item(raw)
    if errors:
        raise ValueError(f"Invalid RawItem: {'; '.join(errors)}")

    now = datetime.now(timezone.utc).isoformat()
    if raw.published_at is not None:
        observed_at = parse_timestamp(raw.published_at).isoformat()
    else:
        observed_at = now

    body = raw.body_text.strip()
    summary = raw.short_description if raw.short_description else short_description(body)

    return CanonicalPremise(
        id=str(uuid.uuid4()),
        source=source,
        link=raw.link.strip(),
        body=body,
        short_description=summary,
        first_person=to_first_person(body),
        title=raw.title.strip(),
        author=raw.author.strip(),
        observed_at=observed_at,
        likes=_count(raw.like_count),
        comments=_count(raw.comment_count),
        views=_count(raw.view_count),
        simulated=raw.simulated,
        niche="",
        sub_niche="",
        used=False,
        created_at=now,
        updated_at=now,
    )
