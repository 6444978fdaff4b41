from datetime import datetime, timedelta, timezone

import pytest

from domain.access.permissions import PermissionSet
from domain.article.entity import Article, ArticleStatus, normalize_tags
from domain.article.slug import slugify, with_suffix
from domain.auth.entity import Session
from domain.common.exceptions import DomainValidationException
from shared.durations import parse_duration


ADMIN = PermissionSet.of(["*"])
CREATOR = PermissionSet.of(["create_content", "edit_own_content"])


def _article(status=ArticleStatus.DRAFT) -> Article:
    return Article.create(author_id="author", title="T", slug="t", content="{}", status=status)


@pytest.mark.parametrize(
    "title, expected",
    [
        ("Hello World!", "hello-world"),
        ("  GPT-4   vs  Claude  ", "gpt-4-vs-claude"),
        ("a -- b", "a-b"),
        ("!!!", "article"),
        ("", "article"),
    ],
)
def test_slugify(title, expected):
    assert slugify(title) == expected


def test_slugify_truncates_to_100_characters():
    slug = slugify("word " * 60)
    assert len(slug) <= 100
    assert not slug.endswith("-")


def test_with_suffix():
    assert with_suffix("hello-world", 0) == "hello-world"
    assert with_suffix("hello-world", 2) == "hello-world-2"


def test_normalize_tags_lowercases_and_deduplicates():
    assert normalize_tags([" LLM ", "llm", "Vision", ""]) == ["llm", "vision"]


def test_normalize_tags_limits():
    with pytest.raises(DomainValidationException):
        normalize_tags([f"t{i}" for i in range(11)])
    with pytest.raises(DomainValidationException):
        normalize_tags(["x" * 51])


def test_published_on_create_sets_published_at():
    assert _article(ArticleStatus.PUBLISHED).published_at is not None
    assert _article(ArticleStatus.DRAFT).published_at is None


def test_visibility():
    draft = _article()
    assert draft.is_visible_to("author", PermissionSet.empty())
    assert not draft.is_visible_to("other", CREATOR)
    assert not draft.is_visible_to(None, PermissionSet.empty())
    assert draft.is_visible_to("other", ADMIN)

    published = _article(ArticleStatus.PUBLISHED)
    assert published.is_visible_to(None, PermissionSet.empty())


def test_modification_rights():
    article = _article()
    assert article.can_be_modified_by("author", PermissionSet.empty())
    assert not article.can_be_modified_by("other", CREATOR)
    assert article.can_be_modified_by("other", ADMIN)


def test_view_counting_rule():
    published = _article(ArticleStatus.PUBLISHED)
    assert published.counts_view_from(None)
    assert published.counts_view_from("reader")
    assert not published.counts_view_from("author")
    assert not _article().counts_view_from("reader")


def test_session_expiry_handles_naive_timestamps():
    now = datetime.now(timezone.utc)
    session = Session(id="s", user_id="u", token_hash="h",
                      expires_at=(now - timedelta(seconds=1)).replace(tzinfo=None))
    assert session.is_expired(now)
    session.expires_at = now + timedelta(hours=1)
    assert not session.is_expired(now)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("30d", timedelta(days=30)),
        ("12h", timedelta(hours=12)),
        ("15m", timedelta(minutes=15)),
        ("45", timedelta(seconds=45)),
        (60, timedelta(seconds=60)),
    ],
)
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", ["", "abc", "0d", "-1h", "10y"])
def test_parse_duration_rejects_invalid(value):
    with pytest.raises(ValueError):
        parse_duration(value)
