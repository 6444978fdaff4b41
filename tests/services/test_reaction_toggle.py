import pytest

from application.dto import (
    ArticleCreateDTO,
    ReactionBatchRequestDTO,
    ReactionListQuery,
    ReactionToggleDTO,
)
from domain.article.entity import ArticleStatus
from domain.common.exceptions import ArticleNotFoundException
from domain.reaction.entity import ReactionTarget


async def _article(article_service, identity, status=ArticleStatus.PUBLISHED, title="Liked"):
    return await article_service.create(
        identity, ArticleCreateDTO(title=title, content="{}", status=status)
    )


@pytest.mark.asyncio
async def test_toggle_adds_then_removes(article_service, reaction_service, creator, member):
    _, author, _ = creator
    _, reader, _ = member
    article = await _article(article_service, author)

    added = await reaction_service.toggle(reader, ReactionToggleDTO(target_id=article.id))
    assert added.action == "added"
    assert added.stats.counts == {"like": 1}
    assert added.stats.user_reaction == "like"

    removed = await reaction_service.toggle(reader, ReactionToggleDTO(target_id=article.id))
    assert removed.action == "removed"
    assert removed.stats.counts == {"like": 0}
    assert removed.stats.total == 0
    assert removed.stats.user_reaction is None


@pytest.mark.asyncio
async def test_cannot_react_to_invisible_article(article_service, reaction_service, creator, member):
    _, author, _ = creator
    _, reader, _ = member
    draft = await _article(article_service, author, status=ArticleStatus.DRAFT)

    with pytest.raises(ArticleNotFoundException):
        await reaction_service.toggle(reader, ReactionToggleDTO(target_id=draft.id))
    with pytest.raises(ArticleNotFoundException):
        await reaction_service.toggle(reader, ReactionToggleDTO(target_id="missing"))

    own = await reaction_service.toggle(author, ReactionToggleDTO(target_id=draft.id))
    assert own.action == "added"


@pytest.mark.asyncio
async def test_stats_for_viewer_and_anonymous(article_service, reaction_service, creator, member):
    _, author, _ = creator
    _, reader, _ = member
    article = await _article(article_service, author)
    await reaction_service.toggle(reader, ReactionToggleDTO(target_id=article.id))
    await reaction_service.toggle(author, ReactionToggleDTO(target_id=article.id))

    anonymous = await reaction_service.stats(ReactionTarget.ARTICLE, article.id)
    mine = await reaction_service.stats(ReactionTarget.ARTICLE, article.id, reader.id)

    assert anonymous.total == 2 and anonymous.user_reaction is None
    assert mine.user_reaction == "like"


@pytest.mark.asyncio
async def test_batch_stats_keyed_by_target(article_service, reaction_service, creator, member):
    _, author, _ = creator
    _, reader, _ = member
    first = await _article(article_service, author, title="First")
    second = await _article(article_service, author, title="Second")
    await reaction_service.toggle(reader, ReactionToggleDTO(target_id=first.id))

    result = await reaction_service.batch_stats(
        ReactionBatchRequestDTO(target_ids=[first.id, second.id, first.id]), reader.id
    )

    assert set(result.stats) == {first.id, second.id}
    assert result.stats[first.id].counts["like"] == 1
    assert result.stats[first.id].user_reaction == "like"
    assert result.stats[second.id].total == 0


@pytest.mark.asyncio
async def test_list_my_reactions(article_service, reaction_service, creator, member):
    _, author, _ = creator
    _, reader, _ = member
    for title in ("A", "B", "C"):
        article = await _article(article_service, author, title=title)
        await reaction_service.toggle(reader, ReactionToggleDTO(target_id=article.id))

    page = await reaction_service.list_mine(reader, ReactionListQuery(limit=2))

    assert page.pagination.total == 3
    assert len(page.reactions) == 2
    assert all(r.reaction_type.value == "like" for r in page.reactions)
