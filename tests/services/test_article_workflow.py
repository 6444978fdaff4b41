import pytest
from pydantic import ValidationError

from application.dto import (
    ArticleCreateDTO,
    ArticleListQuery,
    ArticleStatusDTO,
    ArticleUpdateDTO,
    ReactionToggleDTO,
    UpdateUserGroupsDTO,
)
from application.services.access_service import AccessService
from domain.article.entity import ArticleStatus
from domain.reaction.entity import ReactionTarget
from domain.common.exceptions import (
    ArticleNotFoundException,
    NothingToUpdateException,
    PermissionDeniedException,
    SlugAlreadyExistsException,
)


def _draft(title="Hello World", **kwargs) -> ArticleCreateDTO:
    return ArticleCreateDTO(title=title, content='{"type":"doc"}', **kwargs)


@pytest.mark.asyncio
async def test_published_at_is_set_once(register, user_service, article_service, uow_factory):
    access = AccessService(uow_factory)
    _, a, _ = await register("alice")
    _, b, b_user = await register("bob")
    assert await access.is_administrator(a.id)
    assert not await access.is_administrator(b.id)
    assert b_user.groups == ["user"]

    groups = await user_service.update_user_groups(b.id, UpdateUserGroupsDTO(groups=["creator"]), a.id)
    assert groups.groups == ["creator"]

    article = await article_service.create(b, _draft(status=ArticleStatus.DRAFT))
    assert article.slug == "hello-world"
    assert article.published_at is None

    published = await article_service.change_status(
        b, article.id, ArticleStatusDTO(status=ArticleStatus.PUBLISHED)
    )
    t1 = published.published_at
    assert t1 is not None

    await article_service.change_status(b, article.id, ArticleStatusDTO(status=ArticleStatus.DRAFT))
    again = await article_service.change_status(
        b, article.id, ArticleStatusDTO(status=ArticleStatus.PUBLISHED)
    )
    assert again.published_at == t1


@pytest.mark.asyncio
async def test_plain_users_cannot_create(article_service, member):
    _, identity, _ = member
    with pytest.raises(PermissionDeniedException):
        await article_service.create(identity, _draft())
    assert not (await article_service.can_create(identity)).can_create


@pytest.mark.asyncio
async def test_duplicate_titles_get_suffixed_slugs(article_service, creator, admin):
    _, identity, _ = creator
    _, admin_identity, _ = admin

    first = await article_service.create(identity, _draft())
    second = await article_service.create(identity, _draft())
    third = await article_service.create(admin_identity, _draft(slug="hello-world"))

    assert [first.slug, second.slug, third.slug] == ["hello-world", "hello-world-1", "hello-world-2"]


@pytest.mark.asyncio
async def test_symbol_only_title_falls_back(article_service, creator):
    _, identity, _ = creator
    article = await article_service.create(identity, _draft(title="???"))
    assert article.slug == "article"


@pytest.mark.asyncio
async def test_update_slug_conflict(article_service, creator):
    _, identity, _ = creator
    first = await article_service.create(identity, _draft(title="First"))
    await article_service.create(identity, _draft(title="Second"))

    with pytest.raises(SlugAlreadyExistsException) as exc_info:
        await article_service.update(identity, first.id, ArticleUpdateDTO(slug="second"))
    assert exc_info.value.message == "This slug is already in use"

    # 保持原 slug 不算冲突
    same = await article_service.update(identity, first.id, ArticleUpdateDTO(slug="first"))
    assert same.slug == "first"


def test_update_slug_needs_three_characters():
    with pytest.raises(ValidationError):
        ArticleUpdateDTO(slug="a")
    assert ArticleUpdateDTO(slug="abc").slug == "abc"


@pytest.mark.asyncio
async def test_update_fields_and_tags(article_service, creator):
    _, identity, _ = creator
    article = await article_service.create(identity, _draft(tags=["LLM", "vision"]))
    assert article.tags == ["llm", "vision"]

    with pytest.raises(NothingToUpdateException):
        await article_service.update(identity, article.id, ArticleUpdateDTO())

    updated = await article_service.update(
        identity, article.id, ArticleUpdateDTO(title="Renamed", tags=["agents"])
    )
    assert updated.title == "Renamed"
    assert updated.slug == "hello-world"
    assert updated.tags == ["agents"]


@pytest.mark.asyncio
async def test_only_author_or_admin_modifies(article_service, creator, member, admin, user_service):
    _, author, _ = creator
    _, admin_identity, _ = admin
    _, other, _ = member
    await user_service.update_user_groups(other.id, UpdateUserGroupsDTO(groups=["creator"]), admin_identity.id)
    article = await article_service.create(author, _draft())

    with pytest.raises(PermissionDeniedException) as exc_info:
        await article_service.update(other, article.id, ArticleUpdateDTO(title="Hijack"))
    assert exc_info.value.message == "You can only edit your own articles"
    with pytest.raises(PermissionDeniedException):
        await article_service.delete(other, article.id)

    edited = await article_service.update(admin_identity, article.id, ArticleUpdateDTO(title="Fixed"))
    assert edited.title == "Fixed"

    with pytest.raises(ArticleNotFoundException):
        await article_service.update(author, "00000000-0000-0000-0000-000000000000",
                                     ArticleUpdateDTO(title="x"))


@pytest.mark.asyncio
async def test_hidden_articles_look_missing(article_service, creator, member, admin):
    _, author, _ = creator
    _, reader, _ = member
    _, admin_identity, _ = admin
    draft = await article_service.create(author, _draft())

    for viewer in (None, reader.id):
        with pytest.raises(ArticleNotFoundException):
            await article_service.get(draft.id, viewer)
        with pytest.raises(ArticleNotFoundException):
            await article_service.get(draft.slug, viewer)

    assert (await article_service.get(draft.slug, author.id)).id == draft.id
    assert (await article_service.get(draft.id, admin_identity.id)).id == draft.id


@pytest.mark.asyncio
async def test_views_count_only_non_author_reads(article_service, creator, member):
    _, author, _ = creator
    _, reader, _ = member
    article = await article_service.create(author, _draft(status=ArticleStatus.PUBLISHED))

    assert (await article_service.get(article.slug, author.id)).views == 0
    assert (await article_service.get(article.slug, reader.id)).views == 1
    assert (await article_service.get(article.id, None)).views == 2


@pytest.mark.asyncio
async def test_list_visibility(article_service, creator, member, admin):
    _, author, _ = creator
    _, reader, _ = member
    _, admin_identity, _ = admin
    await article_service.create(author, _draft(title="Public", status=ArticleStatus.PUBLISHED))
    await article_service.create(author, _draft(title="Secret", status=ArticleStatus.PRIVATE))

    anonymous = await article_service.list(ArticleListQuery(), None)
    as_reader = await article_service.list(ArticleListQuery(), reader.id)
    as_author = await article_service.list(ArticleListQuery(), author.id)
    as_admin = await article_service.list(ArticleListQuery(status="all"), admin_identity.id)

    assert [a.title for a in anonymous.articles] == ["Public"]
    assert as_reader.pagination.total == 1
    assert as_author.pagination.total == 2
    assert as_admin.pagination.total == 2

    # 请求 private 也不能绕过可见性
    sneaky = await article_service.list(ArticleListQuery(status="private"), reader.id)
    assert sneaky.pagination.total == 0


@pytest.mark.asyncio
async def test_list_by_user_and_stats(article_service, creator, member):
    _, author, _ = creator
    _, reader, _ = member
    await article_service.create(author, _draft(title="One", status=ArticleStatus.PUBLISHED))
    await article_service.create(author, _draft(title="Two"))
    await article_service.create(author, _draft(title="Three", status=ArticleStatus.PRIVATE))

    public = await article_service.list_by_user(author.id, ArticleListQuery(), reader.id)
    own = await article_service.list_by_user(author.id, ArticleListQuery(), author.id)
    mine = await article_service.list_mine(author, ArticleListQuery(status="draft"))
    stats = await article_service.my_stats(author)

    assert [a.title for a in public.articles] == ["One"]
    assert own.pagination.total == 3
    assert [a.title for a in mine.articles] == ["Two"]
    assert (stats.total, stats.published, stats.drafts, stats.private) == (3, 1, 1, 1)


@pytest.mark.asyncio
async def test_search_and_tag_filters(article_service, creator):
    _, author, _ = creator
    await article_service.create(author, _draft(
        title="Vision models", status=ArticleStatus.PUBLISHED, tags=["vision"]
    ))
    await article_service.create(author, _draft(
        title="Speech 100% guide", status=ArticleStatus.PUBLISHED, tags=["audio", "vision"]
    ))
    await article_service.create(author, _draft(title="Draft", tags=["vision"]))

    by_tag = await article_service.list(ArticleListQuery(tag="Vision"), None)
    by_search = await article_service.list(ArticleListQuery(search="100%"), None)
    tags = await article_service.tags()

    assert by_tag.pagination.total == 2
    assert [a.title for a in by_search.articles] == ["Speech 100% guide"]
    assert [(t.tag, t.count) for t in tags.tags] == [("vision", 2), ("audio", 1)]


@pytest.mark.asyncio
async def test_delete_removes_article_and_reactions(article_service, reaction_service, creator, member):
    _, author, _ = creator
    _, reader, _ = member
    article = await article_service.create(author, _draft(status=ArticleStatus.PUBLISHED))
    await reaction_service.toggle(reader, ReactionToggleDTO(target_id=article.id))

    deleted = await article_service.delete(author, article.id)

    assert deleted.deleted and deleted.id == article.id
    with pytest.raises(ArticleNotFoundException):
        await article_service.get(article.id, author.id)
    assert (await reaction_service.stats(ReactionTarget.ARTICLE, article.id)).total == 0
