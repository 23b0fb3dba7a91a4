"""
Unit tests for article slugs, permissions and status transitions.
"""

import pytest

from infrastructure.database.models.content import Article, ArticleAuthor
from services.article_workflow import (
    ArticleWorkflow,
    InvalidStatusError,
    WorkflowPermissionError,
    apply_content,
    slugify,
    unique_slug,
)


class TestSlugify:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Starship Flight 5: Catch!", "starship-flight-5-catch"),
            ("  Crème brûlée in orbit  ", "creme-brulee-in-orbit"),
            ("snake_case and--dashes", "snake-case-and-dashes"),
            ("!!!", ""),
        ],
    )
    def test_slugify(self, text, expected):
        assert slugify(text) == expected


class TestApplyContent:
    def test_normalizes_and_sets_read_time(self):
        article = Article(title="t", slug="t", primary_author_id="u")
        apply_content(article, [{"type": "heading-2", "content": "Hi"}])

        assert article.content[0]["type"] == "heading"
        assert article.content[0]["level"] == 2
        assert article.read_time == 1

    def test_empty_content(self):
        article = Article(title="t", slug="t", primary_author_id="u")
        apply_content(article, None)
        assert article.content == []


@pytest.mark.asyncio
class TestUniqueSlug:
    async def test_free_slug(self, db_session):
        assert await unique_slug(db_session, "mars-landing") == "mars-landing"

    async def test_suffixes(self, db_session, make_article, author_user):
        await make_article(author_user, slug="mars-landing")
        await make_article(author_user, slug="mars-landing-2")

        assert await unique_slug(db_session, "mars-landing") == "mars-landing-3"

    async def test_own_slug_is_free(self, db_session, make_article, author_user):
        article = await make_article(author_user, slug="europa")
        assert await unique_slug(db_session, "europa", exclude_id=article.id) == "europa"

    async def test_empty_base(self, db_session):
        assert await unique_slug(db_session, "") == "article"


@pytest.mark.asyncio
class TestPermissions:
    async def test_published_is_public(self, db_session, make_article, author_user):
        article = await make_article(author_user, status="published")
        assert await ArticleWorkflow(db_session).can_view(article, None) is True

    async def test_draft_visibility(
        self, db_session, make_article, author_user, test_user, editor_user
    ):
        article = await make_article(author_user)
        workflow = ArticleWorkflow(db_session)

        assert await workflow.can_view(article, None) is False
        assert await workflow.can_view(article, test_user) is False
        assert await workflow.can_view(article, author_user) is True
        assert await workflow.can_view(article, editor_user) is True

    async def test_coauthor_can_edit(self, db_session, make_article, author_user, make_user):
        article = await make_article(author_user)
        coauthor = await make_user("author", username="coauthor")
        db_session.add(ArticleAuthor(article_id=article.id, user_id=coauthor.id, role="coauthor"))
        await db_session.commit()

        assert await ArticleWorkflow(db_session).can_edit(article, coauthor) is True

    async def test_only_primary_or_admin_deletes(
        self, db_session, make_article, author_user, editor_user, admin_user
    ):
        article = await make_article(author_user)

        assert ArticleWorkflow.can_delete(article, author_user) is True
        assert ArticleWorkflow.can_delete(article, admin_user) is True
        assert ArticleWorkflow.can_delete(article, editor_user) is False


@pytest.mark.asyncio
class TestChangeStatus:
    async def test_editor_publishes(self, db_session, make_article, author_user, editor_user):
        article = await make_article(author_user)
        article = await ArticleWorkflow(db_session).change_status(article, "published", editor_user)

        assert article.status == "published"
        assert article.published_at is not None

    async def test_author_cannot_publish(self, db_session, make_article, author_user):
        article = await make_article(author_user)

        with pytest.raises(WorkflowPermissionError, match="Only editors"):
            await ArticleWorkflow(db_session).change_status(article, "published", author_user)

    async def test_author_can_archive(self, db_session, make_article, author_user):
        article = await make_article(author_user)
        article = await ArticleWorkflow(db_session).change_status(article, "archived", author_user)
        assert article.status == "archived"
        assert article.published_at is None

    async def test_republishing_keeps_published_at(
        self, db_session, make_article, author_user, editor_user
    ):
        workflow = ArticleWorkflow(db_session)
        article = await make_article(author_user)
        article = await workflow.change_status(article, "published", editor_user)
        first = article.published_at

        article = await workflow.change_status(article, "published", editor_user)
        assert article.published_at == first

    async def test_stranger_cannot_change_status(
        self, db_session, make_article, author_user, make_user
    ):
        article = await make_article(author_user)
        stranger = await make_user("author", username="stranger")

        with pytest.raises(WorkflowPermissionError):
            await ArticleWorkflow(db_session).change_status(article, "draft", stranger)

    async def test_unknown_status(self, db_session, make_article, author_user, editor_user):
        article = await make_article(author_user)

        with pytest.raises(InvalidStatusError):
            await ArticleWorkflow(db_session).change_status(article, "scheduled", editor_user)
