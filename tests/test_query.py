"""
Tests for the filtered list query builder.
"""

import math
from types import SimpleNamespace

import pytest

from folio.auth.context import AuthContext
from folio.core.errors import ValidationError
from folio.core.models import Post, User
from folio.core.query import ListParams, ListQuery, Page, SortOrder, parse_flag

EDITOR = AuthContext(user=SimpleNamespace(id=1, role="editor"))
VIEWER = AuthContext(user=SimpleNamespace(id=2, role="viewer"))
ANONYMOUS = AuthContext.anonymous()


@pytest.fixture
def posts(make_post):
    """Five published posts and two drafts."""
    for i in range(1, 6):
        make_post(
            f"post-{i}",
            category="python" if i % 2 else "devops",
            author="Jane Doe" if i < 4 else "John Roe",
        )
    make_post("draft-1", is_published=False, category="python")
    make_post("draft-2", is_published=False, title="Secret Python Plans")


def slugs(page):
    return [item.slug for item in page.items]


# =============================================================================
# Page / params
# =============================================================================


class TestPage:
    @pytest.mark.parametrize("total,limit", [(0, 10), (1, 10), (10, 10), (11, 10), (12, 5), (99, 7)])
    def test_total_pages(self, total, limit):
        page = Page(items=[], total=total, page=1, limit=limit)

        assert page.total_pages == math.ceil(total / limit)

    def test_pagination_keys(self):
        page = Page(items=[], total=12, page=2, limit=5)

        assert page.pagination == {
            "current_page": 2,
            "total_pages": 3,
            "total_items": 12,
            "items_per_page": 5,
        }

    def test_offset(self):
        assert ListParams(page=3, limit=20).offset == 40


class TestParseFlag:
    def test_absent_means_no_filter(self):
        assert parse_flag(None) is None

    @pytest.mark.parametrize("raw", ["true", "TRUE", " True "])
    def test_true(self, raw):
        assert parse_flag(raw) is True

    @pytest.mark.parametrize("raw", ["false", "0", "yes", ""])
    def test_everything_else_is_false(self, raw):
        assert parse_flag(raw) is False


# =============================================================================
# ListQuery
# =============================================================================


class TestListQuery:
    def test_anonymous_sees_only_published(self, session, posts):
        page = ListQuery(Post, ListParams()).visible_to(ANONYMOUS).fetch(session)

        assert page.total == 5
        assert not any(s.startswith("draft") for s in slugs(page))

    def test_viewer_cannot_ask_for_drafts(self, session, posts):
        page = (
            ListQuery(Post, ListParams())
            .filter_flag("is_published", "false")
            .visible_to(VIEWER)
            .fetch(session)
        )

        assert page.total == 5
        assert not any(s.startswith("draft") for s in slugs(page))

    def test_editor_can_filter_drafts(self, session, posts):
        page = (
            ListQuery(Post, ListParams())
            .filter_flag("is_published", "false")
            .visible_to(EDITOR)
            .fetch(session)
        )

        assert sorted(slugs(page)) == ["draft-1", "draft-2"]

    def test_filter_equal(self, session, posts):
        page = ListQuery(Post, ListParams()).filter_equal("category", "devops").fetch(session)

        assert sorted(slugs(page)) == ["post-2", "post-4"]

    def test_empty_filter_is_ignored(self, session, posts):
        page = ListQuery(Post, ListParams()).filter_equal("category", "").fetch(session)

        assert page.total == 7

    def test_filter_contains_is_case_insensitive(self, session, posts):
        page = ListQuery(Post, ListParams()).filter_contains("author", "roe").fetch(session)

        assert sorted(slugs(page)) == ["post-4", "post-5"]

    def test_search_spans_fields(self, session, posts):
        query = ListQuery(Post, ListParams(), search_fields=("title", "full_content"))
        page = query.search("secret python").visible_to(EDITOR).fetch(session)

        assert slugs(page) == ["draft-2"]

    def test_search_respects_visibility(self, session, posts):
        query = ListQuery(Post, ListParams(), search_fields=("title",))
        page = query.search("secret").visible_to(ANONYMOUS).fetch(session)

        assert page.total == 0

    def test_wildcards_are_literal(self, session, posts, make_post):
        make_post("discount", title="100% Python")
        query = ListQuery(Post, ListParams(), search_fields=("title",))

        assert slugs(query.search("0%").fetch(session)) == ["discount"]
        assert ListQuery(Post, ListParams()).filter_contains("author", "_").fetch(session).total == 0
        assert ListQuery(Post, ListParams(), search_fields=("title",)).search("%").fetch(session).total == 1

    def test_pagination(self, session, posts):
        params = ListParams(page=2, limit=2, sort="slug", order=SortOrder.ASC)
        page = ListQuery(Post, params).visible_to(ANONYMOUS).fetch(session)

        assert slugs(page) == ["post-3", "post-4"]
        assert page.total == 5
        assert page.total_pages == 3

    def test_page_past_the_end_is_empty(self, session, posts):
        page = ListQuery(Post, ListParams(page=9, limit=10)).fetch(session)

        assert page.items == []
        assert page.total == 7

    def test_camel_case_sort(self, session, make_post):
        make_post("b", view_count=5)
        make_post("a", view_count=9)
        make_post("c", view_count=1)

        page = ListQuery(Post, ListParams(sort="viewCount")).fetch(session)

        assert slugs(page) == ["a", "b", "c"]

    def test_unknown_sort_column(self, session):
        with pytest.raises(ValidationError) as exc:
            ListQuery(Post, ListParams(sort="nope")).fetch(session)
        assert exc.value.details[0]["field"] == "sort"

    def test_password_hash_is_not_sortable(self, session):
        with pytest.raises(ValidationError):
            ListQuery(User, ListParams(sort="passwordHash")).fetch(session)

    def test_leading_order_wins(self, session, make_post):
        make_post("low", view_count=1)
        make_post("high", view_count=100)

        query = ListQuery(
            Post,
            ListParams(sort="viewCount", order=SortOrder.DESC),
            leading_order=(Post.slug.asc(),),
        )

        assert slugs(query.fetch(session)) == ["high", "low"]
