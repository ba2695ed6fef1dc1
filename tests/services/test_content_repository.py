"""Content Repository: persistence, ordering and the fail-soft / fail-loud split.

Invariants:
    - list_posts returns min(N, limit) posts, newest first
    - create_post sets created_at == updated_at and derives excerpt/category
    - Reads against a broken store return [] / None; writes raise WriteError
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from quill.core.errors import NotAuthenticatedError, NotFoundError, WriteError
from quill.models.comment import Comment as CommentModel
from quill.schemas.comment import CommentDraft
from quill.schemas.post import PostDraft
from quill.services.content_repository import ContentRepository

from tests.fakes import BrokenDatabaseManager

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _ticking_clock(start=T0, step=timedelta(seconds=1)):
    """Clock returning start, start+step, start+2*step, ..."""
    state = {"now": start - step}

    def tick():
        state["now"] += step
        return state["now"]

    return tick


@pytest.fixture
def ticking_repository(db_manager):
    return ContentRepository(db_manager, clock=_ticking_clock())


async def _publish(repo, author, n):
    return [
        await repo.create_post(
            PostDraft(title=f"Post {i}", content=f"Body {i}"), author,
        )
        for i in range(n)
    ]


# -- posts ---------------------------------------------------------------------

async def test_create_post_assigns_id_and_identical_timestamps(repository, alice):
    post = await repository.create_post(
        PostDraft(title="Hello", content="World"), alice,
    )
    assert post.id is not None
    assert post.created_at == post.updated_at
    assert post.created_at.tzinfo is not None
    assert post.author_id == alice.id
    assert post.author_name == "Alice"
    assert post.category == "General"
    assert post.image_url is None


async def test_create_post_derives_excerpt(repository, alice):
    post = await repository.create_post(
        PostDraft(title="Long", content="z" * 200), alice,
    )
    assert post.excerpt == "z" * 150 + "..."


async def test_get_post_round_trips_through_store(repository, alice):
    created = await repository.create_post(
        PostDraft(title="T", content="C", category="Travel", image_url="https://img/1"),
        alice,
    )
    fetched = await repository.get_post(created.id)
    assert fetched == created


async def test_get_missing_post_returns_none(repository):
    assert await repository.get_post(uuid4()) is None


@pytest.mark.parametrize("n, limit", [(3, 6), (6, 6), (10, 6), (4, 1)])
async def test_list_posts_returns_min_of_n_and_limit_newest_first(
    ticking_repository, alice, n, limit,
):
    await _publish(ticking_repository, alice, n)

    posts = await ticking_repository.list_posts(limit)

    assert len(posts) == min(n, limit)
    stamps = [p.created_at for p in posts]
    assert stamps == sorted(stamps, reverse=True)
    assert posts[0].title == f"Post {n - 1}"


async def test_list_posts_with_equal_timestamps_is_stable(db_manager, alice):
    frozen = ContentRepository(db_manager, clock=lambda: T0)
    await _publish(frozen, alice, 4)

    first = await frozen.list_posts(10)
    second = await frozen.list_posts(10)

    assert [p.id for p in first] == [p.id for p in second]
    assert [p.id for p in first] == sorted((p.id for p in first), reverse=True)


async def test_list_posts_non_positive_limit_is_empty(repository, alice):
    await _publish(repository, alice, 2)
    assert await repository.list_posts(0) == []


async def test_author_name_is_a_snapshot(repository, alice):
    post = await repository.create_post(PostDraft(title="T", content="C"), alice)
    renamed = replace(alice, display_name="Alice Liddell")
    await repository.create_post(PostDraft(title="T2", content="C2"), renamed)

    assert (await repository.get_post(post.id)).author_name == "Alice"


# -- comments ------------------------------------------------------------------

async def test_comments_listed_newest_first_for_their_post_only(
    ticking_repository, alice, bob,
):
    post, other = await _publish(ticking_repository, alice, 2)
    for i in range(3):
        await ticking_repository.create_comment(
            CommentDraft(post_id=post.id, content=f"c{i}"), bob,
        )
    await ticking_repository.create_comment(
        CommentDraft(post_id=other.id, content="elsewhere"), bob,
    )

    comments = await ticking_repository.list_comments(post.id)

    assert [c.content for c in comments] == ["c2", "c1", "c0"]
    assert all(c.post_id == post.id for c in comments)
    assert comments[0].author_name == "Bob"


async def test_create_comment_without_author_writes_nothing(repository, alice, test_db):
    (post,) = await _publish(repository, alice, 1)

    with pytest.raises(NotAuthenticatedError):
        await repository.create_comment(
            CommentDraft(post_id=post.id, content="anon"), None,
        )

    count = await test_db.scalar(select(func.count()).select_from(CommentModel))
    assert count == 0


async def test_create_comment_on_missing_post_is_not_found(repository, bob):
    with pytest.raises(NotFoundError):
        await repository.create_comment(
            CommentDraft(post_id=uuid4(), content="hello?"), bob,
        )


async def test_delete_comment_is_delete_if_exists(repository, alice, bob):
    (post,) = await _publish(repository, alice, 1)
    comment = await repository.create_comment(
        CommentDraft(post_id=post.id, content="bye"), bob,
    )

    assert await repository.delete_comment(comment.id) is True
    assert await repository.delete_comment(comment.id) is False
    assert await repository.get_comment(comment.id) is None


# -- failure policy ------------------------------------------------------------

@pytest.fixture
def broken_repository():
    return ContentRepository(BrokenDatabaseManager())


async def test_reads_fail_soft(broken_repository):
    assert await broken_repository.list_posts(6) == []
    assert await broken_repository.get_post(uuid4()) is None
    assert await broken_repository.list_comments(uuid4()) == []
    assert await broken_repository.get_comment(uuid4()) is None


async def test_create_post_fails_loud(broken_repository, alice):
    with pytest.raises(WriteError) as exc:
        await broken_repository.create_post(PostDraft(title="T", content="C"), alice)
    assert exc.value.code == "WRITE_FAILED"


async def test_deletes_fail_loud(broken_repository):
    with pytest.raises(WriteError):
        await broken_repository.delete_post(uuid4())
    with pytest.raises(WriteError):
        await broken_repository.delete_comment(uuid4())


async def test_create_comment_fails_loud(broken_repository, bob):
    with pytest.raises(WriteError):
        await broken_repository.create_comment(
            CommentDraft(post_id=uuid4(), content="hi"), bob,
        )
