"""Tests for the feed, detail, like, comment and delete pages."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select

from blogspace.models import Blog, Comment, Like


def test_home_lists_published_blogs_only(anon_client, make_user, make_blog):
    author = make_user("writer@example.com", "writer")
    make_blog(author, title="Sunrise Over Water")
    make_blog(author, title="Unfinished Thoughts", published=False)

    response = anon_client.get("/")

    assert response.status_code == 200
    assert "Sunrise Over Water" in response.text
    assert "Unfinished Thoughts" not in response.text
    assert "writer" in response.text


def test_home_search_filters_by_title_and_excerpt(anon_client, make_user, make_blog):
    author = make_user("writer@example.com", "writer")
    make_blog(author, title="Ocean Tides", excerpt="Waves")
    make_blog(author, title="Mountains", excerpt="An ocean view from the peak")
    make_blog(author, title="Deserts", excerpt="Dry and hot")

    response = anon_client.get("/", params={"q": "OCEAN"})

    assert "Ocean Tides" in response.text
    assert "Mountains" in response.text
    assert "Deserts" not in response.text


def test_empty_feed_message(anon_client):
    response = anon_client.get("/")

    assert "No stories yet" in response.text


def test_detail_renders_markdown_and_comments(anon_client, make_user, make_blog, db_session):
    author = make_user("writer@example.com", "writer")
    reader = make_user("reader@example.com", "reader")
    blog = make_blog(author, title="Formatted", content="Some **bold** words")
    db_session.add(Comment(blog_id=blog.id, user_id=reader.id, content="Nice post"))
    db_session.commit()

    response = anon_client.get(f"/blog/{blog.id}")

    assert response.status_code == 200
    assert "<strong>bold</strong>" in response.text
    assert "Nice post" in response.text
    assert "reader" in response.text
    assert "Comments (1)" in response.text


def test_missing_blog_redirects_home_with_toast(anon_client):
    response = anon_client.get(f"/blog/{uuid.uuid4()}", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/?toast=blog-not-found"
    assert "Blog not found" in anon_client.get(response.headers["location"]).text


def test_draft_hidden_from_other_viewers(anon_client, make_user, make_blog):
    author = make_user("writer@example.com", "writer")
    draft = make_blog(author, title="Secret Draft", published=False)

    response = anon_client.get(f"/blog/{draft.id}", follow_redirects=False)

    assert response.status_code == 303
    assert "blog-not-found" in response.headers["location"]


def test_draft_visible_to_owner(client, author_id, make_blog):
    draft = make_blog(author_id, title="My Draft", published=False)

    response = client.get(f"/blog/{draft.id}")

    assert response.status_code == 200
    assert "My Draft" in response.text
    assert "Draft" in response.text
    assert f"/edit/{draft.id}" in response.text


def test_create_and_publish(client, author_id, csrf_token, db_session):
    response = client.post(
        "/create",
        data={
            "title": "First Post",
            "content": "Hello **world**",
            "excerpt": "",
            "action": "publish",
            "csrf_token": csrf_token(),
        },
        follow_redirects=False,
    )

    assert response.status_code == 303
    location = response.headers["location"]
    assert location.endswith("?toast=blog-published")
    blog = db_session.scalar(select(Blog).where(Blog.title == "First Post"))
    assert blog.published is True
    assert blog.user_id == author_id
    assert blog.excerpt == "Hello **world**"
    assert location.startswith(f"/blog/{blog.id}")


def test_save_draft(client, author_id, csrf_token, db_session):
    response = client.post(
        "/create",
        data={
            "title": "Work in progress",
            "content": "Not done",
            "action": "draft",
            "csrf_token": csrf_token(),
        },
        follow_redirects=False,
    )

    assert response.headers["location"].endswith("?toast=blog-draft-saved")
    blog = db_session.scalar(select(Blog).where(Blog.title == "Work in progress"))
    assert blog.published is False


def test_create_requires_title_and_content(client, author_id, csrf_token, db_session):
    response = client.post(
        "/create",
        data={"title": "  ", "content": "", "csrf_token": csrf_token()},
    )

    assert response.status_code == 422
    assert "Title and content are required" in response.text
    assert db_session.scalar(select(func.count(Blog.id))) == 0


def test_create_page_requires_sign_in(anon_client):
    response = anon_client.get("/create", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/auth?toast=sign-in-required"


def test_edit_updates_own_blog(client, author_id, make_blog, csrf_token, db_session):
    blog = make_blog(author_id, title="Old title", published=False)

    page = client.get(f"/edit/{blog.id}")
    assert "Old title" in page.text

    response = client.post(
        f"/edit/{blog.id}",
        data={
            "title": "New title",
            "content": "New body",
            "action": "publish",
            "csrf_token": csrf_token(),
        },
        follow_redirects=False,
    )

    assert response.status_code == 303
    db_session.expire_all()
    updated = db_session.get(Blog, blog.id)
    assert updated.title == "New title"
    assert updated.published is True


def test_edit_of_someone_elses_blog_is_refused(
    client, author_id, make_user, make_blog, csrf_token, db_session
):
    other = make_user("other@example.com", "other")
    blog = make_blog(other, title="Not yours")

    page = client.get(f"/edit/{blog.id}", follow_redirects=False)
    assert page.headers["location"] == f"/blog/{blog.id}?toast=not-owner"

    response = client.post(
        f"/edit/{blog.id}",
        data={"title": "Hijacked", "content": "x", "csrf_token": csrf_token()},
        follow_redirects=False,
    )

    assert response.headers["location"] == f"/blog/{blog.id}?toast=not-owner"
    db_session.expire_all()
    assert db_session.get(Blog, blog.id).title == "Not yours"


def test_like_toggles_through_form(client, author_id, make_blog, csrf_token, db_session):
    blog = make_blog(author_id)

    client.post(f"/blog/{blog.id}/like", data={"csrf_token": csrf_token()})
    assert db_session.scalar(select(func.count(Like.id))) == 1

    client.post(f"/blog/{blog.id}/like", data={"csrf_token": csrf_token()})
    assert db_session.scalar(select(func.count(Like.id))) == 0


def test_like_requires_sign_in(anon_client, make_user, make_blog, csrf_token):
    blog = make_blog(make_user("writer@example.com", "writer"))

    response = anon_client.post(
        f"/blog/{blog.id}/like",
        data={"csrf_token": csrf_token()},
        follow_redirects=False,
    )

    assert response.headers["location"] == f"/blog/{blog.id}?toast=sign-in-to-like"


def test_comment_is_posted(client, author_id, make_blog, csrf_token):
    blog = make_blog(author_id)

    response = client.post(
        f"/blog/{blog.id}/comments",
        data={"content": "  Thanks for reading  ", "csrf_token": csrf_token()},
        follow_redirects=False,
    )

    assert response.headers["location"] == f"/blog/{blog.id}?toast=comment-posted"
    page = client.get(response.headers["location"])
    assert "Thanks for reading" in page.text
    assert "Comment posted!" in page.text


def test_blank_comment_is_ignored(client, author_id, make_blog, csrf_token, db_session):
    blog = make_blog(author_id)

    response = client.post(
        f"/blog/{blog.id}/comments",
        data={"content": "   ", "csrf_token": csrf_token()},
        follow_redirects=False,
    )

    assert response.headers["location"] == f"/blog/{blog.id}?toast=comment-empty"
    assert db_session.scalar(select(func.count(Comment.id))) == 0


def test_cannot_like_or_comment_on_someone_elses_draft(
    client, author_id, make_user, make_blog, csrf_token, db_session
):
    draft = make_blog(make_user("writer@example.com", "writer"), published=False)

    liked = client.post(
        f"/blog/{draft.id}/like",
        data={"csrf_token": csrf_token()},
        follow_redirects=False,
    )
    commented = client.post(
        f"/blog/{draft.id}/comments",
        data={"content": "Found it", "csrf_token": csrf_token()},
        follow_redirects=False,
    )

    assert liked.headers["location"] == "/?toast=blog-not-found"
    assert commented.headers["location"] == "/?toast=blog-not-found"
    assert db_session.scalar(select(func.count(Like.id))) == 0
    assert db_session.scalar(select(func.count(Comment.id))) == 0


def test_delete_removes_blog_and_related_rows(
    client, author_id, make_user, make_blog, csrf_token, db_session
):
    reader = make_user("reader@example.com", "reader")
    blog = make_blog(author_id)
    db_session.add_all(
        [
            Like(blog_id=blog.id, user_id=reader.id),
            Comment(blog_id=blog.id, user_id=reader.id, content="bye"),
        ]
    )
    db_session.commit()

    response = client.post(
        f"/blog/{blog.id}/delete",
        data={"csrf_token": csrf_token()},
        follow_redirects=False,
    )

    assert response.headers["location"] == "/?toast=blog-deleted"
    assert db_session.scalar(select(func.count(Blog.id))) == 0
    assert db_session.scalar(select(func.count(Like.id))) == 0
    assert db_session.scalar(select(func.count(Comment.id))) == 0


def test_form_post_without_csrf_token_is_forbidden(client, author_id, make_blog):
    blog = make_blog(author_id)

    response = client.post(f"/blog/{blog.id}/like", data={})

    assert response.status_code == 403
