from datetime import datetime, timezone

from forgeorm import Serializer

from sample_entities import Comment, Post, User

serializer = Serializer()


def test_normalize_includes_columns_only():
    user = User(name="Alice", posts=[Post(title="p")])

    payload = serializer.normalize(user)

    assert payload == {"id": None, "name": "Alice", "email": None}


def test_normalize_converts_values_for_storage():
    stamp = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    post = Post(title="t", published=True, created_at=stamp)

    payload = serializer.normalize(post)

    assert payload["published"] == 1
    assert payload["created_at"] == "2024-01-02T03:04:05+00:00"
    assert "comments" not in payload
    assert "author" not in payload


def test_normalize_reads_through_proxies():
    from forgeorm.core import EntityProxy

    comment = Comment(body="hi", post_id=3)
    proxy = EntityProxy(comment, lambda *args: None, frozenset())

    assert serializer.normalize(proxy) == {"id": None, "body": "hi", "post_id": 3}


def test_denormalize_builds_entity_from_row():
    row = {
        "id": 4,
        "title": "Loaded",
        "published": 0,
        "user_id": None,
        "created_at": "2024-01-02T03:04:05+00:00",
        "updated_at": None,
        "unexpected": "ignored",
    }

    post = serializer.denormalize(Post, row)

    assert isinstance(post, Post)
    assert post.id == 4
    assert post.title == "Loaded"
    assert post.published is False
    assert post.created_at == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert post.comments == []


def test_denormalize_leaves_missing_columns_unset():
    user = serializer.denormalize(User, {"id": 1, "name": "Partial"})

    assert user.email is None
    assert user.name == "Partial"
