import pytest

from forgeorm.core import (
    BelongsTo,
    BooleanField,
    DateTimeField,
    Entity,
    HasMany,
    IntegerField,
    ModelConfigurationError,
    StringField,
)
from forgeorm.core.fields import FieldError


class Member(Entity):
    name = StringField(max_length=50, nullable=False)
    age = IntegerField(default=0)
    is_active = BooleanField(default=True)


class Membership(Entity):
    member_id = IntegerField()
    member = BelongsTo(Member, local_key="member_id")


class Club(Entity):
    title = StringField()
    memberships = HasMany(Membership, foreign_key="club_id")


def test_entity_metadata_collects_fields_in_order():
    assert list(Member._meta.fields.keys()) == ["id", "name", "age", "is_active"]
    assert Member._meta.primary_key.name == "id"
    assert Member._meta.table_name == ""
    assert Member._meta.track_changes is True


def test_entity_initializes_defaults():
    member = Member(name="Alice")
    assert member.name == "Alice"
    assert member.age == 0
    assert member.is_active is True
    assert member.pk is None


def test_unknown_keyword_is_rejected():
    with pytest.raises(TypeError):
        Member(nickname="ally")


def test_setting_field_enforces_choices():
    class Article(Entity):
        status = StringField(choices=("draft", "published"), default="draft")

    article = Article()
    with pytest.raises(ValueError):
        article.status = "archived"


def test_non_nullable_field_rejects_none():
    member = Member(name="user")

    with pytest.raises(ValueError):
        member.name = None


def test_max_length_is_enforced():
    with pytest.raises(ValueError):
        Member(name="x" * 51)


def test_custom_primary_key_prevents_auto_field():
    class Token(Entity):
        token_id = StringField(primary_key=True)

    assert list(Token._meta.fields.keys()) == ["token_id"]
    assert Token._meta.primary_key.name == "token_id"


def test_field_named_id_without_primary_key_is_rejected():
    with pytest.raises(ModelConfigurationError):
        class Broken(Entity):
            id = IntegerField()


def test_auto_increment_requires_primary_key():
    with pytest.raises(FieldError):
        IntegerField(auto_increment=True)


def test_relations_are_collected_separately():
    assert list(Club._meta.relations) == ["memberships"]
    assert "memberships" not in Club._meta.fields
    club = Club(title="Chess")
    assert club.memberships == []
    club.memberships = (Membership(),)
    assert isinstance(club.memberships, list)


def test_belongs_to_defaults_to_id_foreign_key():
    relation = Membership._meta.relations["member"]
    assert relation.local_key == "member_id"
    assert relation.foreign_key == "id"
    assert relation.is_inverse


def test_datetime_field_parses_iso_strings():
    class Event(Entity):
        starts_at = DateTimeField()

    event = Event(starts_at="2024-05-06T07:08:09")
    assert event.starts_at.year == 2024
    with pytest.raises(ValueError):
        event.starts_at = "not a date"


def test_repr_lists_assigned_fields():
    assert repr(Member(name="Zed")) == "<Member name='Zed'>"
