import pytest

from forgeorm import BelongsTo, Entity, IntegerField, StringField
from forgeorm.core import EntityProxy, RelationType
from forgeorm.schema import (
    SchemaResolutionError,
    SchemaResolver,
    UnderscoreNamingStrategy,
)

from sample_entities import Comment, Post, User


class LineItem(Entity):
    orderNumber = IntegerField()
    productName = StringField(db_column="product")


class BaseRecord(Entity):
    note = StringField()

    class Meta:
        abstract = True


class Invoice(BaseRecord):
    total = IntegerField()
    customer_id = IntegerField()
    customer = BelongsTo(User, local_key="customer_id")


def test_resolves_table_columns_and_primary_key():
    schema = SchemaResolver().resolve_by_type(Post)

    assert schema.table_name == "posts"
    assert list(schema.columns) == ["id", "title", "published", "user_id", "created_at", "updated_at"]
    assert schema.primary_key == "id"
    assert schema.primary_key_column.is_auto_increment
    assert schema.created_at == "created_at"
    assert schema.updated_at == "updated_at"
    assert schema.proxy_factory is EntityProxy


def test_relation_descriptors():
    schema = SchemaResolver().resolve(User)
    posts = schema.relations["posts"]
    profile = schema.relations["profile"]

    assert posts.type is RelationType.HAS_MANY
    assert posts.foreign_key == "user_id"
    assert posts.related_type is Post
    assert posts.cascade_persist and posts.cascade_remove and posts.cascade_detach
    assert profile.type is RelationType.HAS_ONE
    assert not profile.is_inverse
    assert schema.is_relation("posts") and not schema.is_relation("name")

    comment_post = SchemaResolver().resolve(Comment).relations["post"]
    assert comment_post.is_inverse
    assert comment_post.local_key == "post_id"
    assert comment_post.cascade_persist and not comment_post.cascade_remove


def test_resolve_accepts_instances_and_proxies():
    resolver = SchemaResolver()
    user = User(name="x")
    proxy = EntityProxy(user, lambda *args: None, frozenset())

    assert resolver.resolve(user) is resolver.resolve(User)
    assert resolver.resolve(proxy) is resolver.resolve(User)


def test_accessors_read_and_write_original_entity():
    schema = SchemaResolver().resolve(User)
    user = User(name="before")

    assert schema.set_value(user, "name", "after")
    assert schema.get_value(user, "name") == "after"
    assert schema.get_primary_key_value(user) is None
    assert not schema.set_value(user, "missing", 1)


def test_default_naming_strategy():
    schema = SchemaResolver().resolve(LineItem)

    assert schema.table_name == "line_item"
    assert schema.get_column_name("orderNumber") == "orderNumber"
    assert schema.get_column_name("productName") == "product"


def test_underscore_naming_strategy():
    schema = SchemaResolver(UnderscoreNamingStrategy()).resolve(LineItem)

    assert schema.get_column_name("orderNumber") == "order_number"
    assert schema.get_column_name("productName") == "product"


def test_abstract_base_fields_are_inherited():
    schema = SchemaResolver().resolve(Invoice)

    assert list(schema.columns) == ["id", "note", "total", "customer_id"]
    assert schema.relations["customer"].related_type is User


def test_abstract_and_unmapped_types_are_rejected():
    resolver = SchemaResolver()

    with pytest.raises(SchemaResolutionError):
        resolver.resolve(BaseRecord)
    with pytest.raises(SchemaResolutionError):
        resolver.resolve_by_type(dict)
    with pytest.raises(SchemaResolutionError):
        resolver.resolve(Entity)


def test_unknown_column_lookup_raises():
    with pytest.raises(SchemaResolutionError):
        SchemaResolver().resolve(User).get_column_name("posts")


def test_resolve_by_table_name():
    resolver = SchemaResolver()

    assert resolver.resolve_by_table_name("comments").entity_type is Comment
    assert resolver.resolve_by_table_name("no_such_table") is None


def test_schemas_are_cached_until_cleared():
    resolver = SchemaResolver()
    first = resolver.resolve(User)

    assert resolver.resolve(User) is first
    resolver.clear_cache()
    assert resolver.resolve(User) is not first
    assert resolver.all_schemas == [resolver.resolve(User)]
