import logging

import pytest

from forgeorm import Database, Entity, FloatField, IntegerField, StringField
from forgeorm.dialects import SQLiteDialect
from forgeorm.schema import SchemaBuilder

dialect = SQLiteDialect()
builder = SchemaBuilder(dialect)


class Gadget(Entity):
    name = StringField(nullable=False)
    stock = IntegerField(default=0)
    sku = StringField(unique=True)
    price = FloatField()


class Tag(Entity):
    slug = StringField(primary_key=True)
    label = StringField(default="it's new")


def test_create_table_sql():
    sql = builder.create_table_sql(Gadget)
    expected = (
        'CREATE TABLE IF NOT EXISTS "gadget" ("id" INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT, '
        '"name" TEXT NOT NULL, "stock" INTEGER DEFAULT 0, "sku" TEXT UNIQUE, "price" REAL)'
    )
    assert sql == expected


def test_create_table_sql_with_natural_key_and_string_default():
    sql = builder.create_table_sql(Tag)
    expected = (
        'CREATE TABLE IF NOT EXISTS "tag" ("slug" TEXT NOT NULL, "label" TEXT DEFAULT \'it\'\'s new\', '
        'PRIMARY KEY ("slug"))'
    )
    assert sql == expected


def test_unique_columns_get_an_index():
    statements = builder.create_index_sql(Gadget)
    assert statements == ['CREATE UNIQUE INDEX IF NOT EXISTS "idx_gadget_sku" ON "gadget" ("sku")']


def test_drop_table_sql():
    sql = builder.drop_table_sql(Gadget)
    assert sql == 'DROP TABLE IF EXISTS "gadget"'


def test_drop_table_logs_warning(caplog):
    caplog.set_level(logging.WARNING, logger="forgeorm.schema.builder")
    local_builder = SchemaBuilder(SQLiteDialect())
    local_builder.drop_table_sql(Gadget)
    assert any("DROP TABLE generated" in record.message for record in caplog.records)


def test_create_tables_against_database(tmp_path):
    database = Database.from_url(f"sqlite:///{tmp_path / 'ddl.db'}")

    builder.create_tables(database, [Gadget, Tag])

    assert builder.table_exists(database, "gadget")
    assert builder.table_exists(database, "tag")
    builder.drop_tables(database, [Gadget, Tag])
    assert not builder.table_exists(database, "gadget")
    database.close()


def test_missing_db_type_is_rejected():
    class Blob(Entity):
        payload = StringField(db_type="")

    with pytest.raises(ValueError):
        builder.create_table_sql(Blob)
