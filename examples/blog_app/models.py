"""
Data models for the ForgeORM blog example.
"""

from __future__ import annotations

from forgeorm import BelongsTo, BooleanField, CascadeOption, DateTimeField, Entity, HasMany, IntegerField, StringField


class Writer(Entity):
    name = StringField(nullable=False, max_length=120)
    email = StringField(nullable=False, unique=True)
    bio = StringField(default="")
    entries = HasMany("Entry", foreign_key="writer_id", cascade=[CascadeOption.PERSIST, CascadeOption.REMOVE])


class Topic(Entity):
    name = StringField(nullable=False, unique=True, max_length=80)
    description = StringField(default="")


class Entry(Entity):
    title = StringField(nullable=False, max_length=200)
    body = StringField(nullable=False, max_length=None)
    published = BooleanField(default=False)
    writer_id = IntegerField()
    topic_id = IntegerField()
    writer = BelongsTo(Writer, local_key="writer_id")
    topic = BelongsTo(Topic, local_key="topic_id")
    created_at = DateTimeField(auto_now_add=True)
