"""
Utility helpers for running the ForgeORM blog example end-to-end.
"""

from __future__ import annotations

from typing import Any, Dict, List

from forgeorm import Orm

from .models import Entry, Topic, Writer

MODELS = (Writer, Topic, Entry)


def bootstrap_orm(url: str = "sqlite:///:memory:") -> Orm:
    """
    Open an ORM on ``url`` and make sure the blog tables exist.
    """

    orm = Orm.from_url(url)
    orm.create_schema(MODELS)
    return orm


def seed_sample_data(orm: Orm) -> Dict[str, List[Dict[str, Any]]]:
    """
    Persist writers, topics and entries in a single unit of work.

    Entries are only reachable through their writer's ``entries`` list; the
    cascade schedules them and the flush fills ``writer_id`` and ``topic_id``
    once the parents have keys.
    """

    topics = [
        Topic(name="Announcements", description="Release notes and launch news."),
        Topic(name="Guides", description="Deep dives and tutorials."),
    ]
    writers = [
        Writer(name="Alice Carter", email="alice@example.com", bio="Editor-in-chief."),
        Writer(name="Brian Kim", email="brian@example.com", bio="Schema enthusiast."),
    ]
    writers[0].entries = [
        Entry(
            title="Introducing ForgeORM",
            body="Entities, repositories and a unit of work on top of SQLite.",
            published=True,
            topic=topics[0],
        ),
    ]
    writers[1].entries = [
        Entry(
            title="Ordering inserts by relationship",
            body="Parents are written first so children can reference their keys.",
            published=True,
            topic=topics[1],
        ),
        Entry(title="Draft: cascades", body="Work in progress.", topic=topics[1]),
    ]

    with orm.transaction() as manager:
        for topic in topics:
            manager.persist(topic)
        for writer in writers:
            manager.persist(writer)

    serializer = orm.serializer
    return {
        "writers": [serializer.normalize(writer) for writer in writers],
        "topics": [serializer.normalize(topic) for topic in topics],
        "entries": [serializer.normalize(entry) for writer in writers for entry in writer.entries],
    }


def fetch_recent_entries(orm: Orm, limit: int = 5) -> List[Dict[str, Any]]:
    """
    Retrieve a feed of published entries with writer and topic names.
    """

    sql = """
    SELECT
        e.id,
        e.title,
        e.published,
        w.name AS writer_name,
        t.name AS topic_name
    FROM "entry" AS e
    JOIN "writer" AS w ON e.writer_id = w.id
    JOIN "topic" AS t ON e.topic_id = t.id
    WHERE e.published = 1
    ORDER BY e.id DESC
    LIMIT ?
    """
    return orm.database.execute(sql, (limit,)).rows


def writers_with_entries(orm: Orm) -> List[Dict[str, Any]]:
    """
    Load every writer with the titles of their entries through repositories.
    """

    entries = orm.get_repository(Entry)
    result: List[Dict[str, Any]] = []
    for writer in orm.get_repository(Writer).find_all():
        result.append(
            {
                "writer": writer.name,
                "entries": [entry.title for entry in entries.find_by({"writer_id": writer.id})],
            }
        )
    return result


def run_demo(url: str = "sqlite:///:memory:") -> List[Dict[str, Any]]:
    """
    Bootstrap the database, seed data, and return a rendered feed.
    """

    orm = bootstrap_orm(url)
    try:
        seed_sample_data(orm)
        return fetch_recent_entries(orm)
    finally:
        orm.close()


if __name__ == "__main__":
    for item in run_demo("sqlite:///blog_demo.db"):
        print(f"[{item['topic_name']}] {item['title']} by {item['writer_name']}")
