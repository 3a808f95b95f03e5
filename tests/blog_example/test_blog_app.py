from examples.blog_app import bootstrap_orm, fetch_recent_entries, run_demo, seed_sample_data, writers_with_entries


def test_blog_example_bootstrap_and_seed(tmp_path):
    orm = bootstrap_orm(f"sqlite:///{tmp_path / 'blog_example.db'}")
    try:
        seeded = seed_sample_data(orm)
        assert len(seeded["writers"]) == 2
        assert len(seeded["topics"]) == 2
        assert len(seeded["entries"]) == 3
        assert all(entry["writer_id"] is not None for entry in seeded["entries"])
        assert all(entry["topic_id"] is not None for entry in seeded["entries"])

        feed = fetch_recent_entries(orm, limit=5)
        assert len(feed) == 2
        assert feed[0]["title"] == "Ordering inserts by relationship"
        assert {"title", "writer_name", "topic_name"} <= feed[0].keys()

        assert writers_with_entries(orm) == [
            {"writer": "Alice Carter", "entries": ["Introducing ForgeORM"]},
            {"writer": "Brian Kim", "entries": ["Ordering inserts by relationship", "Draft: cascades"]},
        ]
    finally:
        orm.close()


def test_run_demo_returns_feed():
    feed = run_demo()
    assert feed
    assert all(entry["published"] for entry in feed)
