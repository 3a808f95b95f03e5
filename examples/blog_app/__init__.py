"""
Blog-style sample application showcasing ForgeORM.
"""

from .demo import bootstrap_orm, fetch_recent_entries, run_demo, seed_sample_data, writers_with_entries
from .models import Entry, Topic, Writer

__all__ = [
    "Entry",
    "Topic",
    "Writer",
    "bootstrap_orm",
    "fetch_recent_entries",
    "run_demo",
    "seed_sample_data",
    "writers_with_entries",
]
