"""
Migration script to create all database tables

Run this script to create all database tables:
    python -m moviecritic.migrations.create_all_tables
"""

from moviecritic.database import engine, Base
# Import all models to ensure they're registered with Base
from moviecritic.models import User, Movie, CastMember, Review, Watchlist, WatchlistMovie  # noqa: F401


def create_tables(bind=None):
    """Create all database tables"""
    print("=" * 60)
    print("Creating all database tables...")
    print("=" * 60)

    Base.metadata.create_all(bind=bind or engine)

    print("\nTables created:")
    for table in Base.metadata.sorted_tables:
        print(f"   - {table.name}")
    print("=" * 60)


if __name__ == "__main__":
    create_tables()
