"""Initialize the database - creates all tables."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from headless_cms.config import settings
from headless_cms.database import Database


def init_db():
    print("Creating all database tables...")
    database = Database(settings.DATABASE_URL)
    try:
        database.create_all()
    finally:
        database.dispose()
    print("Database initialized successfully.")


if __name__ == "__main__":
    init_db()
