"""
Create the SmartTravel schema and seed the five default agents.
Uses DATABASE_URL from the environment / .env (SQLite by default).
Run: python scripts/seed_sqlite.py [--reset]
"""

import os
import sys

# Add backend directory to path for app imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text

from app.core.config import settings
from app.db.database import SessionLocal, engine, init_db
from app.db.models import Base


def main():
    print(f"Database: {settings.database_url}")

    if "--reset" in sys.argv[1:]:
        Base.metadata.drop_all(engine)
        print("Existing tables dropped")

    init_db()
    print("Tables created")

    session = SessionLocal()
    try:
        for table in ("agents", "trips", "deals", "agent_logs", "chat_logs"):
            total = session.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar()
            print(f"  {table}: {total} rows")
        names = session.execute(text("SELECT name FROM agents ORDER BY id")).scalars().all()
        print(f"Agents: {', '.join(names)}")
    finally:
        session.close()
        engine.dispose()

    print("\nSeed complete!")


if __name__ == "__main__":
    main()
