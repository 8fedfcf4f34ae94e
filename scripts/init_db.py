import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from linkapi.database.connection import engine
from linkapi.models import Base


def init_db():
    """Create every table that does not exist yet."""
    try:
        Base.metadata.create_all(bind=engine)
        print(f"Database initialized: {engine.url.render_as_string(hide_password=True)}")
    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
