import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from portal import create_app, db
from portal.seed import seed_roles


def create_tables():
    app = create_app()
    with app.app_context():
        # Create all tables
        db.create_all()
        print("Created all database tables successfully!")
        for name in seed_roles():
            print(f"Created role: {name}")

if __name__ == "__main__":
    create_tables()
