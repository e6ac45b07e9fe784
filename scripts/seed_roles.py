import sys
import os

sys.path.append(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
)  # relative imports

from portal import create_app
from portal.seed import seed_roles


def setup_roles():
    app = create_app()
    with app.app_context():
        for name in seed_roles():
            print(f"Created role: {name}")
        print("Roles setup completed!")


if __name__ == "__main__":
    setup_roles()
