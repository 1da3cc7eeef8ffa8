#!/usr/bin/env python3
"""
Database management script for deployment.

Usage:
    python manage_db.py init
    python manage_db.py create-admin <email> <password> [full name]
"""
import sys

from arena.app import create_app
from arena.errors import ApiError
from arena.models import db


def init_db():
    """Create all tables."""
    print("Creating database tables...")
    app = create_app(STORE_BACKEND='sql')
    with app.app_context():
        db.create_all()
    print("✓ Database tables created.")


def create_admin(email: str, password: str, full_name: str = None):
    app = create_app(STORE_BACKEND='sql')
    with app.app_context():
        try:
            user = app.accounts.create_admin(email, full_name, password)
        except ApiError as e:
            print(f"Error creating admin: {e.message}")
            for message in e.errors or []:
                print(f"  - {message}")
            sys.exit(1)
    print(f"✓ Admin {user.email} created ({user.id}).")


if __name__ == '__main__':
    command = sys.argv[1] if len(sys.argv) > 1 else 'init'

    if command == 'init':
        init_db()
    elif command == 'create-admin' and len(sys.argv) >= 4:
        create_admin(sys.argv[2], sys.argv[3], ' '.join(sys.argv[4:]) or None)
    else:
        print("Usage: python manage_db.py [init | create-admin <email> <password> [full name]]")
        sys.exit(1)
