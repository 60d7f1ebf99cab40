from app import create_app
from extensions import db
from models import User, create_account
from permissions import ROLES

app = create_app()


def create_user(email, password, role, full_name=None):
    with app.app_context():
        existing_user = User.query.filter_by(email=email.strip().lower()).first()
        if existing_user:
            print(f"User '{existing_user.email}' already exists with role '{existing_user.role}'.")
            return

        try:
            user = create_account(email, password, full_name, role)
        except ValueError as e:
            print(f"Cannot create user: {e}")
            return
        db.session.commit()
        print(f"Created user: {user.email} (role: {user.role})")


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Create a new user.')
    parser.add_argument('email', help='Login email')
    parser.add_argument('password', help='Password (6 characters minimum)')
    parser.add_argument('role', choices=ROLES, help='User role')
    parser.add_argument('--name', dest='full_name', help='Full name')

    args = parser.parse_args()
    create_user(args.email, args.password, args.role, args.full_name)
