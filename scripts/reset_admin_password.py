#!/usr/bin/env python3
"""
Recovery script for a locked-out back office
Resets the default administrator's password (creating the account if it is missing)

Usage: DEFAULT_ADMIN_PASSWORD=<new password> python scripts/reset_admin_password.py
"""

import sys
import os

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from police_id import create_app, registry
from police_id.security import Role


def reset_admin_password(app):
    username = app.config['DEFAULT_ADMIN_USERNAME']
    password = app.config['DEFAULT_ADMIN_PASSWORD']

    account = registry.find_account_by_username(username)
    if account:
        registry.update_account(account.id, role=Role.ADMINISTRATOR, password=password)
        print(f"Password reset for administrator: {account.username}")
    else:
        registry.insert_account(username, password, Role.ADMINISTRATOR)
        print(f"Administrator created: {username}")

    admins = [a.username for a in registry.list_accounts() if a.role == Role.ADMINISTRATOR.value]
    print(f"Administrators: {', '.join(admins)}")


def main():
    app = create_app()
    with app.app_context():
        reset_admin_password(app)


if __name__ == '__main__':
    main()
