from police_id import create_app
from police_id import registry
from police_id.errors import RegistryError
from police_id.security import Role
import os

app = create_app()


def init_db():
    """Create the bootstrap administrator account if it doesn't exist (idempotent)."""
    username = app.config['DEFAULT_ADMIN_USERNAME']
    password = app.config['DEFAULT_ADMIN_PASSWORD']
    try:
        if registry.find_account_by_username(username):
            app.logger.info("Default admin already exists.")
            return
        registry.insert_account(username, password, Role.ADMINISTRATOR)
        app.logger.info(f"Default admin created: {username}")
    except RegistryError as e:
        # Another worker may have created it first
        app.logger.warning(f"Database init error (can usually be ignored if already set up): {e}")


# Ensure DB and admin account are initialized whenever the app starts (e.g. under Gunicorn)
with app.app_context():
    init_db()


if __name__ == "__main__":
    # Bind to 0.0.0.0 to accept connections from outside the container
    port = int(os.environ.get('PORT', 3000))
    app.run(host='0.0.0.0', port=port, debug=True)
