from flask import Flask, request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
import logging
import os
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()

from police_id.storage import RegistryStore  # noqa: E402

store = RegistryStore()


def create_app(config_overrides=None):
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    app.config['JWT_SECRET'] = os.environ.get('JWT_SECRET') or app.config['SECRET_KEY']
    app.config['TOKEN_TTL_HOURS'] = int(os.environ.get('TOKEN_TTL_HOURS', 24))
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL') or 'sqlite:///police_id.db'
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['ID_NUMBER_PREFIX'] = os.environ.get('ID_NUMBER_PREFIX') or 'BGR'
    app.config['PUBLIC_BASE_URL'] = os.environ.get('PUBLIC_BASE_URL')
    app.config['BACKUP_FOLDER'] = os.environ.get('BACKUP_FOLDER') or os.path.join(app.instance_path, 'backups')
    app.config['GEMINI_API_KEY'] = os.environ.get('GEMINI_API_KEY')
    app.config['GEMINI_MODEL'] = os.environ.get('GEMINI_MODEL') or 'gemini-2.0-flash'
    app.config['DEFAULT_ADMIN_USERNAME'] = os.environ.get('DEFAULT_ADMIN_USERNAME') or 'POLICE'
    app.config['DEFAULT_ADMIN_PASSWORD'] = os.environ.get('DEFAULT_ADMIN_PASSWORD') or 'POLICE1234'
    app.config['MAX_CONTENT_LENGTH'] = 50 * 1024 * 1024  # photos and signatures travel inline as data URIs
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL') or 'INFO'

    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    store.init_app(app)

    # Create tables
    with app.app_context():
        store.open()

    # Bearer tokens only; no cookie sessions
    from police_id.security import load_principal_from_request, handle_unauthorized
    login_manager.request_loader(load_principal_from_request)
    login_manager.unauthorized_handler(handle_unauthorized)

    @app.before_request
    def log_request():
        app.logger.info(f"{request.method} {request.path}")

    from police_id.errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from police_id.routes.main import main_bp
    from police_id.routes.auth import auth_bp
    from police_id.routes.admin import admin_bp
    from police_id.routes.members import members_bp
    from police_id.routes.verification import verification_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(admin_bp, url_prefix='/api')
    app.register_blueprint(members_bp, url_prefix='/api/members')
    app.register_blueprint(verification_bp)

    return app
