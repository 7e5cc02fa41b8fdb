'''Flask app assembly: config, server-side session, blueprints, error handlers.
Nothing here starts a server; run.py and the tests call create_app().'''
# carparts/app_factory.py
from flask import Flask, jsonify
from flask_session import Session
from werkzeug.exceptions import HTTPException
import os
from dotenv import load_dotenv

from carparts.errors import PosError, ErrorType
from carparts.services.order_service import DEFAULT_ORDER_NUMBER_ATTEMPTS
from carparts.logger import get_logger

load_dotenv()

logger = get_logger(__name__)

# project root (absolute)
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def create_app(config_name='development', config_overrides=None):
    """App factory."""
    app = Flask(__name__)

    # ensure SECRET_KEY is str, not bytes
    secret_key = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    if isinstance(secret_key, bytes):
        secret_key = secret_key.decode('utf-8')
    app.config['SECRET_KEY'] = secret_key
    app.config['TESTING'] = config_name == 'testing'

    # database (get_engine reads DATABASE_URL from the environment)
    db_path = os.path.join(BASE_DIR, 'carparts.db')
    os.environ.setdefault('DATABASE_URL', f"sqlite:///{db_path}")
    app.config['DATABASE_URL'] = os.environ['DATABASE_URL']

    app.config['ADMIN_SECRET_KEY'] = os.getenv('ADMIN_SECRET_KEY')
    app.config['ORDER_NUMBER_MAX_ATTEMPTS'] = int(
        os.getenv('ORDER_NUMBER_MAX_ATTEMPTS', DEFAULT_ORDER_NUMBER_ATTEMPTS)
    )

    # session
    app.config['SESSION_TYPE'] = 'filesystem'
    app.config['SESSION_PERMANENT'] = False
    app.config['SESSION_USE_SIGNER'] = True
    app.config['SESSION_KEY_PREFIX'] = 'carparts:'
    app.config['SESSION_FILE_DIR'] = os.getenv(
        'SESSION_FILE_DIR', os.path.join(BASE_DIR, 'flask_session')
    )

    if config_overrides:
        app.config.update(config_overrides)

    os.makedirs(app.config['SESSION_FILE_DIR'], exist_ok=True)
    Session(app)

    # blueprints
    from carparts.routes.auth import auth_bp
    from carparts.routes.admin import admin_bp
    from carparts.routes.category import category_bp
    from carparts.routes.part import part_bp
    from carparts.routes.order import order_bp
    from carparts.routes.cart import cart_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(category_bp)
    app.register_blueprint(part_bp)
    app.register_blueprint(order_bp)
    app.register_blueprint(cart_bp)

    @app.route('/', methods=['GET'])
    def index():
        return jsonify({"message": "Car parts POS API is running"})

    register_error_handlers(app)

    return app


def register_error_handlers(app):
    """Every failure leaves as JSON."""
    @app.errorhandler(PosError)
    def handle_pos_error(error):
        if error.status_code >= 500:
            logger.error("%s: %s", error.error_type.value, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        error_type = ErrorType.NOT_FOUND if error.code == 404 else ErrorType.SYSTEM_ERROR
        if error.code == 405:
            error_type = ErrorType.VALIDATION_ERROR
        return jsonify({"message": error.description, "errorType": error_type.value}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception("Unhandled error")
        return jsonify({"message": "Server error", "error": str(error)}), 500
