import logging

from flask import Flask, jsonify
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

load_dotenv()

from config import Config  # noqa: E402  (load_dotenv needs to run first)
from extensions import db, login_manager  # noqa: E402  (load_dotenv needs to run first)

logger = logging.getLogger(__name__)


def create_app(test_config: dict | None = None) -> Flask:
    """Application factory for Secure Stock."""

    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(level=getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # init extensions
    db.init_app(app)
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify(ok=False, error="Authentication required."), 401

    # blueprints
    from modules.accounts import bp as accounts_bp
    from modules.stock import bp as stock_bp
    from modules.employees import bp as employees_bp
    from modules.maintenance import bp as maintenance_bp
    from modules.activity import bp as activity_bp
    from modules.chat import bp as chat_bp

    app.register_blueprint(accounts_bp)
    app.register_blueprint(stock_bp)
    app.register_blueprint(employees_bp)
    app.register_blueprint(maintenance_bp)
    app.register_blueprint(activity_bp)
    app.register_blueprint(chat_bp)

    from ui_routes import ui
    app.register_blueprint(ui)  # dashboard at "/"

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        return jsonify(ok=False, error=exc.description), exc.code

    @app.errorhandler(Exception)
    def unhandled_error(exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        db.session.rollback()
        return jsonify(ok=False, error="Internal server error."), 500

    # DB
    with app.app_context():
        # models must be imported before create_all()
        import models  # noqa: F401
        from modules.stock import models as stock_models  # noqa: F401
        from modules.employees import models as employees_models  # noqa: F401
        from modules.maintenance import models as maintenance_models  # noqa: F401
        from modules.activity import models as activity_models  # noqa: F401
        from modules.chat import models as chat_models  # noqa: F401

        db.create_all()

    return app

if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
