# -*- coding: utf-8 -*-
import logging

from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config, ensure_instance
from .errors import Unauthenticated, register_error_handlers
from .extensions import db, migrate, login_manager
from .security import reject_blocked_ip

# блюпринты
from .auth import auth_bp
from .admin_mgmt import bp as users_bp
from .modules.banks import bp as banks_bp
from .modules.cards import bp as cards_bp
from .modules.casinos import bp as casinos_bp
from .modules.test_sites import bp as test_sites_bp
from .modules.employees import bp as employees_bp
from .modules.transactions import bp as transactions_bp
from .modules.work_files import bp as work_files_bp
from .modules.salaries import bp as salaries_bp
from .modules.expenses import bp as expenses_bp
from .modules.reports import bp as reports_bp
from .modules.logs import bp as logs_bp
from .modules.profile import bp as profile_bp


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("backoffice").setLevel(level)


def create_app(config_object=Config):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    ensure_instance(app)
    _configure_logging(app)

    proxies = app.config.get("TRUSTED_PROXIES", 0)
    if proxies:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxies, x_proto=proxies)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def _unauthorized():
        err = Unauthenticated()
        return jsonify(err.to_dict()), err.status_code

    register_error_handlers(app)
    app.before_request(reject_blocked_ip)

    # --- блюпринты ---
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(banks_bp)
    app.register_blueprint(cards_bp)
    app.register_blueprint(casinos_bp)
    app.register_blueprint(test_sites_bp)
    app.register_blueprint(employees_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(work_files_bp)
    app.register_blueprint(salaries_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(logs_bp)
    app.register_blueprint(profile_bp)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    return app
