import logging
import os

from flask import Flask, flash, jsonify, redirect, request, url_for
from jinja2 import ChoiceLoader, DictLoader
from werkzeug.exceptions import HTTPException

from config import Config
from errors import (AuthenticationError, AuthorizationError, BackendError, ConflictError,
                    NotFoundError, ValidationError)
from extensions import db, migrate

# blueprints
from blueprints import ERROR_PAGE, LAYOUT, page
from blueprints.announcements import ann_bp
from blueprints.api           import api_bp
from blueprints.auth          import auth_bp
from blueprints.complaints    import comp_bp
from blueprints.dashboard     import STORE_KEY, TABS, dash_bp, new_store
from blueprints.employees     import emp_bp
from blueprints.export        import exp_bp
from blueprints.payroll       import payroll_bp
from blueprints.schedule      import sched_bp

logger = logging.getLogger(__name__)

# form errors worth a banner on the page the user came from
FLASH_CODES = (400, 409)
PORTAL_ERRORS = (ValidationError, AuthenticationError, AuthorizationError,
                 NotFoundError, ConflictError, BackendError)


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ── ORM / Migrate ──
    db.init_app(app)
    migrate.init_app(app, db)

    # shared page templates for {% extends %}
    app.jinja_loader = ChoiceLoader([
        DictLoader({"layout.html": LAYOUT, "tabs.html": TABS}),
        app.jinja_loader,
    ])

    # ── blueprints ──
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)
    app.register_blueprint(sched_bp)
    app.register_blueprint(emp_bp)
    app.register_blueprint(payroll_bp)
    app.register_blueprint(ann_bp)
    app.register_blueprint(comp_bp)
    app.register_blueprint(exp_bp)
    app.register_blueprint(dash_bp)

    register_error_handlers(app)

    @app.route("/")
    def home():
        return redirect(url_for("dashboard.index"))

    # checklist dashboard data, regenerated by POST /dashboard/reset
    app.extensions[STORE_KEY] = new_store(app)

    # first start: create missing tables, existing ones are left alone
    with app.app_context():
        db.create_all()

    return app


def register_error_handlers(app):
    def portal_error(e):
        if e.code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, e.description)
        else:
            logger.info("%s %s -> %s %s", request.method, request.path, e.code, e.description)
        if request.path.startswith("/api/"):
            return jsonify(e.to_dict()), e.code
        if request.method == "POST" and e.code in FLASH_CODES:
            flash(e.description, "error")
            return redirect(request.referrer or url_for("dashboard.index"))
        return page(ERROR_PAGE, title=str(e.code), code=e.code, message=e.description,
                    back=request.referrer), e.code

    # werkzeug keys handlers by status code, so each error class registers itself
    for cls in PORTAL_ERRORS:
        app.register_error_handler(cls, portal_error)

    @app.errorhandler(HTTPException)
    def http_error(e):
        if request.path.startswith("/api/"):
            return jsonify(error=e.description), e.code
        return page(ERROR_PAGE, title=str(e.code), code=e.code, message=e.description,
                    back=request.referrer), e.code


# ────────────────────────── local / hosted entry point ──────────────────────────
if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG") == "1")
