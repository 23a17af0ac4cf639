"""
Package: promo_admin
Create and configure the Flask app, logging, and database
"""

import sys
from typing import Optional

from flask import Flask

from promo_admin import config
from promo_admin.common import log_handlers
from promo_admin.models import PromoCode, db
from promo_admin.services import STATS_EXTENSION, PromoCodeStatsService
from promo_admin.stats import StatsAggregator


def create_app(config_overrides: Optional[dict] = None) -> Flask:
    """Creates a Flask app wired to its own database and statistics service

    Args:
        config_overrides: settings applied on top of promo_admin.config,
            e.g. a test database URI
    """
    app = Flask(__name__)
    app.config.from_object(config)
    if config_overrides:
        app.config.update(config_overrides)

    db.init_app(app)

    # pylint: disable=import-outside-toplevel
    from promo_admin.routes import api_bp
    from promo_admin.ui import ui_bp
    from promo_admin.common.error_handlers import errors_bp
    from promo_admin.common.cli_commands import init_cli

    app.register_blueprint(api_bp)
    app.register_blueprint(ui_bp)
    app.register_blueprint(errors_bp)
    init_cli(app)

    app.extensions[STATS_EXTENSION] = PromoCodeStatsService(
        fetch_records=PromoCode.stats_records,
        aggregator=StatsAggregator(),
    )

    with app.app_context():
        try:
            db.create_all()
        except Exception as err:  # pylint: disable=broad-except
            app.logger.critical("%s: Cannot continue", err)
            sys.exit(4)

        log_handlers.init_logging(app, "gunicorn.error")

        app.logger.info(70 * "*")
        app.logger.info("  P R O M O   A D M I N   S E R V I C E   I N I T  ".center(70, "*"))
        app.logger.info(70 * "*")

    return app
