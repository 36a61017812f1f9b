import logging
import os

from flask import Flask, jsonify
from dotenv import load_dotenv

from .config import DevConfig, ProdConfig, TestConfig

CONFIGS = {
    'development': DevConfig,
    'production': ProdConfig,
    'testing': TestConfig,
}


def create_app(config_name: str | None = None) -> Flask:
    """Application factory with environment based configuration."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)

    # Pick configuration
    env = config_name or os.getenv('ENV') or os.getenv('FLASK_ENV') or 'production'
    app.config.from_object(CONFIGS.get(env, ProdConfig))

    # Initialise logging
    logging.basicConfig(level=logging.DEBUG if app.debug else logging.INFO)

    from saledesk.drafts.models import SaleKind
    from saledesk.drafts.registry import DraftRegistry
    app.extensions['sale_drafts'] = DraftRegistry(app.config)

    @app.route('/')
    def index():
        return jsonify(
            kinds=[kind.value for kind in SaleKind],
            open_drafts=len(app.extensions['sale_drafts']),
        )

    @app.errorhandler(404)
    def not_found(_):
        return jsonify(success=False, error='Not found'), 404

    @app.errorhandler(500)
    def server_error(_):
        return jsonify(success=False, error='Internal server error'), 500

    from saledesk.drafts.routes import bp as drafts_bp
    from saledesk.cli import sales_cli

    app.register_blueprint(drafts_bp, url_prefix='/sales')
    app.cli.add_command(sales_cli)

    return app
