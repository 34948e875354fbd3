"""
Clinic API - customer records, consultations, face matching, employee purchases
Main application entry point
"""
import logging
import sys
from typing import Optional

from flask import Flask
from flask_cors import CORS

from config import get_config
from infrastructure.notion_client import NotionClient
from infrastructure.notion_repositories import (
    NotionConsultationRepository,
    NotionCustomerRepository,
    NotionDailyIncomeRepository,
    NotionPurchaseRepository,
)
from application.customer_service import CustomerService
from application.consultation_service import ConsultationService
from application.daily_income_service import DailyIncomeService
from application.purchase_service import PurchaseService
from api.routes import api, init_routes

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)


def build_repositories(config) -> dict:
    """Notion-backed repositories sharing one HTTP session"""
    client = NotionClient(config)

    for key in ("NOTION_CUSTOMER_DB_ID", "NOTION_DATABASE_ID", "NOTION_PURCHASE_DB_ID"):
        if not getattr(config, key):
            logger.warning(f"{key} is not set")

    return {
        "customers": NotionCustomerRepository(
            client,
            config.NOTION_CUSTOMER_DB_ID,
            max_photo_url_length=config.MAX_PHOTO_URL_LENGTH,
        ),
        "consultations": NotionConsultationRepository(client),
        "daily_income": NotionDailyIncomeRepository(
            client,
            config.NOTION_DATABASE_ID,
            cache_duration=config.CACHE_DURATION,
        ),
        "purchases": NotionPurchaseRepository(client, config.NOTION_PURCHASE_DB_ID),
    }


def create_app(config=None, repositories: Optional[dict] = None) -> Flask:
    """Application factory"""
    config = config or get_config()

    # Create Flask app
    app = Flask(__name__)
    app.config['DEBUG'] = config.DEBUG
    app.json.ensure_ascii = False

    # Enable CORS
    CORS(app)

    # Initialize infrastructure
    if repositories is None:
        logger.info("Initializing records service client...")
        repositories = build_repositories(config)

    # Initialize application services
    init_routes(
        CustomerService(repositories["customers"], match_threshold=config.MATCH_THRESHOLD),
        ConsultationService(repositories["consultations"]),
        DailyIncomeService(repositories["daily_income"]),
        PurchaseService(repositories["purchases"]),
    )

    # Register blueprint
    app.register_blueprint(api)

    logger.info("Application initialized successfully")
    return app


def main():
    """Main entry point"""
    config = get_config()

    logger.info(f"Starting Clinic API on {config.HOST}:{config.PORT}")
    logger.info(f"Face match threshold: {config.MATCH_THRESHOLD}")

    app = create_app(config)
    app.run(
        host=config.HOST,
        port=config.PORT,
        debug=config.DEBUG,
        threaded=True,
    )


if __name__ == '__main__':
    main()
