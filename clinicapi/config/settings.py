"""
Application configuration settings
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration"""
    # Flask
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", 5000))

    # Notion records service
    NOTION_API_KEY = os.getenv("NOTION_API_KEY", "")
    NOTION_BASE_URL = os.getenv("NOTION_BASE_URL", "https://api.notion.com/v1")
    NOTION_VERSION = os.getenv("NOTION_VERSION", "2022-06-28")

    # Database ids
    NOTION_CUSTOMER_DB_ID = os.getenv("NOTION_CUSTOMER_DB_ID", "")
    NOTION_DATABASE_ID = os.getenv("NOTION_DATABASE_ID", "")  # daily income
    NOTION_PURCHASE_DB_ID = os.getenv("NOTION_PURCHASE_DB_ID", "")

    # HTTP settings
    REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", 30))
    MAX_RETRIES = int(os.getenv("MAX_RETRIES", 3))

    # Face matching
    MATCH_THRESHOLD = float(os.getenv("MATCH_THRESHOLD", 0.6))

    # Daily income read cache (seconds)
    CACHE_DURATION = int(os.getenv("CACHE_DURATION", 60))

    # Notion rejects external file urls above this length
    MAX_PHOTO_URL_LENGTH = int(os.getenv("MAX_PHOTO_URL_LENGTH", 2000))


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


def get_config():
    """Get configuration based on environment"""
    env = os.getenv("FLASK_ENV", "development")
    if env == "production":
        return ProductionConfig()
    return DevelopmentConfig()
