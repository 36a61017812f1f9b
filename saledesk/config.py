import os


class BaseConfig:
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False

    # SaleEditor service
    SALE_API_URL = os.getenv('SALE_API_URL', 'https://api.example.com')
    SALE_API_TOKEN = os.getenv('SALE_API_TOKEN', '')
    SALE_API_TIMEOUT = float(os.getenv('SALE_API_TIMEOUT', '10'))
    SALE_API_RETRIES = int(os.getenv('SALE_API_RETRIES', '3'))

    # Settle windows (seconds)
    NOTES_SETTLE_SECONDS = float(os.getenv('NOTES_SETTLE_SECONDS', '3.0'))
    DETAILS_SETTLE_SECONDS = float(os.getenv('DETAILS_SETTLE_SECONDS', '1.0'))
    SUMMARY_SETTLE_SECONDS = float(os.getenv('SUMMARY_SETTLE_SECONDS', '0.25'))
    SAVE_STATUS_HOLD_SECONDS = float(os.getenv('SAVE_STATUS_HOLD_SECONDS', '2.0'))

    ADMIN_SECRET = os.getenv('ADMIN_SECRET')


class DevConfig(BaseConfig):
    DEBUG = True
    ENV = 'development'


class ProdConfig(BaseConfig):
    DEBUG = False
    ENV = 'production'
    SESSION_COOKIE_SECURE = True


class TestConfig(DevConfig):
    TESTING = True
    ADMIN_SECRET = None
    SALE_API_URL = 'http://sale-editor.test'
    SALE_API_RETRIES = 0
