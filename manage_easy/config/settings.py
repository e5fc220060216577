import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

PRODUCTION_API_URL = "https://us-central1-manage-easy-1768423759.cloudfunctions.net"


class Settings:
    # Flask settings
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')
    DEBUG = FLASK_ENV == 'development'
    PORT = int(os.getenv('PORT', 5001))
    DEV_MODE = os.getenv('DEV_MODE', 'false').lower() == 'true'

    # CORS settings
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', 'http://localhost:5173,http://127.0.0.1:5173').split(',')

    # Firebase settings
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH', './serviceAccountKey.json')
    FIRESTORE_EMULATOR_HOST = os.getenv('FIRESTORE_EMULATOR_HOST')
    FIREBASE_AUTH_EMULATOR_HOST = os.getenv('FIREBASE_AUTH_EMULATOR_HOST')
    FUNCTIONS_EMULATOR = os.getenv('FUNCTIONS_EMULATOR', 'false').lower() == 'true'

    # Emulator-only test tokens ("test-...") resolve to this uid
    EMULATOR_TEST_USER_ID = os.getenv('EMULATOR_TEST_USER_ID', 'test-user-123')

    # Work Item Store client
    MANAGE_EASY_API_URL = os.getenv('MANAGE_EASY_API_URL', PRODUCTION_API_URL)
    REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', 15))

    # MCP bridge
    MCP_API_URL = os.getenv('MCP_API_URL', PRODUCTION_API_URL)
    MCP_FIREBASE_TOKEN = os.getenv('MCP_FIREBASE_TOKEN')

    # Board geometry (pixels), must match the rendered card size
    CARD_HEIGHT = int(os.getenv('CARD_HEIGHT', 120))
    CARD_GAP = int(os.getenv('CARD_GAP', 8))

    @classmethod
    def emulator_mode(cls) -> bool:
        return bool(cls.FUNCTIONS_EMULATOR or cls.FIRESTORE_EMULATOR_HOST or cls.FIREBASE_AUTH_EMULATOR_HOST)

    @classmethod
    def validate(cls):
        """Validate required settings"""
        required_vars = ['FIREBASE_PROJECT_ID']
        if cls.CARD_HEIGHT <= 0:
            raise ValueError("CARD_HEIGHT must be a positive number of pixels")
        if cls.CARD_GAP < 0:
            raise ValueError("CARD_GAP cannot be negative")

        missing_vars = [var for var in required_vars if not getattr(cls, var)]
        if missing_vars and not cls.DEV_MODE and not cls.emulator_mode():
            raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")

        return True
