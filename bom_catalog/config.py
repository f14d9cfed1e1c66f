import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    # SheetDB (remote spreadsheet API)
    SHEETDB_URL = os.getenv("SHEETDB_URL")
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "15"))

    # Reconciliation reloads after mutations
    REFRESH_DELAY_SECONDS = float(os.getenv("REFRESH_DELAY_SECONDS", "1.0"))
    DELETE_REFRESH_DELAY_SECONDS = float(os.getenv("DELETE_REFRESH_DELAY_SECONDS", "0.5"))

    # Status messages are dismissed after this interval
    STATUS_TIMEOUT_SECONDS = float(os.getenv("STATUS_TIMEOUT_SECONDS", "5"))

    # Table views
    PAGE_SIZE = int(os.getenv("PAGE_SIZE", "10"))
    INTENT_PAGE_SIZE = int(os.getenv("INTENT_PAGE_SIZE", "12"))

    # Intent document header
    COMPANY_NAME = os.getenv("COMPANY_NAME", "KINYA MEDICAL SYSTEMS & SOLUTION")
    DOC_NUMBER = os.getenv("DOC_NUMBER", "RMSC/P/OSP21/02")

    # API Server
    API_HOST = os.getenv("API_HOST", "127.0.0.1")
    API_PORT = int(os.getenv("API_PORT", "8000"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @staticmethod
    def validate():
        """Ensure required settings are present"""
        missing = []
        if not Config.SHEETDB_URL:
            missing.append("SHEETDB_URL")

        if missing:
            raise EnvironmentError(f"Missing required environment variables: {', '.join(missing)}")

        return True
