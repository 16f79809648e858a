# =======================================================================================
# gatepass/config.py - Configuration Management
# =======================================================================================
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

def _env_float(name: str, default: str) -> float:
    """Helper to parse float environment variables."""
    v = os.getenv(name, default)
    try:
        return float(v)
    except ValueError:
        return float(default)

def _env_optional(name: str) -> Optional[str]:
    """Helper returning None for unset or blank variables."""
    v = os.getenv(name)
    return v.strip() if v and v.strip() else None

class Config:
    # Database
    DB_URL: str = os.getenv("DB_URL", "sqlite:///./gatepass.db")

    # API Settings
    API_DEBUG: bool = os.getenv("API_DEBUG", "false").lower() == "true"
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Scanner (serial QR / barcode reader)
    SCANNER_PORT: Optional[str] = _env_optional("SCANNER_PORT")
    SCANNER_BAUD: int = int(os.getenv("SCANNER_BAUD", "9600"))
    SCANNER_TIMEOUT: int = int(os.getenv("SCANNER_TIMEOUT", "1"))
    SCANNER_RETRY_DELAY: float = _env_float("SCANNER_RETRY_DELAY", "3")

    # Checkpoint Configuration
    TERMINAL_ID: str = os.getenv("TERMINAL_ID", "main")
    CHECKPOINT_FACILITY: Optional[str] = _env_optional("CHECKPOINT_FACILITY")
    CHECKPOINT_GATE: Optional[str] = _env_optional("CHECKPOINT_GATE")
    SCAN_DEBOUNCE_SECONDS: float = _env_float("SCAN_DEBOUNCE_SECONDS", "2")
    PASS_QUERY_PARAM: str = os.getenv("PASS_QUERY_PARAM", "data")

    # Read-only request / approval-chain seed data
    REQUESTS_FILE: Optional[str] = _env_optional("REQUESTS_FILE")

    # Database Connection Pool
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "20"))

config = Config()
