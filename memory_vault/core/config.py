"""
Memory Vault configuration.
Environment-driven settings; values that tests toggle at runtime are exposed as functions.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PACKAGE_DIR = Path(__file__).resolve().parent.parent

# Database path configuration
DB_PATH = os.getenv("DB_PATH", "./data/memory_vault.db")

# Debug flag is also available as a function to be dynamic
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Knowledge base (read once per process)
KNOWLEDGE_PATH = os.getenv("KNOWLEDGE_PATH", str(PACKAGE_DIR / "data" / "memory_vault_knowledge.json"))

# Assistant / external responder
ASSISTANT_PROVIDER = os.getenv("ASSISTANT_PROVIDER", "openai").lower()  # openai|ollama|none
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1-mini").strip()
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
OPENAI_TIMEOUT_SEC = float(os.getenv("OPENAI_TIMEOUT_SEC", "20"))
OPENAI_MAX_OUTPUT_TOKENS = int(os.getenv("OPENAI_MAX_OUTPUT_TOKENS", "240"))
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2:3b")
ASSISTANT_NOTE_SCAN_LIMIT = int(os.getenv("ASSISTANT_NOTE_SCAN_LIMIT", "5000"))

# Accounts and sessions
SESSION_TTL_SEC = int(os.getenv("SESSION_TTL_SEC", str(7 * 24 * 3600)))
PERSONAL_UNLOCK_TTL_SEC = int(os.getenv("PERSONAL_UNLOCK_TTL_SEC", "900"))
MAX_AUTH_ATTEMPTS = int(os.getenv("MAX_AUTH_ATTEMPTS", "6"))
AUTH_WINDOW_SEC = int(os.getenv("AUTH_WINDOW_SEC", "600"))
AUTH_BLOCK_SEC = int(os.getenv("AUTH_BLOCK_SEC", "900"))
PASSWORD_HASH_ITERATIONS = int(os.getenv("PASSWORD_HASH_ITERATIONS", "100000"))

# Admin activity log
ACTIVITY_LOG_LIMIT = int(os.getenv("ACTIVITY_LOG_LIMIT", "5000"))

# HTTP server
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "3000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

# Version string
VERSION = "1.0.0"


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_db_path() -> str:
    """Database path, resolved on every connection so tests can point it elsewhere."""
    return os.getenv("DB_PATH", DB_PATH)


def ensure_db_directory():
    """Ensure the database directory exists."""
    Path(get_db_path()).parent.mkdir(parents=True, exist_ok=True)


def get_assistant_provider() -> str:
    """Get the external responder provider (openai|ollama|none)."""
    return os.getenv("ASSISTANT_PROVIDER", ASSISTANT_PROVIDER).lower()


def get_openai_api_key() -> str:
    return os.getenv("OPENAI_API_KEY", "").strip()


def get_admin_api_key() -> str:
    return os.getenv("ADMIN_API_KEY", "").strip()


def get_admin_owner_email() -> str:
    return os.getenv("ADMIN_OWNER_EMAIL", "").strip().lower()


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    if get_assistant_provider() not in ["openai", "ollama", "none"]:
        issues.append(f"Invalid ASSISTANT_PROVIDER: {get_assistant_provider()}")

    if get_assistant_provider() == "openai" and not get_openai_api_key():
        issues.append("ASSISTANT_PROVIDER=openai without OPENAI_API_KEY; assistant will use local fallback answers")

    if bool(get_admin_api_key()) != bool(get_admin_owner_email()):
        issues.append("ADMIN_API_KEY and ADMIN_OWNER_EMAIL must be set together")

    if PERSONAL_UNLOCK_TTL_SEC < 1:
        issues.append("PERSONAL_UNLOCK_TTL_SEC must be >= 1")

    if MAX_AUTH_ATTEMPTS < 1:
        issues.append("MAX_AUTH_ATTEMPTS must be >= 1")

    if ACTIVITY_LOG_LIMIT < 1:
        issues.append("ACTIVITY_LOG_LIMIT must be >= 1")

    return issues
