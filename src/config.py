"""
Configuration module for the Live Session Reporter bot
Environment-agnostic: Works locally, in Docker, and on Cloud Run
Loads environment variables and validates configuration
"""
import os
import tempfile
from pathlib import Path
from dotenv import load_dotenv

# Get project root directory (parent of src/)
PROJECT_ROOT = Path(__file__).parent.parent

# Load environment variables from .env file (if exists - local dev only)
env_file = PROJECT_ROOT / '.env'
if env_file.exists():
    load_dotenv(env_file)

# ═══════════════════════════════════════════════════════════════════
# ENVIRONMENT DETECTION
# ═══════════════════════════════════════════════════════════════════

def detect_environment() -> str:
    """
    Detect which environment we're running in

    Returns:
        'cloud_run', 'kubernetes', 'docker', or 'local'
    """
    if os.getenv('K_SERVICE'):
        return 'cloud_run'

    if os.getenv('KUBERNETES_SERVICE_HOST'):
        return 'kubernetes'

    if Path('/.dockerenv').exists():
        return 'docker'

    return 'local'

RUNTIME_ENVIRONMENT = detect_environment()

# ═══════════════════════════════════════════════════════════════════
# WRITABLE PATHS - Handle containerized environments
# ═══════════════════════════════════════════════════════════════════

def get_writable_path(folder_name: str) -> str:
    """Get a writable path that works in all environments"""
    env_path = os.getenv(folder_name.upper() + '_FOLDER')
    if env_path:
        if os.path.isabs(env_path):
            path = Path(env_path)
        else:
            path = PROJECT_ROOT / env_path
    else:
        path = PROJECT_ROOT / folder_name

    # In containers, /app might be read-only; use /tmp as fallback
    if not path.exists():
        try:
            path.mkdir(parents=True, exist_ok=True)
        except (PermissionError, OSError):
            path = Path(tempfile.gettempdir()) / 'live_report_bot' / folder_name
            path.mkdir(parents=True, exist_ok=True)

    return str(path)

# ═══════════════════════════════════════════════════════════════════
# CONFIGURATION VALUES
# ═══════════════════════════════════════════════════════════════════

# Telegram Configuration
TELEGRAM_BOT_TOKEN = os.getenv('TELEGRAM_BOT_TOKEN')

# OCR Provider Configuration ('ocrspace' or 'gemini')
OCR_PROVIDER = os.getenv('OCR_PROVIDER', 'ocrspace').lower()
OCRSPACE_API_KEY = os.getenv('OCRSPACE_API_KEY')
OCRSPACE_API_URL = os.getenv('OCRSPACE_API_URL', 'https://api.ocr.space/parse/image')
GOOGLE_API_KEY = os.getenv('GOOGLE_API_KEY')
GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.5-flash')

# OCR call budget: timeout per attempt, retries after the first attempt
OCR_TIMEOUT_MS = int(os.getenv('OCR_TIMEOUT_MS', '45000'))
OCR_MAX_RETRIES = int(os.getenv('OCR_MAX_RETRIES', '3'))
OCR_RETRY_BASE_DELAY_SECONDS = float(os.getenv('OCR_RETRY_BASE_DELAY_SECONDS', '2'))

# Conversation state
STATE_TTL_SECONDS = int(os.getenv('STATE_TTL_SECONDS', '600'))  # 10 minutes
# Off by default: concurrent photos for one user race, last write wins
SERIALIZE_USER_EVENTS = os.getenv('SERIALIZE_USER_EVENTS', 'false').lower() == 'true'

# Reports
SCREENSHOT_URI_TEMPLATE = os.getenv('SCREENSHOT_URI_TEMPLATE', 'telegram-file://{file_id}')
MEDIA_DOWNLOAD_TIMEOUT_SECONDS = int(os.getenv('MEDIA_DOWNLOAD_TIMEOUT_SECONDS', '30'))

# Storage
HOST_DB_PATH = os.getenv('HOST_DB_PATH', str(PROJECT_ROOT / 'data' / 'hosts.db'))
TEMP_FOLDER = get_writable_path('temp')

# Monitoring Configuration
LOG_FOLDER = get_writable_path('logs')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FILE_MAX_MB = int(os.getenv('LOG_FILE_MAX_MB', '10'))
LOG_FILE_BACKUP_COUNT = int(os.getenv('LOG_FILE_BACKUP_COUNT', '5'))

# ═══════════════════════════════════════════════════════════════════
# WEBHOOK SERVER (FastAPI)
# ═══════════════════════════════════════════════════════════════════

API_HOST = os.getenv('API_HOST', '0.0.0.0')
API_PORT = int(os.getenv('API_PORT', '5000'))

# Cloud Run sets PORT to the single port it routes traffic to
_cloud_run_port = os.getenv('PORT')
if _cloud_run_port:
    API_PORT = int(_cloud_run_port)

WEBHOOK_PATH = os.getenv('WEBHOOK_PATH', '/api/webhook/telegram')
WEBHOOK_BASE_URL = os.getenv('WEBHOOK_BASE_URL', '')
# Optional: Telegram echoes this in X-Telegram-Bot-Api-Secret-Token
WEBHOOK_SECRET_TOKEN = os.getenv('WEBHOOK_SECRET_TOKEN', '')


def validate_config():
    """Validate that all required configuration is present"""
    errors = []

    print(f"[CONFIG] Runtime environment: {RUNTIME_ENVIRONMENT}")

    if not TELEGRAM_BOT_TOKEN:
        errors.append("TELEGRAM_BOT_TOKEN is not set")

    if OCR_PROVIDER == 'ocrspace':
        if not OCRSPACE_API_KEY:
            errors.append("OCRSPACE_API_KEY is not set (OCR_PROVIDER=ocrspace)")
    elif OCR_PROVIDER == 'gemini':
        if not GOOGLE_API_KEY:
            errors.append("GOOGLE_API_KEY is not set (OCR_PROVIDER=gemini)")
    else:
        errors.append(f"Unknown OCR_PROVIDER: {OCR_PROVIDER}")

    if OCR_MAX_RETRIES < 0:
        errors.append("OCR_MAX_RETRIES must be >= 0")

    if errors:
        raise ValueError("Configuration errors:\n" + "\n".join(errors))

    return True


if __name__ == "__main__":
    try:
        validate_config()
        print("[OK] Configuration validated successfully")
    except ValueError as e:
        print(f"[FAIL] Configuration validation failed:\n{e}")
