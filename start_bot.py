#!/usr/bin/env python3
"""
Live Session Reporter - Main Launcher
Serves the Telegram webhook with uvicorn (production entry point)
"""
import sys
import os
from pathlib import Path

# Get project root directory
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

# Fix encoding for Windows
if sys.stdout.encoding != 'utf-8':
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')


def main():
    """Main entry point"""
    try:
        # Import after path is set
        from config import validate_config
        import config
        import uvicorn
        from utils.logger import get_logger
        from api.main import create_app

        print("\n" + "="*80)
        print("LIVE SESSION REPORTER")
        print("="*80)
        print(f"Project Root: {PROJECT_ROOT}")
        print("="*80 + "\n")

        # Validate configuration
        validate_config()
        print("[OK] Configuration validated")

        logger = get_logger(log_level=config.LOG_LEVEL)
        logger.info("Starting webhook server", component="Main")
        if not config.WEBHOOK_BASE_URL:
            logger.warning(
                "WEBHOOK_BASE_URL is not set; register the webhook with scripts/setup_webhook.py",
                component="Main",
            )
        if os.getenv('K_SERVICE'):
            logger.info(f"Cloud Run detected: serving on PORT {config.API_PORT}", component="Main")

        uvicorn.run(create_app(), host=config.API_HOST, port=config.API_PORT, log_level="info")

    except Exception as e:
        print(f"\n[FAIL] Failed to start server: {str(e)}")
        if 'logger' in locals():
            logger.critical(f"Server startup failed: {str(e)}", component="Main", exc_info=True)
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\n⏹️  Server stopped by user")
        print("✅ Shutdown complete")
        sys.exit(0)
