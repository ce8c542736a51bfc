#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Telegram Webhook Setup
Registers <base-url>/api/webhook/telegram with the Bot API.
"""
import sys
from pathlib import Path

import requests

# Add src to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

import config  # noqa: E402


def build_webhook_url(base_url: str) -> str:
    return base_url.strip().rstrip('/') + config.WEBHOOK_PATH


def setup_webhook(webhook_url: str) -> dict:
    """Call setWebhook; returns Telegram's JSON answer."""
    payload = {'url': webhook_url, 'allowed_updates': ['message']}
    if config.WEBHOOK_SECRET_TOKEN:
        payload['secret_token'] = config.WEBHOOK_SECRET_TOKEN
    response = requests.post(
        f"https://api.telegram.org/bot{config.TELEGRAM_BOT_TOKEN}/setWebhook",
        json=payload,
        timeout=30,
    )
    return response.json()


def main():
    print("🤖 Telegram Webhook Setup\n")
    if not config.TELEGRAM_BOT_TOKEN:
        print("❌ TELEGRAM_BOT_TOKEN is not set")
        sys.exit(1)

    base_url = sys.argv[1] if len(sys.argv) > 1 else config.WEBHOOK_BASE_URL
    if not base_url:
        base_url = input("Public base URL (e.g. https://example.ngrok-free.app): ")

    webhook_url = build_webhook_url(base_url)
    print(f"\n📡 Setting webhook to: {webhook_url}")

    try:
        result = setup_webhook(webhook_url)
    except requests.RequestException as e:
        print(f"❌ Webhook setup failed: {e}")
        sys.exit(1)

    if result.get('ok'):
        print("✅ Webhook registered!")
        print("\n📋 Testing Instructions:")
        print("1. Open Telegram and find your bot")
        print("2. Send /start")
        print("3. Send a LIVE session screenshot")
        print("4. Reply Y to save the report\n")
    else:
        print(f"❌ Webhook setup failed: {result.get('description', result)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
