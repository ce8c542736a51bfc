#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Health Checker CLI Tool
Quick script to check the Live Session Reporter webhook server
"""
import sys
from pathlib import Path

import requests

# Fix encoding for Windows
if sys.platform == 'win32':
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')

# Add src to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))


def check_health(base_url: str) -> bool:
    """Check server health via the /health endpoint"""
    url = f"{base_url}/health"

    print("\n" + "="*80)
    print("LIVE SESSION REPORTER - HEALTH CHECK")
    print("="*80 + "\n")

    try:
        response = requests.get(url, timeout=5)
        data = response.json()
    except requests.exceptions.ConnectionError:
        print("❌ Cannot connect to webhook server")
        print(f"   Is it running? Check {url}\n")
        return False
    except requests.exceptions.Timeout:
        print("❌ Health check timed out")
        return False
    except ValueError:
        print(f"❌ Unexpected response from {url}\n")
        return False

    status = data.get('status', 'unknown')
    if status == 'healthy':
        print("✅ Status: HEALTHY")
    elif status == 'degraded':
        print("⚠️  Status: DEGRADED")
    else:
        print("❌ Status: UNHEALTHY")

    print("\n🔗 Components:")
    for name, value in data.get('components', {}).items():
        icon = '❌' if value == 'unavailable' else '✅'
        print(f"   {name:<12} {icon} {value}")

    print(f"\n💬 Active conversations: {data.get('active_conversations', 0)}")
    print(f"⏳ In-flight updates:    {data.get('pending_tasks', 0)}")
    print("\n" + "="*80 + "\n")

    return status == 'healthy'


def main():
    """Main CLI entry point"""
    if len(sys.argv) > 1:
        base_url = sys.argv[1].rstrip('/')
    else:
        import config
        base_url = f"http://localhost:{config.API_PORT}"

    is_healthy = check_health(base_url)
    sys.exit(0 if is_healthy else 1)


if __name__ == "__main__":
    main()
