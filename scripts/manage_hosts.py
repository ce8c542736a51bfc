#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Host Management CLI Tool
Approve, reject, deactivate and reactivate hosts, and review their reports.
Every action notifies the host on Telegram.
"""
import sys
import asyncio
from pathlib import Path

# Fix encoding for Windows
if sys.platform == 'win32':
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')

# Add src to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / 'src'))

USAGE = """Usage: python manage_hosts.py <command> [args]

Commands:
  pending                              - List hosts waiting for approval
  approve <telegram_id>                - Approve and activate a host
  reject <telegram_id>                 - Reject and delete a registration
  deactivate <telegram_id>             - Deactivate a host
  reactivate <telegram_id>             - Reactivate a host
  verify <report_id> [notes...]        - Mark a report VERIFIED
  reject-report <report_id> [notes...] - Mark a report REJECTED"""


def build_actions():
    import config
    from bot.manager_actions import ManagerActions
    from bot.notification_engine import NotificationEngine
    from storage.host_db import HostDB

    return ManagerActions(HostDB(db_path=config.HOST_DB_PATH), NotificationEngine())


async def run_command(actions, command, args):
    if command == 'pending':
        users = await actions.pending_users()
        print("\n" + "="*80)
        print(f"PENDING HOSTS ({len(users)})")
        print("="*80)
        for user in users:
            print(f"  {user.telegram_user_id:<14} {user.full_name or '-':<30} {user.email or '-'}")
        print("="*80 + "\n")
        return

    if not args:
        raise ValueError(f"'{command}' needs an argument")

    if command in ('approve', 'reject', 'deactivate', 'reactivate'):
        user = await getattr(actions, command)(args[0])
        print(f"✅ {command}: {user.full_name or user.username} ({user.telegram_user_id})")
    elif command in ('verify', 'reject-report'):
        notes = " ".join(args[1:]) or None
        report = await actions.review_report(int(args[0]), verified=(command == 'verify'), notes=notes)
        print(f"✅ Report #{report.id} -> {report.status.value}")
    else:
        raise ValueError(f"Unknown command: {command}")


def main():
    """Main CLI entry point"""
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command = sys.argv[1].lower()
    try:
        asyncio.run(run_command(build_actions(), command, sys.argv[2:]))
    except (ValueError, LookupError) as e:
        print(f"❌ {str(e)}\n")
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
