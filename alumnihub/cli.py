"""
AlumniHub CLI — Portal management and demo commands.

Commands:
- alumnihub validate      — Validate alumnihub.yaml
- alumnihub dashboard     — Log in and print the dashboard figures
- alumnihub upload        — Log in as alumni and upload a document
- alumnihub ask           — Ask the FAQ assistant a question
- alumnihub cleanup-logs  — Delete structured logs past their retention
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from alumnihub.engine.config import PortalConfig, load_config
from alumnihub.engine.errors import PortalError

logger = logging.getLogger("alumnihub.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="alumnihub",
        description="AlumniHub: JIT Alumni Connect portal core",
    )
    parser.add_argument("--config", help="Path to alumnihub.yaml (default: auto-discover)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # alumnihub validate
    subparsers.add_parser("validate", help="Validate portal configuration")

    # alumnihub dashboard
    dash_parser = subparsers.add_parser("dashboard", help="Print dashboard figures for a user")
    _add_login_arguments(dash_parser)
    dash_parser.add_argument("--role", choices=["admin", "alumni"], default="alumni", help="Login role")

    # alumnihub upload
    upload_parser = subparsers.add_parser("upload", help="Upload a document as an alumni")
    upload_parser.add_argument("file", help="PDF or JPG file to upload")
    _add_login_arguments(upload_parser)
    upload_parser.add_argument("--title", required=True, help="Document title")
    upload_parser.add_argument("--category", required=True, help="Document category")

    # alumnihub ask
    ask_parser = subparsers.add_parser("ask", help="Ask the FAQ assistant")
    ask_parser.add_argument("question", nargs="+", help="Your question")

    # alumnihub cleanup-logs
    subparsers.add_parser("cleanup-logs", help="Delete logs past their retention window")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = load_config(args.config)
    except PortalError as e:
        print(f"[ERROR] {e.message}")
        for err in e.context.get("validation_errors") or []:
            loc = ".".join(str(p) for p in err.get("loc", ()))
            print(f"  {loc}: {err.get('msg')}")
        return 1

    logging.basicConfig(level=config.logging.level, format="%(levelname)s %(name)s: %(message)s")

    commands = {
        "validate": cmd_validate,
        "dashboard": cmd_dashboard,
        "upload": cmd_upload,
        "ask": cmd_ask,
        "cleanup-logs": cmd_cleanup_logs,
    }
    try:
        return commands[args.command](args, config)
    except PortalError as e:
        print(f"[ERROR] {e.message}")
        return 1


def _add_login_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--email", required=True, help="Login email")
    parser.add_argument("--password", help="Login password (prompted if not provided)")


def _password(args: argparse.Namespace) -> str:
    return args.password or getpass.getpass("Password: ")


# ---------------------------------------------------------------------------
# alumnihub validate
# ---------------------------------------------------------------------------

def cmd_validate(args: argparse.Namespace, config: PortalConfig) -> int:
    """Config already loaded and validated by main(); report what it resolved to."""
    print(f"[OK] {config.name} v{config.version} ({config.environment})")
    print(f"  Organization: {config.organization.name}")
    print(
        f"  Uploads: max {config.uploads.max_size_mb} MB, "
        f"{len(config.uploads.allowed_types)} type(s), {config.uploads.max_retries} attempt(s)"
    )
    if config.storage.is_configured:
        print(f"  Storage: {config.storage.url} (bucket={config.storage.bucket})")
    else:
        print("  Storage: not configured, simulated storage will be used")
    if config.environment == "prod" and not config.security.secret_key:
        print("[WARN] No security.secret_key set; the development key would be used")
    return 0


# ---------------------------------------------------------------------------
# alumnihub dashboard
# ---------------------------------------------------------------------------

def cmd_dashboard(args: argparse.Namespace, config: PortalConfig) -> int:
    """Log in against the demo state and print the role's dashboard."""
    from alumnihub.actions import Action, PortalDispatcher
    from alumnihub.state import AppState

    async def run() -> dict:
        dispatcher = PortalDispatcher(AppState.seeded(config))
        try:
            await dispatcher.dispatch(
                Action.LOGIN, email=args.email, password=_password(args), role=args.role
            )
            return dispatcher.snapshot()
        finally:
            await dispatcher.state.aclose()

    view = asyncio.run(run())
    print(f"{view['organization']['portal_name']}: {view['session']['display_name']}")
    print(json.dumps(view["dashboard"], indent=2))
    return 0


# ---------------------------------------------------------------------------
# alumnihub upload
# ---------------------------------------------------------------------------

def cmd_upload(args: argparse.Namespace, config: PortalConfig) -> int:
    """Upload a local file through the full workflow (validation, retries, notification)."""
    from alumnihub.actions import Action, PortalDispatcher
    from alumnihub.documents.models import UploadFile
    from alumnihub.engine.logging import init_logging, shutdown_logging
    from alumnihub.state import AppState

    path = Path(args.file)
    if not path.is_file():
        print(f"[ERROR] File not found: {path}")
        return 1

    init_logging(
        log_dir=config.logging.directory,
        flush_interval_ms=config.logging.async_queue.flush_interval_ms,
        flush_batch_size=config.logging.async_queue.flush_batch_size,
        max_queue_size=config.logging.async_queue.max_queue_size,
    )

    async def run():
        dispatcher = PortalDispatcher(AppState.seeded(config))
        try:
            await dispatcher.dispatch(
                Action.LOGIN, email=args.email, password=_password(args), role="alumni"
            )
            return await dispatcher.dispatch(
                Action.UPLOAD_DOCUMENT,
                file=UploadFile(name=path.name, data=path.read_bytes()),
                category=args.category,
                title=args.title,
            )
        finally:
            await dispatcher.state.aclose()

    try:
        result = asyncio.run(run())
    finally:
        shutdown_logging()

    print(f"[OK] Uploaded {path.name} as {result.record_id}")
    print(f"  Path: {result.path}")
    print(f"  Attempts: {result.attempts}")
    return 0


# ---------------------------------------------------------------------------
# alumnihub ask
# ---------------------------------------------------------------------------

def cmd_ask(args: argparse.Namespace, config: PortalConfig) -> int:
    from alumnihub.assistant.faq import FaqAssistant
    from alumnihub.storage import remote_configured

    assistant = FaqAssistant(config.uploads, storage_configured=remote_configured(config.storage))
    print(assistant.answer(" ".join(args.question)))
    return 0


# ---------------------------------------------------------------------------
# alumnihub cleanup-logs
# ---------------------------------------------------------------------------

def cmd_cleanup_logs(args: argparse.Namespace, config: PortalConfig) -> int:
    from alumnihub.engine.logging import LogRetentionManager

    retention = config.logging.retention
    manager = LogRetentionManager(
        log_dir=config.logging.directory,
        retention_days={
            "execution": retention.execution_days,
            "performance": retention.performance_days,
            "security": retention.security_days,
        },
    )
    deleted = manager.cleanup()
    print(f"[OK] Deleted {deleted} expired log file(s) from {config.logging.directory}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
