#!/usr/bin/env python3
"""
StakePool Command Line Interface.

Provides commands for running and inspecting a staking pool:
    - serve: Start the API server
    - check: Verify installation and configuration
    - info: Display configuration, storage and pool summary

Usage:
    stakepool serve [--host HOST] [--port PORT] [--debug] [--production]
    stakepool check
    stakepool info
    stakepool --version
"""

import argparse
import os
import platform
import sys

__version__ = "0.1.0"


def cmd_serve(args):
    """Start the StakePool API server."""
    from dotenv import load_dotenv

    load_dotenv()

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = args.port or int(os.getenv("PORT", 5000))
    debug = args.debug or os.getenv("FLASK_DEBUG", "").lower() == "true"

    from api import create_app

    flask_app = create_app()
    print(f"Starting StakePool API server on {host}:{port}")

    if args.production:
        try:
            import gunicorn.app.base
        except ImportError:
            print("Error: gunicorn not installed. Install with: pip install stakepool[production]")
            return 1

        class StandaloneApplication(gunicorn.app.base.BaseApplication):
            """Gunicorn WSGI wrapper serving an already-built Flask app."""

            def __init__(self, app, options=None):
                self.options = options or {}
                self.application = app
                super().__init__()

            def load_config(self):
                for key, value in self.options.items():
                    if key in self.cfg.settings and value is not None:
                        self.cfg.set(key.lower(), value)

            def load(self):
                return self.application

        # One worker: the engine serialises operations in-process
        options = {
            "bind": f"{host}:{port}",
            "workers": 1,
            "threads": args.workers or int(os.getenv("WORKERS", 4)),
            "worker_class": "gthread",
            "timeout": 120,
            "accesslog": "-",
            "errorlog": "-",
        }
        StandaloneApplication(flask_app, options).run()
    else:
        flask_app.run(host=host, port=port, debug=debug)
    return 0


def cmd_check(args):
    """Check installation and configuration."""
    print("StakePool Installation Check")
    print("=" * 40)

    checks = []

    try:
        import staking  # noqa: F401

        checks.append(("Staking core", "OK"))
    except ImportError as e:
        checks.append(("Staking core", f"FAIL: {e}"))

    try:
        import api  # noqa: F401

        checks.append(("Flask API", "OK"))
    except ImportError as e:
        checks.append(("Flask API", f"FAIL: {e}"))

    try:
        from staking import PoolConfig, StakingError

        try:
            PoolConfig.from_env()
            checks.append(("Pool configuration", "OK"))
        except StakingError as e:
            checks.append(("Pool configuration", f"FAIL: {e.message}"))
    except ImportError as e:
        checks.append(("Pool configuration", f"FAIL: {e}"))

    try:
        from storage import StorageError, get_storage_backend

        try:
            storage = get_storage_backend()
            status = "OK" if storage.is_available() else "WARN (not available)"
            checks.append((f"Storage ({storage.__class__.__name__})", status))
        except StorageError as e:
            checks.append(("Storage", f"FAIL: {e}"))
    except ImportError as e:
        checks.append(("Storage", f"FAIL: {e}"))

    try:
        import gunicorn  # noqa: F401

        checks.append(("Gunicorn (production)", "OK"))
    except ImportError:
        checks.append(("Gunicorn (production)", "SKIP (gunicorn not installed)"))

    print()
    all_ok = True
    for name, status in checks:
        icon = "✓" if status == "OK" else ("○" if "SKIP" in status else "✗")
        print(f"  {icon} {name}: {status}")
        if "FAIL" in status:
            all_ok = False

    print()
    if all_ok:
        print("All checks passed!")
        return 0
    print("Some checks failed. See above for details.")
    return 1


def cmd_info(args):
    """Display system information."""
    print("StakePool System Information")
    print("=" * 40)
    print(f"Version: {__version__}")
    print(f"Python: {platform.python_version()}")
    print(f"Platform: {platform.platform()}")

    print()
    print("Configuration:")
    print(f"  STAKEPOOL_ADMIN: {os.getenv('STAKEPOOL_ADMIN', 'not set')}")
    print(f"  STAKEPOOL_INTEREST_RATE: {os.getenv('STAKEPOOL_INTEREST_RATE', '10 (default)')}")
    print(f"  STAKEPOOL_CLAIM_COOLDOWN: {os.getenv('STAKEPOOL_CLAIM_COOLDOWN', '300 (default)')}")
    print(f"  STORAGE_BACKEND: {os.getenv('STORAGE_BACKEND', 'json (default)')}")
    print(f"  LOG_LEVEL: {os.getenv('LOG_LEVEL', 'INFO (default)')}")
    print(f"  LOG_FORMAT: {os.getenv('LOG_FORMAT', 'console (default)')}")

    from storage import StorageError, get_storage_backend

    print()
    print("Storage:")
    try:
        storage = get_storage_backend()
        for key, value in storage.get_info().items():
            print(f"  {key}: {value}")
        state = storage.load_state()
    except StorageError as e:
        print(f"  Error: {e}")
        return 1

    print()
    print("Pool:")
    if not state:
        print("  No saved pool state")
        return 0

    pool = state.get("pool", {})
    accounts = state.get("ledger", {}).get("accounts", {})
    print(f"  admin: {pool.get('admin')}")
    print(f"  interest_rate: {pool.get('interest_rate')}%")
    print(f"  claim_cooldown: {pool.get('claim_cooldown')}s")
    print(f"  accounts: {len(accounts)}")
    print(f"  total_staked: {sum(a.get('staked', 0) for a in accounts.values())}")
    print(f"  events: {len(state.get('events', []))}")
    return 0


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="stakepool",
        description="StakePool - staking ledger with referral rewards",
    )
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", help="Host to bind to (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, help="Port to bind to (default: 5000)")
    serve_parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    serve_parser.add_argument(
        "--production", action="store_true", help="Use gunicorn for production"
    )
    serve_parser.add_argument("--workers", type=int, help="Worker threads (production mode)")

    subparsers.add_parser("check", help="Check installation and configuration")
    subparsers.add_parser("info", help="Display system information")

    args = parser.parse_args()

    if args.command == "serve":
        sys.exit(cmd_serve(args))
    elif args.command == "check":
        sys.exit(cmd_check(args))
    elif args.command == "info":
        sys.exit(cmd_info(args))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
