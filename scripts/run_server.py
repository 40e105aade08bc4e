#!/usr/bin/env python3
"""
Start the Memory Vault API server.
"""

import argparse
import sys
from pathlib import Path

import uvicorn

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from memory_vault.core.config import HOST, PORT, debug_enabled, validate_config


def main():
    parser = argparse.ArgumentParser(description="Run the Memory Vault API server")
    parser.add_argument("--host", default=HOST, help=f"Bind address (default: {HOST})")
    parser.add_argument("--port", type=int, default=PORT, help=f"Port (default: {PORT})")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    parser.add_argument("--check-config", action="store_true", help="Print configuration issues and exit")
    args = parser.parse_args()

    issues = validate_config()
    if args.check_config:
        for issue in issues:
            print(f"WARNING: {issue}")
        print("Configuration OK" if not issues else f"{len(issues)} configuration issue(s)")
        return 1 if issues else 0

    print(f"Memory Vault API listening on http://{args.host}:{args.port}")
    uvicorn.run(
        "memory_vault.api.main:app",
        host=args.host,
        port=args.port,
        log_level="debug" if debug_enabled() else "info",
        reload=args.reload,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
