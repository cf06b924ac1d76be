"""Print a long‑lived access token for an existing account.

Usage:
    python create_token.py admin@example.co.nz [days]
"""
import sys

from eventpros_api.app.core.security import create_access_token


if __name__ == "__main__":
    if len(sys.argv) < 2:
        sys.exit("usage: create_token.py EMAIL [DAYS]")
    days = int(sys.argv[2]) if len(sys.argv) > 2 else 365
    print(create_access_token({"sub": sys.argv[1].strip().lower()}, expires_delta=days * 24 * 60 * 60))
