"""Print a long-lived access token for an existing user.

Usage:
    python create_token.py admin@plenpilot.no [--days 365]
"""
import argparse

from plenpilot_api.app.core.security import create_access_token


def main() -> None:
    ap = argparse.ArgumentParser(description="Create a PlenPilot API access token.")
    ap.add_argument("email", help="Email of the user the token is issued for")
    ap.add_argument("--days", type=int, default=365, help="Token lifetime in days (default 365)")
    args = ap.parse_args()
    print(create_access_token({"sub": args.email}, expires_delta=args.days * 24 * 60 * 60))


if __name__ == "__main__":
    main()
