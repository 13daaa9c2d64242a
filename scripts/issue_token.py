#!/usr/bin/env python3
"""
Mint a development bearer token for a principal and device.

Usage:
    python3 scripts/issue_token.py <principal-id> <device-id> [email]

Login (OTP by email) is handled by a separate identity service; this script
stands in for it locally so the challenge endpoints can be exercised with curl.

Example:
    python3 scripts/issue_token.py user-42 3f2b7c1e-9a4d-4e55-8f0a-2c6d1b9e7a10
"""

import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app import app
from services.auth_service import issue_token


def main():
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)

    principal_id, device_id = sys.argv[1], sys.argv[2]
    email = sys.argv[3] if len(sys.argv) > 3 else None

    with app.app_context():
        token = issue_token(principal_id, device_id, email=email)

    print(token)
    print()
    print("Example:")
    print(f'  curl -H "Authorization: Bearer {token}" http://localhost:{app.config["PORT"]}/challenges/active')


if __name__ == '__main__':
    main()
