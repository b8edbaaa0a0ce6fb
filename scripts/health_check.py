#!/usr/bin/env python3
"""Health check script for the console API"""

import argparse
import os
import sys
from typing import Any

import requests


def check_api(base_url: str, timeout: float = 5) -> dict[str, Any]:
    """Health check for the cost observability API"""
    try:
        response = requests.get(f"{base_url.rstrip('/')}/api/health", timeout=timeout)
        if response.status_code != 200:
            return {"status": "unhealthy", "reason": f"API returned {response.status_code}"}

        payload = response.json()
        if not payload.get("configured", False):
            return {"status": "degraded", "reason": "API is up but billing export is not configured"}

        return {"status": "healthy", "reason": "All checks passed"}

    except requests.exceptions.RequestException as e:
        return {"status": "unhealthy", "reason": f"Request failed: {e}"}
    except ValueError as e:
        return {"status": "unhealthy", "reason": f"Invalid health response: {e}"}


def main():
    parser = argparse.ArgumentParser(description="Health check for the console API")
    parser.add_argument(
        "--url",
        default=os.getenv("FINOPS_API__BASE_URL", "http://localhost:8000"),
        help="API base URL",
    )
    parser.add_argument("--timeout", type=float, default=5, help="Request timeout in seconds")

    args = parser.parse_args()
    result = check_api(args.url, args.timeout)

    print(f"Health check result: {result}")

    if result["status"] == "healthy":
        sys.exit(0)
    elif result["status"] == "degraded":
        print(f"Service degraded: {result['reason']}")
        sys.exit(0)  # Still return OK for degraded state
    else:
        print(f"Service unhealthy: {result['reason']}")
        sys.exit(1)


if __name__ == "__main__":
    main()
