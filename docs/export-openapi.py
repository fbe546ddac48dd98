#!/usr/bin/env python3
"""
Export the chat API's OpenAPI document to docs/openapi.json

Usage:
    python docs/export-openapi.py [--url http://localhost:5000/api/openapi.json]

Falls back to importing the app when no server is reachable.
"""

import argparse
import json
import sys
from pathlib import Path

import httpx

DEFAULT_URL = "http://localhost:5000/api/openapi.json"
OUTPUT_FILE = Path(__file__).parent / "openapi.json"


def fetch_spec(url: str) -> tuple[dict, str]:
    try:
        response = httpx.get(url, timeout=10.0)
        response.raise_for_status()
        return response.json(), f"server at {url}"
    except httpx.HTTPError as http_error:
        print(f"HTTP fetch failed ({http_error}). Falling back to local app import...")

    from app.main import app

    return app.openapi(), "local app import (offline)"


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--url", default=DEFAULT_URL)
    args = parser.parse_args()

    try:
        spec, source = fetch_spec(args.url)
    except Exception as error:
        print("Error: Failed to generate OpenAPI spec.")
        print(error)
        sys.exit(1)

    with open(OUTPUT_FILE, "w", encoding="utf-8") as f:
        json.dump(spec, f, indent=2)

    print(f"OpenAPI spec exported to {OUTPUT_FILE} (source: {source})")
    print(f"  Total endpoints: {len(spec.get('paths', {}))}")


if __name__ == "__main__":
    main()
