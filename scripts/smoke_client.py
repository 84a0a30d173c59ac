import os
import sys
import json
import requests

BASE_URL = os.environ.get("SMOKE_URL") or os.environ.get("DEV_URL", "http://127.0.0.1:5002")
BASE = BASE_URL.rstrip('/')
SEASON = os.environ.get("SMOKE_SEASON", "spring")
YEAR = os.environ.get("SMOKE_YEAR", "2026")


def get(path: str, **params):
    r = requests.get(f"{BASE}{path}", params=params or None, timeout=10)
    r.raise_for_status()
    return r


def main():
    print(f"[smoke] Target: {BASE}")
    print("[smoke] /api/health/live:", get("/api/health/live").status_code)
    print("[smoke] /version:", get("/version").status_code)
    r = get("/api/status", season=SEASON, year=YEAR)
    print("[smoke] /api/status:", r.status_code, json.dumps(r.json(), indent=2)[:300])


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print("[smoke] FAILED:", e)
        sys.exit(1)
