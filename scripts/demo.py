#!/usr/bin/env python3
"""
Demo script for the cron translator.

Posts sample scheduling phrases to a running service and prints the
translations, then shows the health payload with quota usage.

Usage:
    uvicorn cron_translator.api.app:app &
    python scripts/demo.py [base_url]
"""

import sys
import time

import httpx

SAMPLE_PHRASES = [
    "every day at 3 PM",
    "Every Monday at 9am",
    "every 15 minutes",
    "first day of every month at midnight",
    "weekdays at 6:30 pm",
    "bake a cake",
]


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def demo_translate(client: httpx.Client) -> None:
    """Translate each sample phrase, twice to show the cache."""
    print_section("Translations")

    for phrase in SAMPLE_PHRASES:
        for label in ("first", "repeat"):
            start_time = time.time()
            response = client.post("/api/translate", json={"input": phrase})
            elapsed_ms = (time.time() - start_time) * 1000
            data = response.json()

            print(f"\n  Phrase: {phrase!r} ({label}, {elapsed_ms:.0f}ms)")
            if response.status_code == 200:
                print(f"  ✓ {data['cron']}  [{data['model']}]")
            else:
                print(f"  ✗ HTTP {response.status_code}: {data.get('error')}")
                if response.status_code == 429:
                    return


def demo_health(client: httpx.Client) -> None:
    """Show quota usage."""
    print_section("Health")

    data = client.get("/health").json()
    daily = data["rateLimit"]["daily"]
    per_user = data["rateLimit"]["perUser"]
    print(f"\n  Status: {data['status']}")
    print(f"  Daily: {daily['used']}/{daily['limit']} used on {daily['date']}")
    print(f"  Per caller: {per_user['max']} per {per_user['windowMs'] // 60000} minutes")


def main() -> None:
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"
    with httpx.Client(base_url=base_url, timeout=30.0) as client:
        demo_translate(client)
        demo_health(client)


if __name__ == "__main__":
    main()
