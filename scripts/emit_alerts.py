#!/usr/bin/env python3
"""Play the detection-source role: POST alerts to a running CloudGuard API.

Usage: python scripts/emit_alerts.py --input data/samples/alerts.jsonl
       python scripts/emit_alerts.py --random 10

Environment:
- CLOUDGUARD_API_URL (optional, default http://localhost:3000)
"""

from __future__ import annotations

import argparse
import json
import os
import random
import sys
from typing import Any, Dict, List, Optional

import httpx

API = os.getenv("CLOUDGUARD_API_URL", "http://localhost:3000")

SAMPLE_FINDINGS = [
    ("CVE", "Critical OpenSSL CVE on host {host}"),
    ("S3", "Bucket {host}-backups has versioning disabled"),
    ("IAM", "Root account used from {host}"),
    ("Network", "Unexpected outbound traffic from {host} on port 4444"),
    ("Activity", "Burst of failed logins against {host}"),
]


def load_rows(path: str) -> List[Dict[str, Any]]:
    rows = []
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            row = json.loads(line)
            # the API only creates New alerts; status is not part of the create body
            rows.append({k: v for k, v in row.items() if k in ("id", "severity", "category", "description", "timestamp")})
    return rows


def random_rows(n: int, seed: Optional[int] = None) -> List[Dict[str, Any]]:
    rng = random.Random(seed)
    rows = []
    for _ in range(n):
        category, template = rng.choice(SAMPLE_FINDINGS)
        rows.append({
            "severity": rng.choice(["High", "Medium", "Low"]),
            "category": category,
            "description": template.format(host=f"node-{rng.randint(1, 99):02d}"),
        })
    return rows


def post_alert(base_url: str, row: Dict[str, Any]) -> Dict[str, Any]:
    r = httpx.post(f"{base_url}/alerts", json=row, timeout=10.0)
    r.raise_for_status()
    return r.json()


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--api-url", default=API)
    p.add_argument("--input", default=None, help="JSONL file of alerts to send")
    p.add_argument("--random", type=int, default=0, help="send N generated alerts")
    p.add_argument("--seed", type=int, default=None)
    args = p.parse_args(argv)

    if args.input:
        rows = load_rows(args.input)
    elif args.random > 0:
        rows = random_rows(args.random, args.seed)
    else:
        print("Nothing to send: pass --input or --random N", file=sys.stderr)
        return 2

    sent = 0
    for row in rows:
        try:
            created = post_alert(args.api_url, row)
        except httpx.HTTPStatusError as exc:
            print(f"Rejected {row.get('id', '<new>')}: {exc.response.status_code} {exc.response.text}", file=sys.stderr)
            continue
        sent += 1
        print(f"Created {created['id']} [{created['severity']}/{created['category']}]")

    print(f"Sent {sent}/{len(rows)} alerts to {args.api_url}")
    return 0 if sent == len(rows) else 1


if __name__ == "__main__":
    raise SystemExit(main())
