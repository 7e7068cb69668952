#!/usr/bin/env python3
"""
Simulate the rain sensor: post a 0/1 sequence to /rain with a pause between signals.

Example (one 5 second shower with a duplicate reading):
    python examples/scripts/rain_sensor_sim.py --sequence 0,1,1,0 --interval 2.5
"""
import argparse
import os
import sys
import time

import requests


def parse_sequence(s: str) -> list[int]:
    values = [v.strip() for v in (s or "").split(",") if v.strip()]
    out = []
    for v in values:
        if v not in ("0", "1"):
            raise ValueError(f"Invalid signal {v!r}; use 0 or 1")
        out.append(int(v))
    return out


def main() -> int:
    ap = argparse.ArgumentParser(description="Post rain/no-rain signals like the ESP8266 sensor.")
    ap.add_argument("--base-url", default=os.getenv("BASE_URL", "http://localhost:3001"))
    ap.add_argument("--sequence", default="0,1,0", help="comma separated 0/1 readings")
    ap.add_argument("--interval", type=float, default=5.0, help="seconds between readings")
    ap.add_argument("--timeout", type=int, default=10)
    args = ap.parse_args()

    try:
        sequence = parse_sequence(args.sequence)
    except ValueError as e:
        print(str(e))
        return 2
    if not sequence:
        print("sequence must contain at least one reading")
        return 2

    sess = requests.Session()
    url = args.base_url.rstrip("/") + "/rain"

    fail = 0
    for i, value in enumerate(sequence):
        if i:
            time.sleep(args.interval)

        t0 = time.perf_counter()
        try:
            r = sess.post(url, json={"isRaining": value}, timeout=args.timeout)
            ms = (time.perf_counter() - t0) * 1000.0
            if r.status_code >= 400:
                fail += 1
                print(f"[{i}] isRaining={value} -> {r.status_code} {r.text} ({ms:.1f} ms)")
                continue
            print(f"[{i}] isRaining={value} -> {r.json().get('action')} ({ms:.1f} ms)")
        except requests.RequestException as e:
            fail += 1
            print(f"[{i}] isRaining={value} -> error: {e}")

    print(f"sent={len(sequence)} failed={fail}")
    return 1 if fail else 0


if __name__ == "__main__":
    sys.exit(main())
