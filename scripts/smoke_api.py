#!/usr/bin/env python3
"""
Smoke-test a running shopping assistant API.

Checks the add-to-cart health endpoint, adds items by product code and by
product name, exercises the validation errors, and browses the catalog.

Run from project root with the API up (uvicorn app.main:app):

    python scripts/smoke_api.py
    python scripts/smoke_api.py --base-url http://localhost:8000 --user-id test-user-123
"""

import argparse
import sys

import requests


def _show(label: str, response: requests.Response, expect_ok: bool = True) -> bool:
    try:
        data = response.json()
    except ValueError:
        data = response.text
    passed = response.ok == expect_ok
    mark = "ok  " if passed else "FAIL"
    print(f"[{mark}] {label}: {response.status_code} {data}")
    return passed


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke-test the shopping assistant API.")
    parser.add_argument("--base-url", default="http://localhost:8000", help="API root URL.")
    parser.add_argument("--user-id", default="test-user-123", help="Cart owner used for add-to-cart calls.")
    args = parser.parse_args()

    base = args.base_url.rstrip("/")
    add_url = f"{base}/api/add-to-cart"
    results = []

    try:
        results.append(_show("add-to-cart health", requests.get(add_url, timeout=10)))
        results.append(_show(
            "add by product code",
            requests.post(add_url, json={"productCode": "banana", "quantity": 2, "userId": args.user_id}, timeout=10),
        ))
        results.append(_show(
            "add by product name",
            requests.post(add_url, json={"productName": "Milk", "quantity": 1, "userId": args.user_id}, timeout=10),
        ))
        results.append(_show(
            "missing userId",
            requests.post(add_url, json={"productCode": "banana"}, timeout=10),
            expect_ok=False,
        ))
        results.append(_show(
            "missing product identifier",
            requests.post(add_url, json={"quantity": 1, "userId": args.user_id}, timeout=10),
            expect_ok=False,
        ))
        results.append(_show("get cart", requests.get(f"{base}/api/get-cart", params={"userId": args.user_id}, timeout=10)))

        r = requests.get(f"{base}/api/catalog", timeout=10)
        results.append(_show("browse catalog", r))
        if r.ok:
            products = r.json().get("products") or []
            print(f"  got {len(products)} products; first: {products[0] if products else None}")
    except requests.RequestException as e:
        print(f"Request failed: {e}")
        sys.exit(1)

    failed = results.count(False)
    print(f"Done. {len(results) - failed}/{len(results)} checks passed.")
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
