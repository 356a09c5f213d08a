#!/usr/bin/env python3
"""NFCPay smoke run against a deployed API: register, fund, pay, refund."""

from __future__ import annotations

import argparse
import secrets
import time
from dataclasses import dataclass
from typing import Any

import httpx


@dataclass
class SmokeContext:
    base_url: str
    api_prefix: str
    retries: int
    retry_delay_seconds: float


def _api_url(ctx: SmokeContext, path: str) -> str:
    return f"{ctx.base_url}{ctx.api_prefix}{path}"


def _step(name: str) -> None:
    print(f"\n==> {name}")


def _request(
    client: httpx.Client,
    ctx: SmokeContext,
    method: str,
    url: str,
    *,
    expected_status: int = 200,
    **kwargs: Any,
) -> httpx.Response:
    step_name = f"{method} {url}"
    for attempt in range(ctx.retries + 1):
        try:
            resp = client.request(method, url, **kwargs)
        except (httpx.ConnectTimeout, httpx.ReadTimeout, httpx.ConnectError) as exc:
            if attempt >= ctx.retries:
                raise RuntimeError(f"{step_name} request failed: {exc}") from exc
            print(f"{step_name}: transient error ({exc}), retrying ({attempt + 1}/{ctx.retries})...")
            time.sleep(ctx.retry_delay_seconds)
            continue
        if resp.status_code in {502, 503, 504} and attempt < ctx.retries:
            print(f"{step_name}: transient HTTP {resp.status_code}, retrying ({attempt + 1}/{ctx.retries})...")
            time.sleep(ctx.retry_delay_seconds)
            continue
        if resp.status_code != expected_status:
            raise RuntimeError(
                f"{step_name} failed: expected HTTP {expected_status}, got {resp.status_code}. Body: {resp.text}"
            )
        return resp
    raise RuntimeError(f"{step_name} failed unexpectedly.")


def run_smoke(ctx: SmokeContext, *, timeout_seconds: float, verify_tls: bool) -> None:
    suffix = secrets.token_hex(4)
    email = f"nfcpay.smoke+{suffix}@example.com"
    password = f"SmokePass{suffix}1"

    with httpx.Client(timeout=timeout_seconds, verify=verify_tls) as client:
        _step("Health checks")
        _request(client, ctx, "GET", f"{ctx.base_url}/healthz")
        _request(client, ctx, "GET", f"{ctx.base_url}/readyz")

        _step("Register and login")
        _request(
            client,
            ctx,
            "POST",
            _api_url(ctx, "/auth/register"),
            json={"email": email, "full_name": "NFCPay Smoke", "password": password},
        )
        tokens = _request(
            client, ctx, "POST", _api_url(ctx, "/auth/login"), json={"email": email, "password": password}
        ).json()
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}

        _step("Fund wallet")
        receipt = _request(
            client, ctx, "POST", _api_url(ctx, "/wallet/deposit"), headers=headers, json={"amount": "50.00"}
        ).json()
        print(f"Balance after deposit: {receipt['balance']}")

        _step("Card and merchant")
        card = _request(
            client,
            ctx,
            "POST",
            _api_url(ctx, "/cards"),
            expected_status=201,
            headers=headers,
            json={"card_name": "Smoke Card"},
        ).json()
        merchants = _request(client, ctx, "GET", _api_url(ctx, "/merchants"), headers=headers).json()
        if not merchants:
            raise RuntimeError("No active merchants; seed them before running the smoke test.")

        _step("Pay and refund")
        payment = _request(
            client,
            ctx,
            "POST",
            _api_url(ctx, "/payments"),
            expected_status=201,
            headers=headers,
            json={"card_id": card["id"], "merchant_id": merchants[0]["id"], "amount": "12.50"},
        ).json()
        print(f"Payment {payment['reference']} -> {payment['status']}")
        refund = _request(
            client,
            ctx,
            "POST",
            _api_url(ctx, f"/payments/{payment['id']}/refund"),
            expected_status=201,
            headers=headers,
            json={"reason": "smoke test"},
        ).json()
        print(f"Refund {refund['reference']} -> {refund['status']}")

        _step("Cleanup")
        _request(client, ctx, "POST", _api_url(ctx, "/auth/deactivate"), headers=headers)

    print("\nSUCCESS: smoke checks passed.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run NFCPay smoke checks.")
    parser.add_argument("--base-url", required=True, help="Backend base URL, e.g. https://nfcpay.example.com")
    parser.add_argument("--api-prefix", default="/api/v1", help="API prefix (default: /api/v1)")
    parser.add_argument("--timeout", type=float, default=20.0, help="HTTP timeout in seconds")
    parser.add_argument("--retries", type=int, default=3, help="Retries for transient network/5xx errors")
    parser.add_argument("--retry-delay", type=float, default=5.0, help="Delay between retries in seconds")
    parser.add_argument("--insecure", action="store_true", help="Disable TLS certificate verification")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    ctx = SmokeContext(
        base_url=args.base_url.rstrip("/"),
        api_prefix="/" + args.api_prefix.strip("/"),
        retries=max(0, args.retries),
        retry_delay_seconds=max(0.0, args.retry_delay),
    )
    run_smoke(ctx, timeout_seconds=args.timeout, verify_tls=not args.insecure)


if __name__ == "__main__":
    main()
