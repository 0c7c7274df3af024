"""CLI for the stock rewards HTTP API.

Usage:
  stock-rewards-cli health
  stock-rewards-cli user create alice@example.com
  stock-rewards-cli reward create <user_id> TCS 10 --reference-id r1
  stock-rewards-cli portfolio <user_id>
  stock-rewards-cli history <user_id>
"""
import argparse
import json
import sys
import uuid
from datetime import datetime, timezone

import httpx

DEFAULT_BASE_URL = "http://127.0.0.1:8000"


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_health(client: httpx.Client, _: argparse.Namespace) -> int:
    r = client.get("/health")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_user_create(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.post("/api/v1/users", json={"email": args.email})
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_reward_create(client: httpx.Client, args: argparse.Namespace) -> int:
    timestamp = args.timestamp or datetime.now(timezone.utc).isoformat()
    payload = {
        "user_id": args.user_id,
        "stock_symbol": args.symbol,
        "quantity": args.quantity,
        "reward_timestamp": timestamp,
        "event_type": args.event_type,
        "reference_id": args.reference_id or str(uuid.uuid4()),
    }
    r = client.post("/api/v1/reward", json=payload)
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_today(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/api/v1/today-stocks/{args.user_id}")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_portfolio(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/api/v1/portfolio/{args.user_id}")
    r.raise_for_status()
    data = r.json()
    print(f"{len(data['holdings'])} holdings, total value {data['total_value']}")
    print_json(data)
    return 0


def cmd_stats(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/api/v1/stats/{args.user_id}")
    r.raise_for_status()
    print_json(r.json())
    return 0


def cmd_history(client: httpx.Client, args: argparse.Namespace) -> int:
    r = client.get(f"/api/v1/historical-inr/{args.user_id}")
    r.raise_for_status()
    data = r.json()
    values = data["historical_values"]
    print(f"Found {len(values)} historical values")
    print_json(values[: args.head] if args.head else values)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Call the stock rewards API")
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"API base URL (default: {DEFAULT_BASE_URL})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Request timeout in seconds (default: 30)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command")

    subparsers.add_parser("health", help="GET /health")

    user = subparsers.add_parser("user", help="User directory (/api/v1/users)")
    user_sub = user.add_subparsers(dest="user_cmd", required=True)
    p = user_sub.add_parser("create", help="POST /api/v1/users")
    p.add_argument("email", help="User email")

    reward = subparsers.add_parser("reward", help="Rewards (/api/v1/reward)")
    reward_sub = reward.add_subparsers(dest="reward_cmd", required=True)
    p = reward_sub.add_parser("create", help="POST /api/v1/reward")
    p.add_argument("user_id", help="User UUID")
    p.add_argument("symbol", help="Stock symbol (e.g. TCS, INFY)")
    p.add_argument("quantity", help="Number of shares (may be fractional)")
    p.add_argument("--reference-id", default=None, help="Idempotency key (default: random)")
    p.add_argument("--event-type", default="signup_bonus", help="Event type (default: signup_bonus)")
    p.add_argument("--timestamp", default=None, help="ISO reward timestamp (default: now)")

    for name, help_text in [
        ("today", "GET /api/v1/today-stocks/{user_id}"),
        ("portfolio", "GET /api/v1/portfolio/{user_id}"),
        ("stats", "GET /api/v1/stats/{user_id}"),
        ("history", "GET /api/v1/historical-inr/{user_id}"),
    ]:
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("user_id", help="User UUID")
        if name == "history":
            p.add_argument("--head", type=int, default=0, help="Show only first N (0 = all)")

    return parser


HANDLERS = {
    "health": cmd_health,
    "user": {"create": cmd_user_create},
    "reward": {"create": cmd_reward_create},
    "today": cmd_today,
    "portfolio": cmd_portfolio,
    "stats": cmd_stats,
    "history": cmd_history,
}


def run_command(client: httpx.Client, args: argparse.Namespace) -> int:
    """Dispatch parsed args to a handler; report HTTP errors on stderr."""
    handler = HANDLERS[args.command]
    if isinstance(handler, dict):
        handler = handler[getattr(args, f"{args.command}_cmd")]
    try:
        return handler(client, args)
    except httpx.HTTPStatusError as e:
        print(f"HTTP error: {e.response.status_code}", file=sys.stderr)
        if e.response.content:
            try:
                print(e.response.json(), file=sys.stderr)
            except ValueError:
                print(e.response.text, file=sys.stderr)
        return 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        with httpx.Client(base_url=args.base_url.rstrip("/"), timeout=args.timeout) as client:
            return run_command(client, args)
    except httpx.RequestError as e:
        print(f"Request error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
