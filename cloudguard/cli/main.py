from __future__ import annotations

import argparse
import json
import logging
from typing import Optional

from cloudguard.config import Settings


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="cloudguard", description="CloudGuard alert dashboard CLI")
    p.add_argument("--api-url", default=None, help="API base URL (default: $CLOUDGUARD_API_URL)")
    p.add_argument("--log-level", default=None, help="DEBUG|INFO|WARNING|ERROR")
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the alert API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3000)
    serve.add_argument("--seed", default=None, help="JSONL file of alerts to load at startup")
    serve.add_argument("--persist", default=None, help="JSONL snapshot rewritten after each change")

    ls = sub.add_parser("list", help="Print alerts from a running server")
    ls.add_argument("--severity", default="all")
    ls.add_argument("--status", default="all", help='e.g. "In-Progress" or "inprogress"')
    ls.add_argument("--category", default="all")
    ls.add_argument("--search", default="")

    sub.add_parser("stats", help="Print status and category counts")

    adv = sub.add_parser("advance", help="Move one alert to its next status")
    adv.add_argument("alert_id")

    watch = sub.add_parser("watch", help="Poll the server and print status counts")
    watch.add_argument("--interval", type=float, default=None)
    watch.add_argument("--cycles", type=int, default=None, help="Stop after N refreshes")

    return p


def _settings(args) -> Settings:
    s = Settings.from_env()
    if args.api_url:
        s.api_url = args.api_url
    if args.log_level:
        s.log_level = args.log_level
    return s


def cmd_serve(args, settings: Settings) -> int:
    import uvicorn
    from cloudguard.api.app import create_app

    if args.seed:
        settings.seed_path = args.seed
    if args.persist:
        settings.persist_path = args.persist

    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


def cmd_list(args, settings: Settings) -> int:
    from cloudguard.client.poller import AlertClient

    params = {"severity": args.severity, "status": args.status, "category": args.category}
    if args.search:
        params["search"] = args.search
    with AlertClient(settings.api_url, timeout=settings.http_timeout) as client:
        alerts = client.fetch_alerts(params)
    print(json.dumps([a.to_dict() for a in alerts], indent=2, ensure_ascii=False))
    return 0


def cmd_stats(args, settings: Settings) -> int:
    from cloudguard.client.poller import AlertClient

    with AlertClient(settings.api_url, timeout=settings.http_timeout) as client:
        print(json.dumps(client.fetch_stats(), indent=2))
    return 0


def cmd_advance(args, settings: Settings) -> int:
    from cloudguard.client.poller import AlertClient, DashboardModel

    with AlertClient(settings.api_url, timeout=settings.http_timeout) as client:
        model = DashboardModel(client)
        if not model.refresh():
            raise SystemExit(f"advance failed: {model.error}")
        updated = model.advance(args.alert_id)
    if updated is None:
        raise SystemExit(f"advance failed: {args.alert_id} is unknown or already Resolved")
    print(json.dumps(updated.to_dict(), indent=2, ensure_ascii=False))
    return 0


def cmd_watch(args, settings: Settings) -> int:
    from cloudguard.client.poller import AlertClient, DashboardModel, poll

    interval = args.interval if args.interval is not None else settings.refresh_interval
    with AlertClient(settings.api_url, timeout=settings.http_timeout) as client:
        model = DashboardModel(client)

        def show(m: DashboardModel, ok: bool) -> None:
            print(json.dumps({"ok": ok, "error": m.error, "statuses": m.statistics()}), flush=True)

        try:
            poll(model, interval=interval, max_cycles=args.cycles, on_refresh=show)
        except KeyboardInterrupt:
            pass
    return 0


COMMANDS = {
    "serve": cmd_serve,
    "list": cmd_list,
    "stats": cmd_stats,
    "advance": cmd_advance,
    "watch": cmd_watch,
}


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = _settings(args)
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    handler = COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(f"Unknown command: {args.command}")
    from cloudguard.client.poller import ClientError

    try:
        return handler(args, settings)
    except ClientError as e:
        raise SystemExit(f"{args.command} failed: {e}")


if __name__ == "__main__":
    raise SystemExit(main())
