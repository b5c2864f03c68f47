"""Lead discovery pipeline entry point.

Usage:
  # Serve the HTTP API (exa-search, exa-webset-search, exa-webhook, health)
  python main.py serve --port 8000

  # Run one synchronous search for a user, bypassing the rate limiter
  python main.py search --user-id 6f1c... --query "ICU nurse Texas" --campaign-id 91ab...

  # Re-score the leads stored in a campaign against a job requirement
  python main.py score --campaign-id 91ab... --requirement "RN, BLS+ACLS, 2y ICU, Houston"
"""
import argparse
import asyncio
import json
import logging
import sys
import uuid

import config
from llm_init import init_llm

logger = logging.getLogger(__name__)


async def run_search(user_id: str, query: str, campaign_id: str = "") -> dict:
    from db.connection import dispose_engine, get_db
    from pipeline.events import NotificationSink
    from pipeline.search import search_leads

    payload = {"query": query}
    if campaign_id:
        payload["campaignId"] = campaign_id

    events = NotificationSink()
    try:
        async with get_db() as session:
            result = await search_leads(
                session, uuid.UUID(user_id), payload, events, enforce_rate_limit=False
            )
        events.flush()
    finally:
        await dispose_engine()

    print(f"  Leads found: {result.leads_found}")
    print(f"  Leads skipped: {result.leads_skipped}")
    return result.model_dump()


async def run_scoring(campaign_id: str, requirement: str) -> int:
    from db.connection import dispose_engine, get_db
    from pipeline.scorer import score_campaign

    try:
        async with get_db() as session:
            updated = await score_campaign(session, uuid.UUID(campaign_id), requirement)
    finally:
        await dispose_engine()

    print(f"  Leads scored: {updated}")
    return updated


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Healthcare lead discovery pipeline"
    )
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    search = sub.add_parser("search", help="Run one synchronous lead search")
    search.add_argument("--user-id", required=True)
    search.add_argument("--query", required=True, help="Free-text search, e.g. 'ICU nurse Texas'")
    search.add_argument("--campaign-id", default="", help="Campaign to attach leads to (optional)")

    score = sub.add_parser("score", help="Score a campaign's leads against a requirement")
    score.add_argument("--campaign-id", required=True)
    score.add_argument("--requirement", required=True, help="Job requirement text to score against")

    return parser


if __name__ == "__main__":
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    parser = _build_arg_parser()
    args = parser.parse_args()

    if args.command == "serve":
        import uvicorn

        uvicorn.run("api.app:app", host=args.host, port=args.port, log_level=config.LOG_LEVEL.lower())

    elif args.command == "search":
        init_llm()
        result = asyncio.run(run_search(args.user_id, args.query, args.campaign_id))
        print(json.dumps(result, indent=2))

    elif args.command == "score":
        init_llm()
        asyncio.run(run_scoring(args.campaign_id, args.requirement))

    else:
        parser.print_help()
        sys.exit(1)
