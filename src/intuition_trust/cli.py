#!/usr/bin/env python3
"""
intuition-trust CLI — Trust queries against the Intuition attestation graph.

Commands:
    score        - Trust score for an address
    attestations - Query attestations with filters
    verify       - Verify a credential claim for an address
    experts      - Rank trusted experts in a topic
    tools        - List available tools
    serve        - Run the HTTP API (uvicorn)
    mcp          - Run an agent session on stdin/stdout
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from intuition_trust.client import GraphClient
from intuition_trust.config import Settings
from intuition_trust.dispatch import Dispatcher, list_tools
from intuition_trust.service import TrustService


def _output(data: Any, args: argparse.Namespace, human_fn=None):
    """Output data as JSON or pretty-printed."""
    if getattr(args, 'json', False):
        print(json.dumps(data, indent=2, default=str))
    elif human_fn:
        human_fn(data)
    else:
        print(json.dumps(data, indent=2, default=str))


def _fmt_time(ts: int) -> str:
    if not ts:
        return "-"
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _load_settings() -> Settings:
    """Read settings from the environment; exit 1 on a malformed value."""
    try:
        return Settings.from_env()
    except ValueError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


async def _call(settings: Settings, tool: str, params: dict) -> tuple[int, dict]:
    service = TrustService(GraphClient.from_settings(settings))
    try:
        return await Dispatcher(service).call(tool, params)
    finally:
        await service.aclose()


def _run_tool(args: argparse.Namespace, tool: str, params: dict) -> Any:
    """Dispatch one tool call. Prints the error envelope and exits 1 on failure."""
    _, envelope = asyncio.run(_call(_load_settings(), tool, params))
    if not envelope["success"]:
        if getattr(args, 'json', False):
            print(json.dumps(envelope, indent=2))
        else:
            print(f"❌ {envelope['error']}", file=sys.stderr)
            for d in envelope.get("details", []):
                print(f"   {d['field']}: {d['message']}", file=sys.stderr)
            if "availableTools" in envelope:
                print(f"   Available: {', '.join(envelope['availableTools'])}", file=sys.stderr)
        sys.exit(1)
    return envelope["data"]


# ─── Commands ──────────────────────────────────────────────────────

def cmd_score(args):
    """Trust score for an address."""
    result = _run_tool(args, "getTrustScore", {"address": args.address})

    def human(d):
        b = d["breakdown"]
        print(f"📊 Trust Score for {d['address']}")
        print(f"   Score:        {d['score']:.1f} / 100")
        print(f"   Attestations: {d['attestationCount']} "
              f"(+{d['positiveAttestations']} / -{d['negativeAttestations']})")
        print(f"   Credibility:  {b['credibility']:.1f}")
        print(f"   Expertise:    {b['expertise']:.1f}")
        print(f"   Reliability:  {b['reliability']:.1f}")
        print(f"   Reputation:   {b['reputation']:.1f}")

    _output(result, args, human)
    return result


def cmd_attestations(args):
    """Query attestations."""
    params = {
        "creator": args.creator,
        "subject": args.subject,
        "predicate": args.predicate,
        "object": args.object,
        "minConfidence": args.min_confidence,
        "fromTimestamp": args.from_timestamp,
        "toTimestamp": args.to_timestamp,
        "limit": args.limit,
        "offset": args.offset,
    }
    result = _run_tool(args, "getAttestations", {k: v for k, v in params.items() if v is not None})

    def human(d):
        print(f"🔎 {len(d)} attestation(s)")
        for a in d:
            print(f"   [{a['id']}] {a['subject']} — {a['predicate']} → {a['object']}")
            print(f"       by {a['creator'] or '-'} at {_fmt_time(a['timestamp'])}")

    _output(result, args, human)
    return result


def cmd_verify(args):
    """Verify a credential claim."""
    result = _run_tool(args, "verifyCredential", {"address": args.address, "claim": args.claim})

    def human(d):
        if d["verified"]:
            print(f"✅ VERIFIED: {d['message']}")
            print(f"   Confidence: {d['confidence']:.2f}")
        else:
            print(f"❌ NOT VERIFIED: {d['message']}")
        for a in d["attestations"]:
            print(f"   [{a['id']}] {a['predicate']} → {a['object']}")

    _output(result, args, human)
    return result


def cmd_experts(args):
    """Rank trusted experts in a topic."""
    result = _run_tool(args, "findTrustedExperts", {"topic": args.topic, "limit": args.limit})

    def human(d):
        print(f"🏆 Top experts in '{args.topic}': {len(d)}")
        for i, e in enumerate(d):
            print(f"   {i+1:>3}. {e['address']}  score {e['trustScore']:.0f}  "
                  f"({e['attestationCount']} attestation(s), last {_fmt_time(e['recentActivity'])})")

    _output(result, args, human)
    return result


def cmd_tools(args):
    """List available tools."""
    result = list_tools()

    def human(d):
        for t in d:
            print(f"🔧 {t['name']}")
            print(f"   {t['description']}")
            for name, desc in t["params"].items():
                print(f"     {name}: {desc}")

    _output(result, args, human)
    return result


def cmd_serve(args):
    """Run the HTTP API."""
    import uvicorn

    from intuition_trust.api import create_app
    from intuition_trust.middleware import setup_structured_logging

    settings = _load_settings()
    setup_structured_logging(settings.log_level)
    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port)


def cmd_mcp(args):
    """Run an agent session on stdin/stdout until EOF."""
    from intuition_trust.middleware import setup_structured_logging
    from intuition_trust.session import AgentSession

    settings = _load_settings()
    setup_structured_logging(settings.log_level)

    async def run():
        service = TrustService(GraphClient.from_settings(settings))
        try:
            await AgentSession(Dispatcher(service)).serve()
        finally:
            await service.aclose()

    asyncio.run(run())


# ─── Parser ────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intuition-trust",
        description="intuition-trust — Attestation retrieval and trust scoring",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--json", action="store_true", help="Machine-readable JSON output")

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # score
    p = sub.add_parser("score", help="Trust score for an address")
    p.add_argument("address", help="Ethereum address (0x...)")

    # attestations
    p = sub.add_parser("attestations", help="Query attestations")
    p.add_argument("--creator", help="Creator substring")
    p.add_argument("--subject", help="Subject substring")
    p.add_argument("--predicate", help="Predicate substring")
    p.add_argument("--object", help="Object substring")
    p.add_argument("--min-confidence", type=float, help="Minimum confidence (0-1)")
    p.add_argument("--from", dest="from_timestamp", type=int, help="From Unix timestamp")
    p.add_argument("--to", dest="to_timestamp", type=int, help="Until Unix timestamp")
    p.add_argument("-n", "--limit", type=int, help="Maximum results (default 100)")
    p.add_argument("--offset", type=int, help="Results to skip")

    # verify
    p = sub.add_parser("verify", help="Verify a credential claim")
    p.add_argument("address", help="Ethereum address (0x...)")
    p.add_argument("claim", help="Claim text, e.g. expert-in-defi")

    # experts
    p = sub.add_parser("experts", help="Find trusted experts in a topic")
    p.add_argument("topic", help="Topic, e.g. solidity")
    p.add_argument("-n", "--limit", type=int, default=10, help="Maximum experts (default 10)")

    # tools
    sub.add_parser("tools", help="List available tools")

    # serve
    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default="127.0.0.1", help="Bind address")
    p.add_argument("--port", type=int, default=8000, help="Port")

    # mcp
    sub.add_parser("mcp", help="Agent session over stdin/stdout")

    return parser


def main(argv: Optional[list[str]] = None) -> Any:
    """CLI entry point. Returns the command result for testing."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "score": cmd_score,
        "attestations": cmd_attestations,
        "verify": cmd_verify,
        "experts": cmd_experts,
        "tools": cmd_tools,
        "serve": cmd_serve,
        "mcp": cmd_mcp,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    main()
