"""Lightweight CLI helpers for checking credentials and inspecting practice history."""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from llm_gateway import CompletionClient, CredentialResolver
from session_reports import HistoryStore
from storage.kv import SqliteKeyValueStore


def mask_key(key: str) -> str:
    if len(key) <= 12:
        return key[:4] + "..."
    return f"{key[:8]}...{key[-4:]}"


def check_credential(key: Optional[str] = None, client: Optional[CompletionClient] = None) -> int:
    """Validate ``key`` (or the resolved default) against the completion API; returns an exit code."""
    client = client or CompletionClient(resolver=CredentialResolver(SqliteKeyValueStore()))
    if key:
        print(f"Testing API key {mask_key(key)}")
    else:
        print("Testing the configured API key")
    result = asyncio.run(client.validate(key))
    if result.is_valid:
        print(f"OK: {result.message}")
        return 0
    print(f"FAILED [{result.error_kind}]: {result.message}", file=sys.stderr)
    return 1


def tail_history(limit: int = 20, store: Optional[HistoryStore] = None) -> None:
    history = store or HistoryStore(SqliteKeyValueStore())
    for entry in history.list(limit):
        config = entry.config
        flagged = sum(1 for pair in entry.qa_pairs if pair.non_answer)
        print(
            f"[{entry.ended_at.isoformat(timespec='seconds')}] {config.describe()} "
            f"answers={len(entry.qa_pairs)} non_answers={flagged} entries={len(entry.transcript)}"
        )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--test-credential",
        nargs="?",
        const="",
        default=None,
        metavar="API_KEY",
        help="Validate an API key (defaults to the saved or GROQ_API_KEY value)",
    )
    parser.add_argument("--tail-history", type=int, help="Show the latest finished practice sessions")
    args = parser.parse_args(argv)

    code = 0
    if args.test_credential is not None:
        code = check_credential(args.test_credential or None)
    if args.tail_history:
        tail_history(args.tail_history)
    return code


if __name__ == "__main__":
    sys.exit(main())
