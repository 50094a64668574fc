#!/usr/bin/env python3
"""
Chat Pipeline Try-Out Script

Runs the recommendation pipeline locally against the real upstream LLM
without starting the HTTP server or the chat widget.

Usage:
    python scripts/try_chat.py
    python scripts/try_chat.py --message "밤 산책용 하네스 추천해 주세요"
    python scripts/try_chat.py --provider openai --message "대형견 하네스"
    python scripts/try_chat.py --suite
"""

import argparse
import asyncio
import json
import logging
import os
import sys

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chat_backend.agents.recommendation.types import Err
from chat_backend.catalog import load_catalog
from chat_backend.config import settings
from chat_backend.services.recommendation_service import build_pipeline
from chat_backend.utils.logging import LOG_FORMAT

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT
)
logger = logging.getLogger(__name__)

SUITE_MESSAGES = [
    # Product questions
    "내 강아지는 작아요",
    "밤에 산책을 자주 해요. 어떤 하네스가 좋을까요?",
    "골든 리트리버가 당기는 힘이 너무 세요",
    "강아지 이름을 새길 수 있는 선물을 찾고 있어요",
    # Off-topic: the model must still pick a product and steer back
    "오늘 날씨 어때요?",
    "안녕하세요",
]


def print_outcome(message: str, outcome) -> None:
    """Pretty print one pipeline outcome."""
    print("\n" + "=" * 60)
    print(f"MESSAGE: {message}")
    print("=" * 60)

    if isinstance(outcome, Err):
        failure = outcome.error
        print(f"\n❌ {failure.code} (HTTP {failure.status_code})")
        print(f"  Reply: {failure.reply}")
        print(f"  Error: {failure.error}\n")
        return

    result = outcome.value
    print(f"\n✅ Reply: {result.reply}")
    if result.product is not None:
        print(json.dumps(result.product.model_dump(mode="json"), ensure_ascii=False, indent=2))
    else:
        print("  (no product)")
    print()


async def run_messages(messages: list[str]) -> None:
    if not settings.upstream_api_key:
        print(f"\n⚠️  ERROR: no API key configured for provider '{settings.LLM_PROVIDER}'!")
        print("   Set UPSTREAM_API_KEY (or the provider's own key variable) in .env or export it.")
        return

    catalog = load_catalog(settings.CATALOG_PATH or None)
    pipeline = build_pipeline(settings, catalog)

    for message in messages:
        outcome = await pipeline.recommend(message)
        print_outcome(message, outcome)


def main():
    parser = argparse.ArgumentParser(
        description="Run the chat recommendation pipeline against the real upstream",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--message", "-m",
        type=str,
        help="User message (e.g., '내 강아지는 작아요')"
    )
    parser.add_argument(
        "--provider", "-p",
        type=str,
        choices=["gemini", "openai", "huggingface"],
        help="Override LLM_PROVIDER for this run"
    )
    parser.add_argument(
        "--suite",
        action="store_true",
        help="Run the predefined message suite"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.provider:
        settings.LLM_PROVIDER = args.provider

    if args.suite:
        asyncio.run(run_messages(SUITE_MESSAGES))
    elif args.message:
        asyncio.run(run_messages([args.message]))
    else:
        print("\nNo message provided. Running default message...\n")
        asyncio.run(run_messages([SUITE_MESSAGES[0]]))


if __name__ == "__main__":
    main()
