#!/usr/bin/env python
"""
Ask MedCite a question from the command line.

Usage: python scripts/ask.py "What are the symptoms of type 2 diabetes?"
       python scripts/ask.py --json "..."
"""

import argparse
import asyncio
import json
import logging
import os
import sys

# Ensure src module can be imported
sys.path.append(os.getcwd())

from src.db.postgres import close_db
from src.pipelines.factory import build_pipeline
from src.pipelines.scope_classifier import ScopeClassificationError


async def ask(question: str, as_json: bool) -> int:
    pipeline = build_pipeline()
    try:
        result = await pipeline.run(question)
    except ScopeClassificationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    finally:
        await close_db()

    if as_json:
        print(
            json.dumps(
                {
                    "answer": result.answer,
                    "outcome": result.outcome,
                    "optimized_query": result.optimized_query,
                    "rewrite_fallback_used": result.rewrite_fallback_used,
                    "sources": result.sources,
                    "query_id": result.query_id,
                    "processing_time_ms": result.processing_time_ms,
                    "steps": result.steps,
                },
                indent=2,
            )
        )
    else:
        print(result.answer)
        print(f"\n[{result.outcome}] {result.processing_time_ms:.0f}ms")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Ask MedCite a medical question")
    parser.add_argument("question", help="Question in natural language")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show pipeline logs")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    return asyncio.run(ask(args.question, args.json))


if __name__ == "__main__":
    sys.exit(main())
