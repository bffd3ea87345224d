"""
Similarity search over stored vectors.

Usage: python scripts/search.py skills "react"
       python scripts/search.py x-candidates "Experience with Terraform ..."
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse
import asyncio

from sourcing.logging_setup import init_logging
from sourcing.services.clients import build_clients
from sourcing.services.matching.scoring import query_similar_technologies, score_x_candidates


async def search_skills(text: str) -> None:
    clients = build_clients()
    try:
        results = await query_similar_technologies(clients, text)
    finally:
        await clients.aclose()

    print(f"\nTechnologies similar to '{text}':")
    for i, result in enumerate(results, 1):
        print(f"{i}: {result['technology']} (Score: {result['score']:.3f})")


async def search_x_candidates(text: str) -> None:
    clients = build_clients()
    try:
        results = await score_x_candidates(clients, text)
    finally:
        await clients.aclose()

    print("\n" + "=" * 60)
    print("TOP X CANDIDATES")
    print("=" * 60)
    for result in results:
        print(f"\n@{result.username}: {result.total_score:.2f}")
        print(f"  Location: {result.normalized_location} ({result.location_score})")
        print(f"  Similarity: {result.similarity_score:.2f}")
        print(f"  Followers: {result.follower_count} ({result.follower_count_score:.2f})")
        print(f"  Ratio: {result.follower_ratio:.2f} ({result.follower_ratio_score:.2f})")
        print(f"  Avg likes: {result.avg_likes_score:.2f}")
        print(f"  Bio: {result.bio}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Search stored vectors")
    parser.add_argument("mode", choices=["skills", "x-candidates"])
    parser.add_argument("text")
    args = parser.parse_args()

    init_logging()
    if args.mode == "skills":
        asyncio.run(search_skills(args.text))
    else:
        asyncio.run(search_x_candidates(args.text))
