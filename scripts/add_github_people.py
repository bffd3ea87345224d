"""
Fetch GitHub users, enrich them from LinkedIn / Twitter / Whop and store them as people.

Usage: python scripts/add_github_people.py octocat torvalds
       python scripts/add_github_people.py --file logins.txt
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse

from sourcing.runner import main
from sourcing.services.enrichment import add_github_people


def read_logins(args: argparse.Namespace) -> list:
    logins = list(args.logins)
    if args.file:
        with open(args.file) as f:
            logins.extend(line.strip() for line in f if line.strip())
    return logins


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Add GitHub users as people")
    parser.add_argument("logins", nargs="*", help="GitHub logins")
    parser.add_argument("--file", help="File with one login per line")
    args = parser.parse_args()

    logins = read_logins(args)
    if not logins:
        parser.error("no logins given")

    main("ADD GITHUB PEOPLE", lambda clients: add_github_people(clients, logins))
