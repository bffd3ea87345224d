from __future__ import annotations

import asyncio
import json

from sourcing.models import ArtifactKind
from sourcing.services.backfills import (
    add_company_features,
    backfill_github_images,
    backfill_linkedin_urls,
    backfill_twitter_bios,
    company_linkedin_urls,
    compute_company_technologies,
    normalize_locations,
    resolve_company_ids,
    resolve_github_companies,
)
from sourcing.services.derivation.location import COUNTRY_PROMPT, LOCATION_PROMPT
from tests.fakes import FakeChat, FakeRepository, make_clients


def test_normalize_locations_marks_missing_location_undefined():
    people = FakeRepository([
        {"id": "p1", "location": None, "normalized_location": None},
        {"id": "p2", "location": "Austin, TX", "normalized_location": None},
        {"id": "p3", "location": "Paris", "normalized_location": "FRANCE"},
    ])

    def respond(system, user, kwargs):
        return {LOCATION_PROMPT: "texas", COUNTRY_PROMPT: "united states"}[system]

    clients = make_clients(chat=FakeChat(respond), people=people)
    report = asyncio.run(normalize_locations(clients))

    assert report.succeeded == 2
    assert people.by_id("p1")["normalized_location"] == "UNDEFINED"
    assert "normalized_country" not in people.by_id("p1")
    assert people.by_id("p2")["normalized_location"] == "TEXAS"
    assert people.by_id("p2")["normalized_country"] == "UNITED STATES"
    assert [u[0] for u in people.updates] == ["p1", "p2"]


def test_backfill_twitter_bios_skips_empty_descriptions():
    people = FakeRepository([
        {"id": "p1", "twitter_data": {"description": " Rust hacker "}, "twitter_bio": None},
        {"id": "p2", "twitter_data": {"description": ""}, "twitter_bio": None},
        {"id": "p3", "twitter_data": {"description": "set"}, "twitter_bio": "already"},
    ])
    clients = make_clients(people=people)

    report = asyncio.run(backfill_twitter_bios(clients))

    assert (report.total, report.succeeded, report.skipped) == (2, 1, 1)
    assert people.by_id("p1")["twitter_bio"] == "Rust hacker"
    assert people.by_id("p2")["twitter_bio"] is None
    assert ("p1", ArtifactKind.X_BIO) in clients.artifacts.statuses
    assert not clients.artifacts.is_done("p1", ArtifactKind.X_BIO)


class _GitHub:
    def __init__(self, linkedin=None, companies=None, users=None):
        self.linkedin = linkedin or {}
        self.companies = companies or {}
        self.users = users or {}
        self.company_calls = []
        self.field_calls = []

    async def fetch_linkedin_url(self, login):
        if login not in self.linkedin:
            return None
        return {"linkedin_url": self.linkedin[login]}

    async def fetch_user_fields(self, login, fields):
        self.field_calls.append((login, fields))
        return self.users.get(login)

    async def fetch_company(self, login):
        self.company_calls.append(login)
        if login not in self.companies:
            return None
        return {"company": self.companies[login]}


def test_backfill_linkedin_urls_stores_empty_string_when_absent():
    people = FakeRepository([
        {"id": "p1", "github_login": "a", "linkedin_url": None},
        {"id": "p2", "github_login": "b", "linkedin_url": None},
        {"id": "p3", "github_login": "c", "linkedin_url": None},
    ])
    github = _GitHub(linkedin={"a": "http://linkedin.com/in/aa/", "b": None})
    clients = make_clients(people=people, github=github)

    report = asyncio.run(backfill_linkedin_urls(clients))

    assert people.by_id("p1")["linkedin_url"] == "https://www.linkedin.com/in/aa"
    assert people.by_id("p2")["linkedin_url"] == ""
    assert people.by_id("p3")["linkedin_url"] is None
    assert (report.succeeded, report.failed) == (2, 1)


def test_resolve_github_companies_only_visits_pending_people():
    people = FakeRepository([
        {"id": "p1", "github_login": "a"},
        {"id": "p2", "github_login": "b"},
        {"id": "p3", "github_login": "c"},
    ])
    github = _GitHub(companies={"a": "@acme", "c": ""})
    clients = make_clients(people=people, github=github)
    asyncio.run(clients.artifacts.mark_done(["p2"], ArtifactKind.GITHUB_COMPANY))

    report = asyncio.run(resolve_github_companies(clients))

    assert sorted(github.company_calls) == ["a", "c"]
    assert people.by_id("p1")["github_company"] == "@acme"
    assert people.by_id("p3")["github_company"] is None
    assert clients.artifacts.is_done("p3", ArtifactKind.GITHUB_COMPANY)
    assert report.succeeded == 2


def test_company_linkedin_urls_dedupes_and_strips():
    data = {"positions": {"positionHistory": [
        {"linkedInUrl": "https://www.linkedin.com/company/acme/"},
        {"linkedInUrl": "https://www.linkedin.com/company/acme"},
        {"title": "No company url"},
    ]}}
    assert company_linkedin_urls(data) == ["https://www.linkedin.com/company/acme"]
    assert company_linkedin_urls(None) == []


def test_resolve_company_ids_marks_done_even_without_companies():
    candidates = FakeRepository([
        {"id": "c1", "linkedin_data": {"positions": {"positionHistory": [
            {"linkedInUrl": "https://www.linkedin.com/company/acme/"},
            {"linkedInUrl": "https://www.linkedin.com/company/unknown"},
        ]}}},
        {"id": "c2", "linkedin_data": {}},
    ])
    companies = FakeRepository([
        {"id": "co1", "linkedin_url": "https://www.linkedin.com/company/acme"},
    ])
    clients = make_clients(candidates=candidates, companies=companies)

    report = asyncio.run(resolve_company_ids(clients))

    assert candidates.by_id("c1")["company_ids"] == ["co1"]
    assert candidates.by_id("c2")["company_ids"] == []
    assert clients.artifacts.is_done("c2", ArtifactKind.COMPANY_IDS)
    assert report.succeeded == 2

    again = asyncio.run(resolve_company_ids(clients))
    assert again.total == 0


def test_add_company_features_handles_malformed_output():
    companies = FakeRepository([
        {"id": "co1", "name": "Acme", "linkedin_data": {"description": "Payments"}},
        {"id": "co2", "name": "Broken", "linkedin_data": {}},
    ])

    def respond(system, user, kwargs):
        if "Broken" in user:
            return "not json"
        return json.dumps({"specialties": ["payments"], "technicalFeatures": ["API integration"]})

    clients = make_clients(chat=FakeChat(respond), companies=companies)
    report = asyncio.run(add_company_features(clients))

    assert companies.by_id("co1")["specialties"] == ["payments"]
    assert companies.by_id("co1")["top_features"] == ["API integration"]
    assert "specialties" not in companies.by_id("co2")
    assert (report.succeeded, report.failed) == (1, 1)


def test_compute_company_technologies_counts_engineers_only():
    candidates = FakeRepository([
        {"id": "c1", "company_ids": ["co1"], "is_engineer": True, "top_technologies": ["Go", "SQL"]},
        {"id": "c2", "company_ids": ["co1", "co2"], "is_engineer": True, "top_technologies": ["Go"]},
        {"id": "c3", "company_ids": ["co1"], "is_engineer": False, "top_technologies": ["Excel"]},
    ])
    companies = FakeRepository([{"id": "co1"}, {"id": "co2"}])
    clients = make_clients(candidates=candidates, companies=companies)

    asyncio.run(compute_company_technologies(clients))

    assert companies.by_id("co1")["top_technologies"] == ["Go", "SQL"]
    assert companies.by_id("co2")["top_technologies"] == ["Go"]


def test_backfill_github_images_fills_missing_avatars():
    people = FakeRepository([
        {"id": "p1", "github_login": "a", "github_image": None, "github_id": None},
        {"id": "p2", "github_login": "b", "github_image": None, "github_id": "MDQ6VXNlcjI="},
        {"id": "p3", "github_login": "c", "github_image": "https://avatars.example/c"},
        {"id": "p4", "github_login": "gone", "github_image": None},
        {"id": "p5", "github_login": None, "github_image": None},
    ])
    github = _GitHub(users={
        "a": {"id": "MDQ6VXNlcjE=", "avatarUrl": "https://avatars.example/a"},
        "b": {"id": "MDQ6VXNlcjk=", "avatarUrl": "https://avatars.example/b"},
    })
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    clients = make_clients(people=people, github=github)
    report = asyncio.run(backfill_github_images(clients, batch_size=2, sleep=fake_sleep))

    assert sorted(login for login, _ in github.field_calls) == ["a", "b", "gone"]
    assert all(fields == "id avatarUrl" for _, fields in github.field_calls)
    assert people.by_id("p1")["github_image"] == "https://avatars.example/a"
    assert people.by_id("p1")["github_id"] == "MDQ6VXNlcjE="
    assert people.by_id("p2")["github_image"] == "https://avatars.example/b"
    assert people.by_id("p2")["github_id"] == "MDQ6VXNlcjI="
    assert people.by_id("p4")["github_image"] is None
    assert (report.succeeded, report.failed) == (2, 1)
    assert sleeps == [20.0]


def test_normalize_locations_classifies_state_and_country_together():
    people = FakeRepository([{"id": "p1", "location": "New York City", "normalized_location": None}])
    started = []

    class _Chat:
        async def complete(self, system, user, **kwargs):
            started.append(system)
            # Each call waits until the other one has started
            while len(started) < 2:
                await asyncio.sleep(0)
            return "NEW YORK" if system == LOCATION_PROMPT else "UNITED STATES"

    clients = make_clients(chat=_Chat(), people=people)

    async def run():
        return await asyncio.wait_for(normalize_locations(clients), timeout=1)

    report = asyncio.run(run())

    assert report.succeeded == 1
    assert people.by_id("p1")["normalized_location"] == "NEW YORK"
    assert people.by_id("p1")["normalized_country"] == "UNITED STATES"
