import json
import shutil
import tempfile
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

from repo_registry.api.deps import get_repository_store
from repo_registry.main import app
from repo_registry.repositories.local_cache import LocalCache
from repo_registry.repositories.repository_store import RepositoryStore
from repo_registry.services.github.contents_store import RemoteStore
from tests.github_fake import CONFIG, FakeGitHub, fixed_clock, make_record


def upsert_body(url="https://github.com/a/one", wallet=""):
    return {
        "url": url,
        "username": "a",
        "name": url.rsplit("/", 1)[-1],
        "metrics": {
            "uniqueness": 80,
            "quality": 1234.6,
            "marketDemand": 50,
            "hourlyEarnings": 420,
            "rentalPrice": 9,
            "royaltyRate": 3,
            "annualRevenue": 20000,
            "stars": 10,
            "forks": 2,
            "watchers": 1,
        },
        "repoData": {"description": "From the GitHub API", "stargazers_count": 10},
        "solanaWallet": wallet,
    }


class TestRepositoriesApi(unittest.TestCase):
    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        self.github = FakeGitHub.with_records(
            [make_record("https://github.com/a/low", hourly=1), make_record("https://github.com/a/high", hourly=999)]
        )
        self.store = RepositoryStore(
            cache=LocalCache(self.test_dir),
            remote=RemoteStore(CONFIG, client=self.github.client(), clock=fixed_clock),
            clock=fixed_clock,
        )
        app.dependency_overrides[get_repository_store] = lambda: self.store
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        shutil.rmtree(self.test_dir)

    def test_health_reports_remote_configuration(self):
        response = self.client.get("/api/health")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["remote_configured"])

    def test_list_is_ranked_and_tagged_with_source(self):
        body = self.client.get("/api/repositories").json()

        self.assertEqual([r["url"] for r in body["repositories"]], ["https://github.com/a/high", "https://github.com/a/low"])
        self.assertEqual(body["source"], "remote")
        self.assertFalse(body["degraded"])
        self.assertEqual(body["total"], 2)

    def test_table_honours_limit(self):
        body = self.client.get("/api/repositories/table", params={"limit": 1}).json()

        self.assertEqual(len(body["displayed"]), 1)
        self.assertEqual(body["total"], 2)
        self.assertTrue(body["hasMore"])

    def test_upsert_returns_record_and_persist_status(self):
        response = self.client.post("/api/repositories", json=upsert_body())

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["repository"]["metrics"]["quality"], 1000)
        self.assertEqual(body["repository"]["description"], "From the GitHub API")
        self.assertEqual(body["repository"]["evaluatedAt"], "2024-05-01T12:00:00.000Z")
        self.assertEqual(body["total"], 3)
        self.assertTrue(body["persist"]["sharedPersisted"])
        self.assertEqual(len(self.github.records), 3)

    def test_rejected_shared_write_is_bad_gateway(self):
        self.github.put_status = 401

        response = self.client.post("/api/repositories", json=upsert_body())

        self.assertEqual(response.status_code, 502)
        persist = response.json()["persist"]
        self.assertFalse(persist["sharedPersisted"])
        self.assertTrue(persist["localPersisted"])
        self.assertIn("Bad credentials", persist["error"])

    def test_version_conflict_is_409(self):
        self.github.put_status = 409

        response = self.client.post("/api/repositories", json=upsert_body())

        self.assertEqual(response.status_code, 409)
        self.assertTrue(response.json()["persist"]["conflict"])

    def test_update_wallet(self):
        response = self.client.patch(
            "/api/repositories/wallet",
            json={"url": "https://github.com/a/low", "solanaWallet": "W1"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["found"])
        wallets = {r["url"]: r["solanaWallet"] for r in self.github.records}
        self.assertEqual(wallets["https://github.com/a/low"], "W1")

    def test_update_wallet_unknown_url_is_not_found_not_error(self):
        response = self.client.patch(
            "/api/repositories/wallet",
            json={"url": "https://github.com/a/missing", "solanaWallet": "W1"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"found": False, "persist": None})
        self.assertEqual(self.github.put_payloads, [])

    def test_imperfect_stored_records_are_listed(self):
        odd = make_record("https://github.com/a/odd", hourly=500)
        odd["metrics"] = "n/a"
        odd["username"] = 42
        nulls = make_record("https://github.com/a/nulls")
        nulls["metrics"]["hourlyEarnings"] = None
        self.github.content = json.dumps([odd, nulls, make_record("https://github.com/a/high", hourly=999)])

        body = self.client.get("/api/repositories").json()

        urls = [r["url"] for r in body["repositories"]]
        self.assertEqual(urls, ["https://github.com/a/high", "https://github.com/a/nulls", "https://github.com/a/odd"])
        odd_out = next(r for r in body["repositories"] if r["url"] == "https://github.com/a/odd")
        self.assertEqual(odd_out["metrics"], "n/a")
        self.assertEqual(odd_out["username"], 42)

        table = self.client.get("/api/repositories/table").json()
        self.assertEqual(table["total"], 3)
