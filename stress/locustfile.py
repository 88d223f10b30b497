"""Basic Locust profile for mixed save/read snippet traffic.

This profile is convenient for local smoke load and interactive testing. It keeps
an in-user snippet id pool so read traffic targets recently saved snippets and
exercises the view counter under concurrency.

Run with::
    locust -f stress/locustfile.py --host http://localhost:3001
"""

import random

from locust import HttpUser, between, task

MAX_IDS_PER_USER = 200
LANGUAGES = ["javascript", "typescript", "python", "html", "css", "json", "yaml"]


class SnippetBinUser(HttpUser):
    """Mixed workload user for local functional load checks."""

    wait_time = between(0.1, 0.5)

    def on_start(self) -> None:
        self.snippet_ids: list[str] = []

    @task(2)
    def save_snippet(self) -> None:
        """Save a snippet and remember its id for follow-up reads."""

        payload = {
            "content": f"print({random.randint(1, 1000000)})\n" * random.randint(1, 50),
            "language": random.choice(LANGUAGES),
            "title": f"load-{random.randint(1, 1000)}",
        }
        response = self.client.post("/api/snippets", json=payload, name="POST /api/snippets")

        if response.status_code == 200:
            snippet_id = response.json().get("id")
            if snippet_id:
                self.snippet_ids.append(snippet_id)
                if len(self.snippet_ids) > MAX_IDS_PER_USER:
                    self.snippet_ids = self.snippet_ids[-MAX_IDS_PER_USER:]

    @task(8)
    def read_snippet(self) -> None:
        """Read an existing snippet or seed one during warmup."""

        if not self.snippet_ids:
            self.save_snippet()
            return

        snippet_id = random.choice(self.snippet_ids)
        self.client.get(f"/api/snippets/{snippet_id}", name="GET /api/snippets/:id")

    @task(1)
    def read_missing(self) -> None:
        """Probe the not-found path with a well-formed id that was never saved."""

        with self.client.get(
            "/api/snippets/missingXXXXX",
            name="GET /api/snippets/:id (missing)",
            catch_response=True,
        ) as response:
            if response.status_code == 404:
                response.success()
