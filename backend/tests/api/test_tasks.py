"""Tests for the task queue and cron endpoints."""

from modules.email_queue.models import CRON_HEADER, QUEUE_HEADER
from tests.conftest import auth


def welcome_job(user_id: str) -> dict:
    return {"ids": [user_id], "type": "User", "action": "SendWelcome"}


class TestEmailTask:
    def test_requires_queue_header(self, client, seed):
        ann = seed("ann@x.com")

        response = client.post("/tasks/emails", json=welcome_job(ann.id))

        assert response.status_code == 404
        assert response.json() == {"message": "Not found"}

    def test_wrong_queue(self, client, seed):
        ann = seed("ann@x.com")
        response = client.post("/tasks/emails", json=welcome_job(ann.id), headers={QUEUE_HEADER: "other"})
        assert response.status_code == 404

    def test_runs_job(self, client, container, seed):
        ann = seed("ann@x.com", "Ann", "Lee")

        response = client.post("/tasks/emails", json=welcome_job(ann.id), headers={QUEUE_HEADER: "convo-emails"})

        assert response.status_code == 200
        assert response.json() == {"message": "pass"}
        threads = client.get("/threads", headers=auth(ann)).json()["threads"]
        assert len(threads) == 1

    def test_mismatched_job(self, client, seed):
        ann = seed("ann@x.com")
        job = {"ids": [ann.id], "type": "User", "action": "SendThread"}

        response = client.post("/tasks/emails", json=job, headers={QUEUE_HEADER: "convo-emails"})

        assert response.status_code == 400


class TestDigestTask:
    def test_requires_cron_header(self, client):
        assert client.get("/tasks/digest").status_code == 404
        assert client.get("/tasks/digest", headers={CRON_HEADER: "false"}).status_code == 404

    def test_runs_digest(self, client, container, seed):
        ann = seed("ann@x.com", "Ann", "Lee")
        bob = seed("bob@x.com", "Bob", "Ray")
        created = client.post("/threads", json={"subject": "Plans", "users": [{"id": bob.id}]}, headers=auth(ann))
        client.post(f"/threads/{created.json()['id']}/messages", json={"body": "noon?"}, headers=auth(bob))

        response = client.post("/tasks/digest", headers={CRON_HEADER: "true"})

        assert response.status_code == 200
        assert response.json() == {"message": "pass"}
        assert [m.to_email for m in container.mailer.outbox if m.subject == "[convo] Digest"] == ["ann@x.com"]
