import io
from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient
from PIL import Image

import main
from database import get_db
from mailer import get_email_sender
from uploads import ImageUploader, LocalStorage, get_uploader


class FakeSender:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send(self, to, subject, html_body, reply_to=None):
        if self.error:
            raise self.error
        self.sent.append({"to": to, "subject": subject, "html": html_body, "reply_to": reply_to})


def make_image(width=40, height=30, fmt="PNG", color=(200, 40, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


def make_png(width=40, height=30) -> bytes:
    return make_image(width, height)


def seed_works(db, count):
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    docs = [
        {
            "title": f"Work {i:02d}",
            "category": "photography",
            "description": "A gallery entry for tests",
            "image": {"url": f"/static/portfolio/works/{i}.png", "width": 40, "height": 30},
            "createdAt": base + timedelta(minutes=i),
        }
        for i in range(count)
    ]
    if docs:
        db["works"].insert_many(docs)
    return docs


@pytest.fixture
def db():
    return mongomock.MongoClient()["portfolio_test"]


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def uploader(tmp_path):
    return ImageUploader(LocalStorage(tmp_path / "uploads"))


@pytest.fixture
def client(db, sender, uploader):
    main.app.dependency_overrides[get_db] = lambda: db
    main.app.dependency_overrides[get_email_sender] = lambda: sender
    main.app.dependency_overrides[get_uploader] = lambda: uploader
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client):
    res = client.post(
        "/api/auth/login",
        json={"email": main.settings.admin_email, "password": main.settings.admin_password},
    )
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['access_token']}"}
