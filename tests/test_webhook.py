import json
import subprocess
import threading
from http import HTTPStatus

import frontmatter
import pytest
import requests

from wphugo.convert import MarkdownConverter
from wphugo.sync import ContentDirectory
from wphugo.webhook import WebhookReceiver, make_server, rebuild_site

from conftest import make_post

class Rebuilds:
    def __init__(self, error=None):
        self.count = 0
        self.error = error

    def __call__(self):
        self.count += 1
        if self.error is not None:
            raise self.error

@pytest.fixture
def content_dir(tmp_path):
    return ContentDirectory(tmp_path / "content" / "posts")

@pytest.fixture
def rebuilds():
    return Rebuilds()

@pytest.fixture
def receiver(content_dir, rebuilds):
    return WebhookReceiver(content_dir, MarkdownConverter(), rebuild=rebuilds)

def body(data):
    return json.dumps(data).encode("utf-8")

def test_published_post_written_and_rebuilt(receiver, content_dir, rebuilds):
    status, _ = receiver.handle(body(make_post("Hello World!")))
    assert status == HTTPStatus.OK
    assert rebuilds.count == 1
    post = frontmatter.load(content_dir.path_for("hello-world"))
    assert post["slug"] == "Hello World!"
    assert post.content.strip() == "Body of Hello World!"

def test_non_published_post_skipped(receiver, content_dir, rebuilds):
    status, message = receiver.handle(body(make_post("later", status="future")))
    assert (status, message) == (HTTPStatus.OK, "Skipped")
    assert rebuilds.count == 0
    assert content_dir.slugs() == set()

def test_post_without_status_skipped(receiver, content_dir, rebuilds):
    status, message = receiver.handle(b'{"slug": "nostatus", "title": {"rendered": "x"}}')
    assert (status, message) == (HTTPStatus.OK, "Skipped")
    assert content_dir.slugs() == set()
    assert rebuilds.count == 0

def test_trashed_post_deleted(receiver, content_dir, rebuilds):
    receiver.handle(body(make_post("old")))
    status, _ = receiver.handle(body(make_post("old", status="trash")))
    assert status == HTTPStatus.OK
    assert content_dir.slugs() == set()
    assert rebuilds.count == 2

@pytest.mark.parametrize("raw", [
    b"{not json",
    b"\xff\xfe",
    b"[1, 2]",
    body(make_post("", title={"rendered": ""})),
    b'{"slug": 5, "status": "publish"}',
    b'{"slug": "x", "status": "publish", "title": "str"}',
    b'{"slug": "x", "status": "publish", "tags": "abc"}',
])
def test_undecodable_body(receiver, rebuilds, raw):
    status, _ = receiver.handle(raw)
    assert status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert rebuilds.count == 0

def test_write_failure(receiver, content_dir):
    content_dir.path.parent.mkdir(parents=True)
    content_dir.path.write_text("a file where the directory should be")
    status, message = receiver.handle(body(make_post("one")))
    assert status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert message == "Failed to write content file"

@pytest.mark.parametrize("error", [subprocess.CalledProcessError(1, ["hugo"]), FileNotFoundError("hugo")])
def test_rebuild_failure(content_dir, error):
    receiver = WebhookReceiver(content_dir, MarkdownConverter(), rebuild=Rebuilds(error))
    status, message = receiver.handle(body(make_post("one")))
    assert (status, message) == (HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to rebuild site")
    # the content itself is still updated
    assert content_dir.slugs() == {"one"}

def test_rebuild_site(monkeypatch):
    calls = []
    monkeypatch.setattr(subprocess, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    rebuild_site(("hugo", "--minify"), cwd="/srv/site")
    assert calls == [((["hugo", "--minify"],), {"cwd": "/srv/site", "check": True})]

def test_secret(content_dir):
    receiver = WebhookReceiver(content_dir, MarkdownConverter(), rebuild=Rebuilds(), secret="s3cret")
    assert receiver.authorized("s3cret")
    assert not receiver.authorized("guess")
    assert not receiver.authorized(None)
    assert WebhookReceiver(content_dir, MarkdownConverter()).authorized(None)

@pytest.fixture
def server(content_dir, rebuilds):
    receiver = WebhookReceiver(content_dir, MarkdownConverter(), rebuild=rebuilds, secret="s3cret")
    server = make_server(receiver, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}"
    server.shutdown()
    server.server_close()

def test_server_roundtrip(server, content_dir, rebuilds):
    headers = {"X-Webhook-Secret": "s3cret"}
    r = requests.post(f"{server}/webhook", json=make_post("served"), headers=headers, timeout=5)
    assert r.status_code == 200
    assert content_dir.slugs() == {"served"}
    assert rebuilds.count == 1

    r = requests.post(f"{server}/webhook", data=b"garbage", headers=headers, timeout=5)
    assert r.status_code == 500

    assert requests.post(f"{server}/webhook", json=make_post("x"), timeout=5).status_code == 403
    assert requests.get(f"{server}/webhook", timeout=5).status_code == 405
    assert requests.post(f"{server}/elsewhere", json={}, headers=headers, timeout=5).status_code == 404
