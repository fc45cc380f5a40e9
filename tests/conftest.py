import json

import pytest
import requests

from wphugo.core import WordPressAPI

class FakeResponse:
    def __init__(self, payload=None, status_code=200, headers=None, content=None, url=""):
        self.payload = payload
        self.status_code = status_code
        self.headers = dict(headers or {})
        if content is None:
            content = json.dumps(payload).encode("utf-8") if payload is not None else b""
        self.content = content
        self.url = url

    @property
    def text(self):
        return self.content.decode("utf-8", errors="replace")

    def json(self):
        return json.loads(self.content)

    def raise_for_status(self):
        if not (200 <= self.status_code < 300):
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}", response=self)

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

class FakeSession:
    """Routes ``get`` calls to canned responses keyed by URL."""
    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, params=None, **kwargs):
        self.calls.append((url, dict(params or {})))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse({"code": "rest_no_route"}, status_code=404, url=url)
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(url, dict(params or {}))
        return route

def make_post(slug, modified="2024-01-05T10:20:30", **overrides):
    data = {
        "id": abs(hash(slug)) % 10000,
        "title": {"rendered": slug.replace("-", " ").title()},
        "content": {"rendered": f"<p>Body of {slug}</p>"},
        "date": "2024-01-05T10:20:30",
        "modified": modified,
        "slug": slug,
        "status": "publish",
        "tags": [],
        "categories": [],
    }
    data.update(overrides)
    return data

def paged_route(items, total_pages_header=True):
    """A route serving ``items`` the way WordPress pages them."""
    def route(url, params):
        per_page = int(params.get("per_page", 10))
        page = int(params.get("page", 1))
        pages = max(1, -(-len(items) // per_page))
        if page > pages:
            return FakeResponse({"code": "rest_post_invalid_page_number"}, status_code=400, url=url)
        headers = {"X-WP-Total": str(len(items)), "X-WP-TotalPages": str(pages)} if total_pages_header else {}
        return FakeResponse(items[(page - 1) * per_page:page * per_page], headers=headers, url=url)
    return route

@pytest.fixture
def fake_api():
    api = WordPressAPI("https://blog.example.com/")
    api.session = FakeSession()
    return api
