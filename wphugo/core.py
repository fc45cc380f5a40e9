import logging

import requests

from .posts import WordPressPostsProxy

logger = logging.getLogger(__name__)

class WordPressAPI:
    # cf https://make.wordpress.org/core/2020/11/05/application-passwords-integration-guide/
    # credentials are only needed to see drafts / private posts

    def __init__(self, host, username=None, app_password=None, *, debug=False, timeout=30, per_page=100):
        self.host = host.rstrip("/")
        self.session = requests.Session()
        self.session.headers.update({"Cache-Control": "no-cache"})
        self.username = username
        self.app_password = app_password
        if username and app_password:
            self.session.auth = (username, app_password)
        self.debug = debug
        self.timeout = timeout
        self.per_page = per_page

    @property
    def authenticated(self):
        return bool(self.username and self.app_password)

    def endpoint_url(self, endpoint):
        return f"{self.host}/wp-json/{endpoint}"

    def request(self, endpoint, **params):
        r = self.session.get(self.endpoint_url(endpoint), params=params, timeout=self.timeout)
        if not (200 <= r.status_code < 300) and self.debug:
            logger.debug("GET %s -> %s: %s", r.url, r.status_code, r.text)
        r.raise_for_status()
        return r

    def get(self, endpoint, **params):
        return self.request(endpoint, **params).json()

    def paged(self, endpoint, per_page=None, **params):
        per_page = self.per_page if per_page is None else per_page
        page = 1
        while True:
            r = self.request(endpoint, page=page, per_page=per_page, **params)
            page_data = r.json()
            if not isinstance(page_data, list):
                raise ValueError(f"Expected a JSON list from {endpoint!r}, got {type(page_data).__name__}")
            yield from page_data
            total_pages = r.headers.get("X-WP-TotalPages")
            if total_pages is not None:
                if page >= int(total_pages):
                    break
            elif len(page_data) < per_page:
                break
            page += 1

    @property
    def posts(self):
        return WordPressPostsProxy(self)

    def _terms(self, taxonomy):
        result = {}
        for term in self.paged(f"wp/v2/{taxonomy}"):
            result[term["id"]] = (term["name"], term["slug"], term.get("description", ""))
        return result

    @property
    def categories(self):
        return self._terms("categories")

    @property
    def tags(self):
        return self._terms("tags")

    def term_names(self, ids, taxonomy, terms=None):
        # ids without a matching term are kept as-is
        if not ids:
            return []
        if terms is None:
            terms = self._terms(taxonomy)
        return [terms[term_id][0] if term_id in terms else term_id for term_id in ids]
