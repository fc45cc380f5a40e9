import html
from typing import Optional, Iterable

import frontmatter

from .utils import to_datetime, sanitize_filename

# every status an authenticated request can ask for
ALL_STATUSES = ["publish", "future", "draft", "pending", "private"]

_STRING_FIELDS = ("slug", "status", "date", "modified")
_RENDERED_FIELDS = ("title", "content")
_TERM_FIELDS = ("categories", "tags")

def _check_types(data):
    for field in _STRING_FIELDS:
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            raise ValueError(f"Post field {field!r} must be a string, got {type(value).__name__}")
    for field in _RENDERED_FIELDS:
        value = data.get(field)
        if value is None:
            continue
        if not isinstance(value, dict):
            raise ValueError(f"Post field {field!r} must be an object, got {type(value).__name__}")
        rendered = value.get("rendered")
        if rendered is not None and not isinstance(rendered, str):
            raise ValueError(f"Post field {field}.rendered must be a string, got {type(rendered).__name__}")
    for field in _TERM_FIELDS:
        value = data.get(field)
        if value is None:
            continue
        # bool is an int subclass, json true/false isn't a term id
        if not isinstance(value, list) or any(isinstance(v, bool) or not isinstance(v, int) for v in value):
            raise ValueError(f"Post field {field!r} must be a list of term ids")

def _rendered(data, field):
    value = data.get(field) or {}
    return value.get("rendered") or ""

def _timestamp(value):
    # keep whatever WordPress sent when it isn't the usual naive ISO form
    if not value:
        return None
    try:
        return to_datetime(value)
    except ValueError:
        return value

class WordPressPost:
    # https://developer.wordpress.org/rest-api/reference/posts/
    def __init__(self, data, *, wp_api=None):
        if not isinstance(data, dict):
            raise ValueError(f"Expected a post object, got {type(data).__name__}")
        _check_types(data)
        self.data = data
        self.wp_api = wp_api

    @property
    def title(self):
        return html.unescape(_rendered(self.data, "title"))

    @property
    def content(self):
        return _rendered(self.data, "content")

    @property
    def slug(self):
        return self.data.get("slug") or ""

    @property
    def date(self):
        return self.data.get("date") or ""

    @property
    def modified(self):
        return self.data.get("modified") or self.date

    @property
    def status(self):
        return self.data.get("status") or ""

    @property
    def is_published(self):
        return self.status == "publish"

    @property
    def categories(self):
        return list(self.data.get("categories") or [])

    @property
    def tags(self):
        return list(self.data.get("tags") or [])

    @property
    def filename(self):
        name = sanitize_filename(self.slug) or sanitize_filename(self.title)
        if not name:
            raise ValueError(f"Post {self.data.get('id')!r} has neither a usable slug nor title")
        return name

    def front_matter(self, categories=None, tags=None):
        categories = self.categories if categories is None else categories
        tags = self.tags if tags is None else tags
        metadata = {"title": self.title}
        for key, value in (("date", self.date), ("lastmod", self.modified)):
            stamp = _timestamp(value)
            if stamp is not None:
                metadata[key] = stamp
        metadata["slug"] = self.slug or self.filename
        metadata["draft"] = not self.is_published
        if categories:
            metadata["categories"] = list(categories)
        if tags:
            metadata["tags"] = list(tags)
        return metadata

    def to_hugo(self, converter, categories=None, tags=None):
        markdown = converter(self.content)
        return frontmatter.Post(markdown, **self.front_matter(categories=categories, tags=tags))

    def __repr__(self):
        created = self.date
        modified = self.modified
        on = created if created == modified else f"{created} ({modified})"
        return f"<Post {self.title!r} [{self.status}] on {on}>"

class WordPressPostsProxy:
    def __init__(self, wp_api):
        self.wp_api = wp_api

    def __iter__(self) -> Iterable[WordPressPost]:
        return self.filter()

    def filter(self, statuses=None, **params) -> Iterable[WordPressPost]:
        # without a status WordPress only lists published posts, even when authenticated
        if statuses:
            params["status"] = ",".join(statuses)
        for post_data in self.wp_api.paged("wp/v2/posts", **params):
            yield WordPressPost(post_data, wp_api=self.wp_api)

    def get(self, slug) -> Optional[WordPressPost]:
        # have to check every status :eyeroll:
        # anonymous requests for anything but publish are rejected
        statuses = ALL_STATUSES if self.wp_api.authenticated else ["publish"]
        for status in statuses:
            posts = list(self.wp_api.paged("wp/v2/posts", slug=slug, status=status))
            if posts:
                return WordPressPost(posts[0], wp_api=self.wp_api)
        return None

    def __getitem__(self, slug) -> WordPressPost:
        result = self.get(slug)
        if result is None:
            raise KeyError(f"Post with slug {slug} not found on WordPress at {self.wp_api.host}")
        return result
