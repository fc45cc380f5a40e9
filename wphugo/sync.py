import logging
import time
from collections import namedtuple
from pathlib import Path

import frontmatter
import requests

from .posts import ALL_STATUSES, WordPressPost

logger = logging.getLogger(__name__)

SyncResult = namedtuple("SyncResult", ["written", "deleted", "unchanged"])

class ContentDirectory:
    """The Hugo section (``content/posts``) the posts are mirrored into."""
    def __init__(self, path="content/posts"):
        self.path = Path(path)

    def path_for(self, name):
        return self.path / f"{name}.md"

    def slugs(self):
        if not self.path.is_dir():
            return set()
        return {p.stem for p in self.path.iterdir() if p.suffix == ".md"}

    def write(self, post: WordPressPost, converter, categories=None, tags=None):
        hugo_post = post.to_hugo(converter, categories=categories, tags=tags)
        path = self.path_for(post.filename)
        self.path.mkdir(parents=True, exist_ok=True)
        path.write_text(frontmatter.dumps(hugo_post, sort_keys=False) + "\n", encoding="utf-8")
        return path

    def remove(self, name):
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Failed to delete %s: already gone", path)
            return False
        return True

    def __repr__(self):
        return f"<ContentDirectory {str(self.path)!r}>"

class PostSyncer:
    def __init__(self, wp_api, content_dir, converter, *, only_changed=True,
                 resolve_terms=False, include_drafts=False, known=None):
        self.wp_api = wp_api
        self.content_dir = content_dir
        self.converter = converter
        self.only_changed = only_changed
        self.resolve_terms = resolve_terms
        self.include_drafts = include_drafts
        # name -> modified timestamp of what was last written (None: on disk, never written by us)
        self.seen = dict.fromkeys(known or ())

    def fetch(self):
        statuses = ALL_STATUSES if self.include_drafts else None
        return list(self.wp_api.posts.filter(statuses=statuses))

    def _terms(self):
        if not self.resolve_terms:
            return None, None
        return self.wp_api.categories, self.wp_api.tags

    def sync_once(self, posts=None):
        if posts is None:
            posts = self.fetch()
        current = {}
        for post in posts:
            if not (post.is_published or self.include_drafts):
                continue
            try:
                current[post.filename] = post
            except ValueError as e:
                logger.warning("Skipping post: %s", e)

        categories, tags = self._terms() if current else (None, None)
        written, unchanged = [], []
        for name, post in current.items():
            if self.only_changed and name in self.seen and self.seen[name] == post.modified:
                unchanged.append(name)
                continue
            post_categories = post_tags = None
            if categories is not None:
                post_categories = self.wp_api.term_names(post.categories, "categories", terms=categories)
                post_tags = self.wp_api.term_names(post.tags, "tags", terms=tags)
            try:
                path = self.content_dir.write(post, self.converter, categories=post_categories, tags=post_tags)
            except OSError as e:
                logger.error("Failed to write file %s: %s", self.content_dir.path_for(name), e)
                continue
            logger.info("Saved: %s", path)
            self.seen[name] = post.modified
            written.append(name)

        deleted = []
        for name in sorted(set(self.seen) - set(current)):
            try:
                removed = self.content_dir.remove(name)
            except OSError as e:
                # still in seen, so the next cycle tries again
                logger.error("Failed to remove deleted post %s: %s", self.content_dir.path_for(name), e)
                continue
            if removed:
                logger.info("Deleted: %s", self.content_dir.path_for(name))
                deleted.append(name)
            del self.seen[name]
        return SyncResult(written, deleted, unchanged)

    def run(self, interval=4, error_interval=4, max_cycles=None, sleep=time.sleep):
        cycles = 0
        try:
            while max_cycles is None or cycles < max_cycles:
                cycles += 1
                try:
                    # term lookups happen inside sync_once and hit the API too
                    result = self.sync_once(self.fetch())
                except (requests.RequestException, ValueError) as e:
                    logger.error("Error fetching posts: %s", e)
                    sleep(error_interval)
                    continue
                if result.written or result.deleted:
                    logger.info("Cycle %d: %d written, %d deleted", cycles, len(result.written), len(result.deleted))
                sleep(interval)
        except KeyboardInterrupt:
            logger.info("Stopped after %d cycles", cycles)
        return cycles

def sync_to_directory(wp_api, content_dir, converter, prune=False, **kwargs):
    # with prune, files already on disk count as last cycle's posts, so
    # anything WordPress no longer has is deleted (hand-written posts too)
    known = content_dir.slugs() if prune else None
    syncer = PostSyncer(wp_api, content_dir, converter, known=known, **kwargs)
    return syncer.sync_once()
