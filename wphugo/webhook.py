"""Webhook receiver: one WordPress post per ``POST``, then a site rebuild.

Point a WordPress webhook plugin (post published / updated / trashed) at
``http://<host>:8080/webhook`` with the post object as the JSON body.
"""
import hmac
import json
import logging
import subprocess
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, HTTPServer

from .posts import WordPressPost

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Webhook-Secret"

def rebuild_site(command=("hugo",), cwd="."):
    logger.info("Rebuilding site: %s (in %s)", " ".join(command), cwd)
    subprocess.run(list(command), cwd=cwd, check=True)

class WebhookReceiver:
    """Turns a webhook body into a content file change plus a rebuild."""
    def __init__(self, content_dir, converter, *, rebuild=rebuild_site, wp_api=None,
                 resolve_terms=False, secret=None):
        self.content_dir = content_dir
        self.converter = converter
        self.rebuild = rebuild
        self.wp_api = wp_api
        self.resolve_terms = resolve_terms and wp_api is not None
        self.secret = secret

    def authorized(self, provided):
        if not self.secret:
            return True
        return provided is not None and hmac.compare_digest(provided, self.secret)

    def handle(self, body):
        """Returns ``(HTTPStatus, message)`` for a raw request body."""
        try:
            post = WordPressPost(json.loads(body))
            name = post.filename
        except ValueError as e:
            logger.error("Failed to parse JSON: %s", e)
            return HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to parse JSON"

        if post.status == "trash":
            try:
                removed = self.content_dir.remove(name)
            except OSError as e:
                logger.error("Failed to delete %s: %s", self.content_dir.path_for(name), e)
                return HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to delete content file"
            if removed:
                logger.info("Deleted post: %s", name)
        elif not post.is_published:
            logger.info("Skipping non-published post %s (%s)", name, post.status)
            return HTTPStatus.OK, "Skipped"
        else:
            categories = tags = None
            try:
                if self.resolve_terms:
                    categories = self.wp_api.term_names(post.categories, "categories")
                    tags = self.wp_api.term_names(post.tags, "tags")
                path = self.content_dir.write(post, self.converter, categories=categories, tags=tags)
            except OSError as e:
                logger.error("Failed to write content file for %s: %s", name, e)
                return HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to write content file"
            logger.info("Updated post: %s", path)

        try:
            self.rebuild()
        except (OSError, subprocess.CalledProcessError) as e:
            logger.error("Failed to rebuild site: %s", e)
            return HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to rebuild site"
        return HTTPStatus.OK, "OK"

class WebhookHandler(BaseHTTPRequestHandler):
    # make_server attaches the receiver and the webhook path to the server

    def _respond(self, status, message):
        body = f"{message}\n".encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _not_post(self):
        if self.path.split("?", 1)[0] != self.server.webhook_path:
            self._respond(HTTPStatus.NOT_FOUND, "Not found")
        else:
            self._respond(HTTPStatus.METHOD_NOT_ALLOWED, "Invalid request method")

    do_GET = do_PUT = do_DELETE = do_PATCH = _not_post

    def do_POST(self):
        if self.path.split("?", 1)[0] != self.server.webhook_path:
            self._respond(HTTPStatus.NOT_FOUND, "Not found")
            return
        receiver = self.server.receiver
        if not receiver.authorized(self.headers.get(SECRET_HEADER)):
            self._respond(HTTPStatus.FORBIDDEN, "Forbidden")
            return
        try:
            length = int(self.headers.get("Content-Length", 0))
            body = self.rfile.read(length)
        except (OSError, ValueError) as e:
            logger.error("Failed to read request body: %s", e)
            self._respond(HTTPStatus.INTERNAL_SERVER_ERROR, "Failed to read request body")
            return
        status, message = receiver.handle(body)
        self._respond(status, message)

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)

def make_server(receiver, host="0.0.0.0", port=8080, path="/webhook"):
    server = HTTPServer((host, port), WebhookHandler)
    server.receiver = receiver
    server.webhook_path = path
    return server

def serve(receiver, host="0.0.0.0", port=8080, path="/webhook"):
    server = make_server(receiver, host, port, path)
    logger.info("Starting server on %s:%d...", host, server.server_port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()
