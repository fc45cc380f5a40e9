import argparse
import logging
import os
import shlex
import sys
from functools import partial

from .core import WordPressAPI
from .convert import MarkdownConverter
from .media import ImageDownloader
from .sync import ContentDirectory, PostSyncer, sync_to_directory
from .webhook import WebhookReceiver, rebuild_site, serve

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

def build_parser():
    parser = argparse.ArgumentParser(prog="wphugo",
                                     description="Mirror WordPress posts into a Hugo content directory.")
    parser.add_argument("--host", default=os.environ.get("WP_HOST"),
                        help="WordPress site root, e.g. https://example.com (env WP_HOST)")
    parser.add_argument("--username", default=os.environ.get("WP_USERNAME"))
    parser.add_argument("--app-password", default=os.environ.get("WP_APP_PASSWORD"),
                        help="application password (env WP_APP_PASSWORD)")
    parser.add_argument("--content-dir", default="content/posts")
    parser.add_argument("--image-dir", default="static/images")
    parser.add_argument("--image-url-prefix", default="/images/")
    parser.add_argument("--no-images", action="store_true",
                        help="reference remote image URLs instead of downloading them")
    parser.add_argument("--keep-image-names", action="store_true",
                        help="save images under their original names instead of timestamped ones")
    parser.add_argument("--term-names", action="store_true",
                        help="write category and tag names instead of ids")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--debug", action="store_true", help="log failed API response bodies")
    subparsers = parser.add_subparsers(dest="command", required=True)

    poll = subparsers.add_parser("poll", help="poll WordPress forever")
    poll.add_argument("--interval", type=float, default=4)
    poll.add_argument("--error-interval", type=float, default=4)
    poll.add_argument("--rewrite-all", action="store_true",
                      help="rewrite every post each cycle, not just new or modified ones")
    poll.add_argument("--include-drafts", action="store_true")

    sync = subparsers.add_parser("sync", help="run a single sync pass")
    sync.add_argument("--prune", action="store_true",
                      help="delete local posts that WordPress no longer has")
    sync.add_argument("--include-drafts", action="store_true")

    webhook = subparsers.add_parser("webhook", help="serve a webhook that writes posts and rebuilds")
    webhook.add_argument("--bind", default="0.0.0.0")
    webhook.add_argument("--port", type=int, default=8080)
    webhook.add_argument("--path", default="/webhook")
    webhook.add_argument("--site-dir", default=".")
    webhook.add_argument("--build-command", default="hugo")
    webhook.add_argument("--secret", default=os.environ.get("WEBHOOK_SECRET"))
    return parser

def make_converter(args):
    if args.no_images:
        return MarkdownConverter()
    return MarkdownConverter(ImageDownloader(args.image_dir, args.image_url_prefix,
                                             unique_names=not args.keep_image_names))

def make_api(args):
    return WordPressAPI(args.host, args.username, args.app_password, debug=args.debug)

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose or args.debug else logging.INFO,
                        format=LOG_FORMAT)

    converter = make_converter(args)
    content_dir = ContentDirectory(args.content_dir)

    if args.command == "webhook":
        wp_api = make_api(args) if args.host else None
        if args.term_names and wp_api is None:
            logger.warning("--term-names needs --host; writing term ids")
        rebuild = partial(rebuild_site, shlex.split(args.build_command), cwd=args.site_dir)
        receiver = WebhookReceiver(content_dir, converter, rebuild=rebuild, wp_api=wp_api,
                                   resolve_terms=args.term_names, secret=args.secret)
        serve(receiver, args.bind, args.port, args.path)
        return 0

    if not args.host:
        logger.error("No WordPress host given (use --host or WP_HOST)")
        return 1
    wp_api = make_api(args)

    if args.command == "sync":
        result = sync_to_directory(wp_api, content_dir, converter, prune=args.prune,
                                   resolve_terms=args.term_names, include_drafts=args.include_drafts)
        print(f"{len(result.written)} written, {len(result.deleted)} deleted, {len(result.unchanged)} unchanged")
        return 0

    syncer = PostSyncer(wp_api, content_dir, converter, only_changed=not args.rewrite_all,
                        resolve_terms=args.term_names, include_drafts=args.include_drafts)
    logger.info("Polling %s every %ss into %s", wp_api.endpoint_url("wp/v2/posts"), args.interval, content_dir.path)
    syncer.run(interval=args.interval, error_interval=args.error_interval)
    return 0

if __name__ == "__main__":
    sys.exit(main())
