"""
Command line entry point for UpPage.
"""
import argparse
import os
import sys
from typing import List, Optional
from loguru import logger

from .clients.bucket_manager import BucketManager
from .exceptions import ConfigError, UpPageError
from .models.config import AwsConfig, PublishConfig
from .models.data_models import ProgressEvent, TransferSummary
from .services.sync_service import SyncService

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

HELP_TEXT = """### UpPage Manual ###

Usage:
    $ uppage --name <string> --access-key <string> --secret-key <string>

Description:
    Uploads your current working directory to Amazon S3 and hosts it as a public website.

Options:
    --name <string>         Prefix for your uppage bucket. Must be unique.
    --access-key <string>   AWS IAM access key id. Defaults to environment variable AWS_ACCESS_KEY_ID.
    --secret-key <string>   AWS IAM secret key. Defaults to environment variable AWS_SECRET_ACCESS_KEY.
    --region <string>       AWS region in which to create the bucket. Defaults to environment
                            variable AWS_REGION or "eu-central-1".
    --path <string>         Directory to upload. Defaults to current working directory.
    --destroy               Destroys the current bucket.
    --keep-removed          Keep remote files that no longer exist locally.
    --concurrency <int>     Number of parallel transfers. Defaults to 8.
    --verbose               Show debug output, including retried transfers.
    --help                  Shows you this menu.

Environment:
    AWS_ENDPOINT_URL        Optional S3-compatible endpoint (e.g. MinIO).
    UPPAGE_LOG_FILE         Optional path of a rotating debug log file.
"""


def setup_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    # Remove default logger
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level="DEBUG" if verbose else "INFO"
    )

    log_file = os.getenv('UPPAGE_LOG_FILE')
    if log_file:
        logger.add(
            log_file,
            rotation="10 MB",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level="DEBUG"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='uppage', add_help=False)
    parser.add_argument('--name', default=None)
    parser.add_argument('--access-key', dest='access_key', default=None)
    parser.add_argument('--secret-key', dest='secret_key', default=None)
    parser.add_argument('--region', default=None)
    parser.add_argument('--path', default='.')
    parser.add_argument('--destroy', action='store_true')
    parser.add_argument('--keep-removed', dest='keep_removed', action='store_true')
    parser.add_argument('--concurrency', type=int, default=8)
    parser.add_argument('--verbose', action='store_true')
    parser.add_argument('--help', action='store_true')
    return parser


def config_from_args(args: argparse.Namespace, environ=None) -> PublishConfig:
    """Assemble the run configuration from CLI flags, falling back to the environment."""
    env_aws = AwsConfig.from_env(environ)
    aws = AwsConfig(
        access_key=args.access_key or env_aws.access_key,
        secret_key=args.secret_key or env_aws.secret_key,
        region=args.region or env_aws.region,
        endpoint=env_aws.endpoint
    )
    return PublishConfig(
        name=args.name or '',
        path=os.path.abspath(args.path),
        aws=aws,
        destroy=args.destroy,
        delete_removed=not args.keep_removed,
        concurrency=args.concurrency
    )


class ProgressPrinter:
    """Renders progress events as a single growing line of KB counters."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self._last_kb = -1

    def start(self):
        self.stream.write('Uploading files..')
        self.stream.flush()

    def __call__(self, event: ProgressEvent):
        kb = round(event.bytes_transferred / 1024)
        if kb == self._last_kb:
            self.stream.write('.')
        else:
            self._last_kb = kb
            self.stream.write(f'{kb}KB')
        self.stream.flush()

    def done(self):
        self.stream.write('DONE!\n')
        self.stream.flush()


def print_summary(summary: TransferSummary):
    print(f"Uploaded {summary.uploads_succeeded} file(s) ({summary.bytes_transferred} bytes), "
          f"deleted {summary.deletes_succeeded}, unchanged {summary.unchanged}.")
    errors = summary.errors()
    if errors:
        print(f"{len(errors)} file(s) failed:", file=sys.stderr)
        for error in errors:
            print(f"  {error}", file=sys.stderr)
    if summary.cancelled:
        print("Upload was interrupted before all files were transferred.", file=sys.stderr)


def run_destroy(config: PublishConfig, buckets: BucketManager) -> str:
    """
    Delete the website bucket if it exists.

    Returns:
        'deleted' or 'skipped'
    """
    bucket = config.bucket_name
    if not buckets.exists(bucket):
        print(f"Bucket {bucket} does not exist. Skipping deletion.")
        return 'skipped'

    buckets.delete(bucket)
    print(f"Bucket {bucket} successfully deleted.")
    return 'deleted'


def run_publish(config: PublishConfig, buckets: BucketManager,
                sync_service: Optional[SyncService] = None) -> TransferSummary:
    """Ensure the website bucket exists, then mirror the directory into it."""
    bucket = config.bucket_name
    if not buckets.exists(bucket):
        print(f"Bucket {bucket} does not exist. Creating a new one.")
        buckets.create(bucket, config.aws.region, config.index_document, config.error_document)
    else:
        print(f"Bucket {bucket} already exists. Skipping creation.")

    sync_service = sync_service or SyncService(config)
    printer = ProgressPrinter()
    printer.start()
    summary = sync_service.run(progress=printer)
    printer.done()

    print_summary(summary)
    if summary.success:
        print(f"UpPage: {config.website_url}")
    return summary


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if args.help:
        print(HELP_TEXT)
        return EXIT_OK

    try:
        config = config_from_args(args)
        config.validate()
    except ConfigError as e:
        print(HELP_TEXT)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        buckets = BucketManager(config.aws)
        if config.destroy:
            run_destroy(config, buckets)
            return EXIT_OK

        summary = run_publish(config, buckets)
        if summary.cancelled:
            return EXIT_INTERRUPTED
        return EXIT_OK if summary.success else EXIT_FAILURE

    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down")
        return EXIT_INTERRUPTED
    except UpPageError as e:
        logger.error(f"Command failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
