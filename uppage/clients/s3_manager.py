"""
S3 client manager for object-level operations on the website bucket.
"""
import base64
import mimetypes
import time
from typing import List, Optional
import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ..exceptions import RemoteListError
from ..models.config import AwsConfig
from ..models.data_models import RemoteEntry

DEFAULT_CONTENT_TYPE = 'application/octet-stream'


def create_s3_client(config: AwsConfig, max_pool_connections: int = 10):
    """Create an S3 client from configuration."""
    try:
        client = boto3.client(
            's3',
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
            config=BotoConfig(
                connect_timeout=10,
                read_timeout=60,
                max_pool_connections=max_pool_connections
            )
        )
        logger.debug(f"Created S3 client for region {config.region} (endpoint: {config.endpoint or 'default'})")
        return client
    except Exception as e:
        logger.error(f"Failed to create S3 client for region {config.region}: {e}")
        raise


def strip_etag(etag: str) -> str:
    return (etag or '').strip('"')


class S3Manager:
    """Manages object operations for a single bucket."""

    def __init__(self, config: AwsConfig, bucket: str, client=None, max_pool_connections: int = 10):
        """
        Initialize S3Manager for a bucket.

        Args:
            config: AWS credentials and region
            bucket: Name of the bucket to operate on
            client: Optional pre-built boto3 S3 client to share
            max_pool_connections: Size of the HTTP connection pool, should match
                the number of transfer workers
        """
        self.config = config
        self.bucket = bucket
        self.client = client or create_s3_client(config, max_pool_connections)

    def _retry_operation(self, operation, max_retries: int = 3, backoff_factor: float = 1.0):
        """Execute an operation with exponential backoff retry logic."""
        for attempt in range(max_retries):
            try:
                return operation()
            except (ClientError, BotoCoreError) as e:
                if attempt == max_retries - 1:
                    logger.error(f"Operation failed after {max_retries} attempts: {e}")
                    raise

                wait_time = backoff_factor * (2 ** attempt)
                logger.debug(f"Operation failed (attempt {attempt + 1}/{max_retries}), retrying in {wait_time}s: {e}")
                time.sleep(wait_time)

    def list_objects(self) -> List[RemoteEntry]:
        """
        List every object in the bucket.

        All pages are fetched and merged before returning, so callers never see
        a partial listing.

        Returns:
            List of RemoteEntry, one per object key

        Raises:
            RemoteListError: If any page could not be fetched
        """
        client, bucket = self.client, self.bucket

        def _list_operation():
            entries = []
            paginator = client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=bucket):
                for obj in page.get('Contents', []):
                    entries.append(RemoteEntry(
                        path=obj['Key'],
                        fingerprint=strip_etag(obj.get('ETag', '')),
                        size=obj.get('Size', 0)
                    ))
            return entries

        try:
            entries = self._retry_operation(_list_operation)
        except (ClientError, BotoCoreError) as e:
            raise RemoteListError(f"Could not list objects in bucket {bucket}: {e}") from e

        logger.debug(f"Listed {len(entries)} objects in bucket {bucket}")
        return entries

    def put_object(self, key: str, local_path: str, md5_hex: Optional[str] = None) -> str:
        """
        Stream a local file into the bucket under the given key.

        When ``md5_hex`` is given it is sent as Content-MD5 so S3 rejects a
        body that does not match (BadDigest).

        Returns:
            str: ETag of the stored object
        """
        content_type, _ = mimetypes.guess_type(key)
        params = {
            'Bucket': self.bucket,
            'Key': key,
            'ContentType': content_type or DEFAULT_CONTENT_TYPE
        }
        if md5_hex:
            params['ContentMD5'] = base64.b64encode(bytes.fromhex(md5_hex)).decode('ascii')

        with open(local_path, 'rb') as body:
            response = self.client.put_object(Body=body, **params)

        etag = strip_etag(response.get('ETag', ''))
        logger.debug(f"Uploaded {local_path} to s3://{self.bucket}/{key} (etag {etag})")
        return etag

    def delete_object(self, key: str) -> None:
        """Remove an object from the bucket."""
        self.client.delete_object(Bucket=self.bucket, Key=key)
        logger.debug(f"Deleted s3://{self.bucket}/{key}")

