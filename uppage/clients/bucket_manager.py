"""
Bucket lifecycle manager: existence check, website creation and teardown.
"""
import json
from typing import Dict, Any
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from ..exceptions import LifecycleError
from ..models.config import AwsConfig
from .s3_manager import create_s3_client

# us-east-1 rejects an explicit LocationConstraint
DEFAULT_LOCATION = 'us-east-1'
DELETE_BATCH_SIZE = 1000


def public_read_policy(bucket: str) -> Dict[str, Any]:
    """Bucket policy granting anonymous read access to every object."""
    return {
        'Version': '2012-10-17',
        'Statement': [
            {
                'Sid': 'PublicReadGetObject',
                'Effect': 'Allow',
                'Principal': '*',
                'Action': 's3:GetObject',
                'Resource': [f'arn:aws:s3:::{bucket}/*']
            }
        ]
    }


class BucketManager:
    """Creates, inspects and destroys website buckets."""

    def __init__(self, config: AwsConfig, client=None):
        self.config = config
        self.client = client or create_s3_client(config)

    def exists(self, name: str) -> bool:
        """
        Check whether a bucket with this name is owned by the account.

        Raises:
            LifecycleError: If the bucket list could not be fetched
        """
        try:
            response = self.client.list_buckets()
        except (ClientError, BotoCoreError) as e:
            raise LifecycleError(f"Could not search for existing websites: {e}") from e

        return any(bucket.get('Name') == name for bucket in response.get('Buckets', []))

    def create(self, name: str, region: str, index_document: str = 'index.html',
               error_document: str = 'error.html') -> None:
        """
        Create a bucket and configure it to serve a public static website.

        Args:
            name: Bucket name
            region: Region to create the bucket in
            index_document: Object served for directory requests
            error_document: Object served on 4xx errors

        Raises:
            LifecycleError: If any of the create/configure calls fail
        """
        params = {'Bucket': name}
        if region != DEFAULT_LOCATION:
            params['CreateBucketConfiguration'] = {'LocationConstraint': region}

        try:
            logger.info(f"Creating bucket {name} in {region}")
            self.client.create_bucket(**params)
        except (ClientError, BotoCoreError) as e:
            raise LifecycleError(f"Could not create a new website bucket: {e}") from e

        try:
            # New buckets block public policies by default
            self.client.put_public_access_block(
                Bucket=name,
                PublicAccessBlockConfiguration={
                    'BlockPublicAcls': False,
                    'IgnorePublicAcls': False,
                    'BlockPublicPolicy': False,
                    'RestrictPublicBuckets': False
                }
            )
            self.client.put_bucket_policy(Bucket=name, Policy=json.dumps(public_read_policy(name)))
            logger.debug(f"Attached public-read policy to {name}")

            self.client.put_bucket_website(
                Bucket=name,
                WebsiteConfiguration={
                    'IndexDocument': {'Suffix': index_document},
                    'ErrorDocument': {'Key': error_document}
                }
            )
            logger.debug(f"Enabled website hosting on {name} (index: {index_document}, error: {error_document})")
        except (ClientError, BotoCoreError) as e:
            raise LifecycleError(f"Could not configure website bucket {name}: {e}") from e

    def delete(self, name: str) -> None:
        """
        Empty and delete a bucket.

        Raises:
            LifecycleError: If any object or the bucket itself could not be deleted
        """
        try:
            removed = self._empty_bucket(name)
            logger.debug(f"Removed {removed} objects from {name}")
            self.client.delete_bucket(Bucket=name)
        except (ClientError, BotoCoreError) as e:
            raise LifecycleError(f"Could not delete bucket {name}: {e}") from e

    def _empty_bucket(self, name: str) -> int:
        paginator = self.client.get_paginator('list_objects_v2')
        removed = 0
        for page in paginator.paginate(Bucket=name, PaginationConfig={'PageSize': DELETE_BATCH_SIZE}):
            keys = [{'Key': obj['Key']} for obj in page.get('Contents', [])]
            if not keys:
                continue

            response = self.client.delete_objects(Bucket=name, Delete={'Objects': keys, 'Quiet': True})
            errors = response.get('Errors', [])
            if errors:
                first = errors[0]
                raise LifecycleError(
                    f"Could not delete {len(errors)} object(s) from {name}, "
                    f"first: {first.get('Key')} ({first.get('Code')})"
                )
            removed += len(keys)
        return removed
