"""
Configuration classes for the UpPage publisher.
"""
import os
from dataclasses import dataclass, field
from typing import Optional, Mapping

from ..exceptions import ConfigError

DEFAULT_REGION = 'eu-central-1'
BUCKET_SUFFIX = '.uppage.com'


@dataclass
class AwsConfig:
    """Credentials and endpoint for the S3 service."""
    access_key: str
    secret_key: str
    region: str = DEFAULT_REGION
    endpoint: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'AwsConfig':
        """Create AwsConfig from the standard AWS environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            access_key=env.get('AWS_ACCESS_KEY_ID', ''),
            secret_key=env.get('AWS_SECRET_ACCESS_KEY', ''),
            region=env.get('AWS_REGION') or DEFAULT_REGION,
            endpoint=env.get('AWS_ENDPOINT_URL') or None
        )


@dataclass
class PublishConfig:
    """Main configuration for a publish or destroy run."""
    name: str
    path: str
    aws: AwsConfig
    destroy: bool = False
    delete_removed: bool = True
    concurrency: int = 8
    max_retries: int = 2
    index_document: str = 'index.html'
    error_document: str = 'error.html'
    bucket_suffix: str = field(default=BUCKET_SUFFIX)

    @property
    def bucket_name(self) -> str:
        return f"{self.name}{self.bucket_suffix}"

    @property
    def website_url(self) -> str:
        return f"http://{self.bucket_name}.s3-website.{self.aws.region}.amazonaws.com"

    def validate(self) -> None:
        """
        Check that every required value is present.

        Raises:
            ConfigError: If the name or credentials are missing, or a numeric
                option is out of range
        """
        missing = []
        if not self.name:
            missing.append('--name')
        if not self.aws.access_key:
            missing.append('--access-key')
        if not self.aws.secret_key:
            missing.append('--secret-key')
        if missing:
            raise ConfigError(f"Missing required option(s): {', '.join(missing)}")

        if not self.aws.region:
            raise ConfigError("Region cannot be empty")
        if not 1 <= self.concurrency <= 64:
            raise ConfigError(f"Concurrency must be between 1 and 64, got {self.concurrency}")
        if self.max_retries < 0:
            raise ConfigError(f"Retry count cannot be negative, got {self.max_retries}")
