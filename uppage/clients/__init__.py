# Client packages
from .s3_manager import S3Manager, create_s3_client
from .bucket_manager import BucketManager

__all__ = ['S3Manager', 'BucketManager', 'create_s3_client']
