"""
UpPage - publish a local directory as a static website on S3.
"""

from .services.sync_service import SyncService
from .models.config import PublishConfig, AwsConfig
from .models.data_models import LocalEntry, RemoteEntry, SyncPlan, TransferSummary

__version__ = "1.0.0"
__all__ = [
    "SyncService",
    "PublishConfig",
    "AwsConfig",
    "LocalEntry",
    "RemoteEntry",
    "SyncPlan",
    "TransferSummary"
]
