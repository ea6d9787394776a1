"""
Models package for the UpPage publisher.
"""
from .data_models import (
    LocalEntry, RemoteEntry, SyncPlan, TransferState, TransferResult,
    ProgressEvent, TransferSummary
)
from .config import AwsConfig, PublishConfig

__all__ = [
    'LocalEntry',
    'RemoteEntry',
    'SyncPlan',
    'TransferState',
    'TransferResult',
    'ProgressEvent',
    'TransferSummary',
    'AwsConfig',
    'PublishConfig'
]
