# Services package
from .walker import DirectoryWalker
from .planner import plan
from .progress import ProgressThrottle
from .executor import TransferExecutor
from .sync_service import SyncService

__all__ = ['DirectoryWalker', 'plan', 'ProgressThrottle', 'TransferExecutor', 'SyncService']
