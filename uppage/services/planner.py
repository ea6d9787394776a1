"""
Diff planner: compares local and remote listings and produces a SyncPlan.
"""
from typing import Iterable

import pandas as pd

from ..models.data_models import LocalEntry, RemoteEntry, SyncPlan

COLUMNS = ['path', 'fingerprint']


def _to_frame(entries) -> pd.DataFrame:
    rows = [(e.path, e.fingerprint) for e in entries]
    frame = pd.DataFrame(rows, columns=COLUMNS, dtype=object)
    # Last listing wins if a path is reported twice
    return frame.drop_duplicates(subset='path', keep='last')


def plan(local_entries: Iterable[LocalEntry], remote_entries: Iterable[RemoteEntry],
         delete_removed: bool = True) -> SyncPlan:
    """
    Compute the uploads and deletions that make the bucket mirror the directory.

    Paths are compared by exact string equality. Local paths that are missing
    remotely or whose fingerprint differs are uploaded; remote paths with no
    local counterpart are deleted only when ``delete_removed`` is set; the rest
    are unchanged. Output tuples are sorted so the result is deterministic.

    Args:
        local_entries: Files found under the sync root
        remote_entries: Objects currently in the bucket
        delete_removed: Whether to delete remote objects missing locally

    Returns:
        SyncPlan with disjoint to_upload, to_delete and unchanged paths
    """
    local_df = _to_frame(local_entries)
    remote_df = _to_frame(remote_entries)

    merged = local_df.merge(
        remote_df,
        on='path',
        how='outer',
        suffixes=('_local', '_remote'),
        indicator=True
    )

    in_both = merged['_merge'] == 'both'
    same = in_both & (merged['fingerprint_local'] == merged['fingerprint_remote'])
    local_only = merged['_merge'] == 'left_only'
    remote_only = merged['_merge'] == 'right_only'

    def _paths(mask) -> tuple:
        return tuple(sorted(merged.loc[mask, 'path'].tolist()))

    return SyncPlan(
        to_upload=_paths(local_only | (in_both & ~same)),
        to_delete=_paths(remote_only) if delete_removed else (),
        unchanged=_paths(same)
    )
