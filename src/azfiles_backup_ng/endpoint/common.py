# pyright: standard

"""azfiles-backup-ng: azfiles_backup_ng/endpoint/common.py
Common functionality among share endpoints.
"""

import logging
from datetime import datetime

from ..__util__ import ShareEntry
from ..config import ShareConfig

logger = logging.getLogger(__name__)


class Endpoint:
    """Generic structure of a file share endpoint.

    Subclasses talk to a storage backend; everything that decides *what*
    to snapshot, evict or copy lives in ``azfiles_backup_ng.core``.
    """

    def __init__(self, share: ShareConfig) -> None:
        self.share = share

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.share.label})"

    @property
    def share_name(self) -> str:
        return self.share.share_name

    @property
    def account_name(self) -> str:
        return self.share.account_name

    def share_uri(self) -> str:
        """URI of the live share, without an access token."""
        return self.share.share_url

    def snapshot_uri(self, snapshot_time: str) -> str:
        """Qualified URI of one snapshot of this share."""
        return f"{self.share.share_url}?sharesnapshot={snapshot_time}"

    # The following methods must be implemented by backends.

    def list_entries(self) -> list[ShareEntry]:
        """List shares and share snapshots of the storage account, in backend order."""
        raise NotImplementedError

    def create_snapshot(self) -> ShareEntry:
        """Create a snapshot of the share and return its listing entry."""
        raise NotImplementedError

    def delete_snapshot(self, snapshot_time: str) -> None:
        """Delete one snapshot, addressed by its exact 'sharesnapshot' value.

        Snapshots held by a lease are deleted too.
        """
        raise NotImplementedError

    def has_entries(self) -> bool:
        """Whether the share root holds at least one file or directory."""
        raise NotImplementedError

    def generate_sas(self, permission: str, expiry: datetime) -> str:
        """Return a share-level SAS query string (without leading '?')."""
        raise NotImplementedError
