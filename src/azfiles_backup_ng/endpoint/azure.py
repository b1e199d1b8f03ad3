# pyright: standard

"""azfiles-backup-ng: azfiles_backup_ng/endpoint/azure.py
Azure Files endpoint backed by the storage management and file share SDKs.
"""

import logging
from datetime import datetime

from azure.mgmt.storage import StorageManagementClient
from azure.storage.fileshare import (
    ShareClient,
    ShareSasPermissions,
    ShareServiceClient,
    generate_share_sas,
)

from ..__util__ import (
    SASGenerationFailure,
    ShareEntry,
    SnapshotFailure,
    azure_errors,
)
from .common import Endpoint

logger = logging.getLogger(__name__)


class AzureFilesEndpoint(Endpoint):
    """File share in an Azure storage account.

    Snapshots are listed and created through the data plane, which reports
    the 'sharesnapshot' value as the service's own string with all seven
    fractional digits. Deletion goes through the management plane so that
    leased snapshots can be removed as well.
    """

    def __init__(
        self,
        share,
        credential,
        storage_client=None,
        share_client=None,
        service_client=None,
    ):
        super().__init__(share)
        self._credential = credential
        self._storage_client = storage_client
        self._share_client = share_client
        self._service_client = service_client
        self._account_key = None

    @property
    def storage_client(self) -> StorageManagementClient:
        if self._storage_client is None:
            self._storage_client = StorageManagementClient(
                self._credential, self.share.subscription_id
            )
        return self._storage_client

    def _get_share_client(self) -> ShareClient:
        if self._share_client is None:
            self._share_client = ShareClient(
                account_url=self.share.account_url,
                share_name=self.share.share_name,
                credential=self.account_key(),
            )
        return self._share_client

    def _get_service_client(self) -> ShareServiceClient:
        if self._service_client is None:
            self._service_client = ShareServiceClient(
                account_url=self.share.account_url,
                credential=self.account_key(),
            )
        return self._service_client

    def account_key(self) -> str:
        """First access key of the storage account, fetched once per endpoint."""
        if self._account_key is None:
            with azure_errors(SASGenerationFailure, f"list keys of {self.account_name}"):
                keys = self.storage_client.storage_accounts.list_keys(
                    self.share.resource_group, self.account_name
                )
            if not keys.keys:
                raise SASGenerationFailure(
                    f"Storage account {self.account_name} returned no access keys"
                )
            self._account_key = keys.keys[0].value
        return self._account_key

    def list_entries(self) -> list[ShareEntry]:
        logger.debug("Listing shares and snapshots of %s", self.account_name)
        service = self._get_service_client()
        with azure_errors(SnapshotFailure, f"list snapshots of {self.share.label}"):
            return [
                ShareEntry(
                    name=item.name,
                    snapshot_time=item.snapshot,
                    metadata=dict(item.metadata or {}),
                )
                for item in service.list_shares(
                    name_starts_with=self.share_name,
                    include_metadata=True,
                    include_snapshots=True,
                )
            ]

    def create_snapshot(self) -> ShareEntry:
        share_client = self._get_share_client()
        with azure_errors(SnapshotFailure, f"snapshot {self.share.label}"):
            result = share_client.create_snapshot()
        snapshot_time = (result or {}).get("snapshot")
        if not snapshot_time:
            raise SnapshotFailure(
                f"snapshot {self.share.label}: service returned no snapshot time"
            )
        return ShareEntry(name=self.share_name, snapshot_time=snapshot_time)

    def delete_snapshot(self, snapshot_time: str) -> None:
        with azure_errors(SnapshotFailure, f"delete {self.share.label}@{snapshot_time}"):
            self.storage_client.file_shares.delete(
                self.share.resource_group,
                self.account_name,
                self.share_name,
                x_ms_snapshot=snapshot_time,
                include="leased-snapshots",
            )

    def has_entries(self) -> bool:
        share_client = self._get_share_client()
        with azure_errors(SASGenerationFailure, f"list files of {self.share.label}"):
            listing = share_client.list_directories_and_files(results_per_page=1)
            return next(iter(listing), None) is not None

    def generate_sas(self, permission: str, expiry: datetime) -> str:
        key = self.account_key()
        with azure_errors(SASGenerationFailure, f"sign access to {self.share.label}"):
            try:
                return generate_share_sas(
                    account_name=self.account_name,
                    share_name=self.share_name,
                    account_key=key,
                    permission=ShareSasPermissions.from_string(permission),
                    expiry=expiry,
                )
            except (TypeError, ValueError) as e:
                raise SASGenerationFailure(
                    f"sign access to {self.share.label}: {e}"
                ) from e
