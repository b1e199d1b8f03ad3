# pyright: standard

"""azfiles-backup-ng: azfiles_backup_ng/__util__.py
Common error types and utility functions.
"""

import contextlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    ResourceNotFoundError,
)

logger = logging.getLogger(__name__)

SNAPSHOT_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class AbortError(Exception):
    """Base exception for anything that ends the current invocation."""


class AuthenticationFailure(AbortError):
    """The credential was rejected by the control or data plane."""


class ResourceNotFound(AbortError):
    """A storage account, share, snapshot or resource group does not exist."""


class RetentionViolation(AbortError):
    """The snapshot ceiling is reached and nothing may be evicted."""


class SnapshotFailure(AbortError):
    """Creating or deleting a share snapshot failed."""


class SASGenerationFailure(AbortError):
    """A shared access signature or the target listing could not be produced."""


class DispatchFailure(AbortError):
    """The sandbox running the copy tool could not be scheduled."""


@contextlib.contextmanager
def azure_errors(failure_cls: type[AbortError], what: str):
    """Translate Azure SDK exceptions raised in the block into AbortErrors.

    Authentication and not-found errors keep their own classes, anything
    else coming from the SDK becomes ``failure_cls``.
    """
    try:
        yield
    except AbortError:
        raise
    except ClientAuthenticationError as e:
        raise AuthenticationFailure(f"{what}: {e.message}") from e
    except ResourceNotFoundError as e:
        raise ResourceNotFound(f"{what}: {e.message}") from e
    except AzureError as e:
        raise failure_cls(f"{what}: {e.message}") from e


def log_heading(caption: str) -> str:
    """Formatted heading for logging output sections."""
    return f"{f'--[ {caption} ]':-<50}"


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_snapshot_time(value: str) -> datetime:
    """Parse a 'sharesnapshot' value into an aware datetime.

    The service uses seven fractional digits; the seventh is dropped since
    datetimes only carry microseconds. Use the result for ordering only,
    never to address a snapshot.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1]
    if "." in text:
        base, frac = text.split(".", 1)
        text = f"{base}.{frac[:6]:0<6}"
    else:
        text += ".000000"
    return datetime.strptime(text + "Z", SNAPSHOT_TIME_FORMAT).replace(
        tzinfo=timezone.utc
    )


@dataclass(frozen=True)
class ShareEntry:
    """One item of a share listing: the live share or one of its snapshots.

    ``snapshot_time`` is the service's 'sharesnapshot' string, kept verbatim.
    """

    name: str
    snapshot_time: str | None = None
    metadata: dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def is_snapshot(self) -> bool:
        return self.snapshot_time is not None


@dataclass(frozen=True)
class Snapshot:
    """Immutable, read-only point-in-time view of a share.

    Attributes:
        account_name: Storage account of the parent share
        share_name: Parent share name
        snapshot_time: The 'sharesnapshot' value exactly as the service returned it
        uri: Qualified snapshot URI without any access token
        metadata: Metadata captured with the snapshot
    """

    account_name: str
    share_name: str
    snapshot_time: str
    uri: str
    metadata: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @property
    def created(self) -> datetime:
        """Creation time in UTC, truncated to microseconds."""
        return parse_snapshot_time(self.snapshot_time)

    def get_name(self) -> str:
        """Return '<share>@<sharesnapshot>' as used in log output."""
        return f"{self.share_name}@{self.snapshot_time}"

    def __str__(self) -> str:
        return f"{self.account_name}/{self.get_name()}"
