"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from azfiles_backup_ng.__util__ import ShareEntry
from azfiles_backup_ng.config import parse_config
from azfiles_backup_ng.endpoint import Endpoint

BASE_TIME = datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc)


def stamp(value):
    """'sharesnapshot' id for a time, with a non-zero seventh fractional digit."""
    return value.strftime("%Y-%m-%dT%H:%M:%S.%f") + "7Z"


class FakeEndpoint(Endpoint):
    """In-memory share with snapshots, used instead of the Azure SDKs."""

    def __init__(self, share, entries=None, files=False, clock=None):
        super().__init__(share)
        self.entries = list(entries or [])
        self.files = files
        self.deleted = []
        self.created = []
        self.sas_calls = []
        self.calls = []
        self.fail = {}
        self.clock = clock or (BASE_TIME + timedelta(days=365))

    def _maybe_fail(self, name):
        self.calls.append(name)
        if name in self.fail:
            raise self.fail[name]

    def list_entries(self):
        self._maybe_fail("list_entries")
        return list(self.entries)

    def create_snapshot(self):
        self._maybe_fail("create_snapshot")
        self.clock += timedelta(minutes=1)
        entry = ShareEntry(self.share_name, stamp(self.clock), {})
        self.entries.append(entry)
        self.created.append(entry)
        return entry

    def delete_snapshot(self, snapshot_time):
        self._maybe_fail("delete_snapshot")
        self.entries = [
            e
            for e in self.entries
            if not (e.name == self.share_name and e.snapshot_time == snapshot_time)
        ]
        self.deleted.append(snapshot_time)

    def has_entries(self):
        self._maybe_fail("has_entries")
        return self.files

    def generate_sas(self, permission, expiry):
        self._maybe_fail("generate_sas")
        self.sas_calls.append((permission, expiry))
        return f"sv=2023-11-03&sp={permission}&se={expiry:%Y-%m-%dT%H:%M:%SZ}&sig=secret"


def snapshot_entries(share_name, count, start=BASE_TIME, protected=(), metadata=None):
    """ShareEntries for `count` hourly snapshots; indexes in `protected` get the flag."""
    entries = []
    for i in range(count):
        meta = dict(metadata or {})
        if i in protected:
            meta["AzureBackupProtected"] = "true"
        entries.append(ShareEntry(share_name, stamp(start + timedelta(hours=i)), meta))
    return entries


@pytest.fixture
def config_data():
    """Parsed-TOML style dict of a complete configuration."""
    return {
        "source": {
            "subscription_id": "sub-1",
            "resource_group": "rg-src",
            "account_name": "stsource",
            "share_name": "data",
            "region": "westeurope",
        },
        "target": {
            "subscription_id": "sub-1",
            "resource_group": "rg-dst",
            "account_name": "sttarget",
            "share_name": "data-mirror",
            "region": "westeurope",
        },
        "sandbox": {
            "resource_group": "rg-dst",
            "region": "westeurope",
            "subnet_id": "/subscriptions/sub-1/resourceGroups/rg-net/providers/"
            "Microsoft.Network/virtualNetworks/vnet/subnets/aci",
        },
    }


@pytest.fixture
def config(config_data):
    """A validated Config with default retention and access settings."""
    cfg, _ = parse_config(config_data)
    return cfg


@pytest.fixture
def source_endpoint(config):
    return FakeEndpoint(config.source)


@pytest.fixture
def target_endpoint(config):
    return FakeEndpoint(config.target)


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
[global]
log_file = "/tmp/azfiles-backup-ng.log"
transaction_log = "/tmp/azfiles-backup-ng.jsonl"

[source]
subscription_id = "sub-1"
resource_group = "rg-src"
account_name = "stsource"
share_name = "data"
region = "westeurope"

[target]
subscription_id = "sub-2"
resource_group = "rg-dst"
account_name = "sttarget"
share_name = "data-mirror"
region = "northeurope"
endpoint_suffix = "core.usgovcloudapi.net"

[retention]
ceiling = 200
source_buffer = 20
target_buffer = 10
protection_policy = "truthy"

[access]
expiry_hours = 12

[sandbox]
resource_group = "rg-dst"
region = "northeurope"
subnet_id = "/subscriptions/sub-2/resourceGroups/rg-net/providers/Microsoft.Network/virtualNetworks/vnet/subnets/aci"
cpu = 4
memory_gb = 8
name_prefix = "Nightly_Copy"
"""


@pytest.fixture
def minimal_config_toml():
    """Return a minimal valid TOML configuration string."""
    return """
[source]
subscription_id = "sub"
resource_group = "rg"
account_name = "src"
share_name = "data"

[target]
subscription_id = "sub"
resource_group = "rg"
account_name = "dst"
share_name = "data"

[sandbox]
resource_group = "rg"
region = "westeurope"
subnet_id = "/subscriptions/sub/resourceGroups/rg/providers/Microsoft.Network/virtualNetworks/v/subnets/s"
"""


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def minimal_config_file(tmp_config_dir, minimal_config_toml):
    """Create a temporary config file with minimal content."""
    config_path = tmp_config_dir / "minimal.toml"
    config_path.write_text(minimal_config_toml)
    return config_path
