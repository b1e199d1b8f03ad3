"""Fire-and-forget dispatch of the copy tool into a container sandbox.

The container group is created with a ``Never`` restart policy inside the
subnet that reaches both shares' private endpoints. The create call is
started but its poller is not awaited: the invocation ends as soon as the
sandbox is accepted, and the outcome of the copy is left to whatever
watches the container group.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from azure.mgmt.containerinstance import ContainerInstanceManagementClient
from azure.mgmt.containerinstance.models import (
    Container,
    ContainerGroup,
    ContainerGroupRestartPolicy,
    ContainerGroupSubnetId,
    OperatingSystemTypes,
    ResourceRequests,
    ResourceRequirements,
)

from .. import __util__
from ..__util__ import DispatchFailure
from ..config import SandboxConfig
from .planning import ReplicationJob

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchAck:
    """Acknowledgement that the sandbox was scheduled, not that the copy ran."""

    name: str
    correlation_id: str
    resource_group: str
    accepted_at: datetime
    status: str = "Accepted"


class JobDispatcher:
    """Launches ReplicationJobs as container groups."""

    def __init__(self, sandbox: SandboxConfig, client: ContainerInstanceManagementClient):
        self.sandbox = sandbox
        self.client = client

    @classmethod
    def from_credential(cls, sandbox: SandboxConfig, credential, subscription_id: str):
        """Build a dispatcher with its own container instance client."""
        return cls(sandbox, ContainerInstanceManagementClient(credential, subscription_id))

    def build_container_group(self, job: ReplicationJob) -> ContainerGroup:
        """Container group definition for a job."""
        container = Container(
            name=job.name,
            image=job.image,
            command=job.command.argv,
            resources=ResourceRequirements(
                requests=ResourceRequests(cpu=job.cpu, memory_in_gb=job.memory_gb)
            ),
        )
        return ContainerGroup(
            location=self.sandbox.region,
            containers=[container],
            os_type=OperatingSystemTypes.LINUX,
            restart_policy=ContainerGroupRestartPolicy.NEVER,
            subnet_ids=[ContainerGroupSubnetId(id=job.subnet_id)],
            tags={
                "correlation-id": job.correlation_id,
                "replication-mode": job.mode.value,
                "managed-by": "azfiles-backup-ng",
            },
        )

    def dispatch(self, job: ReplicationJob) -> DispatchAck:
        """Schedule the job and return without waiting for it.

        Raises:
            DispatchFailure: The create request was rejected (quota, name clash, network)
        """
        group = self.build_container_group(job)
        logger.info(
            "Dispatching %s (%s, %.1f CPU, %.1f GiB) in %s",
            job.name,
            job.mode.value,
            job.cpu,
            job.memory_gb,
            self.sandbox.resource_group,
        )
        with __util__.azure_errors(DispatchFailure, f"dispatch {job.name}"):
            poller = self.client.container_groups.begin_create_or_update(
                self.sandbox.resource_group, job.name, group
            )
        status = poller.status()
        logger.info(
            "Dispatched %s, correlation id %s, status %s",
            job.name,
            job.correlation_id,
            status,
        )
        return DispatchAck(
            name=job.name,
            correlation_id=job.correlation_id,
            resource_group=self.sandbox.resource_group,
            accepted_at=__util__.utc_now(),
            status=str(status),
        )
