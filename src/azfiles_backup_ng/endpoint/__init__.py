# pyright: standard

"""azfiles-backup-ng: azfiles_backup_ng/endpoint/__init__.py."""

import logging

from ..config import Config, ShareConfig
from .azure import AzureFilesEndpoint
from .common import Endpoint

logger = logging.getLogger(__name__)


def choose_endpoint(share: ShareConfig, credential, **kwargs) -> Endpoint:
    """Create the endpoint for one configured share.

    Args:
        share: Share configuration of the source or target side
        credential: Token credential used for the management plane
        kwargs: Passed to the endpoint (e.g. pre-built SDK clients)

    Returns:
        Endpoint: An endpoint for the share.
    """
    endpoint = AzureFilesEndpoint(share, credential, **kwargs)
    logger.debug("Endpoint created: %r", endpoint)
    return endpoint


def create_endpoints(config: Config, credential) -> tuple[Endpoint, Endpoint]:
    """Create (source, target) endpoints for a configuration."""
    return (
        choose_endpoint(config.source, credential),
        choose_endpoint(config.target, credential),
    )


__all__ = ["AzureFilesEndpoint", "Endpoint", "choose_endpoint", "create_endpoints"]
