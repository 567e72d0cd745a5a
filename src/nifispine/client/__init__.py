"""REST access to a NiFi instance: transport, status client, versions and queues."""

from nifispine.client.queues import FlowFile, ListingRequest
from nifispine.client.status import RunningState, StatusClient
from nifispine.client.transport import HttpxTransport, Transport
from nifispine.client.versions import FlowVersion, Revision, UpdateRequest, VersionControlInfo

__all__ = [
    "FlowFile",
    "FlowVersion",
    "HttpxTransport",
    "ListingRequest",
    "Revision",
    "RunningState",
    "StatusClient",
    "Transport",
    "UpdateRequest",
    "VersionControlInfo",
]
