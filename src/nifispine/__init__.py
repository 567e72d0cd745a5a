"""
nifi-spine -- extract typed component views from NiFi flow status documents.

The engine turns the nested ``processGroupStatus`` document served by the
NiFi REST API into either a flat, kind-sorted list of components with
hierarchical paths, or an ownership tree renderable as a box-drawing diagram.

Packages:
    nifispine.core     errors, logging, settings
    nifispine.flow     classification, traversal, tree building, rendering
    nifispine.client   httpx transport and status client
    nifispine.cli      ``nifi-spine`` command line
"""

__version__ = "0.1.0"

from nifispine.flow import (  # noqa: E402
    ALL_EXCEPT_CONNECTIONS,
    ALL_KINDS,
    Component,
    ComponentKind,
    OwnershipTree,
    build_status_tree,
    classify,
    flatten,
    flatten_status,
    render,
)

__all__ = [
    "__version__",
    "ALL_EXCEPT_CONNECTIONS",
    "ALL_KINDS",
    "Component",
    "ComponentKind",
    "OwnershipTree",
    "build_status_tree",
    "classify",
    "flatten",
    "flatten_status",
    "render",
]
