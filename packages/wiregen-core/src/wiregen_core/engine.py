"""
Fabric generation entry point.

`generate_fabric` validates a request, lays out switches, fabric links,
loopbacks and server attachments, then emits manifests. Every call builds
fresh switch instances, so the same request always yields the same output.
"""

from __future__ import annotations

import logging

from wiregen_core.allocation.ports import PortAllocator
from wiregen_core.codebase.debug import spy_trace
from wiregen_core.data.catalog import SwitchCatalog, default_catalog
from wiregen_core.manifest.emitter import ManifestEmitter
from wiregen_core.models.request import FabricRequest
from wiregen_core.models.result import FabricResult
from wiregen_core.planning.common import instantiate_switches
from wiregen_core.planning.fabric import FabricLinkGenerator
from wiregen_core.planning.servers import ServerAttachmentPlanner
from wiregen_core.validation.topology import TopologyValidator

logger = logging.getLogger("wiregen.engine")


@spy_trace
def generate_fabric(req: FabricRequest, catalog: SwitchCatalog | None = None) -> FabricResult:
    """Generate the full manifest set for `req`.

    Raises InvalidRequest (with every failing finding) before touching any
    port; allocation errors raised later leave no partial result behind.
    """
    if catalog is None:
        catalog = default_catalog()
    validation = TopologyValidator(catalog).validate(req)
    for f in validation.warnings:
        logger.warning("%s: %s", f.code, f.message)
    validation.raise_for_errors()

    allocator = PortAllocator(catalog)
    spines, leaves = instantiate_switches(req, catalog)
    fabric = FabricLinkGenerator(catalog, allocator)
    links = fabric.generate_fabric_links(leaves, spines, req)
    if req.vpc_loopback:
        links.extend(fabric.generate_loopbacks(leaves))
    servers, server_links = ServerAttachmentPlanner(catalog, allocator).plan_servers(req.server_count, leaves, req)
    links.extend(server_links)

    switches = spines + leaves
    manifests = ManifestEmitter(catalog).emit(req, switches, links, servers)
    logger.info(
        "generated %d manifests: %d switches, %d servers, %d links",
        len(manifests), len(switches), len(servers), len(links),
    )
    return FabricResult(
        manifests=manifests,
        switches=switches,
        servers=servers,
        links=links,
        validation=validation,
    )
