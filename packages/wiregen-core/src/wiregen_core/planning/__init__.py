from .fabric import FabricLinkGenerator
from .servers import ServerAttachmentPlanner, distribute_servers

__all__ = ["FabricLinkGenerator", "ServerAttachmentPlanner", "distribute_servers"]
