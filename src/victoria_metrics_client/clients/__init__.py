"""Read, write and proxy clients."""

from .proxy import VictoriaProxyClient
from .read import VictoriaReadClient
from .write import VictoriaWriteClient

__all__ = ["VictoriaProxyClient", "VictoriaReadClient", "VictoriaWriteClient"]
