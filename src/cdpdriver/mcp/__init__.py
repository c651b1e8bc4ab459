"""MCP (Model Context Protocol) server exposing cdpdriver as browser tools.

Run it with ``cdpdriver mcp`` or ``python -m cdpdriver.mcp``.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from cdpdriver.mcp.server import CdpDriverServer


def __getattr__(name: str):
	"""Import the server lazily so the mcp SDK is only loaded when needed."""
	if name == 'CdpDriverServer':
		from cdpdriver.mcp.server import CdpDriverServer

		return CdpDriverServer
	raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = ['CdpDriverServer']
