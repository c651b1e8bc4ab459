"""Entry point for ``python -m cdpdriver.mcp``."""

import asyncio

from cdpdriver.mcp.server import main

if __name__ == '__main__':
	asyncio.run(main())
