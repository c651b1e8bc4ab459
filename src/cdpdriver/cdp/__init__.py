"""CDP transport, command helpers and network correlation."""

from cdpdriver.cdp.commands import CDPCommands
from cdpdriver.cdp.connection import CDPConnection, Subscription
from cdpdriver.cdp.network import NetworkCorrelator, NetworkExchange, WaitHandle

__all__ = ["CDPCommands", "CDPConnection", "NetworkCorrelator", "NetworkExchange", "Subscription", "WaitHandle"]
