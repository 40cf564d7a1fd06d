"""
topopoll: SNMP topology poller.

Polls network devices over SNMP, turns vendor-specific responses into a
generic device/interface/LLDP model using capability-selected plugin
documents, and forwards the results to a graph store.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
