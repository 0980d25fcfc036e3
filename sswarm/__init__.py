"""UDP peer-to-peer node with a Kademlia routing table, per-peer message buffers and BSON messages."""

__version__ = "0.1.0"