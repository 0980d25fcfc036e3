"""Kademlia node ids, k-buckets, routing table, messages, observers, RPCs and DHT management."""