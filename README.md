# sswarm

`sswarm` is a small peer-to-peer node that talks over a single UDP socket.
Messages are JSON-like dictionaries encoded as BSON (using the `bson` module
that ships with `pymongo`). Peers are identified by the SHA-1 hash of their
`address:port` text, and known nodes are kept in a Kademlia routing table of
160 k-buckets of up to 20 nodes each.

Python 3.10 or later is required.

## What is in the package

- `sswarm.utils`: `Endpoint` (a frozen address/port pair that validates
  itself), `str_to_endpoint`, `endpoint_to_str`, `addr_pair_to_endpoint`,
  `endpoint_to_binary`, `generate_random_endpoint` and `get_console_width`.
- `sswarm.message`: `Message`, the envelope exchanged between nodes.
  `encode()` gives BSON bytes. `Message.decode()` parses them and raises
  `ValueError` on malformed input.
- `sswarm.observer`: `BaseObserver`, an object waiting for a reply that expires
  after a time, plus the helpers `str_to_observer_id`, `observer_id_to_str` and
  `generate_uuid_from_str`.
- `sswarm.kademlia`:
  - `node_id`: `NodeId`, `calc_node_id` and `calc_node_xor_distance`.
  - `k_node`: `KNode`, an endpoint together with its node id.
  - `k_bucket`: `KBucket` and `UpdateState`.
  - `k_routing_table`: `KRoutingTable` and `eps_to_k_nodes`.
  - `direct_routing_table_controller`: `DirectRoutingTableController`, the same
    table addressed by endpoints.
  - `k_message`: `KMessage`, with `Rpc` and `MessageType`.
  - `k_observer`: `PingObserver`, `FindNodeObserver` and `KObserverStore`.
  - `rpc_manager`: `RpcManager`, which handles the ping and find_node RPCs.
  - `dht_manager`: `DhtManager` and its `ConnectionMaintainer`.
- `sswarm.message_buffer`: `PeerMessageBuffer` (the messages received from one
  endpoint, oldest first), `ReceivedMessage`, `PopFlag` and `SsMessage` (a
  received message as an application sees it).
- `sswarm.message_pool`: `MessagePool`, which holds one buffer per peer, and
  `MessageHub`, which passes each stored message to an application callback.
- `sswarm.peer`: `Peer`, `PeerId` and `calc_peer_id`.
- `sswarm.ss_logger`: `SsLogger` and `PacketDirection`. These log through the
  standard `logging` loggers `sswarm.ss_system` and `sswarm.ss_packet`.
- `sswarm.socket_manager`: `UdpSocketManager`, which owns the bound socket and
  can be used as a context manager.
- `sswarm.sender`: `Sender`. It sends a message tagged with the application id
  and returns `True` on success.
- `sswarm.udp_server`: `UdpServer`, which receives datagrams on a background
  thread.
- `sswarm.multicast_manager`: `MulticastManager` and `CastType`. It picks peers
  from the routing table and does not pick the same peer twice until
  `clear_context()` is called.
- `sswarm.node_controller`: `NodeController`, which connects all of these
  around one UDP socket.

## Messages

```python
from sswarm.message import Message

msg = Message.for_app("abcdefgh")     # app id must be 8 bytes
msg.set_param("messenger", "hello")

wire = msg.encode()                   # BSON bytes
again = Message.decode(wire)
assert "messenger" in again
print(again.get_param("messenger"))   # a copy of the value, or None
```

## Routing table

```python
from sswarm.utils import str_to_endpoint
from sswarm.kademlia.node_id import calc_node_id
from sswarm.kademlia.k_node import KNode
from sswarm.kademlia.k_routing_table import KRoutingTable

me = str_to_endpoint("10.0.0.1:8100")
table = KRoutingTable(calc_node_id(me))

for text in ("10.0.0.2:8100", "10.0.0.3:8100", "10.0.0.4:8100"):
    table.auto_update(KNode(str_to_endpoint(text)))

print(table.get_node_count())
closest = table.collect_node(KNode(me), 2, [])
```

`auto_update` returns an `UpdateState`:

- a new node is appended to the tail of its bucket (`ADDED_BACK`);
- a node that is already known is moved to the tail (`MOVED_BACK`);
- a new node is refused when the bucket already holds `k` nodes (`OVERFLOW`).

`collect_node` starts at the root node's bucket. It then takes nodes from the
buckets above and below that bucket, one step further out each time, until it
has `max_count` nodes or has run out of buckets.

## Running a node

```python
from sswarm.utils import str_to_endpoint
from sswarm.node_controller import NodeController

with NodeController(str_to_endpoint("127.0.0.1:8100")) as node:
    node.message_hub.start(lambda peer, msg: print(peer, msg.get("messenger")))
    node.start([str_to_endpoint("127.0.0.1:8101")])   # boot endpoints

    node.get_peer(str_to_endpoint("127.0.0.1:8101")).send("hello")
    ...
```

`start()` does the following:

- starts the receiving thread;
- starts DHT maintenance;
- pings each boot endpoint, and adds it to the routing table if it answers;
- turns on the pool refresh, which every 200 seconds drops messages older
  than 20 minutes.

Every datagram that decodes to a message is stored in the pool. Messages with
a `kademlia` part are also passed to the DHT first.

Receiving from a peer:

- While the message hub is active, each stored message is handed to its
  handler and taken out of the buffer.
- Otherwise the message stays in the buffer. Once a message from an endpoint
  has been stored, `node.get_peer(ep).receive(timeout)` takes the oldest one.
  `-1` waits forever, `0` returns at once, and any other value waits up to that
  many seconds. It returns `None` if nothing arrived in time.
- `receive` raises `LookupError` if nothing has ever been stored from that
  endpoint.

`NodeController.on_command_input` runs a command that is already split into
words:

- `["send", "<ip>:<port>", "<payload>"]` sends a payload to a peer;
- `["stop"]` stops the node.

`close()`, or leaving the `with` block, stops the node and closes its socket.

## What the package does not do

- **Public address discovery.** The node does not find out its public address
  by itself. Call `NodeController.update_global_self_endpoint` when it is
  known; this also updates the DHT's own node id.
- **NAT traversal and relaying.** There is none. `Peer.send` and the Kademlia
  requests go straight to the peer's endpoint.
- **Console and command line.** There is no console reader and no command-line
  program. `on_command_input` has to be called by your own code.
- **Liveness check.** `Peer.ping()` always returns `False`.

## Tests

The test suite uses pytest; install the `test` extra to get it.