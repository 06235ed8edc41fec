"""Fixed-size node storage for the order book tree, laid out in a byte buffer."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

from dexkit.errors import DexError, DexErrorCode
from dexkit.fees import FeeTier

NODE_SIZE = 72
HEADER_SIZE = 32

_U32_MAX = (1 << 32) - 1
_U64_MAX = (1 << 64) - 1
_U128_MAX = (1 << 128) - 1

_HEADER = struct.Struct("<QQIIQ")
_TAG = struct.Struct("<I")
_LEAF = struct.Struct("<IBBxx16s4QQQ")
_INNER = struct.Struct("<II16sII40x")
_FREE = struct.Struct("<II64x")


class NodeTag(enum.IntEnum):
    """Tag stored in the first four bytes of every node."""

    UNINITIALIZED = 0
    INNER_NODE = 1
    LEAF_NODE = 2
    FREE_NODE = 3
    LAST_FREE_NODE = 4


def _check_range(value: int, limit: int, name: str) -> None:
    if not 0 <= value <= limit:
        raise ValueError(f"{name} out of range: {value}")


@dataclass
class LeafNode:
    """An order resting in the book."""

    owner_slot: int
    key: int
    owner: tuple[int, int, int, int]
    quantity: int
    fee_tier: FeeTier = FeeTier.BASE
    client_order_id: int = 0

    def __post_init__(self) -> None:
        self.owner = tuple(self.owner)
        self.fee_tier = FeeTier(self.fee_tier)
        _check_range(self.owner_slot, 0xFF, "owner_slot")
        _check_range(self.key, _U128_MAX, "key")
        if len(self.owner) != 4:
            raise ValueError("owner is four 64-bit words")
        for word in self.owner:
            _check_range(word, _U64_MAX, "owner word")
        _check_range(self.quantity, _U64_MAX, "quantity")
        _check_range(self.client_order_id, _U64_MAX, "client_order_id")

    def price(self) -> int:
        """The price held in the upper 64 bits of the key; never zero."""
        price = self.key >> 64
        if price == 0:
            raise ValueError("leaf key holds a zero price")
        return price

    def order_id(self) -> int:
        return self.key

    def pack(self) -> bytes:
        return _LEAF.pack(
            NodeTag.LEAF_NODE,
            self.owner_slot,
            int(self.fee_tier),
            self.key.to_bytes(16, "little"),
            *self.owner,
            self.quantity,
            self.client_order_id,
        )


@dataclass
class InnerNode:
    """A branch point of the tree, splitting on one key bit."""

    prefix_len: int
    key: int
    children: tuple[int, int] = (0, 0)

    def __post_init__(self) -> None:
        self.children = tuple(self.children)
        _check_range(self.prefix_len, _U32_MAX, "prefix_len")
        _check_range(self.key, _U128_MAX, "key")
        if len(self.children) != 2:
            raise ValueError("an inner node has two children")
        for child in self.children:
            _check_range(child, _U32_MAX, "child handle")

    def walk_down(self, search_key: int) -> tuple[int, bool]:
        """The child that `search_key` descends to, and the critical bit chosen."""
        crit_bit_mask = (1 << 127) >> self.prefix_len
        crit_bit = (search_key & crit_bit_mask) != 0
        return self.children[int(crit_bit)], crit_bit

    def pack(self) -> bytes:
        return _INNER.pack(
            NodeTag.INNER_NODE,
            self.prefix_len,
            self.key.to_bytes(16, "little"),
            *self.children,
        )


Node = LeafNode | InnerNode


def unpack_node(data: bytes) -> Node | None:
    """Decode a node; free or uninitialised nodes decode to None."""
    if len(data) != NODE_SIZE:
        raise ValueError(f"a node is {NODE_SIZE} bytes, got {len(data)}")
    (tag,) = _TAG.unpack_from(data, 0)
    if tag == NodeTag.INNER_NODE:
        _, prefix_len, key, child0, child1 = _INNER.unpack(data)
        return InnerNode(prefix_len, int.from_bytes(key, "little"), (child0, child1))
    if tag == NodeTag.LEAF_NODE:
        _, slot, tier, key, o0, o1, o2, o3, quantity, client_id = _LEAF.unpack(data)
        return LeafNode(
            owner_slot=slot,
            key=int.from_bytes(key, "little"),
            owner=(o0, o1, o2, o3),
            quantity=quantity,
            fee_tier=FeeTier(tier),
            client_order_id=client_id,
        )
    return None


def _header_field(index: int, doc: str) -> property:
    def fget(self: Slab) -> int:
        return _HEADER.unpack_from(self._buf, 0)[index]

    def fset(self: Slab, value: int) -> None:
        values = list(_HEADER.unpack_from(self._buf, 0))
        values[index] = value
        _HEADER.pack_into(self._buf, 0, *values)

    return property(fget, fset, doc=doc)


class Slab:
    """Node allocator over a byte buffer: a header followed by 72-byte nodes.

    A writable buffer is used in place; read-only bytes are copied first.
    Trailing bytes that do not fill a whole node are ignored.
    """

    bump_index = _header_field(0, "Number of nodes ever handed out from the end.")
    free_list_len = _header_field(1, "Number of nodes on the free list.")
    free_list_head = _header_field(2, "Handle of the first free node.")
    root_node = _header_field(3, "Handle of the tree root.")
    leaf_count = _header_field(4, "Number of leaves in the tree.")

    def __init__(self, data: bytearray | memoryview | bytes) -> None:
        if isinstance(data, bytes):
            data = bytearray(data)
        view = memoryview(data).cast("B")
        if view.readonly:
            raise TypeError("slab buffer must be writable")
        if len(view) < HEADER_SIZE:
            raise ValueError(f"slab buffer needs at least {HEADER_SIZE} bytes")
        slop = (len(view) - HEADER_SIZE) % NODE_SIZE
        self._buf = view[: len(view) - slop]

    def __bytes__(self) -> bytes:
        return bytes(self._buf)

    def _offset(self, handle: int) -> int:
        return HEADER_SIZE + handle * NODE_SIZE

    def _raw_tag(self, handle: int) -> int:
        return _TAG.unpack_from(self._buf, self._offset(handle))[0]

    def _write(self, handle: int, raw: bytes) -> None:
        start = self._offset(handle)
        self._buf[start : start + NODE_SIZE] = raw

    def capacity(self) -> int:
        return (len(self._buf) - HEADER_SIZE) // NODE_SIZE

    def clear(self) -> None:
        _HEADER.pack_into(self._buf, 0, 0, 0, 0, 0, 0)

    def is_empty(self) -> bool:
        return self.bump_index == self.free_list_len

    def get(self, handle: int) -> Node | None:
        """The live node at `handle`, or None if it is free or out of range."""
        if not 0 <= handle < self.capacity():
            return None
        start = self._offset(handle)
        return unpack_node(bytes(self._buf[start : start + NODE_SIZE]))

    def set(self, handle: int, node: Node) -> None:
        """Overwrite the live node at `handle`."""
        if not isinstance(node, (LeafNode, InnerNode)):
            raise TypeError(f"expected a leaf or inner node, got {node!r}")
        if not self.contains(handle):
            raise KeyError(handle)
        self._write(handle, node.pack())

    def insert(self, node: Node) -> int:
        """Store `node` and return its handle; raise OverflowError when full."""
        if not isinstance(node, (LeafNode, InnerNode)):
            raise TypeError(f"expected a leaf or inner node, got {node!r}")
        if self.free_list_len == 0:
            bump = self.bump_index
            if bump == self.capacity() or bump == _U32_MAX:
                raise OverflowError("slab is full")
            self.bump_index = bump + 1
            self._write(bump, node.pack())
            return bump

        handle = self.free_list_head
        tag = self._raw_tag(handle)
        free_len = self.free_list_len
        if tag == NodeTag.FREE_NODE:
            if free_len <= 1:
                raise ValueError("free list is corrupt: more free nodes than counted")
        elif tag == NodeTag.LAST_FREE_NODE:
            if free_len != 1:
                raise ValueError("free list is corrupt: ends before its count")
        else:
            raise ValueError(f"free list head {handle} is not a free node")
        _, next_free = _FREE.unpack_from(self._buf, self._offset(handle))
        self.free_list_head = next_free
        self.free_list_len = free_len - 1
        self._write(handle, node.pack())
        return handle

    def remove(self, handle: int) -> Node | None:
        """Free the node at `handle` and return what it held, or None if not live."""
        node = self.get(handle)
        if node is None:
            return None
        tag = NodeTag.LAST_FREE_NODE if self.free_list_len == 0 else NodeTag.FREE_NODE
        self._write(handle, _FREE.pack(tag, self.free_list_head))
        self.free_list_len += 1
        self.free_list_head = handle
        return node

    def contains(self, handle: int) -> bool:
        return self.get(handle) is not None

    def assert_minimum_capacity(self, capacity: int) -> None:
        """Raise DexError(SLAB_TOO_SMALL) unless there is room for `capacity` orders."""
        if self.capacity() <= capacity * 2:
            raise DexError(DexErrorCode.SLAB_TOO_SMALL)

    @property
    def free_list(self) -> list[tuple[int, NodeTag]]:
        """The free list from its head: each handle with its stored tag."""
        entries = []
        handle = self.free_list_head
        for _ in range(self.free_list_len):
            tag = NodeTag(self._raw_tag(handle))
            entries.append((handle, tag))
            _, handle = _FREE.unpack_from(self._buf, self._offset(handle))
        return entries