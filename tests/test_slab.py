import pytest
from hypothesis import given
from hypothesis import strategies as st

from dexkit.errors import DexError, DexErrorCode
from dexkit.fees import FeeTier
from dexkit.slab import (
    HEADER_SIZE,
    NODE_SIZE,
    InnerNode,
    LeafNode,
    NodeTag,
    Slab,
    unpack_node,
)


def make_leaf(key, quantity=10, slot=1):
    return LeafNode(
        owner_slot=slot,
        key=key,
        owner=(1, 2, 3, 4),
        quantity=quantity,
        fee_tier=FeeTier.SRM5,
        client_order_id=5,
    )


def make_slab(nodes, extra=0):
    return Slab(bytearray(HEADER_SIZE + NODE_SIZE * nodes + extra))


def test_node_and_header_sizes():
    assert NODE_SIZE == 72
    assert len(make_leaf(1 << 64).pack()) == NODE_SIZE
    assert len(InnerNode(3, 7, (1, 2)).pack()) == NODE_SIZE


def test_leaf_tag_written_first():
    raw = make_leaf(1 << 64).pack()
    assert raw[:4] == int(NodeTag.LEAF_NODE).to_bytes(4, "little")
    assert InnerNode(0, 0).pack()[:4] == int(NodeTag.INNER_NODE).to_bytes(4, "little")


@given(
    slot=st.integers(0, 255),
    key=st.integers(0, (1 << 128) - 1),
    owner=st.tuples(*[st.integers(0, (1 << 64) - 1)] * 4),
    quantity=st.integers(0, (1 << 64) - 1),
    tier=st.sampled_from(list(FeeTier)),
    client_id=st.integers(0, (1 << 64) - 1),
)
def test_leaf_round_trip(slot, key, owner, quantity, tier, client_id):
    leaf = LeafNode(slot, key, owner, quantity, tier, client_id)
    assert unpack_node(leaf.pack()) == leaf


@given(
    prefix_len=st.integers(0, 127),
    key=st.integers(0, (1 << 128) - 1),
    children=st.tuples(st.integers(0, (1 << 32) - 1), st.integers(0, (1 << 32) - 1)),
)
def test_inner_round_trip(prefix_len, key, children):
    node = InnerNode(prefix_len, key, children)
    assert unpack_node(node.pack()) == node


def test_unpack_free_node_is_none():
    assert unpack_node(bytes(NODE_SIZE)) is None


def test_unpack_wrong_length():
    with pytest.raises(ValueError):
        unpack_node(bytes(NODE_SIZE - 1))


def test_leaf_price_and_order_id():
    key = (500 << 64) | 42
    leaf = make_leaf(key)
    assert leaf.price() == 500
    assert leaf.order_id() == key


def test_leaf_zero_price_raises():
    with pytest.raises(ValueError):
        make_leaf(42).price()


def test_leaf_rejects_out_of_range_values():
    with pytest.raises(ValueError):
        make_leaf(1 << 128)
    with pytest.raises(ValueError):
        make_leaf(1, slot=256)


def test_walk_down_follows_critical_bit():
    node = InnerNode(0, 0, (11, 22))
    assert node.walk_down(1 << 127) == (22, True)
    assert node.walk_down(0) == (11, False)
    deeper = InnerNode(127, 0, (11, 22))
    assert deeper.walk_down(1) == (22, True)
    assert deeper.walk_down(2) == (11, False)


def test_capacity_ignores_slop():
    slab = make_slab(3, extra=NODE_SIZE - 1)
    assert slab.capacity() == 3


def test_buffer_too_small():
    with pytest.raises(ValueError):
        Slab(bytearray(HEADER_SIZE - 1))


def test_empty_header_slab():
    slab = Slab(bytearray(HEADER_SIZE))
    assert slab.capacity() == 0
    assert slab.is_empty()
    with pytest.raises(OverflowError):
        slab.insert(make_leaf(1 << 64))


def test_insert_writes_through_to_buffer():
    buf = bytearray(HEADER_SIZE + NODE_SIZE * 2)
    slab = Slab(buf)
    leaf = make_leaf(7 << 64)
    handle = slab.insert(leaf)
    assert handle == 0
    assert bytes(buf[HEADER_SIZE : HEADER_SIZE + NODE_SIZE]) == leaf.pack()
    assert slab.bump_index == 1


def test_bytes_input_is_copied():
    data = bytes(HEADER_SIZE + NODE_SIZE)
    slab = Slab(data)
    slab.insert(make_leaf(1 << 64))
    assert data == bytes(HEADER_SIZE + NODE_SIZE)
    assert bytes(slab)[HEADER_SIZE:] == make_leaf(1 << 64).pack()


def test_read_only_buffer_rejected():
    with pytest.raises(TypeError):
        Slab(memoryview(bytes(HEADER_SIZE + NODE_SIZE)))


def test_insert_until_full():
    slab = make_slab(3)
    handles = [slab.insert(make_leaf((i + 1) << 64)) for i in range(3)]
    assert handles == [0, 1, 2]
    with pytest.raises(OverflowError):
        slab.insert(make_leaf(9 << 64))


def test_get_and_contains():
    slab = make_slab(2)
    leaf = make_leaf(3 << 64)
    handle = slab.insert(leaf)
    assert slab.get(handle) == leaf
    assert slab.contains(handle)
    assert not slab.contains(1)
    assert slab.get(5) is None
    assert slab.get(-1) is None


def test_remove_returns_node_and_frees_slot():
    slab = make_slab(2)
    leaf = make_leaf(3 << 64)
    handle = slab.insert(leaf)
    assert slab.remove(handle) == leaf
    assert slab.get(handle) is None
    assert slab.remove(handle) is None
    assert slab.is_empty()


def test_free_list_is_lifo_and_tagged():
    slab = make_slab(3)
    handles = [slab.insert(make_leaf((i + 1) << 64)) for i in range(3)]
    slab.remove(handles[0])
    slab.remove(handles[2])
    assert slab.free_list == [
        (handles[2], NodeTag.FREE_NODE),
        (handles[0], NodeTag.LAST_FREE_NODE),
    ]
    assert slab.insert(make_leaf(8 << 64)) == handles[2]
    assert slab.insert(make_leaf(9 << 64)) == handles[0]
    assert slab.free_list == []
    with pytest.raises(OverflowError):
        slab.insert(make_leaf(10 << 64))


def test_is_empty_tracks_live_nodes():
    slab = make_slab(4)
    assert slab.is_empty()
    a = slab.insert(make_leaf(1 << 64))
    b = slab.insert(InnerNode(1, 2, (0, 0)))
    assert not slab.is_empty()
    slab.remove(a)
    assert not slab.is_empty()
    slab.remove(b)
    assert slab.is_empty()


def test_set_overwrites_live_node():
    slab = make_slab(2)
    handle = slab.insert(make_leaf(1 << 64))
    inner = InnerNode(4, 1 << 64, (0, 1))
    slab.set(handle, inner)
    assert slab.get(handle) == inner


def test_set_rejects_free_slot():
    slab = make_slab(2)
    with pytest.raises(KeyError):
        slab.set(0, make_leaf(1 << 64))


def test_insert_rejects_non_node():
    slab = make_slab(1)
    with pytest.raises(TypeError):
        slab.insert(b"x" * NODE_SIZE)


def test_clear_resets_header():
    slab = make_slab(3)
    slab.insert(make_leaf(1 << 64))
    slab.root_node = 0
    slab.leaf_count = 1
    slab.clear()
    assert (slab.bump_index, slab.free_list_len, slab.leaf_count) == (0, 0, 0)
    assert slab.insert(make_leaf(2 << 64)) == 0


def test_header_fields_round_trip():
    slab = make_slab(1)
    slab.root_node = 17
    slab.leaf_count = 3
    assert slab.root_node == 17
    assert slab.leaf_count == 3
    assert bytes(slab)[20:24] == (17).to_bytes(4, "little")


def test_assert_minimum_capacity():
    slab = make_slab(5)
    slab.assert_minimum_capacity(2)
    assert slab.capacity() == 5
    with pytest.raises(DexError) as info:
        slab.assert_minimum_capacity(3)
    assert info.value.error_code is DexErrorCode.SLAB_TOO_SMALL


def test_leaf_quantity_is_mutable_and_stored_on_set():
    slab = make_slab(1)
    handle = slab.insert(make_leaf(1 << 64, quantity=10))
    leaf = slab.get(handle)
    leaf.quantity = 4
    slab.set(handle, leaf)
    assert slab.get(handle).quantity == 4