"""Crit-bit tree of resting orders, stored in a slab of fixed-size nodes."""

from __future__ import annotations

from dexkit.slab import InnerNode, LeafNode, Node, NodeTag, Slab

_U128_MAX = (1 << 128) - 1
_TOP_BIT = 1 << 127


def _leading_zeros(value: int) -> int:
    return 128 - value.bit_length()


def _prefix_len(node: Node) -> int:
    return node.prefix_len if isinstance(node, InnerNode) else 128


def _prefix_mask(prefix_len: int) -> int:
    """Mask selecting the top `prefix_len` bits of a 128-bit key."""
    return _U128_MAX ^ ((1 << (128 - prefix_len)) - 1)


class SlabOutOfSpace(Exception):
    """Raised when the slab has no room for the nodes an insert needs."""


class CritbitSlab(Slab):
    """A slab holding a crit-bit tree of leaves ordered by their 128-bit keys."""

    def __len__(self) -> int:
        return self.leaf_count

    def _node(self, handle: int) -> Node:
        node = self.get(handle)
        if node is None:
            raise ValueError(f"handle {handle} does not refer to a live node")
        return node

    def root(self) -> int | None:
        """Handle of the root node, or None when the tree is empty."""
        if self.leaf_count == 0:
            return None
        return self.root_node

    def _find_min_max(self, find_max: bool) -> int | None:
        handle = self.root()
        if handle is None:
            return None
        while isinstance(node := self._node(handle), InnerNode):
            handle = node.children[int(find_max)]
        return handle

    def find_min(self) -> int | None:
        """Handle of the leaf with the smallest key."""
        return self._find_min_max(False)

    def find_max(self) -> int | None:
        """Handle of the leaf with the largest key."""
        return self._find_min_max(True)

    def find_by_key(self, search_key: int) -> int | None:
        """Handle of the leaf holding `search_key`, or None."""
        handle = self.root()
        if handle is None:
            return None
        while True:
            node = self._node(handle)
            if _leading_zeros(search_key ^ node.key) < _prefix_len(node):
                return None
            if isinstance(node, LeafNode):
                return handle
            handle = node.walk_down(search_key)[0]

    def insert_leaf(self, new_leaf: LeafNode) -> tuple[int, LeafNode | None]:
        """Insert a leaf; return its handle and the leaf it replaced, if any."""
        root = self.root()
        if root is None:
            try:
                handle = self.insert(new_leaf)
            except OverflowError:
                raise SlabOutOfSpace from None
            self.root_node = handle
            self.leaf_count = 1
            return handle, None

        while True:
            root_contents = self._node(root)
            if isinstance(root_contents, LeafNode) and root_contents.key == new_leaf.key:
                self.set(root, new_leaf)
                return root, root_contents

            shared_prefix_len = _leading_zeros(root_contents.key ^ new_leaf.key)
            if (
                isinstance(root_contents, InnerNode)
                and shared_prefix_len >= root_contents.prefix_len
            ):
                root = root_contents.walk_down(new_leaf.key)[0]
                continue

            # Turn the node in place into the common ancestor of both.
            crit_bit_mask = _TOP_BIT >> shared_prefix_len
            new_leaf_crit_bit = (crit_bit_mask & new_leaf.key) != 0

            try:
                new_leaf_handle = self.insert(new_leaf)
            except OverflowError:
                raise SlabOutOfSpace from None
            try:
                moved_root_handle = self.insert(root_contents)
            except OverflowError:
                self.remove(new_leaf_handle)
                raise SlabOutOfSpace from None

            children = [0, 0]
            children[int(new_leaf_crit_bit)] = new_leaf_handle
            children[int(not new_leaf_crit_bit)] = moved_root_handle
            self.set(root, InnerNode(shared_prefix_len, new_leaf.key, tuple(children)))
            self.leaf_count += 1
            return new_leaf_handle, None

    def remove_by_key(self, search_key: int) -> LeafNode | None:
        """Remove and return the leaf holding `search_key`, or None if absent."""
        parent = self.root()
        if parent is None:
            return None
        node = self._node(parent)
        if isinstance(node, LeafNode):
            if node.key != search_key:
                return None
            if self.leaf_count != 1:
                raise ValueError("tree is corrupt: leaf root with several leaves")
            self.root_node = 0
            self.leaf_count = 0
            self.remove(parent)
            return node

        child, crit_bit = node.walk_down(search_key)
        while True:
            node = self._node(child)
            if isinstance(node, InnerNode):
                parent = child
                child, crit_bit = node.walk_down(search_key)
                continue
            if node.key != search_key:
                return None
            break

        # Replace the parent with the sibling of the removed leaf.
        parent_node = self._node(parent)
        other_child = parent_node.children[int(not crit_bit)]
        other_contents = self.remove(other_child)
        self.set(parent, other_contents)
        self.leaf_count -= 1
        return self.remove(child)

    def remove_min(self) -> LeafNode | None:
        """Remove and return the leaf with the smallest key."""
        handle = self.find_min()
        if handle is None:
            return None
        return self.remove_by_key(self._node(handle).key)

    def remove_max(self) -> LeafNode | None:
        """Remove and return the leaf with the largest key."""
        handle = self.find_max()
        if handle is None:
            return None
        return self.remove_by_key(self._node(handle).key)

    def traverse(self) -> list[LeafNode]:
        """All leaves in ascending key order."""
        leaves: list[LeafNode] = []
        root = self.root()
        if root is not None:
            stack = [root]
            while stack:
                node = self._node(stack.pop())
                if isinstance(node, LeafNode):
                    leaves.append(node)
                else:
                    stack.extend(reversed(node.children))
        if len(leaves) != self.leaf_count:
            raise ValueError(
                f"tree holds {len(leaves)} leaves but the header counts {self.leaf_count}"
            )
        return leaves

    def check_invariants(self) -> None:
        """Raise ValueError if the tree or the free list is inconsistent."""
        count = 0
        root = self.root()
        if root is not None:
            count = 1
            node = self._node(root)
            stack: list[tuple[int, int, int, bool]] = []
            if isinstance(node, InnerNode):
                stack.append((node.children[1], node.prefix_len, node.key, True))
                stack.append((node.children[0], node.prefix_len, node.key, False))
            while stack:
                handle, last_prefix_len, last_prefix, last_crit_bit = stack.pop()
                count += 1
                node = self.get(handle)
                if node is None:
                    raise ValueError(f"child handle {handle} is not a live node")
                prefix_len = _prefix_len(node)
                if prefix_len <= last_prefix_len:
                    raise ValueError(f"node {handle} does not lengthen the prefix")
                crit_bit = (node.key & (_TOP_BIT >> last_prefix_len)) != 0
                if crit_bit != last_crit_bit:
                    raise ValueError(f"node {handle} sits on the wrong side")
                mask = _prefix_mask(last_prefix_len)
                if last_prefix & mask != node.key & mask:
                    raise ValueError(f"node {handle} does not share its parent's prefix")
                if isinstance(node, InnerNode):
                    stack.append((node.children[1], prefix_len, node.key, True))
                    stack.append((node.children[0], prefix_len, node.key, False))

        if count + self.free_list_len != self.bump_index:
            raise ValueError("live and free nodes do not add up to the allocated count")

        try:
            entries = self.free_list
        except ValueError as exc:
            raise ValueError(f"free list holds a node with a bad tag: {exc}") from None
        for position, (handle, tag) in enumerate(entries):
            expected = (
                NodeTag.LAST_FREE_NODE
                if position == len(entries) - 1
                else NodeTag.FREE_NODE
            )
            if tag != expected:
                raise ValueError(f"free node {handle} has tag {tag.name}")