"""
Point quadtree used as the spatial index for heatmap tiles.

Only the range query matters to the renderer: `search(bounds)` returns every
stored point whose coordinates lie inside `bounds` (edges inclusive).
"""

from heatmap_tiles.geometry import Bounds

MAX_ELEMENTS = 50
MAX_DEPTH = 40


class PointQuadTree:
    def __init__(self, bounds, depth=0):
        self.bounds = bounds
        self._depth = depth
        self._items = []
        self._children = None

    def add(self, point):
        """Insert a point. Points outside the tree bounds are ignored."""
        if not self.bounds.contains(point.x, point.y):
            return False
        self._insert(point)
        return True

    def _insert(self, point):
        node = self
        while node._children is not None:
            node = node._child_for(point)

        node._items.append(point)
        if len(node._items) > MAX_ELEMENTS and node._depth < MAX_DEPTH:
            node._split()

    def _child_for(self, point):
        b = self.bounds
        if point.y < b.mid_y:
            return self._children[0] if point.x < b.mid_x else self._children[1]
        return self._children[2] if point.x < b.mid_x else self._children[3]

    def _split(self):
        b = self.bounds
        depth = self._depth + 1
        self._children = [
            PointQuadTree(Bounds(b.min_x, b.mid_x, b.min_y, b.mid_y), depth),
            PointQuadTree(Bounds(b.mid_x, b.max_x, b.min_y, b.mid_y), depth),
            PointQuadTree(Bounds(b.min_x, b.mid_x, b.mid_y, b.max_y), depth),
            PointQuadTree(Bounds(b.mid_x, b.max_x, b.mid_y, b.max_y), depth),
        ]
        items, self._items = self._items, []
        for item in items:
            self._child_for(item)._insert(item)

    def search(self, search_bounds):
        """Return the points inside `search_bounds`."""
        results = []
        stack = [self]
        while stack:
            node = stack.pop()
            if not node.bounds.intersects(search_bounds):
                continue
            if node._children is not None:
                stack.extend(node._children)
            elif search_bounds.contains_bounds(node.bounds):
                results.extend(node._items)
            else:
                results.extend(p for p in node._items
                               if search_bounds.contains(p.x, p.y))
        return results
