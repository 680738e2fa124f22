# src/flexmesh/model/MeshSearcher.py
"""
Spatial index over mesh elements: point location and polygon overlap.
"""
import logging
from enum import Enum

import numpy as np
import shapely
from shapely.geometry import Polygon, MultiPolygon, box

from .Geometry import is_point_inside_polygon, envelope

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_TOLERANCE = 1e-3


class WeightType(Enum):
    """How element overlap weights are reported"""
    WEIGHT = "weight"  # intersection area normalised over all elements, sums to 1
    AREA = "area"  # intersection area
    FRACTION = "fraction"  # intersection area / element area


class ElementWeight:
    __slots__ = ("element_index", "weight")

    def __init__(self, element_index, weight):
        self.element_index = element_index
        self.weight = weight

    def __repr__(self):
        return f"ElementWeight(element={self.element_index}, weight={self.weight:.6g})"


class MeshSearcher:
    """Bounding-box index over element envelopes"""

    def __init__(self, mesh, tolerance: float = DEFAULT_SEARCH_TOLERANCE):
        """
        Args:
            mesh: Mesh implementing the capability interface.
            tolerance (float): Distance a point may lie outside an element and
                still be located in it, when no element contains it exactly.
                0 disables the second, relaxed pass.
        """
        self.mesh = mesh
        self.tolerance = tolerance
        self._tree = None
        self._envelopes = None

    def setup_element_search(self):
        """Build the spatial index. Called on first query if not done explicitly."""
        mesh = self.mesh
        envelopes = np.zeros((mesh.number_of_elements, 4), dtype=np.float64)
        for ielmt in range(mesh.number_of_elements):
            px, py = mesh.element_coordinates(ielmt)
            envelopes[ielmt, :] = envelope(px, py)
        self._envelopes = envelopes
        boxes = shapely.box(envelopes[:, 0], envelopes[:, 1], envelopes[:, 2], envelopes[:, 3])
        self._tree = shapely.STRtree(boxes)
        logger.debug("Element search tree built over %d elements", mesh.number_of_elements)

    def _ensure_tree(self):
        if self._tree is None:
            self.setup_element_search()

    def query_elements(self, bounds):
        """
        Elements whose envelope intersects the given bounds.

        Args:
            bounds: (minx, miny, maxx, maxy)

        Returns:
            list[int]: Candidate element indices, ascending.
        """
        self._ensure_tree()
        candidates = self._tree.query(box(*bounds))
        return sorted(int(i) for i in candidates)

    def element_includes(self, element, x, y, tolerance=0.0):
        px, py = self.mesh.element_coordinates(element)
        return is_point_inside_polygon(x, y, px, py, tolerance)

    def find_element(self, x, y):
        """
        Index of the element containing (x, y), or None.

        Candidates are tested in ascending element index; a point on an edge
        or vertex shared by several elements is located in the first of them.
        """
        tol = max(self.tolerance, 0.0)
        candidates = self.query_elements((x - tol, y - tol, x + tol, y + tol))

        for element in candidates:
            if self.element_includes(element, x, y):
                return element

        if self.tolerance > 0:
            for element in candidates:
                if self.element_includes(element, x, y, self.tolerance):
                    return element
        return None

    def find_elements(self, geometry):
        """Indices of elements actually intersecting a shapely geometry."""
        result = []
        for element in self.query_elements(geometry.bounds):
            if element_polygon(self.mesh, element).intersects(geometry):
                result.append(element)
        return result

    def find_elements_and_weights(self, polygon):
        """
        Elements overlapping a polygon, with overlap weights normalised to sum to 1.

        Returns:
            list[tuple[int, float]]: (element index, weight), empty when no overlap.
        """
        calculator = MeshIntersectionCalculator(self.mesh, self)
        weights = calculator.calculate_weights(polygon)
        if weights is None:
            return []
        return [(w.element_index, w.weight) for w in weights]


def element_polygon(mesh, element):
    px, py = mesh.element_coordinates(element)
    return Polygon(list(zip(px, py)))


class MeshIntersectionCalculator:
    """Overlap weights of mesh elements with a polygon"""

    def __init__(self, mesh, searcher=None, weight_type=WeightType.WEIGHT):
        if not isinstance(weight_type, WeightType):
            raise TypeError(f"weight_type must be a WeightType member, got {type(weight_type)}")
        self.mesh = mesh
        self.searcher = searcher
        self.weight_type = weight_type
        self.intersection_area = 0.0  # total intersecting area of the last calculation

    def init_searcher(self):
        if self.searcher is None:
            self.searcher = MeshSearcher(self.mesh)
            self.searcher.setup_element_search()

    def calculate_weights(self, polygon, elements=None):
        """
        Weights of all elements overlapping `polygon`.

        Args:
            polygon: shapely Polygon or MultiPolygon.
            elements: Candidate element indices; by default found through the
                searcher, or all elements when there is no searcher.

        Returns:
            list[ElementWeight] or None when nothing overlaps.

        Raises:
            TypeError: For other geometry types.
        """
        if not isinstance(polygon, (Polygon, MultiPolygon)):
            raise TypeError(f"Cannot calculate weights for geometry of type: {polygon.geom_type}")

        minx, miny, maxx, maxy = polygon.bounds
        if elements is None:
            if self.searcher is not None:
                elements = self.searcher.query_elements(polygon.bounds)
            else:
                elements = range(self.mesh.number_of_elements)

        result = []
        total_area = 0.0
        for element in elements:
            px, py = self.mesh.element_coordinates(element)
            eminx, eminy, emaxx, emaxy = envelope(px, py)
            # fast lane: no overlap of the envelopes
            if eminx > maxx or emaxx < minx or eminy > maxy or emaxy < miny:
                continue

            elmt_poly = Polygon(list(zip(px, py)))
            intersection = elmt_poly.intersection(polygon)
            if intersection.is_empty:
                continue
            area = intersection.area
            total_area += area
            if self.weight_type == WeightType.FRACTION:
                result.append(ElementWeight(int(element), area / elmt_poly.area))
            else:
                result.append(ElementWeight(int(element), area))

        self.intersection_area = total_area

        if not result or total_area == 0:
            return None

        if self.weight_type == WeightType.WEIGHT:
            for elmt_weight in result:
                elmt_weight.weight /= total_area
        return result
