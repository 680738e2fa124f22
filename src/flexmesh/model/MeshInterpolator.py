# src/flexmesh/model/MeshInterpolator.py
import logging
from enum import Enum, Flag

import numpy as np

from .CircularValues import CircularValueType
from .Interpolator import DELETE_VALUE
from .InterpWeights import (InterpTriangle, InterpQuadrangle, InterpElmtNode, TriangleWeights,
                            element_node_weights, elmt_node_weights)
from .MeshSearcher import MeshSearcher, DEFAULT_SEARCH_TOLERANCE
from .NodeInterpolation import MeshNodeInterpolation

logger = logging.getLogger(__name__)


class MeshValueType(Flag):
    """Where mesh values live. Both can be set for sources providing both."""
    ELEMENTS = 1  # element center values
    NODES = 2  # node values


class ElmtValueInterpolationType(Enum):
    """How element center values are interpolated to a target point"""
    # element values are reconstructed at the nodes, and element and node
    # values are used together; the most accurate option
    ELMT_NODE_VALUES = "elmt_node_values"
    # element values are reconstructed at the nodes, and only node values
    # are used; clips extremes at element centers
    NODE_VALUES = "node_values"


class MeshInterpolator2D:
    """
    Interpolation of values defined on a 2D mesh to arbitrary target points.

    Targets are registered once, by `add_target`, `register_targets` or
    `set_target`, which locates each target in the source mesh and stores its
    weights. The weights are then applied to any number of value arrays
    (e.g. successive time steps) by `apply`.

    Targets outside the source mesh get the delete value.
    """

    def __init__(self, source_mesh, source_type: MeshValueType,
                 delete_value: float = DELETE_VALUE,
                 circular_type: CircularValueType = CircularValueType.NORMAL,
                 allow_extrapolation: bool = False,
                 element_value_interpolation: ElmtValueInterpolationType = ElmtValueInterpolationType.ELMT_NODE_VALUES,
                 smooth_delete_chop: bool = False,
                 search_tolerance: float = DEFAULT_SEARCH_TOLERANCE):
        """
        Args:
            source_mesh: Mesh the source values are defined on.
            source_type (MeshValueType): Source values are element and/or node values.
            delete_value (float): Value marking missing data.
            circular_type (CircularValueType): Angular value handling.
            allow_extrapolation (bool): Do not clamp node reconstruction weights.
            element_value_interpolation (ElmtValueInterpolationType): Element value scheme.
            smooth_delete_chop (bool): Smooth delete value chop in quadrangles.
            search_tolerance (float): Tolerance for locating targets in the source mesh.
        """
        if not isinstance(source_type, MeshValueType):
            raise TypeError(f"source_type must be a MeshValueType member, got {type(source_type)}")
        if not isinstance(circular_type, CircularValueType):
            raise TypeError(f"circular_type must be a CircularValueType member, got {type(circular_type)}")
        if not isinstance(element_value_interpolation, ElmtValueInterpolationType):
            raise TypeError(f"element_value_interpolation must be an ElmtValueInterpolationType member, "
                            f"got {type(element_value_interpolation)}")

        self.mesh = source_mesh
        self.source_type = source_type
        self.allow_extrapolation = allow_extrapolation
        self.element_value_interpolation = element_value_interpolation

        self._searcher = MeshSearcher(source_mesh, search_tolerance)
        self._searcher.setup_element_search()

        self._interp_t = InterpTriangle(delete_value, circular_type)
        self._interp_q = InterpQuadrangle(delete_value, smooth_delete_chop, circular_type)
        self._interp_en = InterpElmtNode(delete_value, circular_type)
        self._delete_value = delete_value
        self._circular_type = circular_type

        self._node_interpolator = None  # element -> node values in the source mesh
        self._node_values = None  # node values of the last element value interpolation

        # per target weights, None for targets not inside the source mesh
        self._targets_node = []
        self._targets_elmt_node = []

    @classmethod
    def from_config(cls, source_mesh, source_type, params):
        """Create an interpolator from the parameters of `get_parameters_from_config`."""
        return cls(source_mesh, source_type,
                   delete_value=params['delete_value'],
                   circular_type=params['circular_type'],
                   allow_extrapolation=params['allow_extrapolation'],
                   element_value_interpolation=params['element_value_interpolation'],
                   smooth_delete_chop=params['smooth_delete_chop'],
                   search_tolerance=params['search_tolerance'])

    # --- settings ---
    @property
    def delete_value(self):
        return self._delete_value

    @delete_value.setter
    def delete_value(self, value):
        self._delete_value = value
        if self._node_interpolator is not None:
            self._node_interpolator.delete_value = value
        self._interp_t.delete_value = value
        self._interp_q.delete_value = value
        self._interp_en.delete_value = value

    @property
    def circular_type(self):
        return self._circular_type

    @circular_type.setter
    def circular_type(self, value):
        self._circular_type = value
        if self._node_interpolator is not None:
            self._node_interpolator.circular_type = value
        self._interp_t.circular_type = value
        self._interp_q.circular_type = value
        self._interp_en.circular_type = value

    @property
    def smooth_delete_chop(self):
        return self._interp_q.smooth_delete_chop

    @smooth_delete_chop.setter
    def smooth_delete_chop(self, value):
        self._interp_q.smooth_delete_chop = value

    @property
    def node_values(self):
        """Node values reconstructed from the last element values interpolated."""
        return self._node_values

    @property
    def node_interpolator(self):
        return self._node_interpolator

    @property
    def number_of_targets(self):
        return max(len(self._targets_node), len(self._targets_elmt_node))

    @property
    def _node_value_interpolation(self):
        """True when targets need node based weights."""
        return (MeshValueType.NODES in self.source_type or
                MeshValueType.ELEMENTS in self.source_type and
                self.element_value_interpolation == ElmtValueInterpolationType.NODE_VALUES)

    @property
    def _elmt_node_value_interpolation(self):
        """True when targets need element+node weights."""
        return (MeshValueType.ELEMENTS in self.source_type and
                self.element_value_interpolation == ElmtValueInterpolationType.ELMT_NODE_VALUES)

    # --- setup ---
    def setup_elmt_to_node_interpolation(self):
        """Set up the reconstruction of node values from element values, once."""
        if self._node_interpolator is None:
            factory = MeshNodeInterpolation(self.mesh, self.allow_extrapolation)
            self._node_interpolator = factory.setup(self._delete_value, self._circular_type)
            self._node_values = np.zeros(self.mesh.number_of_nodes, dtype=np.float64)

    def set_target_size(self, target_size):
        """Clear the targets before adding `target_size` new ones with `add_target`."""
        if MeshValueType.ELEMENTS in self.source_type:
            self.setup_elmt_to_node_interpolation()
        self._targets_node = []
        self._targets_elmt_node = []
        logger.debug("Preparing %d targets", target_size)

    def add_target(self, x, y):
        """Add a target point and calculate its weights. Returns True if it is inside the source mesh."""
        element = self._searcher.find_element(x, y)

        if self._node_value_interpolation:
            if element is None:
                self._targets_node.append(None)
            else:
                self._targets_node.append((element, element_node_weights(self.mesh, element, x, y)))

        if self._elmt_node_value_interpolation:
            if element is None:
                self._targets_elmt_node.append(None)
            else:
                self._targets_elmt_node.append(elmt_node_weights(self.mesh, element, x, y))

        return element is not None

    def register_targets(self, points):
        """
        Register a batch of target points, replacing earlier targets.

        Args:
            points (array_like): Target coordinates, shape (n, 2).

        Returns:
            int: Number of targets not inside the source mesh.
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        self.set_target_size(len(points))
        not_found = 0
        for x, y in points:
            if not self.add_target(float(x), float(y)):
                not_found += 1
        if not_found:
            logger.info("%d of %d targets are outside the source mesh", not_found, len(points))
        return not_found

    def set_target(self, target_mesh, target_type: MeshValueType):
        """Use the element centers or the nodes of `target_mesh` as targets."""
        if target_type == MeshValueType.ELEMENTS:
            xc, yc, _ = target_mesh.element_centers
            points = np.column_stack((xc, yc))
        else:
            points = np.column_stack((target_mesh.x, target_mesh.y))
        return self.register_targets(points)

    # --- value application ---
    def apply(self, values, value_type: MeshValueType = None):
        """
        Interpolate source values to the registered targets.

        Args:
            values (array_like): Source element or node values.
            value_type (MeshValueType): Kind of `values`; defaults to element
                values when the source provides them, node values otherwise.

        Returns:
            np.ndarray: One value per target.
        """
        if value_type is None:
            value_type = (MeshValueType.ELEMENTS if MeshValueType.ELEMENTS in self.source_type
                          else MeshValueType.NODES)
        if value_type == MeshValueType.ELEMENTS:
            return self.interpolate_elmt_to_target(values)
        return self.interpolate_node_to_target(values)

    def interpolate_elmt_to_target(self, element_values, target=None):
        """Interpolate element center values to the targets."""
        if MeshValueType.ELEMENTS not in self.source_type:
            raise ValueError("Interpolator was not set up for element values")
        element_values = np.asarray(element_values, dtype=np.float64)
        if len(element_values) != self.mesh.number_of_elements:
            raise ValueError(f"Expected {self.mesh.number_of_elements} element values, got {len(element_values)}")
        self.setup_elmt_to_node_interpolation()

        # first reconstruct node values
        self._node_interpolator.interpolate(element_values, self._node_values)

        if self.element_value_interpolation == ElmtValueInterpolationType.NODE_VALUES:
            return self.interpolate_node_to_target(self._node_values, target)

        if target is None:
            target = np.empty(len(self._targets_elmt_node), dtype=np.float64)
        for i, weights in enumerate(self._targets_elmt_node):
            if weights is None:
                target[i] = self._delete_value
            else:
                target[i] = self._interp_en.get_value(weights, element_values, self._node_values)
        return target

    def interpolate_node_to_target(self, node_values, target=None):
        """Interpolate node values to the targets."""
        if not self._node_value_interpolation:
            raise ValueError("Interpolator was not set up for node values")
        node_values = np.asarray(node_values, dtype=np.float64)
        if len(node_values) != self.mesh.number_of_nodes:
            raise ValueError(f"Expected {self.mesh.number_of_nodes} node values, got {len(node_values)}")

        if target is None:
            target = np.empty(len(self._targets_node), dtype=np.float64)
        element_table = self.mesh.element_table
        for i, found in enumerate(self._targets_node):
            if found is None:
                target[i] = self._delete_value
                continue
            element, weights = found
            v = node_values[element_table[element]]
            if isinstance(weights, TriangleWeights):
                target[i] = self._interp_t.get_value(weights, v[0], v[1], v[2])
            else:
                target[i] = self._interp_q.get_value(weights, v[0], v[1], v[2], v[3])
        return target
