# src/flexmesh/model/NodeInterpolation.py
"""
Reconstruction of node values from element center values.

Uses the pseudo-Laplacian procedure of Holmes and Connell (1989), as
described by Sadek (2004), which reproduces a planar field exactly at
interior nodes. Where the least-squares system is degenerate, inverse
distance weighting is used instead.
"""
import logging
import math

from .Interpolator import Interpolator, InterpData, DELETE_VALUE
from .CircularValues import CircularValueType

logger = logging.getLogger(__name__)


class MeshNodeInterpolation:
    """Sets up an Interpolator from element center values to node values."""

    def __init__(self, mesh, allow_extrapolation: bool = False):
        self.mesh = mesh
        self.allow_extrapolation = allow_extrapolation  # do not clamp weights to [0, 2]
        self.node_interpolator = None
        self.number_of_fallbacks = 0  # nodes using inverse distance weights

    def setup(self, delete_value=DELETE_VALUE, circular_type=CircularValueType.NORMAL):
        """Calculate the weights for all nodes and create the node interpolator."""
        mesh = self.mesh
        xc, yc, _ = mesh.element_centers
        node_elements = mesh.node_elements
        x, y = mesh.x, mesh.y

        self.number_of_fallbacks = 0
        interp_data = [self.setup_node_interpolation(x[i], y[i], node_elements[i], xc, yc)
                       for i in range(mesh.number_of_nodes)]
        if self.number_of_fallbacks:
            logger.debug("%d of %d nodes use inverse distance weights", self.number_of_fallbacks,
                         mesh.number_of_nodes)

        self.node_interpolator = Interpolator(interp_data, mesh.number_of_elements,
                                              delete_value=delete_value, circular_type=circular_type)
        return self.node_interpolator

    def setup_node_interpolation(self, node_x, node_y, elements, xc, yc):
        """
        Weights of the elements around one node.

        Args:
            node_x, node_y: Node coordinates.
            elements (list[int]): Elements incident to the node.
            xc, yc: Element center coordinates.

        Returns:
            InterpData: Element indices and weights summing to 1 (all zero if
            the node has no usable neighbour).
        """
        num = len(elements)
        dx = [xc[e] - node_x for e in elements]
        dy = [yc[e] - node_y for e in elements]
        weights = [0.0] * num
        omega_tot = 0.0

        if num >= 3:
            ixx = sum(d * d for d in dx)
            iyy = sum(d * d for d in dy)
            ixy = sum(a * b for a, b in zip(dx, dy))
            rx = sum(dx)
            ry = sum(dy)

            det = ixx * iyy - ixy * ixy
            if det > 1e-10 * (ixx * iyy):
                # standard case, pseudo-Laplacian
                lambda_x = (ixy * ry - iyy * rx) / det
                lambda_y = (ixy * rx - ixx * ry) / det
                for i in range(num):
                    omega = 1.0 + lambda_x * dx[i] + lambda_y * dy[i]
                    if not self.allow_extrapolation:
                        omega = min(max(omega, 0.0), 2.0)
                    weights[i] = omega
                    omega_tot += omega

        if omega_tot <= 1e-10:
            # pseudo-Laplacian not usable, inverse distance instead
            self.number_of_fallbacks += 1
            omega_tot = 0.0
            for i in range(num):
                dist = math.sqrt(dx[i] * dx[i] + dy[i] * dy[i])
                omega = 1.0 / dist if dist > 0 else 0.0
                weights[i] = omega
                omega_tot += omega

        if omega_tot != 0:
            weights = [w / omega_tot for w in weights]
        else:
            weights = [0.0] * num

        return InterpData(elements, weights)
