# src/flexmesh/model/MeshData.py
import logging
from enum import Enum

import numpy as np

from .MeshTopology import (build_faces, build_element_faces, build_element_centers,
                           build_node_elements, to_zero_based)

logger = logging.getLogger(__name__)

TRIANGLE_TYPE = 21  # default element type tag for triangles
QUADRILATERAL_TYPE = 25  # default element type tag for quadrilaterals


class MeshUnit(Enum):
    """Linear length unit of the z coordinate"""
    METER = "meter"
    MILLIMETER = "millimeter"
    CENTIMETER = "centimeter"
    KILOMETER = "kilometer"
    INCH = "inch"
    INCH_US = "inch_us"
    FEET = "feet"
    FEET_US = "feet_us"
    YARD = "yard"
    YARD_US = "yard_us"
    MILE = "mile"
    MILE_US = "mile_us"


class MeshNode:
    """Node of the object view of a mesh"""

    def __init__(self, id, index, x, y, z, code=0):
        self.id = id  # stable node id
        self.index = index  # zero-based position in the node list
        self.x = x
        self.y = y
        self.z = z
        self.code = code  # boundary code, 0 for interior nodes

        # --- derived, filled by MeshData.build_derived_data ---
        self.elements = []  # incident element indices
        self.faces = []  # incident face indices

    def __repr__(self):
        return f"MeshNode(id={self.id}, x={self.x:.2f}, y={self.y:.2f}, z={self.z:.2f}, code={self.code})"


class MeshElement:
    """Element (triangle or quadrilateral) of the object view of a mesh"""

    def __init__(self, id, index, element_type, nodes):
        self.id = id  # stable element id
        self.index = index  # zero-based position in the element list
        self.element_type = element_type  # integer type tag
        self.nodes = list(nodes)  # node indices, counter-clockwise

        # --- derived, filled by MeshData.build_derived_data ---
        self.xc = 0.0
        self.yc = 0.0
        self.zc = 0.0
        self.faces = []  # face indices, in face order

    def is_quadrilateral(self):
        return len(self.nodes) == 4

    def __repr__(self):
        return f"MeshElement(id={self.id}, type={self.element_type}, nodes={self.nodes})"


class MeshBase:
    """
    Capability interface shared by the mesh representations.

    Subclasses provide the raw data (node arrays and element table); the
    derived structures (faces, element centers, adjacency) are built lazily
    here, once, and cached.
    """

    def __init__(self, projection, z_unit=MeshUnit.METER):
        self.projection = projection  # coordinate reference string
        self.z_unit = z_unit

        self._faces = None
        self._node_faces = None
        self._element_faces = None
        self._node_elements = None
        self._element_centers = None
        self.warnings = []  # degraded conditions found while building derived data

    # --- raw data, provided by the representation ---
    @property
    def number_of_nodes(self) -> int:
        raise NotImplementedError

    @property
    def number_of_elements(self) -> int:
        raise NotImplementedError

    @property
    def x(self) -> np.ndarray:
        raise NotImplementedError

    @property
    def y(self) -> np.ndarray:
        raise NotImplementedError

    @property
    def z(self) -> np.ndarray:
        raise NotImplementedError

    @property
    def code(self) -> np.ndarray:
        raise NotImplementedError

    @property
    def node_ids(self) -> np.ndarray:
        raise NotImplementedError

    @property
    def element_ids(self) -> np.ndarray:
        raise NotImplementedError

    @property
    def element_types(self) -> np.ndarray:
        raise NotImplementedError

    @property
    def element_table(self):
        """list of int arrays, the (0-based) node indices of each element"""
        raise NotImplementedError

    def is_quadrilateral(self, element: int) -> bool:
        return len(self.element_table[element]) == 4

    # --- derived data ---
    def build_derived_data(self, strict=False):
        """
        Build faces, element centers and adjacency lists.

        Args:
            strict (bool): Raise InvalidMeshError on boundary faces with
                missing node codes instead of collecting warnings.

        Returns:
            list[str]: Warnings collected while building.
        """
        faces, node_faces, warnings = build_faces(self, strict=strict)
        self._faces = faces
        self._node_faces = node_faces
        self._element_faces = build_element_faces(faces, self.number_of_elements)
        self._node_elements = build_node_elements(self)
        if self._element_centers is None:
            self._element_centers = build_element_centers(self)
        self.warnings = warnings
        self._on_derived_data_built()
        return warnings

    def _on_derived_data_built(self):
        """Hook for representations keeping derived data on their own objects."""

    @property
    def faces(self):
        if self._faces is None:
            self.build_derived_data()
        return self._faces

    @property
    def node_faces(self):
        if self._node_faces is None:
            self.build_derived_data()
        return self._node_faces

    @property
    def element_faces(self):
        if self._element_faces is None:
            self.build_derived_data()
        return self._element_faces

    @property
    def node_elements(self):
        if self._node_elements is None:
            self._node_elements = build_node_elements(self)
        return self._node_elements

    @property
    def element_centers(self):
        """tuple (xc, yc, zc) of element center arrays"""
        if self._element_centers is None:
            self._element_centers = build_element_centers(self)
        return self._element_centers

    def element_coordinates(self, element):
        """Corner coordinates (px, py) of an element."""
        nodes = self.element_table[element]
        return self.x[nodes], self.y[nodes]

    def boundary_faces(self):
        return [face for face in self.faces if face.is_boundary_face()]


class MeshData(MeshBase):
    """Object view of a mesh: lists of MeshNode and MeshElement"""

    def __init__(self, projection, nodes, elements, z_unit=MeshUnit.METER):
        super().__init__(projection, z_unit)
        self.nodes = nodes  # list of MeshNode
        self.elements = elements  # list of MeshElement

        # array views of the (immutable) node and element data
        self._x = np.array([n.x for n in nodes], dtype=np.float64)
        self._y = np.array([n.y for n in nodes], dtype=np.float64)
        self._z = np.array([n.z for n in nodes], dtype=np.float64)
        self._code = np.array([n.code for n in nodes], dtype=np.int64)
        self._element_table = [np.asarray(e.nodes, dtype=np.int64) for e in elements]

    @property
    def number_of_nodes(self):
        return len(self.nodes)

    @property
    def number_of_elements(self):
        return len(self.elements)

    @property
    def x(self):
        return self._x

    @property
    def y(self):
        return self._y

    @property
    def z(self):
        return self._z

    @property
    def code(self):
        return self._code

    @property
    def node_ids(self):
        return np.array([n.id for n in self.nodes], dtype=np.int64)

    @property
    def element_ids(self):
        return np.array([e.id for e in self.elements], dtype=np.int64)

    @property
    def element_types(self):
        return np.array([e.element_type for e in self.elements], dtype=np.int64)

    @property
    def element_table(self):
        return self._element_table

    def _on_derived_data_built(self):
        xc, yc, zc = self._element_centers
        for element in self.elements:
            i = element.index
            element.xc, element.yc, element.zc = float(xc[i]), float(yc[i]), float(zc[i])
            element.faces = list(self._element_faces[i])
        for node in self.nodes:
            node.elements = list(self._node_elements[node.index])
            node.faces = list(self._node_faces[node.index])

    def to_smesh(self):
        """Struct-of-arrays copy of this mesh."""
        return SMeshData(self.projection, self.node_ids, self.x.copy(), self.y.copy(), self.z.copy(),
                         self.code.copy(), self.element_ids, self.element_types,
                         [nodes.copy() for nodes in self._element_table], self.z_unit)

    def __repr__(self):
        return f"MeshData(nodes={self.number_of_nodes}, elements={self.number_of_elements})"


class SMeshData(MeshBase):
    """Struct-of-arrays view of a mesh"""

    def __init__(self, projection, node_ids, x, y, z, code, element_ids, element_types, element_table,
                 z_unit=MeshUnit.METER):
        super().__init__(projection, z_unit)
        self._node_ids = np.asarray(node_ids, dtype=np.int64)
        self._x = np.asarray(x, dtype=np.float64)
        self._y = np.asarray(y, dtype=np.float64)
        self._z = np.asarray(z, dtype=np.float64)
        self._code = np.asarray(code, dtype=np.int64)
        self._element_ids = np.asarray(element_ids, dtype=np.int64)
        self._element_types = np.asarray(element_types, dtype=np.int64)
        self._element_table = [np.asarray(nodes, dtype=np.int64) for nodes in element_table]

    @property
    def number_of_nodes(self):
        return len(self._x)

    @property
    def number_of_elements(self):
        return len(self._element_table)

    @property
    def x(self):
        return self._x

    @property
    def y(self):
        return self._y

    @property
    def z(self):
        return self._z

    @property
    def code(self):
        return self._code

    @property
    def node_ids(self):
        return self._node_ids

    @property
    def element_ids(self):
        return self._element_ids

    @property
    def element_types(self):
        return self._element_types

    @property
    def element_table(self):
        return self._element_table

    def to_mesh_data(self):
        """Object view copy of this mesh."""
        return create_mesh(self.projection, self._node_ids, self._x, self._y, self._z, self._code,
                           self._element_ids, self._element_types, self._element_table, self.z_unit)

    def __repr__(self):
        return f"SMeshData(nodes={self.number_of_nodes}, elements={self.number_of_elements})"


def _validate_mesh_input(node_ids, x, y, z, code, element_ids, element_types, connectivity):
    """Eager input validation; raises ValueError."""
    num_nodes = len(x)
    for name, arr in (("node_ids", node_ids), ("y", y), ("z", z), ("code", code)):
        if len(arr) != num_nodes:
            raise ValueError(f"Node array '{name}' has length {len(arr)}, expected {num_nodes}")

    num_elements = len(connectivity)
    if len(element_ids) != num_elements:
        raise ValueError(f"Element array 'element_ids' has length {len(element_ids)}, expected {num_elements}")
    if element_types is not None and len(element_types) != num_elements:
        raise ValueError(f"Element array 'element_types' has length {len(element_types)}, expected {num_elements}")

    for ielmt, nodes in enumerate(connectivity):
        if len(nodes) not in (3, 4):
            raise ValueError(f"Element {ielmt} has {len(nodes)} nodes, expected 3 or 4")
        for node in nodes:
            if node < 0 or node >= num_nodes:
                raise ValueError(f"Element {ielmt} references node {node}, valid range is [0, {num_nodes - 1}]")


def _prepare_input(node_ids, x, y, z, code, element_ids, element_types, connectivity, one_based):
    if one_based:
        connectivity = to_zero_based(connectivity)
    connectivity = [np.asarray(nodes, dtype=np.int64) for nodes in connectivity]
    _validate_mesh_input(node_ids, x, y, z, code, element_ids, element_types, connectivity)
    if element_types is None:
        element_types = [QUADRILATERAL_TYPE if len(nodes) == 4 else TRIANGLE_TYPE for nodes in connectivity]
    return connectivity, element_types


def create_mesh(projection, node_ids, x, y, z, code, element_ids, element_types, connectivity,
                z_unit=MeshUnit.METER, one_based=False):
    """
    Create a MeshData object from node and element arrays.

    Args:
        projection (str): Coordinate reference string.
        node_ids, x, y, z, code: Node arrays, all of equal length.
        element_ids: Element ids.
        element_types: Element type tags, or None to derive them from the node count.
        connectivity: Element table, one sequence of node indices per element.
        z_unit (MeshUnit): Unit of z.
        one_based (bool): True if connectivity holds 1-based node numbers.

    Raises:
        ValueError: Mismatched array lengths, out-of-range node references
            or node counts outside {3, 4}.
    """
    connectivity, element_types = _prepare_input(node_ids, x, y, z, code, element_ids, element_types,
                                                 connectivity, one_based)

    nodes = [MeshNode(int(node_ids[i]), i, float(x[i]), float(y[i]), float(z[i]), int(code[i]))
             for i in range(len(x))]
    elements = [MeshElement(int(element_ids[i]), i, int(element_types[i]), [int(n) for n in connectivity[i]])
                for i in range(len(connectivity))]
    mesh = MeshData(projection, nodes, elements, z_unit)
    logger.debug("Created %r", mesh)
    return mesh


def create_smesh(projection, node_ids, x, y, z, code, element_ids, element_types, connectivity,
                 z_unit=MeshUnit.METER, one_based=False):
    """Create an SMeshData object; arguments as for :func:`create_mesh`."""
    connectivity, element_types = _prepare_input(node_ids, x, y, z, code, element_ids, element_types,
                                                 connectivity, one_based)
    mesh = SMeshData(projection, node_ids, x, y, z, code, element_ids, element_types, connectivity, z_unit)
    logger.debug("Created %r", mesh)
    return mesh
