# src/flexmesh/model/MeshTopology.py
"""
Derivation of mesh topology from node/element connectivity.

Faces are directed half-edges. Every pair of consecutive nodes of an element
produces a face, except when the reverse face has already been created by the
neighbouring element, in which case that face gets the element as its right
element. The functions here work on any object implementing the mesh
capability interface of :class:`flexmesh.model.MeshData.MeshBase`.
"""
import logging

import numpy as np

logger = logging.getLogger(__name__)

LAND_CODE = 1  # reserved boundary code for land/closed boundaries


class InvalidMeshError(ValueError):
    """Structural error in the mesh connectivity, cannot be recovered locally."""


class MeshFace:
    """Directed face (half-edge) between two nodes"""

    __slots__ = ("from_node", "to_node", "left_element", "right_element", "code")

    def __init__(self, from_node, to_node, left_element, right_element=None, code=0):
        self.from_node = from_node  # node index
        self.to_node = to_node  # node index
        self.left_element = left_element  # element index, always set
        self.right_element = right_element  # element index, None on the boundary
        self.code = code  # 0 for internal faces

    def is_boundary_face(self):
        return self.right_element is None

    def other_element(self, element):
        """Element on the other side of the face, seen from `element` (None on the boundary)."""
        if self.left_element == element:
            return self.right_element
        return self.left_element

    def __repr__(self):
        return (f"MeshFace({self.from_node}->{self.to_node}, left={self.left_element}, "
                f"right={self.right_element}, code={self.code})")


def _add_face(faces, node_faces, element, from_node, to_node):
    """Create the face (from_node -> to_node) or complete its reverse face."""
    # A face from -> to already registered means the directed edge is used twice
    for iface in node_faces[from_node]:
        face = faces[iface]
        if face.from_node == from_node and face.to_node == to_node:
            raise InvalidMeshError(
                f"Invalid mesh: Double face, from node {from_node + 1} to node {to_node + 1}. "
                f"Hint: Probably too many nodes was merged into one of the two face nodes. "
                f"Try decrease node merge tolerance value")

    # Reverse face to -> from, created by the neighbouring element
    for iface in node_faces[to_node]:
        face = faces[iface]
        if face.from_node == to_node and face.to_node == from_node:
            if face.right_element is not None:
                raise InvalidMeshError(
                    f"Invalid mesh: Double face, from node {from_node + 1} to node {to_node + 1}, "
                    f"shared by elements {face.left_element + 1}, {face.right_element + 1} "
                    f"and {element + 1}")
            face.right_element = element
            return

    faces.append(MeshFace(from_node, to_node, element))
    iface = len(faces) - 1
    node_faces[from_node].append(iface)
    node_faces[to_node].append(iface)


def _missing_code_message(face, node):
    return (f"Boundary face, from node {face.from_node + 1} to node {face.to_node + 1} "
            f"is missing a boundary code on node {node + 1}. "
            f"Hint: Modify boundary code for node {node + 1}")


def set_boundary_codes(faces, node_codes, strict=False):
    """
    Assign the boundary code of every boundary face.

    A face touching a land node (code 1) is a land face, otherwise it takes
    the code of its to-node. A boundary face touching a node with code 0 is
    reported and classified as land.

    Returns:
        list[str]: Warning messages, one per face with a missing node code.

    Raises:
        InvalidMeshError: In strict mode, on the first missing code.
    """
    warnings = []
    for face in faces:
        if face.right_element is not None:
            continue  # internal face

        from_code = int(node_codes[face.from_node])
        to_code = int(node_codes[face.to_node])

        missing = [n for n, c in ((face.from_node, from_code), (face.to_node, to_code)) if c == 0]
        if missing:
            message = _missing_code_message(face, missing[0])
            if strict:
                raise InvalidMeshError(f"Invalid mesh: {message}")
            warnings.append(message)
            face.code = LAND_CODE
            continue

        if from_code == LAND_CODE or to_code == LAND_CODE:
            face.code = LAND_CODE
        else:
            face.code = to_code

    if warnings:
        logger.warning("%d boundary face(s) with missing node boundary code, set to land code. First: %s",
                       len(warnings), warnings[0])
    return warnings


def build_faces(mesh, strict=False):
    """
    Build the face (half-edge) list of a mesh.

    Args:
        mesh: Mesh implementing the capability interface.
        strict (bool): Raise on missing boundary codes instead of warning.

    Returns:
        tuple: (faces, node_faces, warnings) where node_faces[i] lists the
        indices of faces having node i as from- or to-node.

    Raises:
        InvalidMeshError: Duplicate directed face, or element with a node
            count outside {3, 4}.
    """
    faces = []
    node_faces = [[] for _ in range(mesh.number_of_nodes)]

    for ielmt, elmt_nodes in enumerate(mesh.element_table):
        num_nodes = len(elmt_nodes)
        if num_nodes not in (3, 4):
            raise InvalidMeshError(f"Invalid mesh: element {ielmt + 1} has {num_nodes} nodes, expected 3 or 4")
        for j in range(num_nodes):
            from_node = int(elmt_nodes[j])
            to_node = int(elmt_nodes[(j + 1) % num_nodes])
            _add_face(faces, node_faces, ielmt, from_node, to_node)

    warnings = set_boundary_codes(faces, mesh.code, strict=strict)
    logger.debug("Built %d faces for %d elements", len(faces), mesh.number_of_elements)
    return faces, node_faces, warnings


def build_element_faces(faces, number_of_elements):
    """Element -> face indices; each face is added to its left element, then to its right element."""
    element_faces = [[] for _ in range(number_of_elements)]
    for iface, face in enumerate(faces):
        element_faces[face.left_element].append(iface)
        if face.right_element is not None:
            element_faces[face.right_element].append(iface)
    return element_faces


def build_element_centers(mesh):
    """Element centers (xc, yc, zc) as the mean of the element node coordinates."""
    x, y, z = mesh.x, mesh.y, mesh.z
    num_elements = mesh.number_of_elements
    xc = np.zeros(num_elements, dtype=np.float64)
    yc = np.zeros(num_elements, dtype=np.float64)
    zc = np.zeros(num_elements, dtype=np.float64)
    for ielmt, elmt_nodes in enumerate(mesh.element_table):
        xc[ielmt] = np.mean(x[elmt_nodes])
        yc[ielmt] = np.mean(y[elmt_nodes])
        zc[ielmt] = np.mean(z[elmt_nodes])
    return xc, yc, zc


def build_node_elements(mesh):
    """Node -> incident element indices, in element order."""
    node_elements = [[] for _ in range(mesh.number_of_nodes)]
    for ielmt, elmt_nodes in enumerate(mesh.element_table):
        for node in elmt_nodes:
            node_elements[int(node)].append(ielmt)
    return node_elements


def to_zero_based(connectivity):
    """Convert a 1-based element table to 0-based."""
    return [np.asarray(nodes, dtype=np.int64) - 1 for nodes in connectivity]


def to_one_based(connectivity):
    """Convert a 0-based element table to 1-based."""
    return [np.asarray(nodes, dtype=np.int64) + 1 for nodes in connectivity]
