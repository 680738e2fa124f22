# src/flexmesh/model/MeshBoundary.py
"""
Boundary tracing: boundary faces are grouped by code and stitched into
connected directed segments (open chains or closed loops), and closed loops
can be assembled into boundary polygons, one per connected sub-mesh.
"""
import logging
from collections import deque

from shapely.geometry import LinearRing, Polygon, MultiPolygon

from .MeshTopology import InvalidMeshError

logger = logging.getLogger(__name__)


class MeshBoundary:
    """Boundary segments sharing one boundary code"""

    def __init__(self, code):
        self.code = code
        self.segments = []  # list of list of MeshFace, each a connected chain

    def __repr__(self):
        return f"MeshBoundary(code={self.code}, segments={[len(s) for s in self.segments]})"


class SubMeshInfo:
    def __init__(self, sub_mesh_id, number_of_elements):
        self.sub_mesh_id = sub_mesh_id  # 1-based
        self.number_of_elements = number_of_elements

    def __repr__(self):
        return f"SubMeshInfo(id={self.sub_mesh_id}, elements={self.number_of_elements})"


class SubMeshes:
    """Connected parts of a mesh"""

    def __init__(self, element_sub_mesh, sub_mesh_infos):
        self.element_sub_mesh = element_sub_mesh  # per element sub-mesh id, starting at 1
        self.sub_mesh_infos = sub_mesh_infos  # largest sub-mesh first

    @property
    def number_of_sub_meshes(self):
        return len(self.sub_mesh_infos)


def extract_boundary_faces(faces):
    """Faces without a right element."""
    return [face for face in faces if face.is_boundary_face()]


class _FromNodeLookup:
    """
    Lookup of boundary faces by their from-node.

    Most from-nodes start exactly one boundary face; that face is returned on
    every lookup. Nodes where the boundary touches itself start several
    faces; those are handed out one at a time, in face order.
    """

    def __init__(self, faces):
        self._single = {}  # from-node -> face position
        self._multiple = {}  # from-node -> deque of face positions
        for iface, face in enumerate(faces):
            node = face.from_node
            if node in self._multiple:
                self._multiple[node].append(iface)
            elif node in self._single:
                self._multiple[node] = deque([self._single.pop(node), iface])
            else:
                self._single[node] = iface

    def next_face(self, node):
        """Position of a face starting at `node`, or None."""
        if node in self._single:
            return self._single[node]
        candidates = self._multiple.get(node)
        if candidates:
            return candidates.popleft()
        return None


def build_boundary_segments(faces):
    """
    Stitch boundary faces into connected directed segments.

    Starting from each not yet visited face, the chain is grown by following
    the face whose from-node is the to-node of the current face, until
        (a) no such face exists: the chain is an open segment,
        (b) the face belongs to the current chain: the loop is closed,
        (c) the face belongs to an earlier segment: the current chain is a
            prefix of that segment and is prepended to it.

    Args:
        faces (list[MeshFace]): Boundary faces.

    Returns:
        list[list[int]]: Segments as lists of positions into `faces`.
    """
    if not faces:
        return []

    lookup = _FromNodeLookup(faces)

    face_segment = [-1] * len(faces)  # segment id of each face, -1 if not visited
    segments = []

    for iface in range(len(faces)):
        if face_segment[iface] >= 0:
            continue

        # new chain seeded by face iface; its id is only taken when it is emitted
        segment_id = len(segments)
        chain = [iface]
        face_segment[iface] = segment_id
        current = iface

        while True:
            next_face = lookup.next_face(faces[current].to_node)

            if next_face is None:  # open segment
                segments.append(chain)
                break

            next_segment = face_segment[next_face]
            if next_segment == segment_id:  # closed loop
                segments.append(chain)
                break

            if next_segment >= 0:
                # chain runs into an emitted segment: prepend it there
                segments[next_segment] = chain + segments[next_segment]
                for moved in chain:
                    face_segment[moved] = next_segment
                break

            chain.append(next_face)
            face_segment[next_face] = segment_id
            current = next_face

    return segments


def build_boundary_list(mesh):
    """
    Boundary segments of a mesh, grouped by boundary code.

    Returns:
        list[MeshBoundary]: One entry per boundary code present, ascending.
    """
    by_code = {}
    for face in extract_boundary_faces(mesh.faces):
        by_code.setdefault(face.code, []).append(face)

    boundaries = []
    for code in sorted(by_code):
        code_faces = by_code[code]
        boundary = MeshBoundary(code)
        for segment in build_boundary_segments(code_faces):
            boundary.segments.append([code_faces[i] for i in segment])
        boundaries.append(boundary)
    return boundaries


def find_connected_sub_meshes(mesh):
    """
    Label the connected parts of a mesh.

    Elements sharing an internal face belong to the same sub-mesh. Sub-mesh
    ids start at 1 in order of discovery; the infos are sorted with the
    largest sub-mesh first.
    """
    faces = mesh.faces
    element_faces = mesh.element_faces
    element_sub_mesh = [0] * mesh.number_of_elements
    infos = []

    sub_mesh_id = 0
    for seed in range(mesh.number_of_elements):
        if element_sub_mesh[seed] != 0:
            continue
        sub_mesh_id += 1
        element_sub_mesh[seed] = sub_mesh_id
        count = 1
        queue = deque([seed])
        while queue:
            elmt = queue.popleft()
            for iface in element_faces[elmt]:
                face = faces[iface]
                if face.is_boundary_face():
                    continue
                other = face.other_element(elmt)
                if element_sub_mesh[other] == 0:
                    element_sub_mesh[other] = sub_mesh_id
                    count += 1
                    queue.append(other)
        infos.append(SubMeshInfo(sub_mesh_id, count))

    infos.sort(key=lambda info: -info.number_of_elements)
    return SubMeshes(element_sub_mesh, infos)


def _sub_mesh_polygon(mesh, faces, warnings):
    """Shell and holes of one sub-mesh from its boundary faces."""
    x, y = mesh.x, mesh.y
    shell = None
    holes = []
    for isegment, segment in enumerate(build_boundary_segments(faces)):
        first = faces[segment[0]]
        last = faces[segment[-1]]
        if first.from_node != last.to_node:
            message = (f"Skipping open boundary segment {isegment} with {len(segment)} faces, "
                       f"from node {first.from_node + 1} to node {last.to_node + 1}")
            logger.warning(message)
            warnings.append(message)
            continue

        coords = [(x[faces[i].from_node], y[faces[i].from_node]) for i in segment]
        coords.append((x[last.to_node], y[last.to_node]))
        ring = LinearRing(coords)
        if ring.is_ccw:
            if shell is not None:
                raise InvalidMeshError("Invalid mesh: Finding two shells of a connected sub-mesh")
            shell = ring
        else:
            holes.append(ring)

    if shell is None:
        message = "No closed outer boundary found for sub-mesh, skipping it"
        logger.warning(message)
        warnings.append(message)
        return None
    return Polygon(shell, holes)


def build_boundary_geometry(mesh, always_multi_polygon=False):
    """
    Boundary polygon(s) of a mesh.

    Counter-clockwise closed segments are outer shells, clockwise ones are
    holes. Each connected sub-mesh gives one polygon, largest first.

    Args:
        mesh: Mesh implementing the capability interface.
        always_multi_polygon (bool): Return a MultiPolygon also for a single sub-mesh.

    Returns:
        tuple: (geometry, warnings), geometry being a shapely Polygon or MultiPolygon.

    Raises:
        InvalidMeshError: Two outer shells found within one sub-mesh.
    """
    warnings = []
    boundary_faces = extract_boundary_faces(mesh.faces)
    sub_meshes = find_connected_sub_meshes(mesh)

    faces_per_sub_mesh = [[] for _ in range(sub_meshes.number_of_sub_meshes)]
    for face in boundary_faces:
        faces_per_sub_mesh[sub_meshes.element_sub_mesh[face.left_element] - 1].append(face)

    polygons = []
    for info in sub_meshes.sub_mesh_infos:
        polygon = _sub_mesh_polygon(mesh, faces_per_sub_mesh[info.sub_mesh_id - 1], warnings)
        if polygon is not None:
            polygons.append(polygon)

    if len(polygons) == 1 and not always_multi_polygon:
        return polygons[0], warnings
    return MultiPolygon(polygons), warnings
