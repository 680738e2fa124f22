# src/flexmesh/model/InterpWeights.py
"""
Interpolation weights inside a single element, and evaluation of a value
from those weights with delete value and circular value handling.

* Triangles: barycentric weights over the three nodes.
* Quadrangles: bilinear local coordinates over the four nodes.
* Element+node: barycentric weights in the sub-triangle formed by the
  element center, a neighbouring element center (or face midpoint) and a
  node of the element.
"""
from collections import namedtuple

from .CircularValues import CircularValueType, to_reference, to_circular, first_valid_value
from .Geometry import barycentric_weights, bilinear_coordinates, is_point_inside_lines
from .Interpolator import DELETE_VALUE

TriangleWeights = namedtuple("TriangleWeights", ["w1", "w2", "w3"])
QuadWeights = namedtuple("QuadWeights", ["dx", "dy"])  # bilinear coordinates in [0, 1]
ElmtNodeWeights = namedtuple("ElmtNodeWeights", ["element1", "element2", "node",
                                                 "w_element1", "w_element2", "w_node"])


def triangle_weights(x, y, t1x, t1y, t2x, t2y, t3x, t3y) -> TriangleWeights:
    return TriangleWeights(*barycentric_weights(x, y, t1x, t1y, t2x, t2y, t3x, t3y))


def quadrangle_weights(x, y, t0x, t0y, t1x, t1y, t2x, t2y, t3x, t3y) -> QuadWeights:
    return QuadWeights(*bilinear_coordinates(x, y, t0x, t0y, t1x, t1y, t2x, t2y, t3x, t3y))


def element_node_weights(mesh, element, x, y):
    """
    Node based weights of (x, y) in an element.

    Returns:
        TriangleWeights or QuadWeights, depending on the element shape.
    """
    px, py = mesh.element_coordinates(element)
    if len(px) == 3:
        return triangle_weights(x, y, px[0], py[0], px[1], py[1], px[2], py[2])
    return quadrangle_weights(x, y, px[0], py[0], px[1], py[1], px[2], py[2], px[3], py[3])


def _references(circular_type, values, delete_value):
    """Values translated towards the first valid value, delete values kept."""
    if circular_type == CircularValueType.NORMAL:
        return values
    ref_value = first_valid_value(values, delete_value)
    if ref_value is None:
        return values
    return [v if v == delete_value else to_reference(circular_type, v, ref_value) for v in values]


class InterpTriangle:
    """Value inside a triangle from its three node values"""

    def __init__(self, delete_value=DELETE_VALUE, circular_type=CircularValueType.NORMAL):
        self.delete_value = delete_value
        self.circular_type = circular_type

    def get_value(self, weights: TriangleWeights, t1, t2, t3):
        """
        Weighted value, disregarding delete values.

        Close to a node with a delete value (its weight above 0.5) the result
        is the delete value. With one delete value elsewhere the two others
        are renormalised; with two delete values the remaining node value is
        used only close to that node.
        """
        delval = self.delete_value
        t1, t2, t3 = _references(self.circular_type, [t1, t2, t3], delval)

        corners = ((weights.w1, t1), (weights.w2, t2), (weights.w3, t3))
        value = 0.0
        weight = 0.0
        num_deleted = 0
        for w, t in corners:
            if t != delval:
                value += w * t
                weight += w
            elif w > 0.5:
                return delval  # close to a delete value node
            else:
                num_deleted += 1

        if num_deleted == 1:
            value = value / weight
        elif num_deleted == 2:
            # only one valid node value, used when close to that node
            w, t = next((w, t) for w, t in corners if t != delval)
            if w <= 0.5:
                return delval
            value = t
        elif num_deleted == 3:
            return delval

        return to_circular(self.circular_type, value)


def _bilinear(dx, dy, t00, t10, t11, t01):
    if t00 == t10 and t00 == t01 and t00 == t11:
        return t00
    return ((1 - dx) * (1 - dy) * t00 + dx * (1 - dy) * t10 +
            (1 - dx) * dy * t01 + dx * dy * t11)


# Renormalised bilinear formula over the valid corners, per delete value mask.
# Mask bits: T00 = 0x1, T10 = 0x2, T01 = 0x4, T11 = 0x8
_QUAD_FORMULAS = {
    0: _bilinear,
    1: lambda dx, dy, t00, t10, t11, t01: (dx * (1 - dy) * t10 + (1 - dx) * dy * t01 + dx * dy * t11) /
                                          (dx + dy - dx * dy),
    2: lambda dx, dy, t00, t10, t11, t01: ((1 - dx) * (1 - dy) * t00 + (1 - dx) * dy * t01 + dx * dy * t11) /
                                          (1 - dx + dx * dy),
    3: lambda dx, dy, t00, t10, t11, t01: (1 - dx) * t01 + dx * t11,
    4: lambda dx, dy, t00, t10, t11, t01: ((1 - dx) * (1 - dy) * t00 + dx * (1 - dy) * t10 + dx * dy * t11) /
                                          (1 - dy + dx * dy),
    5: lambda dx, dy, t00, t10, t11, t01: (1 - dy) * t10 + dy * t11,
    6: lambda dx, dy, t00, t10, t11, t01: ((1 - dx) * (1 - dy) * t00 + dx * dy * t11) /
                                          (1 - dx - dy + 2 * dx * dy),
    7: lambda dx, dy, t00, t10, t11, t01: t11,
    8: lambda dx, dy, t00, t10, t11, t01: ((1 - dx) * (1 - dy) * t00 + dx * (1 - dy) * t10 +
                                           (1 - dx) * dy * t01) / (1 - dx * dy),
    9: lambda dx, dy, t00, t10, t11, t01: (dx * (1 - dy) * t10 + (1 - dx) * dy * t01) /
                                          (dx + dy - 2 * dx * dy),
    10: lambda dx, dy, t00, t10, t11, t01: (1 - dy) * t00 + dy * t01,
    11: lambda dx, dy, t00, t10, t11, t01: t01,
    12: lambda dx, dy, t00, t10, t11, t01: (1 - dx) * t00 + dx * t10,
    13: lambda dx, dy, t00, t10, t11, t01: t10,
    14: lambda dx, dy, t00, t10, t11, t01: t00,
}

XC = 0.5  # cell center in local coordinates
YC = 0.5

# Delete value area per mask, abrupt chop: the quarter cells around the delete value corners
_ABRUPT_UNDEFINED = {
    0: lambda dx, dy: False,
    1: lambda dx, dy: dx < XC and dy < YC,
    2: lambda dx, dy: dx >= XC and dy < YC,
    3: lambda dx, dy: dy < YC,
    4: lambda dx, dy: dx < XC and dy >= YC,
    5: lambda dx, dy: dx < XC,
    6: lambda dx, dy: (dx < XC and dy >= YC) or (dx >= XC and dy < YC),
    7: lambda dx, dy: not (dx >= XC and dy >= YC),
    8: lambda dx, dy: dx >= XC and dy >= YC,
    9: lambda dx, dy: (dx < XC and dy < YC) or (dx >= XC and dy >= YC),
    10: lambda dx, dy: dx >= XC,
    11: lambda dx, dy: not (dx < XC and dy >= YC),
    12: lambda dx, dy: dy >= YC,
    13: lambda dx, dy: not (dx >= XC and dy < YC),
    14: lambda dx, dy: not (dx < XC and dy < YC),
    15: lambda dx, dy: True,
}

# Delete value area per mask, smooth chop: cut along the cell diagonals
_SMOOTH_UNDEFINED = {
    0: lambda dx, dy: False,
    1: lambda dx, dy: dx + dy < 0.5,
    2: lambda dx, dy: dx - dy >= 0.5,
    3: lambda dx, dy: dy < 0.5,
    4: lambda dx, dy: dx - dy < -0.5,
    5: lambda dx, dy: dx < 0.5,
    6: lambda dx, dy: 0.5 <= dx + dy < 1.5,
    7: lambda dx, dy: dx + dy < 1.5,
    8: lambda dx, dy: dx + dy >= 1.5,
    9: lambda dx, dy: -0.5 <= dx - dy < 0.5,
    10: lambda dx, dy: dx >= 0.5,
    11: lambda dx, dy: dx - dy > -0.5,
    12: lambda dx, dy: dy >= 0.5,
    13: lambda dx, dy: dx - dy < 0.5,
    14: lambda dx, dy: dx + dy > 0.5,
    15: lambda dx, dy: True,
}


class InterpQuadrangle:
    """
    Bilinear value inside a quadrangle from its four node values.

    Node order is counter-clockwise, P0 = T00, P1 = T10, P2 = T11, P3 = T01::

        P3 = T01          P2 = T11
           |-----------------|
           | D3   ./|\\.   D2 |
           |    /´  |  `\\.   |
           |./´  C3 | C2  `\\.|
           |--------|--------|
           |\\.   C0 | C1   ./|
           |  `\\.   |    /´  |
           | D0  `\\.|./´  D1 |
           |-----------------|
        P0 = T00          P1 = T10

    With smooth chop, a delete value at Px makes Dx undefined; two
    neighbouring delete values make their Cx and Dx undefined; two diagonal
    delete values make all Cx undefined. With abrupt chop, a delete value
    at Px makes Cx and Dx undefined. With three delete values the
    selection is inverted.
    """

    def __init__(self, delete_value=DELETE_VALUE, smooth_delete_chop=False,
                 circular_type=CircularValueType.NORMAL):
        self.delete_value = delete_value
        self.smooth_delete_chop = smooth_delete_chop
        self.circular_type = circular_type

    def delete_value_mask(self, t00, t10, t11, t01):
        mask = 0x0
        if t00 == self.delete_value:
            mask |= 0x1
        if t10 == self.delete_value:
            mask |= 0x2
        if t01 == self.delete_value:
            mask |= 0x4
        if t11 == self.delete_value:
            mask |= 0x8
        if self.smooth_delete_chop:
            mask |= 0x10
        return mask

    def get_value(self, weights: QuadWeights, t00, t10, t11, t01):
        delval = self.delete_value
        t00, t10, t11, t01 = _references(self.circular_type, [t00, t10, t11, t01], delval)

        mask = self.delete_value_mask(t00, t10, t11, t01)
        corner_mask = mask & 0xF
        undefined = _SMOOTH_UNDEFINED if mask & 0x10 else _ABRUPT_UNDEFINED

        dx, dy = weights.dx, weights.dy
        if undefined[corner_mask](dx, dy):
            return delval
        value = _QUAD_FORMULAS[corner_mask](dx, dy, t00, t10, t11, t01)
        return to_circular(self.circular_type, value)


def elmt_node_weights(mesh, element, x, y) -> ElmtNodeWeights:
    """
    Weights of (x, y) in the (element, other element, node) sub-triangle.

    Looking from the element center towards each face, the face has a right
    node and a left node. The point lies either in the wedge between the
    right node and the center of the element on the other side of the face
    (the face midpoint on a boundary face), or in the wedge between that
    center and the left node.
    """
    faces = mesh.faces
    xc, yc, _ = mesh.element_centers
    x_nodes, y_nodes = mesh.x, mesh.y
    center_x = xc[element]
    center_y = yc[element]

    for iface in mesh.element_faces[element]:
        face = faces[iface]
        if face.left_element == element:
            right_node, left_node = face.from_node, face.to_node
        else:
            right_node, left_node = face.to_node, face.from_node

        right_x, right_y = x_nodes[right_node], y_nodes[right_node]
        left_x, left_y = x_nodes[left_node], y_nodes[left_node]

        other = face.other_element(element)
        if other is not None:
            other_x, other_y = xc[other], yc[other]
        else:
            # boundary face: face midpoint, and the element itself as element 2
            other_x = 0.5 * (right_x + left_x)
            other_y = 0.5 * (right_y + left_y)
            other = element

        if is_point_inside_lines(x, y, center_x, center_y, right_x, right_y, other_x, other_y):
            w1, w2, w3 = barycentric_weights(x, y, center_x, center_y, right_x, right_y, other_x, other_y)
            return ElmtNodeWeights(element, other, right_node, w1, w3, w2)

        if is_point_inside_lines(x, y, center_x, center_y, other_x, other_y, left_x, left_y):
            w1, w2, w3 = barycentric_weights(x, y, center_x, center_y, other_x, other_y, left_x, left_y)
            return ElmtNodeWeights(element, other, left_node, w1, w2, w3)

    # point not in any wedge, use the element value only
    return ElmtNodeWeights(element, element, int(mesh.element_table[element][0]), 1.0, 0.0, 0.0)


class InterpElmtNode:
    """Value from element center values and node values"""

    def __init__(self, delete_value=DELETE_VALUE, circular_type=CircularValueType.NORMAL):
        self.delete_value = delete_value
        self.circular_type = circular_type

    def get_value(self, weights: ElmtNodeWeights, element_values, node_values):
        """
        Weighted value in the sub-triangle, disregarding delete values.

        The value is undefined when the value of the element containing the
        point is a delete value.
        """
        delval = self.delete_value
        element_value = element_values[weights.element1]
        if element_value == delval:
            return delval

        value = element_value * weights.w_element1
        weight = weights.w_element1

        other_value = element_values[weights.element2]
        if other_value != delval:
            other_value = to_reference(self.circular_type, other_value, element_value)
            value += other_value * weights.w_element2
            weight += weights.w_element2

        node_value = node_values[weights.node]
        if node_value != delval:
            node_value = to_reference(self.circular_type, node_value, element_value)
            value += node_value * weights.w_node
            weight += weights.w_node

        if weight == 0:
            return element_value  # on the far edge, with both other values deleted
        return to_circular(self.circular_type, value / weight)
