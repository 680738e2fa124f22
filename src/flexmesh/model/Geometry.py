# src/flexmesh/model/Geometry.py
import math
import numpy as np


def left_of(x, y, l1x, l1y, l2x, l2y):
    """
    Signed test of the point (x, y) against the directed line l1 -> l2.

    Returns the dot product of the left perpendicular of the line with the
    vector from l1 to the point: positive when the point is left of the line,
    zero when it is on the line, negative when it is right of the line.
    """
    vx = l2x - l1x  # line vector
    vy = l2y - l1y
    # left perpendicular is (-vy, vx)
    return -(x - l1x) * vy + (y - l1y) * vx


def is_point_inside_polygon(x, y, px, py, tolerance=0.0):
    """
    Half-plane containment test for a counter-clockwise convex polygon.

    A point exactly on an edge counts as inside. With a tolerance > 0 the
    point may lie up to `tolerance` (distance units) right of each edge.

    Args:
        x, y: Point coordinates.
        px, py: Corner coordinates (3 or 4 corners, counter-clockwise).
        tolerance (float): Allowed distance outside each edge.
    """
    n = len(px)
    for i in range(n):
        j = (i + 1) % n
        side = left_of(x, y, px[i], py[i], px[j], py[j])
        if side >= 0:
            continue
        if tolerance <= 0:
            return False
        edge_length = math.hypot(px[j] - px[i], py[j] - py[i])
        if side < -tolerance * edge_length:  # side/|edge| is the signed distance
            return False
    return True


def is_point_inside_triangle(x, y, t1x, t1y, t2x, t2y, t3x, t3y):
    return (left_of(x, y, t1x, t1y, t2x, t2y) >= 0 and
            left_of(x, y, t2x, t2y, t3x, t3y) >= 0 and
            left_of(x, y, t3x, t3y, t1x, t1y) >= 0)


def is_point_inside_quadrangle(x, y, t0x, t0y, t1x, t1y, t2x, t2y, t3x, t3y):
    return (left_of(x, y, t0x, t0y, t1x, t1y) >= 0 and
            left_of(x, y, t1x, t1y, t2x, t2y) >= 0 and
            left_of(x, y, t2x, t2y, t3x, t3y) >= 0 and
            left_of(x, y, t3x, t3y, t0x, t0y) >= 0)


def is_point_inside_lines(x, y, center_x, center_y, right_x, right_y, left_x, left_y):
    """
    True if (x, y) lies in the wedge spanned from the center point by the
    right line (center -> right) and the left line (center -> left).
    """
    return (left_of(x, y, center_x, center_y, right_x, right_y) >= 0 and
            left_of(x, y, center_x, center_y, left_x, left_y) <= 0)


def barycentric_weights(x, y, t1x, t1y, t2x, t2y, t3x, t3y):
    """
    Barycentric weights of (x, y) in the triangle (t1, t2, t3).

    Negative w1/w2 are clipped to zero, and (w1, w2) are scaled back when
    their sum exceeds one, so points marginally outside due to rounding map
    onto the closest edge. w3 = 1 - w1 - w2.
    """
    denom = (t2y - t3y) * (t1x - t3x) + (t3x - t2x) * (t1y - t3y)
    w1 = ((t2y - t3y) * (x - t3x) + (t3x - t2x) * (y - t3y)) / denom
    w2 = ((t3y - t1y) * (x - t3x) + (t1x - t3x) * (y - t3y)) / denom

    if w1 < 0:
        w1 = 0.0
    if w2 < 0:
        w2 = 0.0
    w12 = w1 + w2
    if w12 > 1:
        w1 /= w12
        w2 /= w12

    w3 = 1.0 - w1 - w2
    return w1, w2, w3


def bilinear_coordinates(x, y, t0x, t0y, t1x, t1y, t2x, t2y, t3x, t3y):
    """
    Local bilinear coordinates (dx, dy) of (x, y) in the quadrangle t0..t3.

    The parametric mapping
        P(dx, dy) = A + B*dx + C*dy + D*dx*dy
    is inverted by solving the quadratic in dx; the root inside [0, 1] is
    used, then dy follows from the linear relation. Both are clamped into
    [0, 1] to absorb rounding error for points on the cell edges.
    """
    a1 = t0x
    a2 = t0y
    b1 = t1x - t0x
    b2 = t1y - t0y
    c1 = t3x - t0x
    c2 = t3y - t0y
    d1 = t2x - t1x + t0x - t3x
    d2 = t2y - t1y + t0y - t3y

    a = d1 * b2 - d2 * b1
    b = d2 * x - d1 * y - d2 * a1 + d1 * a2 + c1 * b2 - c2 * b1
    c = c2 * x - c1 * y + c1 * a2 - c2 * a1

    if a == 0:
        dx1 = 10.0  # outside [0, 1], never picked
        dx2 = -c / b
    else:
        disc = max(b * b - 4 * a * c, 0.0)
        sqrt_disc = math.sqrt(disc)
        # numerically stable root pair
        if b >= 0:
            dx1 = (-b - sqrt_disc) / (2 * a)
            dx2 = (2 * c) / (-b - sqrt_disc) if (-b - sqrt_disc) != 0 else 0.0
        else:
            dx1 = (-b + sqrt_disc) / (2 * a)
            dx2 = (2 * c) / (-b + sqrt_disc)

    dx = dx1 if 0 <= dx1 <= 1 else dx2

    if c1 + d1 * dx != 0:
        dy = (x - a1 - b1 * dx) / (c1 + d1 * dx)
    else:
        dy = (y - a2 - b2 * dx) / (c2 + d2 * dx)

    dx = min(max(dx, 0.0), 1.0)
    dy = min(max(dy, 0.0), 1.0)
    return dx, dy


def envelope(px, py):
    """Bounding box (minx, miny, maxx, maxy) of a set of corner coordinates."""
    return float(np.min(px)), float(np.min(py)), float(np.max(px)), float(np.max(py))


def polygon_area(px, py):
    """Signed shoelace area; positive for counter-clockwise corners."""
    px = np.asarray(px, dtype=np.float64)
    py = np.asarray(py, dtype=np.float64)
    return 0.5 * float(np.sum(px * np.roll(py, -1) - np.roll(px, -1) * py))
