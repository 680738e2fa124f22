# tests/conftest.py
import numpy as np
import pytest

from flexmesh.model.MeshData import create_mesh, create_smesh

LAND = 1


def make_grid_mesh(nx, ny, dx=1.0, dy=1.0, x0=0.0, y0=0.0, triangles=False, skip_cells=(),
                   node_code=None, z_func=None, smesh=False):
    """
    Structured test mesh of nx * ny cells, as quads or as triangles (two per cell).

    Node (i, j) has index j*(nx+1) + i and coordinates (x0 + i*dx, y0 + j*dy).
    By default nodes on the outer rectangle get the land code, others 0.
    """
    node_ids, x, y, z, code = [], [], [], [], []
    for j in range(ny + 1):
        for i in range(nx + 1):
            xi = x0 + i * dx
            yj = y0 + j * dy
            node_ids.append(len(x) + 1)
            x.append(xi)
            y.append(yj)
            z.append(z_func(xi, yj) if z_func else 0.0)
            if node_code is not None:
                code.append(node_code(i, j))
            else:
                code.append(LAND if i in (0, nx) or j in (0, ny) else 0)

    def node(i, j):
        return j * (nx + 1) + i

    connectivity = []
    for j in range(ny):
        for i in range(nx):
            if (i, j) in skip_cells:
                continue
            n0, n1, n2, n3 = node(i, j), node(i + 1, j), node(i + 1, j + 1), node(i, j + 1)
            if triangles:
                connectivity.append([n0, n1, n2])
                connectivity.append([n0, n2, n3])
            else:
                connectivity.append([n0, n1, n2, n3])

    element_ids = np.arange(1, len(connectivity) + 1)
    factory = create_smesh if smesh else create_mesh
    return factory("NON-UTM", np.array(node_ids), np.array(x), np.array(y), np.array(z), np.array(code),
                   element_ids, None, connectivity)


@pytest.fixture
def grid_mesh_factory():
    return make_grid_mesh


@pytest.fixture
def quad_mesh():
    """4 x 4 quads on [0, 4] x [0, 4]"""
    return make_grid_mesh(4, 4)


@pytest.fixture
def triangle_mesh():
    """4 x 4 cells on [0, 4] x [0, 4], split into 32 triangles"""
    return make_grid_mesh(4, 4, triangles=True)


@pytest.fixture
def holed_mesh():
    """
    4 x 4 quads with the 2 x 2 center cells removed.
    Outer boundary nodes have code 1, hole boundary nodes code 2.
    """
    def code(i, j):
        if i in (0, 4) or j in (0, 4):
            return 1
        if 1 <= i <= 3 and 1 <= j <= 3:
            return 2
        return 0
    return make_grid_mesh(4, 4, skip_cells={(1, 1), (2, 1), (1, 2), (2, 2)}, node_code=code)


@pytest.fixture
def two_part_mesh():
    """Two separate quad patches: 2 x 2 cells at the origin and 1 x 1 cell further away"""
    big = make_grid_mesh(2, 2)
    nodes_big = big.number_of_nodes
    x = np.concatenate((big.x, [10.0, 11.0, 11.0, 10.0]))
    y = np.concatenate((big.y, [0.0, 0.0, 1.0, 1.0]))
    z = np.zeros(len(x))
    code = np.concatenate((big.code, [1, 1, 1, 1]))
    connectivity = [list(e) for e in big.element_table]
    connectivity.append([nodes_big, nodes_big + 1, nodes_big + 2, nodes_big + 3])
    return create_mesh("NON-UTM", np.arange(1, len(x) + 1), x, y, z, code,
                       np.arange(1, len(connectivity) + 1), None, connectivity)
