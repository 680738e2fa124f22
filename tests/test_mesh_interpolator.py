# tests/test_mesh_interpolator.py
import numpy as np
import pytest

from flexmesh.model.CircularValues import CircularValueType
from flexmesh.model.Interpolator import DELETE_VALUE
from flexmesh.model.MeshInterpolator import MeshInterpolator2D, MeshValueType, ElmtValueInterpolationType

d = DELETE_VALUE


def affine(x, y):
    return 0.5 * x + 2.0 * y - 1.0


def interior_points():
    # points inside [1, 5] x [1, 5], away from the nodes of a 6 x 6 grid
    rng = np.random.default_rng(1234)
    return rng.uniform(1.05, 4.95, size=(40, 2))


@pytest.mark.parametrize("triangles", [False, True])
def test_node_values_affine(grid_mesh_factory, triangles):
    mesh = grid_mesh_factory(4, 4, triangles=triangles)
    interpolator = MeshInterpolator2D(mesh, MeshValueType.NODES)
    points = np.array([[0.3, 0.4], [2.5, 1.1], [3.9, 3.2], [0.0, 4.0], [2.0, 2.0]])
    assert interpolator.register_targets(points) == 0
    result = interpolator.apply(affine(mesh.x, mesh.y))
    np.testing.assert_allclose(result, affine(points[:, 0], points[:, 1]), atol=1e-10)


@pytest.mark.parametrize("triangles", [False, True])
@pytest.mark.parametrize("mode", list(ElmtValueInterpolationType))
def test_element_values_affine_in_interior(grid_mesh_factory, triangles, mode):
    mesh = grid_mesh_factory(6, 6, triangles=triangles)
    xc, yc, _ = mesh.element_centers
    interpolator = MeshInterpolator2D(mesh, MeshValueType.ELEMENTS, allow_extrapolation=True,
                                      element_value_interpolation=mode)
    points = interior_points()
    interpolator.register_targets(points)
    result = interpolator.apply(affine(xc, yc))
    np.testing.assert_allclose(result, affine(points[:, 0], points[:, 1]), atol=1e-9)
    # reconstructed node values are exact at interior nodes
    interior = mesh.code == 0
    np.testing.assert_allclose(interpolator.node_values[interior], affine(mesh.x, mesh.y)[interior], atol=1e-10)


def test_element_value_at_element_center(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.ELEMENTS)
    xc, yc, _ = quad_mesh.element_centers
    interpolator.register_targets(np.column_stack((xc, yc)))
    values = np.arange(16, dtype=np.float64) ** 2
    np.testing.assert_allclose(interpolator.apply(values), values)


def test_targets_outside(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.NODES)
    assert interpolator.add_target(1.0, 1.0)
    assert not interpolator.add_target(10.0, 10.0)
    assert not interpolator.add_target(-0.5, 2.0)
    assert interpolator.number_of_targets == 3
    result = interpolator.apply(np.ones(quad_mesh.number_of_nodes))
    assert result[0] == pytest.approx(1.0)
    assert result[1] == d
    assert result[2] == d


def test_register_targets_replaces(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.NODES)
    assert interpolator.register_targets([[0.5, 0.5], [5.0, 5.0], [6.0, 6.0]]) == 2
    assert interpolator.number_of_targets == 3
    interpolator.register_targets([[0.5, 0.5]])
    assert interpolator.number_of_targets == 1


def test_set_target_size_and_add(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.ELEMENTS)
    interpolator.set_target_size(2)
    assert interpolator.node_interpolator is not None
    interpolator.add_target(0.5, 0.5)
    interpolator.add_target(3.5, 3.5)
    result = interpolator.apply(np.full(16, 7.0))
    np.testing.assert_allclose(result, [7.0, 7.0])


@pytest.mark.parametrize("target_type", [MeshValueType.ELEMENTS, MeshValueType.NODES])
def test_mesh_to_mesh(quad_mesh, grid_mesh_factory, target_type):
    target = grid_mesh_factory(3, 3, dx=4.0 / 3.0, dy=4.0 / 3.0, triangles=True)
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.NODES)
    assert interpolator.set_target(target, target_type) == 0

    result = interpolator.apply(affine(quad_mesh.x, quad_mesh.y))
    if target_type == MeshValueType.ELEMENTS:
        xc, yc, _ = target.element_centers
        expected = affine(xc, yc)
    else:
        expected = affine(target.x, target.y)
    assert len(result) == len(expected)
    np.testing.assert_allclose(result, expected, atol=1e-10)


def test_mesh_to_mesh_reverse(quad_mesh, grid_mesh_factory):
    source = grid_mesh_factory(3, 3, dx=4.0 / 3.0, dy=4.0 / 3.0, triangles=True)
    interpolator = MeshInterpolator2D(source, MeshValueType.NODES)
    interpolator.set_target(quad_mesh, MeshValueType.NODES)
    result = interpolator.apply(affine(source.x, source.y))
    np.testing.assert_allclose(result, affine(quad_mesh.x, quad_mesh.y), atol=1e-10)


def test_node_delete_values(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.NODES)
    interpolator.register_targets([[0.1, 0.1], [0.9, 0.9], [3.5, 3.5]])
    node_values = np.full(quad_mesh.number_of_nodes, 2.0)
    node_values[0] = d
    result = interpolator.apply(node_values)
    assert result[0] == d  # close to the deleted node
    assert result[1] == pytest.approx(2.0)
    assert result[2] == pytest.approx(2.0)


def test_element_delete_values(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.ELEMENTS)
    interpolator.register_targets([[0.5, 0.5], [2.5, 2.5]])
    values = np.full(16, 4.0)
    values[0] = d
    result = interpolator.apply(values)
    assert result[0] == d
    assert result[1] == pytest.approx(4.0)


def test_delete_value_setter(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.ELEMENTS)
    interpolator.register_targets([[0.5, 0.5], [2.5, 2.5]])
    interpolator.delete_value = -999.0
    assert interpolator.node_interpolator.delete_value == -999.0
    values = np.full(16, 4.0)
    values[0] = -999.0
    result = interpolator.apply(values)
    assert result[0] == -999.0
    assert result[1] == pytest.approx(4.0)


def test_circular_node_values(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.NODES,
                                      circular_type=CircularValueType.DEGREES360)
    interpolator.register_targets([[0.25, 0.5], [0.75, 0.5]])
    # alternating 350 and 10 degrees along x
    node_values = np.where(np.round(quad_mesh.x).astype(int) % 2 == 0, 350.0, 10.0)
    result = interpolator.apply(node_values)
    assert result[0] == pytest.approx(355.0)
    assert result[1] == pytest.approx(5.0)


def test_circular_element_values(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.ELEMENTS,
                                      circular_type=CircularValueType.DEGREES180)
    xc, yc, _ = quad_mesh.element_centers
    interpolator.register_targets(np.column_stack((xc, yc)) + 0.1)
    result = interpolator.apply(np.full(16, 179.0))
    assert np.all((result >= -180.0) & (result <= 180.0))
    np.testing.assert_allclose(np.abs(result), 179.0)


def test_apply_value_type(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.ELEMENTS | MeshValueType.NODES)
    interpolator.register_targets([[1.5, 1.5]])
    assert interpolator.apply(np.full(16, 3.0))[0] == pytest.approx(3.0)
    assert interpolator.apply(np.full(25, 5.0), MeshValueType.NODES)[0] == pytest.approx(5.0)


def test_wrong_setup_and_sizes(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.NODES)
    interpolator.register_targets([[1.5, 1.5]])
    with pytest.raises(ValueError):
        interpolator.apply(np.ones(16), MeshValueType.ELEMENTS)
    with pytest.raises(ValueError):
        interpolator.apply(np.ones(3))

    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.ELEMENTS)
    interpolator.register_targets([[1.5, 1.5]])
    with pytest.raises(ValueError):
        interpolator.apply(np.ones(25), MeshValueType.NODES)
    with pytest.raises(ValueError):
        interpolator.apply(np.ones(3))


def test_enum_type_errors(quad_mesh):
    with pytest.raises(TypeError):
        MeshInterpolator2D(quad_mesh, "nodes")
    with pytest.raises(TypeError):
        MeshInterpolator2D(quad_mesh, MeshValueType.NODES, circular_type="degrees360")
    with pytest.raises(TypeError):
        MeshInterpolator2D(quad_mesh, MeshValueType.ELEMENTS, element_value_interpolation="node_values")


def test_smooth_delete_chop_setter(quad_mesh):
    interpolator = MeshInterpolator2D(quad_mesh, MeshValueType.NODES, smooth_delete_chop=True)
    assert interpolator.smooth_delete_chop
    interpolator.smooth_delete_chop = False
    assert not interpolator.smooth_delete_chop
