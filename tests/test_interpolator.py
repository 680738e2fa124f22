# tests/test_interpolator.py
import numpy as np
import pytest

from flexmesh.model.CircularValues import CircularValueType, to_reference, to_circular, first_valid_value
from flexmesh.model.Interpolator import Interpolator, InterpData, DELETE_VALUE
from flexmesh.model.NodeInterpolation import MeshNodeInterpolation

d = DELETE_VALUE


def affine(x, y):
    return 2.0 * x - 3.0 * y + 1.0


def test_weighted_sum():
    interpolator = Interpolator([InterpData([0, 1], [0.5, 0.5]), InterpData([2], [1.0]),
                                 InterpData([0, 2], [0.25, 0.75])])
    assert interpolator.number_of_sources == 3
    assert interpolator.number_of_targets == 3
    result = interpolator.interpolate([1.0, 3.0, 5.0])
    np.testing.assert_allclose(result, [2.0, 5.0, 4.0])


def test_delete_values_renormalised():
    interpolator = Interpolator([InterpData([0, 1], [0.25, 0.75]), InterpData([1, 2], [0.5, 0.5])])
    result = interpolator.interpolate([4.0, d, d])
    assert result[0] == pytest.approx(4.0)
    assert result[1] == d


def test_zero_weights_and_empty_rows():
    interpolator = Interpolator([InterpData([0], [0.0]), InterpData([], [])], number_of_sources=2)
    result = interpolator.interpolate([1.0, 2.0])
    assert list(result) == [d, d]


def test_custom_delete_value():
    interpolator = Interpolator([InterpData([0, 1], [0.5, 0.5])], delete_value=1e-35)
    assert interpolator.interpolate([1e-35, 8.0])[0] == pytest.approx(8.0)
    assert interpolator.interpolate([1e-35, 1e-35])[0] == 1e-35


def test_output_array_reused():
    interpolator = Interpolator([InterpData([0], [1.0]), InterpData([1], [1.0])])
    target = np.zeros(2)
    result = interpolator.interpolate([7.0, 8.0], target)
    assert result is target
    np.testing.assert_allclose(target, [7.0, 8.0])


def test_too_few_source_values():
    interpolator = Interpolator([InterpData([0, 4], [0.5, 0.5])])
    with pytest.raises(ValueError):
        interpolator.interpolate([1.0, 2.0])


def test_weight_matrix_shape():
    interpolator = Interpolator([InterpData([0, 3], [0.5, 0.5])], number_of_sources=5)
    assert interpolator.weight_matrix.shape == (1, 5)
    np.testing.assert_allclose(interpolator.weight_matrix.toarray(), [[0.5, 0, 0, 0.5, 0]])


def test_circular_interpolation():
    interpolator = Interpolator([InterpData([0, 1], [0.25, 0.75]), InterpData([0, 1, 2], [0.5, 0.25, 0.25])],
                                circular_type=CircularValueType.DEGREES360)
    result = interpolator.interpolate([350.0, 10.0, d])
    assert result[0] == pytest.approx(5.0)
    # 350 with weight 0.5 and 370 with weight 0.25, renormalised
    assert result[1] == pytest.approx((350.0 * 0.5 + 370.0 * 0.25) / 0.75)
    assert list(interpolator.interpolate([d, d, d])) == [d, d]


def test_circular_helpers():
    assert to_reference(CircularValueType.DEGREES360, 10.0, 350.0) == 370.0
    assert to_reference(CircularValueType.DEGREES360, 350.0, 10.0) == -10.0
    assert to_reference(CircularValueType.DEGREES360, 100.0, 10.0) == 100.0
    assert to_reference(CircularValueType.NORMAL, 350.0, 10.0) == 350.0
    assert to_reference(CircularValueType.RADIANS_PI, 3.0, -3.0) == pytest.approx(3.0 - 2 * np.pi)
    assert to_circular(CircularValueType.DEGREES360, 365.0) == pytest.approx(5.0)
    assert to_circular(CircularValueType.DEGREES360, -5.0) == pytest.approx(355.0)
    assert to_circular(CircularValueType.DEGREES180, 190.0) == pytest.approx(-170.0)
    assert to_circular(CircularValueType.RADIANS_2PI, -0.5) == pytest.approx(2 * np.pi - 0.5)
    assert to_circular(CircularValueType.NORMAL, 1000.0) == 1000.0
    assert first_valid_value([d, d, 3.0, 4.0], d) == 3.0
    assert first_valid_value([d], d) is None


def test_node_weights_interior_node(quad_mesh):
    node_interp = MeshNodeInterpolation(quad_mesh)
    interpolator = node_interp.setup()
    data = interpolator.interp_data[6]  # node (1, 1)
    assert list(data.indices) == [0, 1, 4, 5]
    np.testing.assert_allclose(data.weights, [0.25] * 4)


def test_node_weights_fallback(quad_mesh):
    node_interp = MeshNodeInterpolation(quad_mesh)
    interpolator = node_interp.setup()
    # corner node: single element
    np.testing.assert_allclose(interpolator.interp_data[0].weights, [1.0])
    # edge node: two elements at equal distance
    assert list(interpolator.interp_data[2].indices) == [1, 2]
    np.testing.assert_allclose(interpolator.interp_data[2].weights, [0.5, 0.5])
    # 4 corners and 12 edge nodes
    assert node_interp.number_of_fallbacks == 16


def test_node_weights_sum_to_one(triangle_mesh):
    interpolator = MeshNodeInterpolation(triangle_mesh).setup()
    for data in interpolator.interp_data:
        assert data.weights.sum() == pytest.approx(1.0)
        assert (data.weights >= 0).all()


def test_node_weights_coincident_center():
    node_interp = MeshNodeInterpolation(None)
    data = node_interp.setup_node_interpolation(0.0, 0.0, [0, 1], np.array([0.0, 1.0]), np.array([0.0, 0.0]))
    np.testing.assert_allclose(data.weights, [0.0, 1.0])
    data = node_interp.setup_node_interpolation(0.0, 0.0, [], np.array([]), np.array([]))
    assert len(data.weights) == 0


@pytest.mark.parametrize("triangles", [False, True])
def test_affine_field_reproduced_at_interior_nodes(grid_mesh_factory, triangles):
    mesh = grid_mesh_factory(5, 4, dx=1.5, dy=0.8, triangles=triangles)
    xc, yc, _ = mesh.element_centers
    interpolator = MeshNodeInterpolation(mesh, allow_extrapolation=True).setup()
    node_values = interpolator.interpolate(affine(xc, yc))
    interior = mesh.code == 0
    assert interior.any()
    np.testing.assert_allclose(node_values[interior], affine(mesh.x, mesh.y)[interior], atol=1e-10)


def test_node_interpolation_delete_values(quad_mesh):
    interpolator = MeshNodeInterpolation(quad_mesh).setup()
    element_values = np.ones(16)
    element_values[0] = d
    node_values = interpolator.interpolate(element_values)
    assert node_values[0] == d  # corner node only sees element 0
    assert node_values[6] == pytest.approx(1.0)
