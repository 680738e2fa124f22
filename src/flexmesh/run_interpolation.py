# src/flexmesh/run_interpolation.py
"""
Interpolate a field of a source mesh to target points or to a target mesh,
as configured in a YAML file (see the 'file_paths' section of config.yaml).

Usage:
    python -m flexmesh.run_interpolation [config.yaml]
"""
import logging
import sys
import time

import meshio
import numpy as np

from .config import load_config, get_parameters_from_config
from .logging_config import setup_logging
from .mesh_io import mesh_from_meshio, mesh_field, read_mesh, read_points, write_mesh, write_points
from .model.MeshInterpolator import MeshInterpolator2D, MeshValueType

logger = logging.getLogger(__name__)


def run(params):
    """
    Run one interpolation job.

    Args:
        params (dict): Parameters from `get_parameters_from_config`.

    Returns:
        np.ndarray: Interpolated values, one per target; targets outside
        the source mesh hold the delete value.

    Raises:
        ValueError: Incomplete file paths, or an unknown value field.
    """
    if not params.get('source_mesh') or not params.get('value_field'):
        raise ValueError("'file_paths.source_mesh' and 'file_paths.value_field' must be configured")
    if bool(params.get('target_points')) == bool(params.get('target_mesh')):
        raise ValueError("Exactly one of 'file_paths.target_points' and 'file_paths.target_mesh' must be configured")

    start_time = time.time()
    mio_mesh = meshio.read(params['source_mesh'])
    source = mesh_from_meshio(mio_mesh, params['code_field'])
    source.build_derived_data(strict=params['strict_boundary_codes'])
    values, is_cell_data = mesh_field(mio_mesh, params['value_field'])
    value_type = MeshValueType.ELEMENTS if is_cell_data else MeshValueType.NODES
    logger.info("Source mesh %s: %d nodes, %d elements, field '%s' (%s values)", params['source_mesh'],
                source.number_of_nodes, source.number_of_elements, params['value_field'],
                "element" if is_cell_data else "node")

    interpolator = MeshInterpolator2D.from_config(source, value_type, params)

    target_mesh = None
    if params['target_points']:
        points = read_points(params['target_points'])
        target_x = points['x'].to_numpy()
        target_y = points['y'].to_numpy()
        interpolator.register_targets(np.column_stack((target_x, target_y)))
    else:
        target_mesh = read_mesh(params['target_mesh'])
        interpolator.set_target(target_mesh, value_type)

    result = interpolator.apply(values, value_type)
    logger.info("Interpolated %d targets in %.3f s", len(result), time.time() - start_time)

    output_file = params.get('output_file')
    if output_file:
        # delete values are written as NaN
        output = np.where(result == params['delete_value'], np.nan, result)
        name = params['value_field']
        if target_mesh is None:
            write_points(output_file, target_x, target_y, output, value_column=name)
        elif is_cell_data:
            write_mesh(output_file, target_mesh, cell_data={name: output})
        else:
            write_mesh(output_file, target_mesh, point_data={name: output})
    return result


def main(config_filename=None):
    config = load_config(config_filename)
    params = get_parameters_from_config(config)
    setup_logging(params['log_level'], params['log_file'])
    return run(params)


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
