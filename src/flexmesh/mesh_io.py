# src/flexmesh/mesh_io.py
"""
File adapters: meshes through meshio, point clouds through pandas.

Mesh formats are whatever meshio reads and writes (VTK, VTU, Gmsh, ...).
Only 'triangle' and 'quad' cell blocks are used; other cell types (lines,
vertices) are ignored.
"""
import logging

import meshio
import numpy as np
import pandas as pd

from .model.MeshData import create_mesh, QUADRILATERAL_TYPE, TRIANGLE_TYPE

logger = logging.getLogger(__name__)

_CELL_TYPES = {"triangle": TRIANGLE_TYPE, "quad": QUADRILATERAL_TYPE}


def mesh_from_meshio(mio_mesh, code_field=None, projection=""):
    """
    Convert a meshio.Mesh into a MeshData.

    Args:
        mio_mesh (meshio.Mesh): Mesh with 'triangle' and/or 'quad' cell blocks.
        code_field (str): Point data field holding node boundary codes; all
            codes are 0 when not given.
        projection (str): Coordinate reference string.

    Raises:
        ValueError: No triangle or quad cells, or an unknown code field.
    """
    points = np.asarray(mio_mesh.points, dtype=np.float64)
    num_nodes = points.shape[0]
    x = points[:, 0]
    y = points[:, 1]
    z = points[:, 2] if points.shape[1] > 2 else np.zeros(num_nodes)

    if code_field is None:
        code = np.zeros(num_nodes, dtype=np.int64)
    elif code_field in mio_mesh.point_data:
        code = np.asarray(mio_mesh.point_data[code_field]).astype(np.int64).reshape(-1)
    else:
        raise ValueError(f"Point data field '{code_field}' not found, "
                         f"available: {list(mio_mesh.point_data.keys())}")

    connectivity = []
    element_types = []
    skipped = set()
    for cell_block in mio_mesh.cells:
        if cell_block.type not in _CELL_TYPES:
            skipped.add(cell_block.type)
            continue
        for nodes in cell_block.data:
            connectivity.append(np.asarray(nodes, dtype=np.int64))
            element_types.append(_CELL_TYPES[cell_block.type])
    if skipped:
        logger.debug("Ignored cell blocks of type: %s", ", ".join(sorted(skipped)))
    if not connectivity:
        raise ValueError("Mesh has no triangle or quad cells")

    node_ids = np.arange(1, num_nodes + 1)
    element_ids = np.arange(1, len(connectivity) + 1)
    return create_mesh(projection, node_ids, x, y, z, code, element_ids, element_types, connectivity)


def mesh_field(mio_mesh, name):
    """
    Scalar point or cell data field of a meshio.Mesh, in node or element order.

    Cell data is concatenated over the 'triangle' and 'quad' blocks, in the
    element order used by :func:`mesh_from_meshio`.

    Returns:
        tuple: (values, is_cell_data)
    """
    if name in mio_mesh.point_data:
        values = np.asarray(mio_mesh.point_data[name], dtype=np.float64)
        is_cell_data = False
    elif name in mio_mesh.cell_data:
        blocks = [np.asarray(data, dtype=np.float64)
                  for cell_block, data in zip(mio_mesh.cells, mio_mesh.cell_data[name])
                  if cell_block.type in _CELL_TYPES]
        values = np.concatenate(blocks)
        is_cell_data = True
    else:
        raise ValueError(f"Field '{name}' not found in point or cell data")
    if values.ndim > 1:
        raise ValueError(f"Field '{name}' has shape {values.shape}, only scalar fields are supported")
    return values, is_cell_data


def read_mesh(filepath, code_field=None, projection=""):
    """Read a mesh file with meshio into a MeshData."""
    mio_mesh = meshio.read(filepath)
    mesh = mesh_from_meshio(mio_mesh, code_field, projection)
    logger.info("Read %s: %d nodes, %d elements", filepath, mesh.number_of_nodes, mesh.number_of_elements)
    return mesh


def mesh_to_meshio(mesh, point_data=None, cell_data=None):
    """
    Convert a mesh into a meshio.Mesh.

    Elements are grouped in a 'triangle' and a 'quad' block; cell_data
    arrays (one value per element, in element order) are split accordingly.
    Node boundary codes are written as the point data field 'code'.
    """
    points = np.column_stack((mesh.x, mesh.y, mesh.z))
    triangles = [i for i in range(mesh.number_of_elements) if len(mesh.element_table[i]) == 3]
    quads = [i for i in range(mesh.number_of_elements) if len(mesh.element_table[i]) == 4]

    cells = []
    blocks = []
    if triangles:
        cells.append(("triangle", np.array([mesh.element_table[i] for i in triangles], dtype=np.int64)))
        blocks.append(triangles)
    if quads:
        cells.append(("quad", np.array([mesh.element_table[i] for i in quads], dtype=np.int64)))
        blocks.append(quads)

    mio_point_data = {"code": np.asarray(mesh.code)}
    for name, values in (point_data or {}).items():
        mio_point_data[name] = np.asarray(values, dtype=np.float64)

    mio_cell_data = {}
    for name, values in (cell_data or {}).items():
        values = np.asarray(values, dtype=np.float64)
        mio_cell_data[name] = [values[block] for block in blocks]  # one array per cell block

    return meshio.Mesh(points, cells, point_data=mio_point_data, cell_data=mio_cell_data)


def write_mesh(filepath, mesh, point_data=None, cell_data=None):
    """Write a mesh, with optional node and element fields, through meshio."""
    mesh_to_meshio(mesh, point_data, cell_data).write(filepath)
    logger.info("Wrote %s", filepath)


def read_points(filepath, x_column="x", y_column="y"):
    """
    Read a point cloud from a CSV file.

    Returns:
        pandas.DataFrame: At least the x and y columns; other columns
        (e.g. values) are kept.
    """
    df = pd.read_csv(filepath)
    missing = [c for c in (x_column, y_column) if c not in df.columns]
    if missing:
        raise ValueError(f"Point file {filepath} is missing column(s): {', '.join(missing)}")
    return df


def write_points(filepath, x, y, values=None, value_column="value"):
    """Write target points, and optionally interpolated values, to a CSV file."""
    df = pd.DataFrame({"x": np.asarray(x), "y": np.asarray(y)})
    if values is not None:
        df[value_column] = np.asarray(values)
    df.to_csv(filepath, index=False)
