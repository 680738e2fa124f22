# src/flexmesh/__init__.py
from .model.MeshData import MeshData, SMeshData, MeshNode, MeshElement, MeshUnit, create_mesh, create_smesh
from .model.MeshTopology import MeshFace, InvalidMeshError, LAND_CODE
from .model.MeshBoundary import (MeshBoundary, build_boundary_list, build_boundary_geometry,
                                 find_connected_sub_meshes)
from .model.MeshSearcher import MeshSearcher, MeshIntersectionCalculator, WeightType
from .model.CircularValues import CircularValueType
from .model.Interpolator import Interpolator, DELETE_VALUE
from .model.NodeInterpolation import MeshNodeInterpolation
from .model.MeshInterpolator import MeshInterpolator2D, MeshValueType, ElmtValueInterpolationType

__version__ = "0.1.0"
