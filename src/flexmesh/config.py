# src/flexmesh/config.py
import importlib.resources
import logging

import yaml

from .model.CircularValues import CircularValueType
from .model.Interpolator import DELETE_VALUE
from .model.MeshInterpolator import ElmtValueInterpolationType
from .model.MeshSearcher import DEFAULT_SEARCH_TOLERANCE

logger = logging.getLogger(__name__)


def load_config(config_filename=None):
    """
    Load and return the YAML configuration.

    Without a file name the default configuration shipped inside the
    'flexmesh' package is loaded, through importlib.resources, so it also
    works when the package is installed as a zip.

    Raises:
        FileNotFoundError: The file does not exist.
        yaml.YAMLError: The file is not valid YAML.
    """
    if config_filename is None:
        config_file_path_obj = importlib.resources.files('flexmesh').joinpath('config.yaml')
        with importlib.resources.as_file(config_file_path_obj) as config_filepath:
            with open(config_filepath, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
            logger.debug("Configuration loaded from package file %s", config_filepath)
    else:
        with open(config_filename, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)
        logger.debug("Configuration loaded from %s", config_filename)
    return config_data or {}


def _enum_value(enum_cls, text, key):
    try:
        return enum_cls(str(text).lower())
    except ValueError:
        valid = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Invalid value '{text}' for '{key}', expected one of: {valid}") from None


def get_parameters_from_config(config_data):
    """Extract the structured parameters from a loaded configuration dict, with defaults."""
    params = {}

    # file paths
    fp_conf = config_data.get('file_paths', {}) or {}
    for key in ('source_mesh', 'value_field', 'code_field', 'target_points', 'target_mesh', 'output_file'):
        params[key] = fp_conf.get(key)

    # interpolation
    ip_conf = config_data.get('interpolation', {}) or {}
    delete_value = ip_conf.get('delete_value')
    params['delete_value'] = DELETE_VALUE if delete_value is None else float(delete_value)
    params['circular_type'] = _enum_value(CircularValueType, ip_conf.get('circular_type', 'normal'),
                                          'interpolation.circular_type')
    params['allow_extrapolation'] = bool(ip_conf.get('allow_extrapolation', False))
    params['element_value_interpolation'] = _enum_value(
        ElmtValueInterpolationType, ip_conf.get('element_value_interpolation', 'elmt_node_values'),
        'interpolation.element_value_interpolation')
    params['smooth_delete_chop'] = bool(ip_conf.get('smooth_delete_chop', False))

    # point search
    search_conf = config_data.get('search', {}) or {}
    params['search_tolerance'] = float(search_conf.get('tolerance', DEFAULT_SEARCH_TOLERANCE))
    if params['search_tolerance'] < 0:
        raise ValueError(f"'search.tolerance' must not be negative, got {params['search_tolerance']}")

    # topology
    topo_conf = config_data.get('topology', {}) or {}
    params['strict_boundary_codes'] = bool(topo_conf.get('strict_boundary_codes', False))

    # logging
    log_conf = config_data.get('logging', {}) or {}
    level_name = str(log_conf.get('level', 'INFO')).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Invalid value '{level_name}' for 'logging.level'")
    params['log_level'] = level
    params['log_file'] = log_conf.get('file')

    return params
