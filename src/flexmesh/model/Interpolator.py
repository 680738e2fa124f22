# src/flexmesh/model/Interpolator.py
import sys

import numpy as np
from scipy import sparse

from .CircularValues import CircularValueType, to_reference, to_circular

DELETE_VALUE = -sys.float_info.max  # default delete value, most negative finite double


class InterpData:
    """Source indices and weights for one target"""

    __slots__ = ("indices", "weights")

    def __init__(self, indices, weights):
        self.indices = np.asarray(indices, dtype=np.int64)
        self.weights = np.asarray(weights, dtype=np.float64)

    def __repr__(self):
        return f"InterpData(indices={self.indices.tolist()}, weights={np.round(self.weights, 6).tolist()})"


class Interpolator:
    """
    Weighted sum interpolation from source values to target values.

    Each target value is sum(w_j * v_j) / sum(w_j) over its source values
    v_j that are not delete values. A target whose source values are all
    delete values, or whose weights are all zero, gets the delete value.
    """

    def __init__(self, interp_data, number_of_sources=None, delete_value=DELETE_VALUE,
                 circular_type=CircularValueType.NORMAL):
        self.interp_data = list(interp_data)
        self.delete_value = delete_value
        self.circular_type = circular_type

        if number_of_sources is None:
            number_of_sources = max((int(d.indices.max()) + 1 for d in self.interp_data if len(d.indices)),
                                    default=0)
        self.number_of_sources = number_of_sources

        # sparse (targets x sources) weight matrix
        indptr = np.zeros(len(self.interp_data) + 1, dtype=np.int64)
        indptr[1:] = np.cumsum([len(d.indices) for d in self.interp_data])
        if self.interp_data:
            indices = np.concatenate([d.indices for d in self.interp_data])
            data = np.concatenate([d.weights for d in self.interp_data])
        else:
            indices = np.zeros(0, dtype=np.int64)
            data = np.zeros(0, dtype=np.float64)
        self.weight_matrix = sparse.csr_matrix((data, indices, indptr),
                                               shape=(len(self.interp_data), number_of_sources))

    @property
    def number_of_targets(self):
        return len(self.interp_data)

    def interpolate(self, source_values, target_values=None):
        """
        Interpolate source values to the targets.

        Args:
            source_values (array_like): One value per source.
            target_values (np.ndarray, optional): Output array, created if None.

        Returns:
            np.ndarray: The target values.
        """
        source_values = np.asarray(source_values, dtype=np.float64)
        if len(source_values) < self.number_of_sources:
            raise ValueError(f"Expected {self.number_of_sources} source values, got {len(source_values)}")
        if target_values is None:
            target_values = np.empty(self.number_of_targets, dtype=np.float64)

        if self.circular_type != CircularValueType.NORMAL:
            self._interpolate_circular(source_values, target_values)
            return target_values

        valid = source_values != self.delete_value
        masked = np.where(valid, source_values, 0.0)
        value = self.weight_matrix @ masked
        weight = self.weight_matrix @ valid.astype(np.float64)
        with np.errstate(divide="ignore", invalid="ignore"):
            result = value / weight
        target_values[:] = np.where(weight == 0, self.delete_value, result)
        return target_values

    def _interpolate_circular(self, source_values, target_values):
        delval = self.delete_value
        for i, data in enumerate(self.interp_data):
            row_values = source_values[data.indices]
            valid = row_values != delval
            if not valid.any():
                target_values[i] = delval
                continue
            ref_value = row_values[valid][0]  # first valid source value
            value = 0.0
            weight = 0.0
            for v, w in zip(row_values[valid], data.weights[valid]):
                value += to_reference(self.circular_type, v, ref_value) * w
                weight += w
            if weight == 0:
                target_values[i] = delval
            else:
                target_values[i] = to_circular(self.circular_type, value / weight)
