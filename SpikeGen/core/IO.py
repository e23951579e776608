"""
Contains functions to save and load the connectivity of sparse synapse groups.

The binary layout is flat, without any header, in native byte order:

1. the weights: conn_n values of the model precision,
2. the row offsets (ind_in_g): num_pre + 1 unsigned 32-bit integers,
3. the column indices (ind): conn_n signed 32-bit integers.

The three arrays are either stored one after the other in a single file, or
in three separate files.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

import numpy as np

from SpikeGen.intern import Messages
from SpikeGen.intern.ConfigManagement import get_global_config
from SpikeGen.core.Connectivity import SparseProjection

def precision_dtype(precision=None):
    "numpy type of the weights for the precision 'float' or 'double' (default: the global configuration)."
    if precision is None:
        precision = get_global_config('precision')
    if precision == "float":
        return np.dtype(np.float32)
    elif precision == "double":
        return np.dtype(np.float64)
    raise Messages.InvalidConfiguration("unknown precision " + str(precision))

def _write_array(stream, array, dtype):
    stream.write(np.ascontiguousarray(array, dtype=dtype).tobytes())

def _read_array(stream, dtype, count, what):
    """
    Reads exactly *count* elements of *dtype*. A short read means that the
    file is truncated and raises a DataCorruptionError.
    """
    dtype = np.dtype(dtype)
    num_bytes = count * dtype.itemsize
    data = stream.read(num_bytes)
    if len(data) != num_bytes:
        raise Messages.DataCorruptionError(
            "Connectivity file: expected " + str(count) + " " + what + " (" + str(num_bytes) + " bytes), but only " + str(len(data)) + " bytes could be read.")
    return np.frombuffer(data, dtype=dtype).copy()

def _open(target, mode):
    "Opens a path, file-like objects are returned unchanged."
    if hasattr(target, 'read') or hasattr(target, 'write'):
        return target, False
    return open(target, mode), True

def _weights_of(projection):
    if projection.weights is None:
        Messages._error("save_connectivity(): the SparseProjection has no weights to store.")
    return projection.weights

def save_connectivity(projection, g_file, ind_in_g_file=None, ind_file=None, precision=None):
    """
    Writes a SparseProjection.

    If only *g_file* is given, the three arrays are written to it in order.
    Otherwise the weights, row offsets and column indices go to the respective files.
    Each target is a path or a binary file object.
    """
    dtype = precision_dtype(precision)
    weights = _weights_of(projection)

    if (ind_in_g_file is None) != (ind_file is None):
        Messages._error("save_connectivity(): either one or three files must be provided.")

    targets = [g_file] if ind_in_g_file is None else [g_file, ind_in_g_file, ind_file]
    streams = []
    try:
        for target in targets:
            streams.append(_open(target, 'wb'))
        arrays = [(weights, dtype), (projection.ind_in_g, np.uint32), (projection.ind, np.int32)]
        for idx, (array, array_type) in enumerate(arrays):
            stream = streams[0][0] if len(streams) == 1 else streams[idx][0]
            _write_array(stream, array, array_type)
    finally:
        for stream, owned in streams:
            if owned:
                stream.close()

    Messages._debug("Saved", projection.conn_n, "connections.")

def load_connectivity(g_file, num_pre, conn_n, ind_in_g_file=None, ind_file=None, num_post=None, precision=None):
    """
    Reads a SparseProjection of *num_pre* presynaptic neurons and *conn_n* connections.

    The files are read as described in save_connectivity(). Short reads raise a
    DataCorruptionError, the invariants of the result are validated.
    """
    dtype = precision_dtype(precision)

    if (ind_in_g_file is None) != (ind_file is None):
        Messages._error("load_connectivity(): either one or three files must be provided.")

    sources = [g_file] if ind_in_g_file is None else [g_file, ind_in_g_file, ind_file]
    streams = []
    try:
        for source in sources:
            streams.append(_open(source, 'rb'))
        requests = [(dtype, conn_n, "weights"), (np.uint32, num_pre + 1, "row offsets"), (np.int32, conn_n, "column indices")]
        arrays = []
        for idx, (array_type, count, what) in enumerate(requests):
            stream = streams[0][0] if len(streams) == 1 else streams[idx][0]
            arrays.append(_read_array(stream, array_type, count, what))
    finally:
        for stream, owned in streams:
            if owned:
                stream.close()

    weights, ind_in_g, ind = arrays
    return SparseProjection(ind_in_g, ind, num_post=num_post, weights=weights)
