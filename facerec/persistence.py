"""
Serialization of matrices and trained databases.

Two matrix formats are supported, both with the shape ahead of the data:
- text: a "rows cols" line, then one line of space-separated values per row
- binary: little-endian int32 rows and cols, then rows * cols float64 values
  in row-major order

A trained database is stored as two files: the training set (text: a counts
line, then one "label name" line per entry) and the training data (binary:
algorithm flags, then the mean face and the projection matrices).
"""

import struct

import numpy as np

from facerec.exceptions import PersistenceError
from facerec.matrix import Matrix

_HEADER = struct.Struct('<ii')
_DTYPE = np.dtype('<f8')


def write_matrix_text(stream, M):
    stream.write(f"{M.rows} {M.cols}\n")
    for row in M.data:
        stream.write(" ".join(f"{v:.17g}" for v in row) + "\n")


def read_matrix_text(stream):
    header = stream.readline().split()
    if len(header) != 2:
        raise PersistenceError(f"Invalid matrix header: {header!r}")
    try:
        rows, cols = int(header[0]), int(header[1])
    except ValueError as e:
        raise PersistenceError(f"Invalid matrix header: {header!r}") from e
    if rows < 0 or cols < 0:
        raise PersistenceError(f"Invalid matrix shape ({rows}, {cols})")

    M = Matrix(rows, cols)
    for i in range(rows):
        values = stream.readline().split()
        if len(values) != cols:
            raise PersistenceError(f"Row {i}: expected {cols} values, got {len(values)}")
        try:
            M.data[i] = [float(v) for v in values]
        except ValueError as e:
            raise PersistenceError(f"Row {i}: {e}") from e
    return M


def write_matrix_binary(stream, M):
    stream.write(_HEADER.pack(M.rows, M.cols))
    stream.write(M.data.astype(_DTYPE).tobytes(order='C'))


def _read_exact(stream, size):
    buf = stream.read(size)
    if len(buf) != size:
        raise PersistenceError(f"Unexpected end of stream: wanted {size} bytes, got {len(buf)}")
    return buf


def read_matrix_binary(stream):
    rows, cols = _HEADER.unpack(_read_exact(stream, _HEADER.size))
    if rows < 0 or cols < 0:
        raise PersistenceError(f"Invalid matrix shape ({rows}, {cols})")
    buf = _read_exact(stream, rows * cols * _DTYPE.itemsize)
    data = np.frombuffer(buf, dtype=_DTYPE).astype(np.float64).reshape(rows, cols)
    return Matrix.from_array(data)


def write_training_set(stream, num_classes, num_images, num_dimensions, entries):
    stream.write(f"{num_classes} {num_images} {num_dimensions}\n")
    for entry in entries:
        stream.write(f"{entry.label} {entry.name}\n")


def read_training_set(stream):
    """
    Returns:
        tuple: (num_classes, num_images, num_dimensions, [(label, name), ...])
    """
    header = stream.readline().split()
    try:
        num_classes, num_images, num_dimensions = (int(v) for v in header)
    except ValueError as e:
        raise PersistenceError(f"Invalid training set header: {header!r}") from e

    entries = []
    for k in range(num_images):
        line = stream.readline().rstrip("\n")
        parts = line.split(" ", 1)
        if len(parts) != 2:
            raise PersistenceError(f"Entry {k}: expected 'label name', got {line!r}")
        try:
            entries.append((int(parts[0]), parts[1]))
        except ValueError as e:
            raise PersistenceError(f"Entry {k}: invalid label {parts[0]!r}") from e
    return num_classes, num_images, num_dimensions, entries


def write_training_data(stream, mean_face, W_pca_tr, P_pca,
                        W_lda_tr=None, P_lda=None, W_ica_tr=None, P_ica=None):
    lda = W_lda_tr is not None
    ica = W_ica_tr is not None
    stream.write(_HEADER.pack(int(lda), int(ica)))

    for M in (mean_face, W_pca_tr, P_pca):
        write_matrix_binary(stream, M)
    if lda:
        write_matrix_binary(stream, W_lda_tr)
        write_matrix_binary(stream, P_lda)
    if ica:
        write_matrix_binary(stream, W_ica_tr)
        write_matrix_binary(stream, P_ica)


def read_training_data(stream):
    """
    Returns:
        dict: mean_face, W_pca_tr, P_pca and, when stored, W_lda_tr, P_lda,
              W_ica_tr, P_ica
    """
    lda, ica = _HEADER.unpack(_read_exact(stream, _HEADER.size))
    data = {
        "mean_face": read_matrix_binary(stream),
        "W_pca_tr": read_matrix_binary(stream),
        "P_pca": read_matrix_binary(stream),
    }
    if lda:
        data["W_lda_tr"] = read_matrix_binary(stream)
        data["P_lda"] = read_matrix_binary(stream)
    if ica:
        data["W_ica_tr"] = read_matrix_binary(stream)
        data["P_ica"] = read_matrix_binary(stream)
    return data
