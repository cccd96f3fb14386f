import torch
from typing import Sequence


class ShapeException(ValueError):
    def __init__(self, name, shape, expected_shape):
        self.name = name
        self.shape = shape
        self.expected_shape = expected_shape
        super().__init__(f"{name} has shape {shape} expected {expected_shape}")


class SizeMismatchError(ShapeException):
    """A vector or mask length disagrees with the expected dimension."""


class DimensionMismatchError(ShapeException):
    """A matrix is not square, or its dimension disagrees with its partners."""


class ValidationError(ValueError):
    """A data-quality precondition (symmetry, finiteness, ...) is violated."""


def check_coo(val:torch.Tensor,
              row:torch.Tensor,
              col:torch.Tensor,
              shape:tuple
              ):
    """
    Check the COO format

    Parameters
    ----------

    val: torch.Tensor
        [nnz, ...] values of the sparse matrix
    row: torch.Tensor
        [nnz] row indices of the sparse matrix
    col: torch.Tensor
        [nnz] column indices of the sparse matrix
    shape: tuple
        (m,n, ...) shape of the sparse matrix, empty dimensions are allowed

    Indices must lie in [0, m) and [0, n), negative indices are rejected.

    """
    if not row.ndim == 1:
        raise ShapeException("row", tuple(row.shape), "[nnz]")
    if not col.ndim == 1:
        raise ShapeException("col", tuple(col.shape), "[nnz]")
    if not val.shape[0] == row.shape[0]:
        raise ShapeException("val", tuple(val.shape), "[nnz, ...]")
    if not val.shape[0] == col.shape[0]:
        raise ShapeException("val", tuple(val.shape), "[nnz, ...]")
    if not (len(shape) >= 2 and shape[0] >= 0 and shape[1] >= 0):
        raise ShapeException("shape", tuple(shape), "(m,n)")
    if tuple(val.shape[1:]) != tuple(shape[2:]):
        raise ShapeException("val", tuple(val.shape), "[nnz" + "".join(f", {d}" for d in shape[2:]) + "]")
    if row.shape[0] > 0:
        if not (int(row.min()) >= 0 and int(row.max()) < shape[0]):
            raise ShapeException("row", (int(row.min()), int(row.max())), f"indices in [0, {shape[0]})")
        if not (int(col.min()) >= 0 and int(col.max()) < shape[1]):
            raise ShapeException("col", (int(col.min()), int(col.max())), f"indices in [0, {shape[1]})")

def check_csr(val:torch.Tensor,
              rowptr:torch.Tensor,
              col:torch.Tensor,
              shape:tuple):
    """
    Check the CSR format

    Parameters
    ----------
    val: torch.Tensor
        [n, ...] values of the sparse matrix
    rowptr: torch.Tensor
        [m+1] rowptr of the sparse matrix
    col: torch.Tensor
        [n] column indices of the sparse matrix
    shape: tuple
        (m,n) shape of the sparse matrix
    """
    m, n = shape[:2]
    if not (rowptr.ndim == 1 and rowptr.shape[0] == m+1):
        raise ShapeException("rowptr", tuple(rowptr.shape), f"[{m+1}]")
    if not col.ndim == 1:
        raise ShapeException("col", tuple(col.shape), "[nnz]")
    if not val.shape[0] == rowptr[-1]:
        raise ShapeException("val", tuple(val.shape), "[nnz, ...]")
    if not val.shape[0] == col.shape[0]:
        raise ShapeException("val", tuple(val.shape), "[nnz, ...]")

def check_csc(val:torch.Tensor,
              row:torch.Tensor,
              colptr:torch.Tensor,
              shape:tuple):
    """
    Check the CSC format

    Parameters
    ----------
    val: torch.Tensor
        [n, ...] values of the sparse matrix
    row: torch.Tensor
        [n] row indices of the sparse matrix
    colptr: torch.Tensor
        [n+1] colptr of the sparse matrix
    shape: tuple
        (m,n) shape of the sparse matrix
    """
    m, n = shape[:2]
    if not row.ndim == 1:
        raise ShapeException("row", tuple(row.shape), "[nnz]")
    if not (colptr.ndim == 1 and colptr.shape[0] == n+1):
        raise ShapeException("colptr", tuple(colptr.shape), f"[{n+1}]")
    if not val.shape[0] == colptr[-1]:
        raise ShapeException("val", tuple(val.shape), "[nnz, ...]")
    if not val.shape[0] == row.shape[0]:
        raise ShapeException("val", tuple(val.shape), "[nnz, ...]")

def check_square(shape:tuple, name:str="A"):
    """
    Check that the sparse dimensions of a matrix are square

    Parameters
    ----------
    shape: tuple
        (m,n, ...) shape of the sparse matrix
    name: str
        name reported in the error message
    """
    if not shape[0] == shape[1]:
        raise DimensionMismatchError(name, tuple(shape), "(n,n)")

def check_mask(mask:torch.Tensor, n:int, name:str="a_set"):
    """
    Check that a membership mask covers exactly ``n`` indices

    Parameters
    ----------
    mask: torch.Tensor
        [n] membership mask
    n: int
        expected length
    """
    if not (mask.ndim == 1 and mask.shape[0] == n):
        raise SizeMismatchError(name, tuple(mask.shape), f"[{n}]")

def check_vector(vec:torch.Tensor, n:int, name:str="vec"):
    """
    Check the leading dimension of a (possibly multi-column) vector

    Parameters
    ----------
    vec: torch.Tensor
        [n, ...] dense vector
    n: int
        expected leading dimension
    """
    if not (vec.ndim >= 1 and vec.shape[0] == n):
        raise SizeMismatchError(name, tuple(vec.shape), f"[{n}, ...]")

def check_same_trailing(vecs:Sequence[torch.Tensor], names:Sequence[str]):
    """
    Check that vectors agree on every dimension but the leading one
    """
    trailing = tuple(vecs[0].shape[1:])
    for vec, name in zip(vecs[1:], names[1:]):
        if tuple(vec.shape[1:]) != trailing:
            raise SizeMismatchError(name, tuple(vec.shape), "[*" + "".join(f", {d}" for d in trailing) + "]")
