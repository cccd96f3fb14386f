import torch
from .sort import coalesce_coo


def coo_eq(
    val1:torch.Tensor,
    row1:torch.Tensor,
    col1:torch.Tensor,
    shape1:tuple,
    val2:torch.Tensor,
    row2:torch.Tensor,
    col2:torch.Tensor,
    shape2:tuple
    )->bool:
    """
    Exact equality of two COO matrices as linear operators

    Both matrices are coalesced first, so the order of the entries and the way
    a value is split over coincident entries do not matter, but explicitly
    stored zeros do.

    Parameters
    ----------
    val1: torch.Tensor
        [n1, ...] values of the sparse matrix
    row1: torch.Tensor
        [n1] row indices of the sparse matrix
    col1: torch.Tensor
        [n1] column indices of the sparse matrix
    shape1: tuple
        (m1,n1, ...) shape of the sparse matrix

    val2, row2, col2, shape2:
        same for the second matrix

    Returns
    -------
    bool
        whether the two matrices hold the same entries

    """
    if tuple(shape1) != tuple(shape2):
        return False

    val1, row1, col1, _ = coalesce_coo(val1, row1, col1, shape1)
    val2, row2, col2, _ = coalesce_coo(val2, row2, col2, shape2)

    if val1.shape[0] != val2.shape[0]: # not same number of nnz
        return False

    return bool(torch.equal(row1, row2) and torch.equal(col1, col2) and torch.equal(val1, val2))


def coo_allclose(
    val1:torch.Tensor,
    row1:torch.Tensor,
    col1:torch.Tensor,
    shape1:tuple,
    val2:torch.Tensor,
    row2:torch.Tensor,
    col2:torch.Tensor,
    shape2:tuple,
    rtol:float=1e-5,
    atol:float=1e-8,
    )->bool:
    """
    Same as :func:`coo_eq` but values are compared with ``torch.allclose``
    and a coordinate stored in only one matrix is compared against zero
    """
    if tuple(shape1) != tuple(shape2):
        return False

    n = shape1[1]
    val1, row1, col1, _ = coalesce_coo(val1, row1, col1, shape1)
    val2, row2, col2, _ = coalesce_coo(val2, row2, col2, shape2)

    # union of both patterns, v1 - v2 summed per coordinate
    key = torch.cat([row1 * n + col1, row2 * n + col2])
    val2 = val2.to(val1.dtype)
    diff = torch.cat([val1, -val2])
    key, inverse = torch.unique(key, return_inverse=True)
    summed = diff.new_zeros((key.shape[0],) + tuple(diff.shape[1:]))
    summed.index_add_(0, inverse, diff)

    # |v2| per coordinate, zero where only the first matrix stores a value
    magnitude = summed.abs().zero_()
    magnitude.index_add_(0, inverse[val1.shape[0]:], val2.abs())

    return bool((summed.abs() <= atol + rtol * magnitude).all())
