"""
Helper constructions and sanity checks for sparse linear algebra code.

These are the small companions of the block decomposition: building and
regularising systems before they are split, and validating them.
"""

import warnings
import torch
from typing import Sequence, Union, Optional

from .check import check_square, DimensionMismatchError, ValidationError
from .sparse_tensor import SparseTensor, as_sparse_tensor


# Default offset added to the diagonal to regularise near-singular systems
DEFAULT_DIAGONAL_SHIFT = 1e-4

# Factor applied to the mean magnitude of the entries when the symmetry
# tolerance is derived from the matrix itself
RELATIVE_SYMMETRY_EPS = 1e-8


def _require_scalar(A: SparseTensor, what: str):
    if A.is_block:
        raise ValueError(f"{what} is only defined for scalar-valued matrices, got block shape {A.block_shape}")


# =============================================================================
# Simple constructions
# =============================================================================

def identity_matrix(
    n: int,
    dtype: torch.dtype = torch.float64,
    device: Optional[Union[str, torch.device]] = None,
) -> SparseTensor:
    """
    Sparse n x n identity.

    Parameters
    ----------
    n : int
        Dimension.
    dtype : torch.dtype, optional
        Scalar type of the entries. Default: torch.float64.
    device : str or torch.device, optional
        Target device.
    """
    idx = torch.arange(n, device=device)
    return SparseTensor(torch.ones(n, dtype=dtype, device=device), idx, idx.clone(), (n, n))


def shift_diagonal(
    A: Union[SparseTensor, torch.Tensor],
    shift: Union[float, complex] = DEFAULT_DIAGONAL_SHIFT,
) -> SparseTensor:
    """
    Return ``A + shift * I``, coalesced.

    Parameters
    ----------
    A : SparseTensor or torch.Tensor
        [N, N] square sparse matrix.
    shift : float, optional
        Offset added to every diagonal entry. Default: 1e-4.
    """
    A = as_sparse_tensor(A)
    _require_scalar(A, "shift_diagonal")
    check_square(A.shape)

    n = A.sparse_shape[0]
    eye = identity_matrix(n, dtype=A.dtype, device=A.device)
    return (A + eye * shift).coalesce()


def _stack(mats: Sequence[Union[SparseTensor, torch.Tensor]], axis: int) -> SparseTensor:
    if len(mats) == 0:
        raise ValueError("Need at least one matrix to stack")
    mats = [as_sparse_tensor(m) for m in mats]

    # the dimension that must agree across all matrices
    other = 1 - axis
    first = mats[0]
    for i, m in enumerate(mats[1:], start=1):
        if m.shape[other] != first.shape[other] or m.block_shape != first.block_shape:
            expected = list(m.shape)
            expected[other] = first.shape[other]
            raise DimensionMismatchError(f"mats[{i}]", m.shape, tuple(expected[:2]) + first.block_shape)

    vals, rows, cols = [], [], []
    offset = 0
    for m in mats:
        vals.append(m.values.to(first.dtype))
        if axis == 0:
            rows.append(m.row_indices + offset)
            cols.append(m.col_indices)
        else:
            rows.append(m.row_indices)
            cols.append(m.col_indices + offset)
        offset += m.shape[axis]

    shape = [first.shape[0], first.shape[1]]
    shape[axis] = offset
    return SparseTensor(
        torch.cat(vals), torch.cat(rows), torch.cat(cols), tuple(shape) + first.block_shape
    )


def vertical_stack(mats: Sequence[Union[SparseTensor, torch.Tensor]]) -> SparseTensor:
    """
    Stack matrices on top of each other.

    All matrices must have the same number of columns.

    Examples
    --------
    >>> C = vertical_stack([A, B])  # [[A], [B]]
    """
    return _stack(mats, axis=0)


def horizontal_stack(mats: Sequence[Union[SparseTensor, torch.Tensor]]) -> SparseTensor:
    """
    Stack matrices side by side.

    All matrices must have the same number of rows.

    Examples
    --------
    >>> C = horizontal_stack([A, B])  # [A, B]
    """
    return _stack(mats, axis=1)


# =============================================================================
# Complex -> real
# =============================================================================

def complex_to_real(A: Union[SparseTensor, torch.Tensor]) -> SparseTensor:
    """
    Blow up an M x N complex system into a 2M x 2N real one.

    Each entry ``a + bi`` at ``(i, j)`` becomes the block

        [ a  -b ]
        [ b   a ]

    at ``(2i, 2j)``, so that the real matrix acts on vectors laid out as
    ``[re0, im0, re1, im1, ...]`` (see :func:`complex_to_real_vector`).
    """
    A = as_sparse_tensor(A)
    _require_scalar(A, "complex_to_real")

    val = A.values
    if not val.is_complex():
        warnings.warn(f"complex_to_real got a real matrix ({A.dtype}), imaginary part taken as zero")
        re, im = val, torch.zeros_like(val)
    else:
        re, im = val.real, val.imag

    row, col = A.row_indices, A.col_indices
    M, N = A.sparse_shape
    return SparseTensor(
        torch.cat([re, -im, im, re]),
        torch.cat([2 * row, 2 * row, 2 * row + 1, 2 * row + 1]),
        torch.cat([2 * col, 2 * col + 1, 2 * col, 2 * col + 1]),
        (2 * M, 2 * N),
    )


def complex_to_real_vector(vec: torch.Tensor) -> torch.Tensor:
    """
    Interleave real and imaginary parts: [N, ...] complex -> [2N, ...] real.
    """
    vec = torch.as_tensor(vec)
    if not vec.is_complex():
        warnings.warn(f"complex_to_real_vector got a real vector ({vec.dtype}), imaginary part taken as zero")
        re, im = vec, torch.zeros_like(vec)
    else:
        re, im = vec.real, vec.imag
    n = vec.shape[0]
    return torch.stack([re, im], dim=1).reshape((2 * n,) + tuple(vec.shape[1:]))


# =============================================================================
# Sanity checks
# =============================================================================

def check_finite(A: Union[SparseTensor, torch.Tensor]):
    """
    Verify that a matrix (sparse or dense) has finite entries.

    Raises
    ------
    ValidationError
        Naming the first non-finite entry.
    """
    if isinstance(A, torch.Tensor) and A.layout == torch.strided:
        bad = ~torch.isfinite(A)
        if bad.any():
            idx = tuple(int(i) for i in torch.nonzero(bad)[0])
            raise ValidationError(f"Non-finite entry {A[idx].item()} at {idx}")
        return

    A = as_sparse_tensor(A)
    bad = ~torch.isfinite(A.values)
    if bad.ndim > 1:
        bad = bad.reshape(bad.shape[0], -1).any(dim=1)
    if bad.any():
        k = int(torch.nonzero(bad)[0])
        i, j = int(A.row_indices[k]), int(A.col_indices[k])
        raise ValidationError(f"Non-finite entry {A.values[k].tolist()} at ({i}, {j})")


def _check_mirror(A: Union[SparseTensor, torch.Tensor], absolute_eps: float, conjugate: bool):
    name = "hermitian" if conjugate else "symmetric"
    A = as_sparse_tensor(A)
    _require_scalar(A, f"check_{name}")
    check_square(A.shape)

    A = A.coalesce()
    if A.nnz == 0:
        return

    N = A.sparse_shape[1]
    row, col, val = A.row_indices, A.col_indices, A.values

    eps = absolute_eps
    if eps < 0:
        eps = RELATIVE_SYMMETRY_EPS * val.abs().to(torch.float64).mean().item()

    # A^T holds A[j, i] at (i, j); its coalesced keys are sorted for searchsorted
    At = A.T().coalesce()
    key = row * N + col
    key_t = At.row_indices * N + At.col_indices
    pos = torch.searchsorted(key_t, key).clamp(max=key_t.shape[0] - 1)
    found = key_t[pos] == key
    mirror = torch.where(found, At.values[pos], torch.zeros_like(val))
    if conjugate:
        mirror = mirror.conj()

    bad = (val - mirror).abs() > eps
    if bad.any():
        k = int(torch.nonzero(bad)[0])
        i, j = int(row[k]), int(col[k])
        raise ValidationError(
            f"Matrix is not {name}: A[{i}, {j}] = {val[k].item()} but A[{j}, {i}] = {mirror[k].item()}"
            f"{' (conjugated)' if conjugate else ''}, tolerance {eps:g}"
        )


def check_symmetric(A: Union[SparseTensor, torch.Tensor], absolute_eps: float = -1.):
    """
    Verify that a sparse matrix is symmetric.

    Parameters
    ----------
    A : SparseTensor or torch.Tensor
        [N, N] square sparse matrix.
    absolute_eps : float, optional
        Largest accepted ``|A[i, j] - A[j, i]|``. A negative value derives
        the tolerance from the scale of the matrix,
        ``RELATIVE_SYMMETRY_EPS * mean(|A|)``. Default: -1.

    Raises
    ------
    DimensionMismatchError
        If ``A`` is not square.
    ValidationError
        On the first mirrored pair differing by more than the tolerance.
    """
    _check_mirror(A, absolute_eps, conjugate=False)


def check_hermitian(A: Union[SparseTensor, torch.Tensor], absolute_eps: float = -1.):
    """
    Verify that a sparse matrix is hermitian (``A[i, j] == conj(A[j, i])``).

    For real matrices this coincides with :func:`check_symmetric`.
    """
    _check_mirror(A, absolute_eps, conjugate=True)
