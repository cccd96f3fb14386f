import torch
from typing import Sequence, Tuple, Union

from .check import check_coo


def lexsort(keys:Union[Sequence[torch.Tensor], torch.Tensor], dim=-1)->torch.Tensor:
    """ Multi level sort, the last key is the primary one (same as ``np.lexsort``)
    https://discuss.pytorch.org/t/numpy-lexsort-equivalent-in-pytorch/47850/4


    Parameters
    ----------
    keys: Sequence[torch.Tensor]
        sequence of ND Tensor of identical shape, or a stacked tensor
        whose first dimension indexes the keys

    dim: int
        the dimension for sorting


    Returns
    -------
    indices: torch.Tensor
        the sorted indices

    """
    if len(keys) == 0:
        raise ValueError(f"Must have at least 1 key, but {len(keys)=}.")
    if isinstance(keys, torch.Tensor) and keys.ndim < 2:
        raise ValueError(f"keys must be at least 2 dimensional, but {keys.ndim=}.")

    idx = keys[0].argsort(dim=dim, stable=True)
    for k in keys[1:]:
        idx = idx.gather(dim, k.gather(dim, idx).argsort(dim=dim, stable=True))

    return idx


def coalesce_coo(val:torch.Tensor,
                 row:torch.Tensor,
                 col:torch.Tensor,
                 shape:tuple
                 )->Tuple[torch.Tensor,
                          torch.Tensor,
                          torch.Tensor,
                          tuple]:
    """
    Sort the entries row-major and sum the ones sharing a coordinate

    Parameters
    ----------
    val: torch.Tensor
        [nnz, ...] values of the sparse matrix
    row: torch.Tensor
        [nnz] row indices of the sparse matrix
    col: torch.Tensor
        [nnz] column indices of the sparse matrix
    shape: tuple
        (m,n, ...) shape of the sparse matrix

    Returns
    -------
    val: torch.Tensor
        [nnz', ...] summed values, nnz' <= nnz
    row: torch.Tensor
        [nnz'] row indices
    col: torch.Tensor
        [nnz'] column indices
    shape: tuple
        unchanged shape
    """
    check_coo(val, row, col, shape)

    row = row.long()
    col = col.long()
    if row.shape[0] == 0:
        return val, row, col, shape

    n = shape[1]
    key = row * n + col
    key, inverse = torch.unique(key, sorted=True, return_inverse=True)

    out = val.new_zeros((key.shape[0],) + tuple(val.shape[1:]))
    out.index_add_(0, inverse, val)

    return out, key // n, key % n, shape
