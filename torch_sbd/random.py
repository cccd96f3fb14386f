import torch
from typing import Tuple, Optional


def coo(shape,
        density:float=0.1,
        symmetric:bool=False,
        device=torch.device('cpu'),
        dtype=torch.float64,
        generator:Optional[torch.Generator]=None,
        )->Tuple[torch.Tensor,
                 torch.Tensor,
                 torch.Tensor,
                 tuple]:
    """
    random COO matrix generator

    Coordinates are drawn independently, so the result usually stores some
    coordinates more than once, like a matrix assembled from overlapping
    stencils.

    Parameters
    ----------
    shape : tuple
        (m,n, ...) shape of the matrix, trailing dimensions are block dimensions
    density : float, optional
        Number of stored entries divided by m*n, by default 0.1
    symmetric : bool, optional
        Mirror every entry so that the matrix is symmetric, by default False
    device : torch.device, optional
        Device of the matrix, by default torch.device('cpu')
    dtype : torch.dtype, optional
        Data type of the matrix, by default torch.float64
    generator : torch.Generator, optional
        Source of randomness, by default the global one

    Returns
    -------
    Tuple[torch.Tensor, torch.Tensor, torch.Tensor, tuple]
        val: torch.Tensor
            [nnz, ...] values of the sparse matrix
        row: torch.Tensor
            [nnz] row indices of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
        shape: tuple
            (m,n, ...) shape of the sparse matrix
    """
    assert 0 <= density, "density must be non negative"

    m, n = shape[:2]
    if symmetric and m != n:
        raise ValueError(f"A symmetric matrix must be square, got shape {tuple(shape)}")
    nnz = int(m * n * density) if m > 0 and n > 0 else 0
    row = torch.randint(0, max(m, 1), (nnz,), generator=generator).to(device)
    col = torch.randint(0, max(n, 1), (nnz,), generator=generator).to(device)
    val = torch.randn((nnz,) + tuple(shape[2:]), generator=generator, dtype=dtype).to(device)
    if symmetric:
        row, col = torch.cat([row, col]), torch.cat([col, row])
        val = torch.cat([val, val])
    return val, row, col, tuple(shape)


def mask(n:int,
         p:float=0.5,
         device=torch.device('cpu'),
         generator:Optional[torch.Generator]=None,
         )->torch.Tensor:
    """
    random membership mask, each index is True with probability ``p``

    Returns
    -------
    torch.Tensor
        [n] bool tensor
    """
    assert 0 <= p <= 1, "p must be in [0, 1]"
    return (torch.rand(n, generator=generator) < p).to(device)
