import torch
import numpy as np
from typing import Tuple
from .check import check_coo, check_csr, check_csc
from .sort import lexsort

try:
    import scipy.sparse as sp
    SCIPY_AVAILABLE = True
except ImportError:
    SCIPY_AVAILABLE = False


def is_scipy_available() -> bool:
    """Check if SciPy is available"""
    return SCIPY_AVAILABLE

#################
# coo, csr, csc
#################

def coo2csr(val:torch.Tensor,
            row:torch.Tensor,
            col:torch.Tensor,
            shape:tuple
            )->Tuple[torch.Tensor,
                     torch.Tensor,
                     torch.Tensor,
                     tuple]:
    """
    Convert COO format to CSR format

    Parameters
    ----------
        val: torch.Tensor
            [nnz, ...] values of the sparse matrix
        row: torch.Tensor
            [nnz] row indices of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
        shape: tuple
            (m,n) shape of the sparse matrix
    Returns
    -------
        val: torch.Tensor
            [nnz, ...] values of the sparse matrix
        rowptr: torch.Tensor
            [m+1] rowptr of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
        shape: tuple
            (m,n) shape of the sparse matrix
    """
    check_coo(val, row, col, shape)

    m = shape[0]

    arg    = lexsort([col, row])
    row    = row[arg]
    col    = col[arg]
    val    = val[arg]
    rowptr = torch.zeros(m + 1, dtype=torch.long, device=val.device)
    rowcount   = torch.bincount(row, minlength=m)
    rowptr[1:] = torch.cumsum(rowcount, 0)

    return val, rowptr, col, shape

def csr2coo(val:torch.Tensor,
            rowptr:torch.Tensor,
            col:torch.Tensor,
            shape:tuple
            )->Tuple[torch.Tensor,
                     torch.Tensor,
                     torch.Tensor,
                     tuple]:
    """
    Convert CSR format to COO format

    Parameters
    ----------
        val: torch.Tensor
            [nnz, ...] values of the sparse matrix
        rowptr: torch.Tensor
            [m+1] rowptr of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
        shape: tuple
            (m,n) shape of the sparse matrix

    Returns
    -------
        val: torch.Tensor
            [nnz, ...] values of the sparse matrix
        row: torch.Tensor
            [nnz] row indices of the sparse matrix
        col: torch.Tensor
            [nnz] column indices of the sparse matrix
        shape: tuple
            (m,n) shape of the sparse matrix
    """
    check_csr(val, rowptr, col, shape)

    m = shape[0]
    row  = torch.repeat_interleave(
        torch.arange(m, dtype=torch.long, device=val.device),
        rowptr[1:] - rowptr[:-1]
    )
    return val, row, col.long(), shape

def coo2csc(val:torch.Tensor,
            row:torch.Tensor,
            col:torch.Tensor,
            shape:tuple
            )->Tuple[torch.Tensor,
                     torch.Tensor,
                     torch.Tensor,
                     tuple]:
    """
    Convert COO format to CSC format

    Returns
    -------
        val: torch.Tensor
            [nnz, ...] values of the sparse matrix
        row: torch.Tensor
            [nnz] row indices of the sparse matrix
        colptr: torch.Tensor
            [n+1] colptr of the sparse matrix
        shape: tuple
            (m,n) shape of the sparse matrix
    """
    check_coo(val, row, col, shape)

    n      = shape[1]
    arg    = lexsort([row, col])
    row    = row[arg]
    col    = col[arg]
    val    = val[arg]
    colptr = torch.zeros(n + 1, dtype=torch.long, device=val.device)
    colcount   = torch.bincount(col, minlength=n)
    colptr[1:] = torch.cumsum(colcount, 0)

    return val, row, colptr, shape

def csc2coo(val:torch.Tensor,
            row:torch.Tensor,
            colptr:torch.Tensor,
            shape:tuple
            )->Tuple[torch.Tensor,
                     torch.Tensor,
                     torch.Tensor,
                     tuple]:
    """
    Convert CSC format to COO format
    """
    check_csc(val, row, colptr, shape)

    n = shape[1]
    col  = torch.repeat_interleave(
        torch.arange(n, dtype=torch.long, device=val.device),
        colptr[1:] - colptr[:-1]
    )
    return val, row.long(), col, shape


######################
# dense
######################

def coo2dense(val:torch.Tensor,
              row:torch.Tensor,
              col:torch.Tensor,
              shape:tuple
              )->torch.Tensor:
    """
    Convert COO format to dense matrix, coincident entries are summed

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
    dense: torch.Tensor
        [m, n, ...] dense matrix

    """
    check_coo(val, row, col, shape)

    m, n = shape[:2]
    flat = torch.zeros((m * n,) + tuple(shape[2:]), dtype=val.dtype, device=val.device)
    flat.index_add_(0, row.long() * n + col.long(), val)

    return flat.reshape(shape)


######################
# scipy
######################

def coo_to_scipy(val:torch.Tensor,
                 row:torch.Tensor,
                 col:torch.Tensor,
                 shape:tuple
                 )->"sp.coo_matrix":
    """Convert PyTorch COO tensors to a SciPy COO matrix (scalar values only)"""
    if not SCIPY_AVAILABLE:
        raise ImportError("SciPy is required to convert to scipy.sparse")
    check_coo(val, row, col, shape)
    if len(shape) != 2:
        raise ValueError(f"Only scalar-valued matrices can be converted to SciPy, got shape {shape}")

    val_np = val.detach().cpu().numpy()
    row_np = row.detach().cpu().numpy()
    col_np = col.detach().cpu().numpy()
    return sp.coo_matrix((val_np, (row_np, col_np)), shape=tuple(shape))

def scipy_to_coo(A:"sp.spmatrix",
                 device=None
                 )->Tuple[torch.Tensor,
                          torch.Tensor,
                          torch.Tensor,
                          Tuple[int, int]]:
    """Convert any SciPy sparse matrix to PyTorch COO tensors"""
    if not SCIPY_AVAILABLE:
        raise ImportError("SciPy is required to convert from scipy.sparse")

    A = sp.coo_matrix(A)
    val = torch.from_numpy(np.ascontiguousarray(A.data)).to(device)
    row = torch.from_numpy(A.row.astype(np.int64)).to(device)
    col = torch.from_numpy(A.col.astype(np.int64)).to(device)
    return val, row, col, tuple(A.shape)
