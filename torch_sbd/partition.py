"""
Two-way partition of an index set.

A partition splits ``{0, ..., N-1}`` into the disjoint ordered subsets A and B
and records, for every original index, its position inside its own subset.
Order inside each subset is the original order, so moving data between the
original numbering and the subset numberings is a pure gather/scatter.
"""

import torch
from dataclasses import dataclass
from typing import Union, Sequence, Optional

from .check import check_mask


@dataclass(frozen=True, eq=False, repr=False)
class BlockPartition:
    """
    Index bookkeeping of a two-way partition.

    Attributes
    ----------
    orig_inds_a : torch.Tensor
        [|A|] original index of each element of A, ascending.
    orig_inds_b : torch.Tensor
        [|B|] original index of each element of B, ascending.
    new_inds : torch.Tensor
        [N] index of each original element in its new system (A or B).
    is_a : torch.Tensor
        [N] bool, whether each original element belongs to A.
    """
    orig_inds_a: torch.Tensor
    orig_inds_b: torch.Tensor
    new_inds: torch.Tensor
    is_a: torch.Tensor

    @property
    def n(self) -> int:
        """Dimension of the original index set."""
        return self.is_a.shape[0]

    @property
    def size_a(self) -> int:
        return self.orig_inds_a.shape[0]

    @property
    def size_b(self) -> int:
        return self.orig_inds_b.shape[0]

    @property
    def device(self) -> torch.device:
        return self.is_a.device

    def to(self, device: Union[str, torch.device]) -> "BlockPartition":
        """Copy of the partition on another device."""
        return BlockPartition(
            self.orig_inds_a.to(device),
            self.orig_inds_b.to(device),
            self.new_inds.to(device),
            self.is_a.to(device),
        )

    def __repr__(self) -> str:
        return f"BlockPartition(n={self.n}, size_a={self.size_a}, size_b={self.size_b}, device={self.device})"


def build_partition(
    n: int,
    a_set: Union[torch.Tensor, Sequence[bool]],
    device: Optional[Union[str, torch.device]] = None,
) -> BlockPartition:
    """
    Partition ``{0, ..., n-1}`` into A (``a_set`` True) and B (``a_set`` False).

    Parameters
    ----------
    n : int
        Dimension of the index set.
    a_set : torch.Tensor or Sequence[bool]
        [n] membership mask. Numeric masks are read as ``a_set != 0``.
    device : str or torch.device, optional
        Device of the result. Default: the device of ``a_set``.

    Returns
    -------
    BlockPartition

    Raises
    ------
    SizeMismatchError
        If ``a_set`` is not one-dimensional of length ``n``.

    Examples
    --------
    >>> part = build_partition(4, [True, False, True, False])
    >>> part.orig_inds_a  # tensor([0, 2])
    >>> part.orig_inds_b  # tensor([1, 3])
    >>> part.new_inds     # tensor([0, 0, 1, 1])
    """
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise ValueError(f"n must be a non-negative int, got {n!r}")

    is_a = torch.as_tensor(a_set, device=device)
    if is_a.dtype != torch.bool:
        is_a = is_a != 0
    check_mask(is_a, n)

    # nonzero returns ascending indices, which keeps the original order
    orig_inds_a = torch.nonzero(is_a, as_tuple=True)[0]
    orig_inds_b = torch.nonzero(~is_a, as_tuple=True)[0]

    # running count of each subset gives the position inside that subset
    rank_a = torch.cumsum(is_a, dim=0) - 1
    rank_b = torch.cumsum(~is_a, dim=0) - 1
    new_inds = torch.where(is_a, rank_a, rank_b)

    return BlockPartition(orig_inds_a, orig_inds_b, new_inds, is_a.clone())
