"""
Tests for the two-way partition bookkeeping.
"""

import pytest
import torch
from itertools import product
import sys

sys.path.insert(0, "..")
from torch_sbd import (
    BlockPartition,
    build_partition,
    SizeMismatchError,
)
from torch_sbd import random as rnd


DEVICES = ['cpu'] + (['cuda'] if torch.cuda.is_available() else [])


def assert_consistent(part: BlockPartition, n: int):
    """Every index sits in exactly one list, at the position new_inds gives."""
    idx = torch.arange(n, device=part.device)
    is_a = part.is_a

    assert part.n == n
    assert part.size_a + part.size_b == n
    assert part.size_a == int(is_a.sum())

    assert torch.equal(part.orig_inds_a[part.new_inds[is_a]], idx[is_a])
    assert torch.equal(part.orig_inds_b[part.new_inds[~is_a]], idx[~is_a])
    assert torch.equal(torch.cat([part.orig_inds_a, part.orig_inds_b]).sort().values, idx)

    # stable: original order kept inside each subset
    assert bool((part.orig_inds_a[1:] > part.orig_inds_a[:-1]).all())
    assert bool((part.orig_inds_b[1:] > part.orig_inds_b[:-1]).all())


class TestBuildPartition:

    def test_interleaved(self):
        part = build_partition(4, [True, False, True, False])

        assert part.orig_inds_a.tolist() == [0, 2]
        assert part.orig_inds_b.tolist() == [1, 3]
        assert part.new_inds.tolist() == [0, 0, 1, 1]
        assert part.is_a.tolist() == [True, False, True, False]

    @pytest.mark.parametrize(
        ['n', 'p', 'device'],
        product([0, 1, 7, 64, 500],
                [0.0, 0.3, 0.5, 1.0],
                DEVICES)
        )
    def test_invariants(self, n, p, device):
        g = torch.Generator().manual_seed(n)
        mask = rnd.mask(n, p, device=device, generator=g)
        part = build_partition(n, mask)

        assert part.device.type == torch.device(device).type
        assert torch.equal(part.is_a, mask)
        assert_consistent(part, n)

    def test_all_true(self):
        part = build_partition(5, [True] * 5)
        assert part.size_a == 5
        assert part.size_b == 0
        assert part.orig_inds_a.tolist() == [0, 1, 2, 3, 4]
        assert part.new_inds.tolist() == [0, 1, 2, 3, 4]

    def test_all_false(self):
        part = build_partition(5, torch.zeros(5, dtype=torch.bool))
        assert part.size_a == 0
        assert part.size_b == 5
        assert part.orig_inds_b.tolist() == [0, 1, 2, 3, 4]
        assert_consistent(part, 5)

    def test_empty(self):
        part = build_partition(0, [])
        assert part.size_a == 0
        assert part.size_b == 0
        assert part.new_inds.shape == (0,)

    def test_numeric_mask(self):
        part = build_partition(3, torch.tensor([1, 0, 2]))
        assert part.is_a.dtype == torch.bool
        assert part.is_a.tolist() == [True, False, True]

    def test_mask_is_copied(self):
        mask = torch.tensor([True, False, True])
        part = build_partition(3, mask)
        mask[1] = True
        assert part.is_a.tolist() == [True, False, True]

    @pytest.mark.parametrize('mask', [
        [True, False, True],
        [True] * 5,
        torch.ones(2, 2, dtype=torch.bool),
    ])
    def test_size_mismatch(self, mask):
        with pytest.raises(SizeMismatchError):
            build_partition(4, mask)

    @pytest.mark.parametrize('n', [-1, 2.0, True])
    def test_invalid_n(self, n):
        with pytest.raises(ValueError):
            build_partition(n, [True, False])

    def test_to_device(self):
        part = build_partition(4, [True, False, True, False])
        moved = part.to('cpu')
        assert torch.equal(moved.new_inds, part.new_inds)
        assert moved.size_a == 2

    def test_repr(self):
        part = build_partition(4, [True, False, False, False])
        assert repr(part) == "BlockPartition(n=4, size_a=1, size_b=3, device=cpu)"
