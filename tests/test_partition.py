import pytest

from matmulverify.parallel.partition import RowPartition


@pytest.mark.parametrize("total_rows", [0, 1, 10, 11, 100, 101])
@pytest.mark.parametrize("workers", [1, 2, 3, 5, 7])
def test_partition_covers_rows_contiguously(total_rows, workers):
    partition = RowPartition(total_rows, workers)
    expected_start = 0
    for rank in range(workers):
        start, stop = partition.bounds(rank)
        assert start == expected_start
        assert stop - start == partition.local_rows(rank)
        expected_start = stop
    assert expected_start == total_rows


def test_remainder_goes_to_leading_workers():
    partition = RowPartition(11, 3)
    assert partition.rows_per_worker == 3
    assert partition.remainder == 2
    assert [partition.local_rows(r) for r in range(3)] == [4, 4, 3]
    assert [partition.offset(r) for r in range(3)] == [0, 4, 8]


def test_counts_and_displacements_in_elements_and_bytes():
    partition = RowPartition(10, 3)
    assert partition.counts(row_width=10) == [40, 30, 30]
    assert partition.displacements(row_width=10) == [0, 40, 70]
    assert partition.byte_displacements(row_width=10, itemsize=8) == [0, 320, 560]


def test_more_workers_than_rows():
    partition = RowPartition(2, 5)
    assert [partition.local_rows(r) for r in range(5)] == [1, 1, 0, 0, 0]
    assert [partition.offset(r) for r in range(5)] == [0, 1, 2, 2, 2]


def test_invalid_arguments():
    with pytest.raises(ValueError):
        RowPartition(10, 0)
    with pytest.raises(ValueError):
        RowPartition(-1, 2)
