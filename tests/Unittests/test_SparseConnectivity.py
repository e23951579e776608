"""
This file is part of SpikeGen.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""
import io
import os
import shutil
import tempfile
import unittest
import numpy
from numpy.testing import assert_array_equal, assert_allclose

from SpikeGen import SparseProjection, save_connectivity, load_connectivity, DataCorruptionError, InvalidConfiguration
from SpikeGen.intern.ConfigManagement import ConfigManager
from SpikeGen.core.Connectivity import pack_bitmask, unpack_bitmask, is_connected, set_bit, bit, bitmask_words, bitmask_from_projection

class test_SparseProjection(unittest.TestCase):
    """
    Compressed row representation of the synapses.
    """
    @classmethod
    def setUpClass(cls):
        cls.matrix = numpy.array([
            [0.0, 0.5, 0.0, 1.5],
            [0.0, 0.0, 0.0, 0.0],
            [2.0, 0.0, 0.25, 0.0],
        ])

    def test_from_matrix(self):
        projection = SparseProjection.from_matrix(self.matrix)

        self.assertEqual(projection.num_pre, 3)
        self.assertEqual(projection.num_post, 4)
        self.assertEqual(projection.conn_n, 4)
        assert_array_equal(projection.ind_in_g, [0, 2, 2, 4])
        assert_array_equal(projection.ind, [1, 3, 0, 2])
        assert_allclose(projection.weights, [0.5, 1.5, 2.0, 0.25])

    def test_round_trip(self):
        projection = SparseProjection.from_matrix(self.matrix)
        assert_allclose(projection.to_dense(), self.matrix)

    def test_invariants(self):
        projection = SparseProjection.from_matrix(self.matrix)
        ind_in_g = projection.ind_in_g.astype(numpy.int64)

        self.assertEqual(ind_in_g[0], 0)
        self.assertTrue(numpy.all(numpy.diff(ind_in_g) >= 0))
        self.assertEqual(ind_in_g[-1], projection.conn_n)
        for ipre in range(projection.num_pre):
            assert_array_equal(projection.row(ipre), numpy.nonzero(self.matrix[ipre])[0])
        assert_array_equal(projection.out_degree(), [2, 0, 2])
        self.assertEqual(projection.out_degree(2), 2)

    def test_from_lists(self):
        projection = SparseProjection.from_lists([[1, 3], [], [0, 2]], num_post=4)
        self.assertEqual(projection, SparseProjection.from_matrix(self.matrix, with_weights=False))

    def test_to_csr(self):
        csr = SparseProjection.from_matrix(self.matrix).to_csr()
        self.assertEqual(csr.shape, (3, 4))
        self.assertEqual(csr.nnz, 4)

    def test_first_offset(self):
        with self.assertRaises(DataCorruptionError):
            SparseProjection([1, 2], [0])

    def test_decreasing_offsets(self):
        with self.assertRaises(DataCorruptionError):
            SparseProjection([0, 2, 1, 2], [0, 1], num_post=2)

    def test_last_offset(self):
        with self.assertRaises(DataCorruptionError):
            SparseProjection([0, 1, 3], [0, 1], num_post=2)

    def test_index_out_of_range(self):
        with self.assertRaises(DataCorruptionError):
            SparseProjection([0, 1, 2], [0, 5], num_post=2)

    def test_weight_count(self):
        with self.assertRaises(DataCorruptionError):
            SparseProjection([0, 1, 2], [0, 1], num_post=2, weights=[1.0])


class test_Bitmask(unittest.TestCase):
    """
    Packing of the bitmask connectivity, the first synapse is the most
    significant bit of the first word.
    """
    def test_most_significant_bit(self):
        mask = numpy.zeros((1, 32), dtype=bool)
        mask[0, 0] = True
        words = pack_bitmask(mask)
        self.assertEqual(len(words), 1)
        self.assertEqual(int(words[0]), 0x80000000)
        self.assertTrue(bit(words[0], 0))
        self.assertFalse(bit(words[0], 31))

    def test_word_count(self):
        self.assertEqual(bitmask_words(3, 4), 1)
        self.assertEqual(bitmask_words(8, 4), 1)
        self.assertEqual(bitmask_words(11, 3), 2)

    def test_pack_unpack(self):
        rng = numpy.random.RandomState(42)
        mask = rng.uniform(size=(7, 9)) > 0.5
        words = pack_bitmask(mask)

        self.assertEqual(len(words), bitmask_words(7, 9))
        assert_array_equal(unpack_bitmask(words, 7, 9), mask)
        for ipre in range(7):
            for ipost in range(9):
                self.assertEqual(is_connected(words, ipre * 9 + ipost), mask[ipre, ipost])

    def test_set_bit(self):
        words = numpy.zeros(2, dtype=numpy.uint32)
        set_bit(words, 33)
        self.assertTrue(is_connected(words, 33))
        self.assertFalse(is_connected(words, 32))
        self.assertEqual(int(words[1]), 0x40000000)

    def test_from_projection(self):
        projection = SparseProjection.from_lists([[1, 3], [], [0, 2]], num_post=4)
        mask = unpack_bitmask(bitmask_from_projection(projection), 3, 4)
        assert_array_equal(mask, projection.to_dense() > 0)

    def test_from_projection_with_target_size(self):
        projection = SparseProjection([0, 1, 2], [3, 0])
        words = bitmask_from_projection(projection, 10)

        self.assertEqual(len(words), bitmask_words(2, 10))
        mask = unpack_bitmask(words, 2, 10)
        self.assertTrue(mask[0, 3])
        self.assertTrue(mask[1, 0])
        self.assertEqual(mask.sum(), 2)
        self.assertTrue(is_connected(words, 1 * 10 + 0))
        self.assertFalse(is_connected(words, 0 * 10 + 4))

    def test_from_projection_smaller_target(self):
        projection = SparseProjection.from_lists([[1, 3], [], [0, 2]], num_post=4)
        with self.assertRaises(InvalidConfiguration):
            bitmask_from_projection(projection, 3)


class test_ConnectivityFiles(unittest.TestCase):
    """
    Binary layout of the connectivity files: weights, row offsets and column
    indices, flat and in native byte order.
    """
    def setUp(self):
        ConfigManager().reset()
        self.folder = tempfile.mkdtemp()
        self.projection = SparseProjection.from_lists([[1, 3], [], [0, 2]], num_post=4, weights=[[0.5, 1.5], [], [2.0, 0.25]])

    def tearDown(self):
        shutil.rmtree(self.folder, True)
        ConfigManager().reset()

    def test_single_stream(self):
        stream = io.BytesIO()
        save_connectivity(self.projection, stream, precision="float")

        # 4 weights, 4 offsets and 4 indices of 4 bytes each
        self.assertEqual(len(stream.getvalue()), 48)

        stream.seek(0)
        loaded = load_connectivity(stream, 3, 4, num_post=4, precision="float")
        self.assertEqual(loaded.num_pre, 3)
        assert_array_equal(loaded.ind_in_g, self.projection.ind_in_g)
        assert_array_equal(loaded.ind, self.projection.ind)
        assert_allclose(loaded.weights, self.projection.weights)

    def test_three_files(self):
        names = [os.path.join(self.folder, name) for name in ['g.bin', 'indInG.bin', 'ind.bin']]
        save_connectivity(self.projection, *names, precision="double")

        self.assertEqual(os.path.getsize(names[0]), 4 * 8)
        self.assertEqual(os.path.getsize(names[1]), 4 * 4)
        self.assertEqual(os.path.getsize(names[2]), 4 * 4)

        loaded = load_connectivity(names[0], 3, 4, names[1], names[2], num_post=4, precision="double")
        self.assertEqual(loaded, self.projection)

    def test_global_precision(self):
        stream = io.BytesIO()
        ConfigManager().set('precision', 'double')
        save_connectivity(self.projection, stream)
        self.assertEqual(len(stream.getvalue()), 4 * 8 + 4 * 4 + 4 * 4)

    def test_short_read(self):
        stream = io.BytesIO()
        save_connectivity(self.projection, stream, precision="float")
        truncated = io.BytesIO(stream.getvalue()[:-3])

        with self.assertRaises(DataCorruptionError):
            load_connectivity(truncated, 3, 4, num_post=4, precision="float")

    def test_too_many_connections_requested(self):
        stream = io.BytesIO()
        save_connectivity(self.projection, stream, precision="float")
        stream.seek(0)

        with self.assertRaises(DataCorruptionError):
            load_connectivity(stream, 3, 10, num_post=4, precision="float")
