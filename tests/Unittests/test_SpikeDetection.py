"""
This file is part of SpikeGen.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""
import unittest

from SpikeGen import SpikeDetector

class test_SpikeDetector(unittest.TestCase):
    """
    A true spike is only emitted on the rising edge of the threshold condition.
    """
    def test_rising_edges(self):
        detector = SpikeDetector()
        self.assertEqual(detector.detect([False, False, True, True, False, True]), [2, 5])

    def test_condition_held_from_start(self):
        detector = SpikeDetector(initial=True)
        self.assertEqual(detector.detect([True, True, False, True]), [3])

    def test_update(self):
        detector = SpikeDetector()
        self.assertTrue(detector.update(True))
        self.assertFalse(detector.update(True))
        self.assertFalse(detector.update(False))
        self.assertTrue(detector.update(True))
