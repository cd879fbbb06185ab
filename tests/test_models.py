"""Tests for models: bucket memory arithmetic, firmware version, visual modes."""

import unittest

from zkraken.models import Bucket, DeviceStatus, FirmwareVersion, VisualMode


class TestBucket(unittest.TestCase):

    def test_memory_slot_is_800_per_index(self):
        self.assertEqual(Bucket.for_payload(3, 4096).memory_slot, 2400)
        self.assertEqual(Bucket.for_payload(0, 4096).memory_slot, 0)
        self.assertEqual(Bucket.for_payload(14, 4096).memory_slot, 11200)

    def test_slot_count_aligned(self):
        self.assertEqual(Bucket.for_payload(0, 4096).memory_slot_count, 4)

    def test_slot_count_truncates(self):
        self.assertEqual(Bucket.for_payload(0, 4095).memory_slot_count, 3)
        self.assertEqual(Bucket.for_payload(0, 5000).memory_slot_count, 4)

    def test_slot_count_under_one_kib_is_zero(self):
        self.assertEqual(Bucket.for_payload(0, 500).memory_slot_count, 0)

    def test_full_frame(self):
        self.assertEqual(Bucket.for_payload(1, 320 * 320 * 4).memory_slot_count, 400)

    def test_id_is_index_plus_one(self):
        self.assertEqual(Bucket.for_payload(6, 0).id, 7)

    def test_frozen(self):
        bucket = Bucket.for_payload(1, 1024)
        with self.assertRaises(AttributeError):
            bucket.index = 2  # type: ignore[misc]


class TestFirmwareVersion(unittest.TestCase):

    def test_str(self):
        self.assertEqual(str(FirmwareVersion(5, 7, 0)), "5.7.0")

    def test_tuple(self):
        self.assertEqual(tuple(FirmwareVersion(1, 2, 3)), (1, 2, 3))


class TestVisualMode(unittest.TestCase):

    def test_values(self):
        self.assertEqual(VisualMode.BLANK, 0)
        self.assertEqual(VisualMode.LIQUID_TEMP, 2)
        self.assertEqual(VisualMode.DUAL_INFOGRAPHIC, 4)
        self.assertEqual(VisualMode.BUCKET, 4)


class TestDeviceStatus(unittest.TestCase):

    def test_equality(self):
        a = DeviceStatus(30, 2362, 80, 1729, 80)
        b = DeviceStatus(liquid_temp=30, pump_rpm=2362, pump_duty=80,
                         fan_rpm=1729, fan_duty=80)
        self.assertEqual(a, b)
