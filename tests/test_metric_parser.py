"""
Tests for the GMV and duration parser.

Covers:
- GMV rule priority (GMV LANGSUNG > GMV > largest RP amount)
- Indonesian number format and the K multiplier
- OCR misreadings of the GMV label
- Duration cascade (Durasi h jam m menit, Durasi m menit, bare hours)
- is_valid_gmv / format_rupiah helpers
"""
import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from parsing.metric_parser import (
    apply_multiplier,
    clean_number,
    format_rupiah,
    is_valid_gmv,
    match_gmv_rule,
    parse_duration,
    parse_gmv,
)


class TestNumberGrammar(unittest.TestCase):

    def test_thousands_separator_dropped(self):
        self.assertEqual(clean_number('1.234.567'), 1234567)

    def test_comma_is_decimal_point(self):
        self.assertEqual(clean_number('12,5'), 12.5)

    def test_garbage_is_zero(self):
        self.assertEqual(clean_number('..'), 0)

    def test_k_suffix(self):
        self.assertEqual(apply_multiplier('5K'), 5000)
        self.assertEqual(apply_multiplier('1,5K'), 1500)


class TestParseGMV(unittest.TestCase):

    def test_gmv_langsung_wins(self):
        text = "Ringkasan\nGMV Langsung\nRp 1.234.567\nGMV Rp 9.999.999"
        self.assertEqual(parse_gmv(text), 1234567)
        self.assertEqual(match_gmv_rule(text), 'gmv_langsung')

    def test_gmv_langsung_with_separator_run(self):
        self.assertEqual(parse_gmv("GMV LANGSUNG ... RP 1.234.567"), 1234567)

    def test_plain_gmv_label(self):
        text = "Penonton 1.200\nGMV: Rp 850.000\nPesanan 12"
        self.assertEqual(parse_gmv(text), 850000)
        self.assertEqual(match_gmv_rule(text), 'gmv_total')

    def test_k_amount_without_label(self):
        self.assertEqual(parse_gmv("RP 5K"), 5000)

    def test_max_rupiah_when_no_label(self):
        text = "Komisi Rp 10.000\nPendapatan Rp 250.000\nBiaya Rp 5.000"
        self.assertEqual(parse_gmv(text), 250000)
        self.assertEqual(match_gmv_rule(text), 'max_rupiah')

    def test_zero_labelled_amount_falls_through(self):
        self.assertEqual(parse_gmv("GMV Rp 0\nTotal Rp 75.000"), 75000)

    def test_misread_label_repaired(self):
        self.assertEqual(parse_gmv("GMY Langsung Rp 42.000\nRp 900.000"), 42000)
        self.assertEqual(parse_gmv("BMV Rp 1.000"), 1000)

    def test_nothing_found(self):
        self.assertEqual(parse_gmv("Durasi 1 jam"), 0)
        self.assertEqual(parse_gmv(""), 0)
        self.assertIsNone(match_gmv_rule("no amounts here"))

    def test_integral_result_is_int(self):
        self.assertIsInstance(parse_gmv("Rp 15.000"), int)

    def test_pure(self):
        text = "GMV Rp 3.500.000 Rp 9.000.000"
        self.assertEqual(parse_gmv(text), parse_gmv(text))


class TestParseDuration(unittest.TestCase):

    def test_hours_and_minutes(self):
        self.assertEqual(parse_duration("Durasi: 1 jam 30 menit"), "1 jam 30 menit")

    def test_hours_and_mnt(self):
        self.assertEqual(parse_duration("Durasi 2 jam 5 mnt"), "2 jam 5 menit")

    def test_hours_only(self):
        self.assertEqual(parse_duration("Durasi 3 jam"), "3 jam")

    def test_zero_hours_omitted(self):
        self.assertEqual(parse_duration("Durasi 0 jam 45 menit"), "45 menit")

    def test_minutes_only(self):
        self.assertEqual(parse_duration("Durasi 45 menit"), "45 menit")

    def test_bare_hours(self):
        self.assertEqual(parse_duration("LIVE selama 4 jam hari ini"), "4 jam")

    def test_bare_hours_out_of_range(self):
        self.assertIsNone(parse_duration("Tayang 30 jam"))

    def test_no_duration(self):
        self.assertIsNone(parse_duration("GMV Rp 1.000.000"))
        self.assertIsNone(parse_duration(""))


class TestHelpers(unittest.TestCase):

    def test_is_valid_gmv(self):
        self.assertTrue(is_valid_gmv(15000))
        self.assertFalse(is_valid_gmv(0))
        self.assertFalse(is_valid_gmv(-5))
        self.assertFalse(is_valid_gmv(10_000_000_000))

    def test_format_rupiah(self):
        self.assertEqual(format_rupiah(1234567), "Rp 1.234.567")
        self.assertEqual(format_rupiah(0), "Rp 0")
        self.assertEqual(format_rupiah(999), "Rp 999")


if __name__ == '__main__':
    unittest.main()
