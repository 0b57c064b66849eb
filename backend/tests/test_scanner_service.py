import unittest

from boutique_pos.services.scanner_service import KeyEvent, ScannerClassifier, classifier_from_config


def burst(code, start=1000, step=50, terminator=True):
    events = [KeyEvent(ch, start + i * step) for i, ch in enumerate(code)]
    if terminator:
        events.append(KeyEvent("Enter", start + len(code) * step))
    return events


class ScannerClassifierTests(unittest.TestCase):
    def setUp(self):
        self.scans = []
        self.classifier = ScannerClassifier(min_length=3, time_threshold_ms=100, on_scan=self.scans.append)

    def test_fast_burst_emits_code(self):
        tokens = self.classifier.feed(burst("ABC", step=50))
        self.assertEqual(tokens, ["ABC"])
        self.assertEqual(self.scans, ["ABC"])
        self.assertEqual(self.classifier.buffer, "")

    def test_slow_typing_emits_nothing(self):
        tokens = self.classifier.feed(burst("ABC", step=200))
        self.assertEqual(tokens, [])
        self.assertEqual(self.scans, [])

    def test_gap_equal_to_threshold_is_rapid(self):
        tokens = self.classifier.feed(burst("XYZ", step=100))
        self.assertEqual(tokens, ["XYZ"])

    def test_buffer_below_min_length_is_discarded(self):
        tokens = self.classifier.feed(burst("AB", step=10))
        self.assertEqual(tokens, [])
        self.assertEqual(self.classifier.buffer, "")

    def test_slow_key_restarts_buffer(self):
        events = [
            KeyEvent("h", 0),
            KeyEvent("i", 500),
        ] + burst("7501", start=2000, step=20)
        tokens = self.classifier.feed(events)
        self.assertEqual(tokens, ["7501"])

    def test_human_prefix_is_dropped_when_burst_follows(self):
        events = [KeyEvent("q", 0)] + burst("ABC", start=1000, step=30)
        self.assertEqual(self.classifier.feed(events), ["ABC"])

    def test_non_character_keys_are_ignored(self):
        events = [
            KeyEvent("A", 0),
            KeyEvent("Shift", 5),
            KeyEvent("B", 40),
            KeyEvent("ArrowLeft", 60),
            KeyEvent("C", 80),
            KeyEvent("Enter", 120),
        ]
        self.assertEqual(self.classifier.feed(events), ["ABC"])

    def test_ignored_keys_do_not_touch_timing(self):
        self.classifier.handle_key("A", 0)
        self.classifier.handle_key("F5", 90)
        self.assertEqual(self.classifier.last_key_time, 0)

    def test_enter_outcome_requests_prevent_default(self):
        self.classifier.handle_key("1", 0)
        self.classifier.handle_key("2", 10)
        self.classifier.handle_key("3", 20)
        outcome = self.classifier.handle_key("Enter", 30)
        self.assertEqual(outcome.scanned, "123")
        self.assertTrue(outcome.prevent_default)

    def test_short_enter_does_not_prevent_default(self):
        outcome = self.classifier.handle_key("Enter", 0)
        self.assertIsNone(outcome.scanned)
        self.assertFalse(outcome.prevent_default)

    def test_consecutive_scans(self):
        events = burst("AAA", start=0, step=10) + burst("BBBB", start=1000, step=10)
        self.assertEqual(self.classifier.feed(events), ["AAA", "BBBB"])

    def test_reset(self):
        self.classifier.handle_key("A", 0)
        self.classifier.reset()
        self.assertEqual(self.classifier.buffer, "")
        self.assertIsNone(self.classifier.last_key_time)

    def test_invalid_parameters(self):
        with self.assertRaises(ValueError):
            ScannerClassifier(min_length=0)
        with self.assertRaises(ValueError):
            ScannerClassifier(time_threshold_ms=-1)

    def test_classifier_from_config(self):
        classifier = classifier_from_config({"SCANNER_MIN_LENGTH": 5, "SCANNER_TIME_THRESHOLD_MS": 30})
        self.assertEqual(classifier.min_length, 5)
        self.assertEqual(classifier.time_threshold_ms, 30.0)
        self.assertEqual(classifier.feed(burst("ABCD", step=10)), [])
        self.assertEqual(classifier.feed(burst("ABCDE", start=5000, step=10)), ["ABCDE"])
