"""Tests for the recent results store."""

import json
import os
import tempfile
import unittest

from artify.collage import CollageEntry, RecentResultsStore


class TestRecentResultsStore(unittest.TestCase):
    """Test cases for RecentResultsStore."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.temp_dir.name, 'collage-data.json')
        self.store = RecentResultsStore(self.path)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_missing_file_is_empty(self):
        self.assertEqual(self.store.list_recent(), [])

    def test_newest_first_and_bounded(self):
        """Test that entries are kept newest first and capped at 50."""
        for i in range(51):
            self.store.append(CollageEntry(id=i, image_data_uri=f"data:image/png;base64,{i}", style_name="Watercolor"))

        entries = self.store.list_recent()

        self.assertEqual(len(entries), 50)
        self.assertEqual(entries[0].id, 50)
        self.assertEqual(entries[-1].id, 1)

    def test_file_format(self):
        self.store.append(CollageEntry(id=1, image_data_uri="data:image/png;base64,AAAA", style_name="Pixel Art"))

        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        self.assertEqual(data, [{"id": 1, "imageDataUri": "data:image/png;base64,AAAA", "styleName": "Pixel Art"}])

    def test_corrupt_file_is_empty(self):
        """Test that an unreadable file reads as an empty collage."""
        with open(self.path, 'w', encoding='utf-8') as f:
            f.write("{not json")

        self.assertEqual(self.store.list_recent(), [])

        # The next write replaces the corrupt contents
        self.store.add("data:image/png;base64,AAAA", "Film Noir")
        self.assertEqual(len(self.store.list_recent()), 1)

    def test_malformed_entries_are_skipped(self):
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump([{"id": 1}, {"id": 2, "imageDataUri": "data:,", "styleName": "HDR Effect"}], f)

        entries = self.store.list_recent()

        self.assertEqual([entry.id for entry in entries], [2])

    def test_add_and_limit(self):
        first = self.store.add("data:image/png;base64,AAAA", "Watercolor")
        second = self.store.add("data:image/png;base64,BBBB", "Pixel Art")

        self.assertGreaterEqual(second.id, first.id)
        self.assertEqual(self.store.list_recent(1), [second])

    def test_custom_capacity_and_clear(self):
        store = RecentResultsStore(self.path, max_entries=2)
        for i in range(3):
            store.append(CollageEntry(id=i, image_data_uri="data:,", style_name="Chibi Art"))

        self.assertEqual([entry.id for entry in store.list_recent()], [2, 1])

        store.clear()
        self.assertEqual(store.list_recent(), [])


if __name__ == "__main__":
    unittest.main()
