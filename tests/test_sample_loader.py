import pathlib
import tempfile
import unittest

import numpy as np

from biospectra.dataio.sample_loader import iter_blocks, load_csv, load_samples


class SampleLoaderTest(unittest.TestCase):
    def test_load_csv_without_header(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "no_header.csv"
            path.write_text("1,2,3\n4,5,6\n", encoding="utf-8")

            data = load_csv(path)

            np.testing.assert_array_equal(data, np.array([[1, 2, 3], [4, 5, 6]]))

    def test_load_csv_with_header(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "with_header.csv"
            path.write_text("time,x,y\n1,2,3\n4,5,6\n", encoding="utf-8")

            data = load_csv(path)

            np.testing.assert_array_equal(data, np.array([[1, 2, 3], [4, 5, 6]]))

    def test_load_samples_single_column_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "raw.csv"
            path.write_text("raw\n10\n-20\n30\n", encoding="utf-8")

            samples = load_samples(path)

            np.testing.assert_array_equal(samples, [10.0, -20.0, 30.0])

    def test_load_samples_column_out_of_range(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = pathlib.Path(tmpdir) / "raw.csv"
            path.write_text("1,2\n3,4\n", encoding="utf-8")

            np.testing.assert_array_equal(load_samples(path, 1), [2.0, 4.0])
            with self.assertRaises(ValueError):
                load_samples(path, 2)

    def test_iter_blocks_drops_partial_tail(self):
        blocks = list(iter_blocks(np.arange(10), 4))

        self.assertEqual(len(blocks), 2)
        np.testing.assert_array_equal(blocks[1], [4, 5, 6, 7])

    def test_iter_blocks_requires_positive_size(self):
        with self.assertRaises(ValueError):
            list(iter_blocks(np.zeros(4), 0))


if __name__ == "__main__":
    unittest.main()
