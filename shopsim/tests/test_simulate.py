import contextlib
import io
import os
import tempfile
import unittest

from shopsim import simulate
from shopsim.config import SimulationConfig
from shopsim.stats import CUSTOMERS_FILENAME, SUMMARY_FILENAME, TRACE_FILENAME
from shopsim.tests.stubs import StubRandomSource


class RunOutputTest(unittest.TestCase):
    def test_trace_then_summary_line(self) -> None:
        config = SimulationConfig(n_servers=1, n_self_checkouts=0, max_queue_length=1, n_customers=2,
                                  rest_probability=0.0, greedy_probability=0.0)
        source = StubRandomSource(interarrivals=[0.0], service_default=5.0)
        out = io.StringIO()
        result = simulate.run(config, out=out, random_source=source)
        self.assertEqual(result.stats.trace_rows, [])

        lines = out.getvalue().splitlines()
        self.assertEqual(lines[0], "0.000 1 arrives")
        self.assertEqual(lines[-2], "10.000 2 done serving by server 1")
        self.assertEqual(lines[-1], "[2.500 2 0]")


class SimulateCliTest(unittest.TestCase):
    """Drive the CLI end to end with an input file and CSV outputs."""

    def test_main_writes_trace_and_csvs(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = os.path.join(tmpdir, "input.txt")
            with open(input_path, "w", encoding="utf-8") as handle:
                handle.write("3 2 1 2 40\n1.2 1.0 0.8 0.4 0.5\n")
            output_dir = os.path.join(tmpdir, "output")

            stdout = io.StringIO()
            with contextlib.redirect_stdout(stdout):
                code = simulate.main(["--input", input_path, "--output-dir", output_dir, "--log-file", ""])

            self.assertEqual(code, 0)
            lines = stdout.getvalue().splitlines()
            self.assertRegex(lines[-1], r"^\[\d+\.\d{3} \d+ \d+\]$")
            for name in (TRACE_FILENAME, CUSTOMERS_FILENAME, SUMMARY_FILENAME):
                self.assertTrue(os.path.isfile(os.path.join(output_dir, name)), name)

    def test_invalid_input_returns_error_code(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = os.path.join(tmpdir, "input.txt")
            with open(input_path, "w", encoding="utf-8") as handle:
                handle.write("1 0 0 2 10 1.0 1.0 1.0 0.5 0.5\n")
            stdout = io.StringIO()
            with contextlib.redirect_stdout(stdout):
                code = simulate.main(["--input", input_path, "--no-csv", "--log-file", ""])
            self.assertEqual(code, 2)
            self.assertEqual(stdout.getvalue(), "")

    def test_seed_flag_overrides_input(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = os.path.join(tmpdir, "input.txt")
            with open(input_path, "w", encoding="utf-8") as handle:
                handle.write("1 2 1 2 30 1.0 1.0 1.0 0.5 0.5\n")
            traces = []
            for seed in ("1", "1"):
                stdout = io.StringIO()
                with contextlib.redirect_stdout(stdout):
                    simulate.main(["--input", input_path, "--seed", seed, "--no-csv", "--log-file", ""])
                traces.append(stdout.getvalue())
            self.assertEqual(traces[0], traces[1])


if __name__ == "__main__":
    unittest.main()
