import os
import tempfile
import unittest

from shopsim import run_sweeps, verify


class SweepOutcomeTest(unittest.TestCase):
    """Every customer in a sweep experiment is either served or leaves."""

    def test_outcomes_balance_for_core_sweeps(self) -> None:
        spec_path = os.path.abspath(
            os.path.join(os.path.dirname(__file__), "..", "sweeps", "baseline_sweeps.csv")
        )
        experiments, param_columns = run_sweeps.load_sweep_spec(spec_path)
        target_ids = {"baseline", "no_rest", "no_queue"}
        experiments = [exp for exp in experiments if exp.experiment_id in target_ids]
        self.assertEqual(len(experiments), 3, "No experiments loaded for outcome balance test")
        self.assertNotIn("rest_probability", [k for exp in experiments if exp.experiment_id == "no_queue"
                                              for k in exp.parameters])

        with tempfile.TemporaryDirectory() as tmpdir:
            for exp in experiments:
                self.assertTrue(run_sweeps.run_single_experiment(exp, tmpdir), exp.experiment_id)

            for exp in experiments:
                summary_path = os.path.join(tmpdir, exp.experiment_id, run_sweeps.SUMMARY_FILENAME)
                metrics = run_sweeps.read_summary_metrics(summary_path)
                self.assertEqual(metrics["customers_arrived"], exp.parameters["n_customers"])
                self.assertEqual(
                    metrics["customers_served"] + metrics["customers_left"],
                    metrics["customers_arrived"],
                    exp.experiment_id,
                )

            frame = run_sweeps.build_aggregate(experiments, param_columns, tmpdir)
            self.assertEqual(sorted(frame["experiment_id"]), sorted(target_ids))
            plot_path = run_sweeps.plot_average_wait(frame, tmpdir)
            self.assertTrue(os.path.isfile(plot_path))

            run_reports, passed = verify.verify_sweep(tmpdir, 1e-6, fail_fast=False)
            self.assertEqual(len(run_reports), 3)
            self.assertTrue(passed)

    def test_invalid_experiment_is_reported_not_raised(self) -> None:
        exp = run_sweeps.SweepExperiment("broken", {"n_servers": 0, "n_self_checkouts": 0})
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertFalse(run_sweeps.run_single_experiment(exp, tmpdir))


if __name__ == "__main__":
    unittest.main()
