import os
import unittest
from unittest import mock

from shopsim.config import INPUT_FIELDS, SEED_OVERRIDE_ENV_VAR, ConfigError, SimulationConfig


class FromTokensTest(unittest.TestCase):
    def test_parses_values_in_input_order(self) -> None:
        config = SimulationConfig.from_tokens("7 2 1 3 10 1.5 2.0 0.5 0.25 0.75".split())
        self.assertEqual(config.seed, 7)
        self.assertEqual(config.n_servers, 2)
        self.assertEqual(config.max_queue_length, 3)
        self.assertIsInstance(config.n_customers, int)
        self.assertAlmostEqual(config.arrival_rate, 1.5)
        self.assertAlmostEqual(config.greedy_probability, 0.75)
        self.assertEqual(list(config.as_dict()), list(INPUT_FIELDS))

    def test_wrong_token_count_is_rejected(self) -> None:
        with self.assertRaises(ConfigError):
            SimulationConfig.from_tokens(["1", "2"])

    def test_non_numeric_token_is_rejected(self) -> None:
        with self.assertRaises(ConfigError):
            SimulationConfig.from_tokens("1 two 1 2 10 1 1 1 0.5 0.5".split())


class OverridesTest(unittest.TestCase):
    def test_keys_are_case_insensitive_and_coerced(self) -> None:
        config = SimulationConfig().with_overrides({"N_CUSTOMERS": "25", "service_rate": 3})
        self.assertEqual(config.n_customers, 25)
        self.assertIsInstance(config.service_rate, float)

    def test_fractional_value_for_count_is_rejected(self) -> None:
        for raw in (2.7, "2.7"):
            with self.subTest(raw=raw):
                with self.assertRaises(ConfigError):
                    SimulationConfig().with_overrides({"n_servers": raw})

    def test_whole_float_for_count_is_accepted(self) -> None:
        config = SimulationConfig().with_overrides({"n_servers": 3.0, "max_queue_length": " 4 "})
        self.assertEqual(config.n_servers, 3)
        self.assertIsInstance(config.n_servers, int)
        self.assertEqual(config.max_queue_length, 4)

    def test_unknown_key_is_rejected(self) -> None:
        with self.assertRaises(ConfigError):
            SimulationConfig().with_overrides({"n_tills": 3})

    def test_original_is_unchanged(self) -> None:
        base = SimulationConfig()
        base.with_overrides({"seed": 99})
        self.assertEqual(base.seed, SimulationConfig().seed)


class ValidateTest(unittest.TestCase):
    def test_defaults_are_valid(self) -> None:
        config = SimulationConfig()
        self.assertIs(config.validate(), config)

    def test_rejects_impossible_parameters(self) -> None:
        bad = [
            {"n_servers": 0, "n_self_checkouts": 0},
            {"n_servers": -1},
            {"max_queue_length": -1},
            {"n_customers": -3},
            {"arrival_rate": 0.0},
            {"service_rate": -1.0},
            {"rest_rate": 0.0},
            {"rest_probability": 1.5},
            {"greedy_probability": -0.1},
        ]
        for overrides in bad:
            with self.subTest(overrides=overrides):
                with self.assertRaises(ConfigError):
                    SimulationConfig().with_overrides(overrides).validate()

    def test_rest_rate_irrelevant_without_servers(self) -> None:
        config = SimulationConfig(n_servers=0, n_self_checkouts=2, rest_rate=0.0)
        self.assertIs(config.validate(), config)


class SeedOverrideTest(unittest.TestCase):
    def test_environment_overrides_default_seed(self) -> None:
        with mock.patch.dict(os.environ, {SEED_OVERRIDE_ENV_VAR: "42"}):
            self.assertEqual(SimulationConfig.from_defaults().seed, 42)

    def test_invalid_environment_seed(self) -> None:
        with mock.patch.dict(os.environ, {SEED_OVERRIDE_ENV_VAR: "abc"}):
            with self.assertRaises(ConfigError):
                SimulationConfig.from_defaults()


if __name__ == "__main__":
    unittest.main()
