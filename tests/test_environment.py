"""Tests for environment lookup and split-part reconstruction."""

from optimizer_dashboard.credentials.environment import combine_split_env, first_value, lookup


class TestLookup:
    """Priority-first lookup across candidate names."""

    def test_first_set_name_wins(self):
        env = {"GCP_SA_KEY": "second", "GCP_SERVICE_ACCOUNT_KEY": "first"}
        found = lookup(["GCP_SERVICE_ACCOUNT_KEY", "GCP_SA_KEY"], env)

        assert found.name == "GCP_SERVICE_ACCOUNT_KEY"
        assert found.value == "first"
        assert found.split is False

    def test_blank_values_are_skipped_and_values_trimmed(self):
        env = {"A": "   ", "B": "  value\n"}
        found = lookup(["A", "B"], env)

        assert found.name == "B"
        assert found.value == "value"

    def test_returns_none_when_nothing_set(self):
        assert lookup(["A", "B"], {}) is None
        assert first_value(["A"], {"B": "x"}) is None

    def test_direct_name_later_in_list_beats_split_parts_of_earlier_name(self):
        env = {"A_PART1": "abc", "A_PART2": "def", "B": "direct"}
        found = lookup(["A", "B"], env)

        assert found.name == "B"
        assert found.value == "direct"

    def test_split_parts_used_when_no_direct_value(self):
        env = {"GCP_SERVICE_ACCOUNT_KEY_PART2": "def", "GCP_SERVICE_ACCOUNT_KEY_PART1": "abc"}
        found = lookup(["GCP_SERVICE_ACCOUNT_KEY"], env)

        assert found.name == "GCP_SERVICE_ACCOUNT_KEY (split parts)"
        assert found.value == "abcdef"
        assert found.split is True


class TestCombineSplitEnv:
    """Reassembly of values split across numbered variables."""

    def test_orders_numerically_not_lexically(self):
        env = {"KEY_10": "k", "KEY_2": "b", "KEY_1": "a"}
        assert combine_split_env("KEY", env) == "abk"

    def test_accepts_part_prefix_in_any_case_and_separator(self):
        env = {"KEY-part-1": "a", "KEY_Part_2": "b", "KEY_PART3": "c"}
        assert combine_split_env("KEY", env) == "abc"

    def test_zero_padded_indices_accepted(self):
        env = {"KEY_PART02": "b", "KEY_PART01": "a"}
        assert combine_split_env("KEY", env) == "ab"

    def test_unrelated_suffixes_ignored(self):
        env = {"GCP_SERVICE_ACCOUNT_KEY_RAW": "raw", "GCP_SERVICE_ACCOUNT_KEY_PART1": "a"}
        assert combine_split_env("GCP_SERVICE_ACCOUNT", env) is None
        assert combine_split_env("GCP_SERVICE_ACCOUNT_KEY", env) == "a"

    def test_empty_parts_skipped(self):
        env = {"KEY_1": "a", "KEY_2": "", "KEY_3": "c"}
        assert combine_split_env("KEY", env) == "ac"

    def test_no_parts_returns_none(self):
        assert combine_split_env("KEY", {"KEY": "direct"}) is None

    def test_reads_process_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("GCP_SA_KEY_PART1", "he")
        monkeypatch.setenv("GCP_SA_KEY_PART2", "llo")

        assert combine_split_env("GCP_SA_KEY") == "hello"
