"""Tests for the main pseudonymization pipeline."""

import hashlib
import hmac
from typing import List

import pandas as pd
import pytest

from tabular_pseudonymization.core.config import Config
from tabular_pseudonymization.core.exceptions import (
    CapacityExceeded,
    InputValidationError,
    LabelCollision,
    MissingKey,
    PseudonymizationError,
)
from tabular_pseudonymization.core.pipeline import (
    PseudonymizationPipeline,
    PseudonymizationResult,
    pseudonymize,
)
from tabular_pseudonymization.strategies import (
    CounterStrategy,
    KeyedHashStrategy,
    PseudonymizationStrategy,
    RandomStrategy,
    SecretKey,
)


ID_COLUMNS = ["name", "dob", "gender"]
PAYLOAD_COLUMNS = ["blood_pressure", "score"]


class _RepeatingStrategy(PseudonymizationStrategy):
    """Hands every record the same label."""

    name = "repeating"

    def assign(self, records, key=None) -> List[str]:
        return ["SAME"] * len(records)


class _ShortStrategy(PseudonymizationStrategy):
    """Forgets the last record."""

    name = "short"

    def assign(self, records, key=None) -> List[str]:
        return [f"L{i}" for i in range(len(records) - 1)]


class TestPseudonymizationPipeline:
    """Test cases for the PseudonymizationPipeline class."""

    @pytest.fixture
    def config(self):
        """Create test configuration."""
        return Config(
            debug=True,
            counter={'prefix': 'PP', 'pool_size': 999},
        )

    @pytest.fixture
    def pipeline(self, config):
        """Create test pipeline."""
        return PseudonymizationPipeline(config)

    @pytest.fixture
    def dataset(self):
        return pd.DataFrame({
            "name": ["Betty Davis", "Tom Hanks", "Meryl Streep"],
            "dob": ["1944-07-26", "1956-07-09", "1949-06-22"],
            "gender": ["F", "M", "F"],
            "blood_pressure": [120, 135, 110],
            "score": [3.5, 4.0, 2.5],
        })

    def test_pipeline_initialization(self, config):
        pipeline = PseudonymizationPipeline(config)
        assert pipeline.config == config
        assert pipeline.stats['runs'] == 0

    def test_configuration_overrides(self, config):
        pipeline = PseudonymizationPipeline(config, output={'label_column': 'pseudonym'})
        assert pipeline.config.output.label_column == 'pseudonym'

    def test_counter_end_to_end(self, pipeline, dataset):
        """Three records get PP001..PP003 in input order."""
        result = pipeline.run(dataset, CounterStrategy(), ID_COLUMNS, PAYLOAD_COLUMNS)

        assert isinstance(result, PseudonymizationResult)
        assert list(result.payload["label"]) == ["PP001", "PP002", "PP003"]
        assert list(result.payload.columns) == PAYLOAD_COLUMNS + ["label"]
        assert list(result.payload["blood_pressure"]) == [120, 135, 110]

        assert list(result.keyfile.columns) == ID_COLUMNS + ["label"]
        assert list(result.keyfile["name"]) == list(dataset["name"])
        assert list(result.keyfile["label"]) == ["PP001", "PP002", "PP003"]

        assert result.records_processed == 3
        assert result.keyfile_includes_labels is True
        assert result.qa_passed is True

    def test_random_keyfile_pairs_labels_with_records(self, pipeline, dataset):
        """Every label sits next to the same record in both tables."""
        result = pipeline.run(dataset, RandomStrategy(seed=11), ID_COLUMNS, PAYLOAD_COLUMNS)

        assert sorted(result.payload["label"]) == ["PP001", "PP002", "PP003"]
        merged = result.payload.merge(result.keyfile, on="label")
        assert len(merged) == 3
        assert list(merged["name"]) == list(dataset["name"])
        assert list(merged["score"]) == list(dataset["score"])

    def test_hash_keyfile_has_no_labels(self, pipeline, dataset):
        """The hash keyfile carries identifying fields only."""
        result = pipeline.run(dataset, KeyedHashStrategy(), ID_COLUMNS, PAYLOAD_COLUMNS, key="k")

        assert list(result.keyfile.columns) == ID_COLUMNS
        assert result.keyfile_includes_labels is False
        assert result.payload["label"].is_unique

    def test_hash_labels_recomputable_from_keyfile(self, pipeline, dataset):
        strategy = KeyedHashStrategy(truncate_to=12)
        result = pipeline.run(dataset, strategy, ID_COLUMNS, PAYLOAD_COLUMNS, key="k")
        assert strategy.recompute(result.keyfile, "k") == list(result.payload["label"])

    def test_hash_label_matches_hmac(self, pipeline, dataset):
        result = pipeline.run(dataset, "hash", ["name"], PAYLOAD_COLUMNS, key=b"k")
        expected = hmac.new(b"k", b"Betty Davis", hashlib.sha256).hexdigest()
        assert result.payload.loc[0, "label"] == expected

    def test_hash_with_caller_owned_key(self, pipeline, dataset):
        with SecretKey("k") as key:
            result = pipeline.run(dataset, "hash", ID_COLUMNS, PAYLOAD_COLUMNS, key=key)
        assert key.destroyed
        assert len(result.payload) == 3

    def test_hash_without_key(self, pipeline, dataset):
        with pytest.raises(MissingKey):
            pipeline.run(dataset, "hash", ID_COLUMNS, PAYLOAD_COLUMNS)

    def test_key_rejected_for_counter(self, pipeline, dataset):
        with pytest.raises(InputValidationError):
            pipeline.run(dataset, "counter", ID_COLUMNS, PAYLOAD_COLUMNS, key="k")

    def test_strategy_by_name(self, pipeline, dataset):
        result = pipeline.run(dataset, "counter", ID_COLUMNS, PAYLOAD_COLUMNS)
        assert result.strategy == "counter"

    def test_capacity_exceeded(self, dataset):
        pipeline = PseudonymizationPipeline(Config(counter={'pool_size': 2}))
        with pytest.raises(CapacityExceeded):
            pipeline.run(dataset, "counter", ID_COLUMNS, PAYLOAD_COLUMNS)

    def test_index_is_reset(self, pipeline, dataset):
        dataset.index = [10, 20, 30]
        result = pipeline.run(dataset, "counter", ID_COLUMNS, PAYLOAD_COLUMNS)
        assert list(result.payload.index) == [0, 1, 2]
        assert list(result.keyfile.index) == [0, 1, 2]

    def test_input_not_modified(self, pipeline, dataset):
        before = dataset.copy()
        pipeline.run(dataset, "counter", ID_COLUMNS, PAYLOAD_COLUMNS)
        pd.testing.assert_frame_equal(dataset, before)

    def test_empty_dataset(self, pipeline, dataset):
        result = pipeline.run(dataset.iloc[0:0], "counter", ID_COLUMNS, PAYLOAD_COLUMNS)
        assert result.records_processed == 0
        assert list(result.payload.columns) == PAYLOAD_COLUMNS + ["label"]

    def test_custom_label_column(self, dataset):
        pipeline = PseudonymizationPipeline(Config(output={'label_column': 'pid'}))
        result = pipeline.run(dataset, "counter", ID_COLUMNS, PAYLOAD_COLUMNS)
        assert "pid" in result.payload.columns
        assert "pid" in result.keyfile.columns

    @pytest.mark.parametrize("id_columns, payload_columns", [
        (["name", "postcode"], ["score"]),
        (["name"], ["score", "weight"]),
        (["name", "dob"], ["dob", "score"]),
        ([], ["score"]),
        (["name", "name"], ["score"]),
    ])
    def test_invalid_column_partitions(self, pipeline, dataset, id_columns, payload_columns):
        with pytest.raises(InputValidationError):
            pipeline.run(dataset, "counter", id_columns, payload_columns)

    def test_label_column_clash(self, pipeline, dataset):
        dataset = dataset.rename(columns={"score": "label"})
        with pytest.raises(InputValidationError):
            pipeline.run(dataset, "counter", ID_COLUMNS, ["label"])

    def test_not_a_dataframe(self, pipeline):
        with pytest.raises(InputValidationError):
            pipeline.run([{"name": "x"}], "counter", ["name"], [])

    def test_duplicate_labels_are_collisions(self, pipeline, dataset):
        with pytest.raises(LabelCollision) as exc_info:
            pipeline.run(dataset, _RepeatingStrategy(), ID_COLUMNS, PAYLOAD_COLUMNS)
        assert exc_info.value.label == "SAME"

    def test_label_count_checked_without_qa(self, dataset):
        """The label count check still runs with QA switched off."""
        pipeline = PseudonymizationPipeline(Config(quality_assurance={'enable_validation': False}))
        with pytest.raises(PseudonymizationError):
            pipeline.run(dataset, _ShortStrategy(), ID_COLUMNS, PAYLOAD_COLUMNS)

    def test_qa_disabled(self, dataset):
        pipeline = PseudonymizationPipeline(Config(quality_assurance={'enable_validation': False}))
        result = pipeline.run(dataset, "counter", ID_COLUMNS, PAYLOAD_COLUMNS)
        assert result.qa_passed is None

    def test_get_stats(self, pipeline, dataset):
        pipeline.run(dataset, "counter", ID_COLUMNS, PAYLOAD_COLUMNS)
        pipeline.run(dataset, "hash", ID_COLUMNS, PAYLOAD_COLUMNS, key="k")
        stats = pipeline.get_stats()

        assert stats['runs'] == 2
        assert stats['records_processed'] == 6
        assert stats['runs_by_strategy'] == {'counter': 1, 'hash': 1}

    def test_reset_stats(self, pipeline):
        pipeline.stats['runs'] = 5
        pipeline.reset_stats()
        assert pipeline.stats['runs'] == 0


class TestPseudonymizeFunction:
    """Test cases for the module-level pseudonymize helper."""

    def test_returns_payload_and_keyfile(self):
        dataset = pd.DataFrame({"name": ["a", "b"], "value": [1, 2]})
        payload, keyfile = pseudonymize(dataset, "counter", ["name"], ["value"], config=Config())

        assert list(payload.columns) == ["value", "label"]
        assert list(keyfile.columns) == ["name", "label"]

    def test_labels_unique_in_both_tables(self):
        dataset = pd.DataFrame({"name": [f"p{i}" for i in range(50)], "value": range(50)})
        payload, keyfile = pseudonymize(
            dataset, RandomStrategy(seed=8), ["name"], ["value"], config=Config()
        )
        assert payload["label"].is_unique
        assert keyfile["label"].is_unique
        assert set(payload["label"]) == set(keyfile["label"])
