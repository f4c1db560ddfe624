"""
Unit tests for the rule engine and the validate operation.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from sheetload.core.models import Dataset, Verdict
from sheetload.core.rules import RuleConfigBuilder, RuleEngine, evaluate_rule, validate
from sheetload.core.validators import non_empty, non_negative


scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-1000, max_value=1000),
    st.floats(allow_nan=False, allow_infinity=False),
    st.text(max_size=10),
)

datasets = st.lists(
    st.fixed_dictionaries({"name": scalars, "age": scalars}),
    max_size=20,
).map(lambda records: Dataset.from_records(records, columns=["name", "age"]))


class ExplodingRule:
    """Rule whose evaluation always raises"""

    name = "exploding"

    def evaluate(self, row):
        raise KeyError("boom")


class MutatingRule:
    """Rule that tries to change the row it receives"""

    name = "mutating"

    def evaluate(self, row):
        row["name"] = "overwritten"
        return Verdict(passed=True)


class TestValidate:
    """Tests for validate(dataset, rules)"""

    def test_people_example(self, people_dataset):
        report = validate(people_dataset, [non_empty("name"), non_negative("age")])

        assert report.total_rows == 2
        assert report.accepted == ({"name": "Alice", "age": 30},)
        assert len(report.rejected) == 1

        rejected = report.rejected[0]
        assert rejected.row_index == 1
        assert rejected.row == {"name": "", "age": -5}
        assert rejected.failed_rules == ["non_empty", "non_negative"]

        assert [(f.row_index, f.rule_name) for f in report.failures] == [
            (1, "non_empty"),
            (1, "non_negative"),
        ]

    def test_rule_order_fixes_message_order(self, people_dataset):
        report = validate(people_dataset, [non_negative("age"), non_empty("name")])
        assert report.rejected[0].failed_rules == ["non_negative", "non_empty"]

    def test_raising_rule_counts_as_failure(self, people_dataset):
        report = validate(people_dataset, [ExplodingRule()])

        assert report.accepted == ()
        assert report.rejected_count == 2
        assert "KeyError" in report.failures[0].message

    def test_non_verdict_return_counts_as_failure(self, people_dataset):
        class SloppyRule:
            name = "sloppy"

            def evaluate(self, row):
                return True

        verdict = evaluate_rule(SloppyRule(), people_dataset.rows[0])
        assert verdict.passed is False
        assert "expected Verdict" in verdict.message

    def test_rules_never_mutate_dataset(self, people_dataset):
        report = validate(people_dataset, [MutatingRule()])

        assert people_dataset.rows[0]["name"] == "Alice"
        assert report.accepted[0]["name"] == "Alice"

    def test_report_rows_are_copies(self, people_dataset):
        report = validate(people_dataset, [])
        assert report.accepted[0] is not people_dataset.rows[0]

    @settings(deadline=None)
    @given(datasets)
    def test_property_no_rules_accepts_everything(self, dataset):
        report = validate(dataset, [])

        assert list(report.accepted) == list(dataset.rows)
        assert report.rejected == ()
        assert report.failures == ()

    @settings(deadline=None)
    @given(datasets)
    def test_property_rows_partitioned_by_conjunction(self, dataset):
        rules = [non_empty("name"), non_negative("age")]
        report = validate(dataset, rules)

        assert report.accepted_count + report.rejected_count == len(dataset)

        rejected_indexes = {r.row_index for r in report.rejected}
        accepted_iter = iter(report.accepted)
        for index, row in enumerate(dataset.rows):
            all_pass = all(rule.evaluate(row).passed for rule in rules)
            if all_pass:
                assert index not in rejected_indexes
                assert next(accepted_iter) == row
            else:
                assert index in rejected_indexes


class TestRuleEngine:
    """Tests for RuleEngine built from rule dictionaries"""

    def test_builder_rules_applied_in_order(self, people_dataset):
        rules = RuleConfigBuilder() \
            .add_non_empty("name") \
            .add_non_negative("age") \
            .build()
        engine = RuleEngine(rules)
        report = engine.validate(people_dataset)

        assert report.rule_names == ["non_empty", "non_negative"]
        assert report.rejected[0].failed_rules == ["non_empty", "non_negative"]

    def test_disabled_rule_skipped(self, people_dataset):
        rules = RuleConfigBuilder().add_non_empty("name").build()
        rules[0]["enabled"] = False

        engine = RuleEngine(rules)

        assert engine.validators == []
        assert engine.validate(people_dataset).rejected == ()

    def test_unknown_rule_type(self):
        with pytest.raises(ValueError, match="Unknown rule type"):
            RuleEngine([{"rule_name": "x", "rule_type": "telepathy", "field_name": "name"}])

    def test_bad_parameters_fail_early(self):
        with pytest.raises(ValueError, match="Failed to create validator"):
            RuleEngine([{"rule_name": "r", "rule_type": "range", "field_name": "age", "parameters": {}}])

    def test_custom_rule(self):
        def no_bobs(value, record):
            if value == "Bob":
                raise ValueError("Bob is not allowed")

        rules = RuleConfigBuilder().add_custom("name", no_bobs, rule_name="no_bobs").build()
        dataset = Dataset.from_records([{"name": "Alice"}, {"name": "Bob"}])

        report = RuleEngine(rules).validate(dataset)

        assert report.accepted == ({"name": "Alice"},)
        assert report.rejected[0].failed_rules == ["no_bobs"]
        assert "Bob is not allowed" in report.failures[0].message

    def test_rule_summary(self):
        rules = RuleConfigBuilder() \
            .add_required_field("name") \
            .add_type_check("age", "int") \
            .add_range("age", min_value=0, max_value=150) \
            .build()

        summary = RuleEngine(rules).get_rule_summary()

        assert summary["total_rules"] == 3
        assert summary["rules_by_type"] == {"required_field": 1, "type_check": 1, "range": 1}
        assert summary["rule_names"] == ["name_required", "age_type_check", "age_range"]
