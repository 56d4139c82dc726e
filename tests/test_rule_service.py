"""Tests for rule validation and ordering."""

import pytest

from core.entities import Rule, RuleSet
from core.exceptions import InvalidArgument
from services.rule_service import build_rule_set, normalize_sort_orders, validate_rules


class TestValidateRules:

    def test_valid_rules_pass(self):
        rules = [Rule(3, "Fizz", 0), Rule(5, "Buzz", 1)]
        assert validate_rules(rules) == rules

    def test_empty_rejected(self):
        with pytest.raises(InvalidArgument):
            validate_rules([])

    def test_duplicate_divisor_rejected(self):
        with pytest.raises(InvalidArgument, match="Duplicate"):
            validate_rules([Rule(3, "Fizz", 0), Rule(3, "Fuzz", 1)])

    @pytest.mark.parametrize("rule", [
        Rule(0, "Zero", 0),
        Rule(-3, "Neg", 0),
        Rule(3, "", 0),
        Rule(3, "   ", 0),
        Rule(3, "x" * 21, 0),
        Rule(3, "Fizz", -1),
    ])
    def test_bad_rule_rejected(self, rule):
        with pytest.raises(InvalidArgument):
            validate_rules([rule])

    def test_twenty_character_word_allowed(self):
        validate_rules([Rule(3, "x" * 20, 0)])


class TestBuildRuleSet:

    def test_sorted_by_order_stable(self):
        rule_set = build_rule_set([
            Rule(7, "Bang", 1),
            Rule(5, "Buzz", 0),
            Rule(3, "Fizz", 1),
        ])
        assert [r.word for r in rule_set] == ["Buzz", "Bang", "Fizz"]

    def test_accepts_rule_set(self):
        original = RuleSet([Rule(3, "Fizz", 0)])
        assert build_rule_set(original) == original

    def test_round_trip_through_dicts(self):
        rule_set = build_rule_set([Rule(3, "Fizz", 0), Rule(5, "Buzz", 1)])
        assert RuleSet.from_list(rule_set.to_list()) == rule_set


class TestNormalizeSortOrders:

    def test_zero_orders_take_index(self):
        rules = normalize_sort_orders([Rule(3, "Fizz", 0), Rule(5, "Buzz", 0)])
        assert [r.order for r in rules] == [0, 1]

    def test_explicit_orders_kept(self):
        rules = normalize_sort_orders([Rule(3, "Fizz", 7), Rule(5, "Buzz", 0), Rule(7, "Bang", 2)])
        assert [r.order for r in rules] == [7, 1, 2]
