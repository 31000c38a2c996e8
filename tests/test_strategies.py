"""
Unit tests for src/batch_client/strategies.py.

Covers per-resource item extraction (bare lists, nested keys, id-keyed
maps, missing keys), reference path rendering, id extraction, and strategy
resolution from method names.
"""

from __future__ import annotations

import pytest

from src.batch_client.strategies import (
    CRM_ITEM_STRATEGY,
    DEFAULT_STRATEGY,
    LIST_ELEMENT_STRATEGY,
    LISTS_STRATEGY,
    SALE_BASKET_ITEM_STRATEGY,
    SALE_ORDER_STRATEGY,
    SCRUM_STRATEGY,
    PaginationMode,
    strategy_for,
)


class TestExtractItems:

    def test_bare_list(self):
        assert DEFAULT_STRATEGY.extract_items([{"ID": 1}]) == [{"ID": 1}]

    def test_nested_key(self):
        raw = {"orders": [{"id": 1}, {"id": 2}]}
        assert SALE_ORDER_STRATEGY.extract_items(raw) == [{"id": 1}, {"id": 2}]

    def test_missing_nested_key_is_empty_page(self):
        assert SALE_ORDER_STRATEGY.extract_items({"basketItems": [{"id": 1}]}) == []

    @pytest.mark.parametrize("raw", [None, False, "", 0, {}])
    def test_non_container_is_empty_page(self, raw):
        assert CRM_ITEM_STRATEGY.extract_items(raw) == []
        assert DEFAULT_STRATEGY.extract_items(raw) == []

    def test_id_keyed_map_returns_records(self):
        raw = {"12": {"ID": "12"}, "13": {"ID": "13"}}
        assert DEFAULT_STRATEGY.extract_items(raw) == [{"ID": "12"}, {"ID": "13"}]


class TestReferencePath:

    def test_bare_list_path(self):
        assert DEFAULT_STRATEGY.reference_field_path("cmd_2", 49) == "$result[cmd_2][49][ID]"

    def test_nested_path(self):
        assert SALE_ORDER_STRATEGY.reference_field_path("cmd_0", 49) == (
            "$result[cmd_0][orders][49][id]"
        )

    def test_crm_items_path(self):
        ref = CRM_ITEM_STRATEGY.result_reference("cmd_4", 9)
        assert ref.command_id == "cmd_4"
        assert ref.path == ("items", 9, "id")

    def test_explicit_key_field(self):
        assert SALE_BASKET_ITEM_STRATEGY.reference_field_path("cmd_0", 1, "orderId") == (
            "$result[cmd_0][basketItems][1][orderId]"
        )


class TestItemId:

    def test_string_id_converted(self):
        assert DEFAULT_STRATEGY.item_id({"ID": "42"}) == 42

    def test_lowercase_field(self):
        assert SALE_ORDER_STRATEGY.item_id({"id": 7}) == 7
        assert SALE_ORDER_STRATEGY.item_id({"ID": 7}) is None

    def test_non_numeric(self):
        assert DEFAULT_STRATEGY.item_id({"ID": "abc"}) is None


class TestStrategyFor:

    @pytest.mark.parametrize(
        "method, expected",
        [
            ("crm.item.list", CRM_ITEM_STRATEGY),
            ("sale.order.list", SALE_ORDER_STRATEGY),
            ("sale.basketitem.list", SALE_BASKET_ITEM_STRATEGY),
            ("lists.element.get", LIST_ELEMENT_STRATEGY),
            ("lists.get", LISTS_STRATEGY),
            ("tasks.api.scrum.epic.list", SCRUM_STRATEGY),
            ("tasks.api.scrum.backlog.list", SCRUM_STRATEGY),
            ("crm.contact.list", DEFAULT_STRATEGY),
        ],
    )
    def test_prefix_resolution(self, method, expected):
        assert strategy_for(method) is expected

    def test_case_insensitive(self):
        assert strategy_for("Sale.Order.List") is SALE_ORDER_STRATEGY

    def test_id_based_resources(self):
        assert strategy_for("sale.order.list").pagination is PaginationMode.ID_BASED
        assert strategy_for("lists.element.get").pagination is PaginationMode.OFFSET
