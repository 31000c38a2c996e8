"""
Unit tests for src/batch_client/commands.py.

Covers command registration (auto ids, explicit ids, capacity bound,
reference validation), ResultReference rendering, clearing, and the
execute() boundary: empty batches, submission order, and wrapping of
transport failures.
"""

from __future__ import annotations

import pytest

from src.batch_client.commands import Command, CommandBatch, ResultReference
from src.batch_client.errors import (
    BatchExecutionError,
    CapacityExceededError,
    InvalidArgumentError,
    TransportError,
)
from src.batch_client.hooks import notify, print_observer


# ---------------------------------------------------------------------------
# ResultReference
# ---------------------------------------------------------------------------

class TestResultReference:

    def test_expression_renders_path(self):
        ref = ResultReference("cmd_0", ("orders", 49, "id"))
        assert ref.expression == "$result[cmd_0][orders][49][id]"

    def test_str_is_expression(self):
        ref = ResultReference("cmd_3", (49, "ID"))
        assert str(ref) == "$result[cmd_3][49][ID]"

    def test_empty_path(self):
        assert ResultReference("cmd_1").expression == "$result[cmd_1]"

    def test_command_collects_nested_references(self):
        ref = ResultReference("cmd_0", (0, "ID"))
        command = Command("cmd_1", "crm.item.list", {"filter": {">id": ref}, "select": ["id"]})
        assert command.references() == [ref]


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

class TestRegister:

    def test_auto_ids_follow_position(self, portal):
        batch = CommandBatch(portal)
        assert batch.register("lists.get") == "cmd_0"
        assert batch.register("lists.get") == "cmd_1"
        assert len(batch) == 2

    def test_explicit_id(self, portal):
        batch = CommandBatch(portal)
        assert batch.register("user.current", command_id="me") == "me"
        assert batch.commands[0].id == "me"

    def test_duplicate_id_rejected(self, portal):
        batch = CommandBatch(portal)
        batch.register("user.current", command_id="me")
        with pytest.raises(InvalidArgumentError):
            batch.register("user.current", command_id="me")

    def test_empty_method_rejected(self, portal):
        with pytest.raises(InvalidArgumentError):
            CommandBatch(portal).register("")

    def test_parameters_are_copied(self, portal):
        params = {"id": 1}
        batch = CommandBatch(portal)
        batch.register("sale.order.get", params)
        params["id"] = 2
        assert batch.commands[0].parameters == {"id": 1}

    def test_capacity_exceeded(self, portal):
        batch = CommandBatch(portal, capacity=2)
        batch.register("a.b")
        batch.register("a.b")
        assert batch.is_full
        with pytest.raises(CapacityExceededError) as exc_info:
            batch.register("a.b")
        assert exc_info.value.capacity == 2
        assert len(batch) == 2

    def test_capacity_error_is_not_a_transport_call(self, portal):
        batch = CommandBatch(portal, capacity=1)
        batch.register("a.b")
        with pytest.raises(CapacityExceededError):
            batch.register("a.b")
        assert portal.physical_calls == 0

    def test_non_positive_capacity_rejected(self, portal):
        with pytest.raises(InvalidArgumentError):
            CommandBatch(portal, capacity=0)

    def test_reference_to_earlier_command_allowed(self, portal):
        batch = CommandBatch(portal)
        first = batch.register("crm.item.list")
        batch.register("crm.item.list", {"filter": {">id": ResultReference(first, ("items", 49, "id"))}})
        assert len(batch) == 2

    def test_reference_to_unknown_command_rejected(self, portal):
        batch = CommandBatch(portal)
        with pytest.raises(InvalidArgumentError):
            batch.register("crm.item.list", {"filter": {">id": ResultReference("cmd_7", ())}})
        assert len(batch) == 0

    def test_clear_resets_ids(self, portal):
        batch = CommandBatch(portal)
        batch.register("a.b")
        batch.clear()
        assert len(batch) == 0
        assert batch.register("a.b") == "cmd_0"


# ---------------------------------------------------------------------------
# Execute
# ---------------------------------------------------------------------------

class TestExecute:

    def test_empty_batch_makes_no_call(self, portal):
        result = CommandBatch(portal).execute()
        assert len(result) == 0
        assert portal.physical_calls == 0

    def test_one_physical_call_in_submission_order(self, portal):
        batch = CommandBatch(portal)
        for _ in range(3):
            batch.register("sale.order.add", {"fields": {"lid": "s1"}})
        result = batch.execute()

        assert portal.physical_calls == 1
        assert result.command_ids() == ["cmd_0", "cmd_1", "cmd_2"]
        assert all(r.is_success for r in result)

    def test_execute_does_not_clear(self, portal):
        batch = CommandBatch(portal)
        batch.register("a.update")
        batch.execute()
        assert len(batch) == 1

    def test_per_command_failure_is_not_raised(self, portal):
        batch = CommandBatch(portal)
        batch.register("a.add")
        batch.register("no.such.method")
        result = batch.execute()

        assert result["cmd_0"].is_success
        assert not result["cmd_1"].is_success
        assert result["cmd_1"].error.code == "ERROR_METHOD_NOT_FOUND"
        assert [r.command_id for r in result.failed()] == ["cmd_1"]

    def test_transport_failure_is_wrapped(self, portal, observer, events):
        portal.fail_next = TransportError("connection reset", category="other")
        batch = CommandBatch(portal, observer=observer)
        batch.register("a.add")

        with pytest.raises(BatchExecutionError) as exc_info:
            batch.execute()

        assert "connection reset" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, TransportError)
        assert ("command_batch.error", {"error": "connection reset"}) in events

    def test_reference_resolved_within_one_call(self, portal):
        portal.on("user.current", lambda params: {"ID": 7})
        portal.on("user.get", lambda params: [{"ID": params["ID"], "NAME": "Anna"}])

        batch = CommandBatch(portal)
        me = batch.register("user.current")
        batch.register("user.get", {"ID": ResultReference(me, ("ID",))})
        result = batch.execute()

        assert portal.physical_calls == 1
        assert result["cmd_1"].value == [{"ID": 7, "NAME": "Anna"}]
        assert portal.resolved_references == [("$result[cmd_0][ID]", 7)]


# ---------------------------------------------------------------------------
# Observers
# ---------------------------------------------------------------------------

class TestPrintObserver:

    def test_one_line_per_event(self, capsys):
        print_observer("command_batch.execute", {"commands_count": 3})
        assert capsys.readouterr().out == "  [command_batch.execute] (commands_count=3)\n"

    def test_large_values_summarized(self, capsys):
        print_observer("get_traversable_list.start", {"select": list(range(10))})
        assert "select=<list of 10>" in capsys.readouterr().out

    def test_notify_without_observer_is_noop(self):
        notify(None, "anything", value=1)
