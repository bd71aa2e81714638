import json
import logging
from unittest.mock import MagicMock

import pytest

from jsondriven.core import logging as logging_setup
from jsondriven.core.cancellation import CancellationToken
from jsondriven.core.execution import ExecutionMode
from jsondriven.core.metrics import REGISTRY, MetricsCollector
from jsondriven.exceptions import AssertionMismatch, InvalidOperationState, OperationCancelled
from jsondriven.operations import OperationContext, default_registry


def _sample(name, labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_installs_single_json_handler(restore_root_logger, capsys):
    logging_setup.setup_logging("DEBUG")
    logging_setup.setup_logging("DEBUG")

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.level == logging.DEBUG

    logging.getLogger("jsondriven.test").info("hello", extra={"operation": "deleteOne"})
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    record = json.loads(lines[-1])
    assert record["message"] == "hello"
    assert record["operation"] == "deleteOne"


@pytest.mark.asyncio
async def test_act_records_call_metrics(context):
    labels = {"operation": "deleteOne", "mode": "async", "status": "success"}
    before = _sample("jsondriven_operations_total", labels)

    operation = default_registry.create("deleteOne", context)
    operation.arrange({"name": "deleteOne", "arguments": {"filter": {}}})
    await operation.act(ExecutionMode.ASYNC)

    assert _sample("jsondriven_operations_total", labels) == before + 1


@pytest.mark.asyncio
async def test_assertions_are_counted(context):
    failed_labels = {"operation": "deleteOne", "status": "failed"}
    before = _sample("jsondriven_assertions_total", failed_labels)

    operation = default_registry.create("deleteOne", context)
    with pytest.raises(AssertionMismatch):
        await operation.execute(
            {"name": "deleteOne", "arguments": {"filter": {"_id": 99}}, "result": {"deletedCount": 1}},
            ExecutionMode.SYNC,
        )

    assert _sample("jsondriven_assertions_total", failed_labels) == before + 1


def test_disabled_collector_records_nothing():
    labels = {"operation": "noop", "mode": "sync", "status": "success"}
    MetricsCollector(enabled=False).record_call("noop", "sync", 0.1, True)

    assert _sample("jsondriven_operations_total", labels) == 0.0


def test_act_sync_records_call_metrics(context):
    labels = {"operation": "deleteOne", "mode": "sync", "status": "success"}
    before = _sample("jsondriven_operations_total", labels)

    operation = default_registry.create("deleteOne", context)
    operation.arrange({"name": "deleteOne", "arguments": {"filter": {}}})
    operation.act_sync()

    assert _sample("jsondriven_operations_total", labels) == before + 1


@pytest.mark.asyncio
async def test_rejected_act_records_nothing(context):
    error_labels = {"operation": "deleteOne", "mode": "sync", "status": "error"}
    duration_labels = {"operation": "deleteOne", "mode": "sync"}
    before = _sample("jsondriven_operations_total", error_labels)
    before_count = _sample("jsondriven_operation_duration_seconds_count", duration_labels)

    operation = default_registry.create("deleteOne", context)
    with pytest.raises(InvalidOperationState):
        await operation.act(ExecutionMode.SYNC)

    operation.arrange({"name": "deleteOne", "arguments": {"filter": {}}})
    operation.act_sync()
    with pytest.raises(InvalidOperationState):
        operation.act_sync()

    assert _sample("jsondriven_operations_total", error_labels) == before
    assert _sample("jsondriven_operation_duration_seconds_count", duration_labels) == before_count + 1


@pytest.mark.asyncio
async def test_cancelled_before_call_records_nothing(context):
    error_labels = {"operation": "deleteOne", "mode": "async", "status": "error"}
    before = _sample("jsondriven_operations_total", error_labels)
    token = CancellationToken()
    token.cancel()

    operation = default_registry.create("deleteOne", context)
    operation.arrange({"name": "deleteOne", "arguments": {"filter": {}}})
    with pytest.raises(OperationCancelled):
        await operation.act(ExecutionMode.ASYNC, cancellation=token)

    assert _sample("jsondriven_operations_total", error_labels) == before


@pytest.mark.asyncio
async def test_collaborator_failure_is_recorded_as_error():
    collection = MagicMock()
    collection.delete_one.side_effect = RuntimeError("write failed")
    error_labels = {"operation": "deleteOne", "mode": "sync", "status": "error"}
    before = _sample("jsondriven_operations_total", error_labels)

    operation = default_registry.create("deleteOne", OperationContext(collection=collection))
    operation.arrange({"name": "deleteOne", "arguments": {"filter": {}}})
    with pytest.raises(RuntimeError):
        await operation.act(ExecutionMode.SYNC)

    assert _sample("jsondriven_operations_total", error_labels) == before + 1
