from __future__ import annotations

import asyncio

import pytest

from concierge.exceptions import (
    AlreadyProcessingError,
    AnalysisFailure,
    AnalysisTransportError,
    UnknownItemError,
)
from concierge.inbox import ItemProcessingStore, ProcessingState, SingleItemProcessor
from tests.conftest import FakeAnalysisClient, make_item, make_result

S = ProcessingState


@pytest.fixture
def store() -> ItemProcessingStore:
    s = ItemProcessingStore()
    s.register("email_001")
    return s


@pytest.fixture
def processor(client: FakeAnalysisClient, store: ItemProcessingStore) -> SingleItemProcessor:
    return SingleItemProcessor(client, store)


@pytest.mark.asyncio
async def test_process_stores_result(processor, store, client) -> None:
    item = make_item("email_001")

    result = await processor.process(item)

    assert store.state("email_001") is S.DONE
    assert store.get("email_001").result == result
    assert client.calls == [(item.body, item.sender)]


@pytest.mark.asyncio
async def test_concurrent_process_calls_share_one_analysis(processor, store, client) -> None:
    client.gate = asyncio.Event()
    item = make_item("email_001")

    first = asyncio.create_task(processor.process(item))
    second = asyncio.create_task(processor.process(item))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert store.state("email_001") is S.PROCESSING
    assert processor.in_flight("email_001")

    client.gate.set()
    r1, r2 = await asyncio.gather(first, second)

    assert r1 == r2
    assert len(client.calls) == 1
    assert not processor.in_flight("email_001")


@pytest.mark.asyncio
async def test_failure_sets_error_and_retry_clears_it(processor, store, client) -> None:
    item = make_item("email_001")
    client.script(item.body, AnalysisTransportError("Timeout"), make_result())

    with pytest.raises(AnalysisFailure) as exc_info:
        await processor.process(item)

    assert exc_info.value.item_id == "email_001"
    entry = store.get("email_001")
    assert (entry.state, entry.error, entry.result) == (S.ERROR, "Timeout", None)

    await processor.process(item)

    entry = store.get("email_001")
    assert entry.state is S.DONE
    assert entry.error is None
    assert len(client.calls) == 2


@pytest.mark.asyncio
async def test_renewed_failure_overwrites_old_error(processor, store, client) -> None:
    item = make_item("email_001")
    client.script(
        item.body,
        AnalysisTransportError("Timeout"),
        AnalysisTransportError("Quota erschöpft"),
    )

    with pytest.raises(AnalysisFailure):
        await processor.process(item)
    retry = asyncio.create_task(processor.process(item))
    await asyncio.sleep(0)

    assert store.get("email_001").error is None

    with pytest.raises(AnalysisFailure):
        await retry
    assert store.get("email_001").error == "Quota erschöpft"


@pytest.mark.asyncio
async def test_unexpected_exception_is_wrapped(processor, store, client) -> None:
    item = make_item("email_001")
    client.script(item.body, RuntimeError("boom"))

    with pytest.raises(AnalysisFailure) as exc_info:
        await processor.process(item)

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert store.get("email_001").error == "boom"


@pytest.mark.asyncio
async def test_exception_without_message_gets_generic_error(processor, store, client) -> None:
    item = make_item("email_001")
    client.script(item.body, RuntimeError())

    with pytest.raises(AnalysisFailure):
        await processor.process(item)

    assert store.get("email_001").error == "Unbekannter Fehler bei der Analyse"


@pytest.mark.asyncio
async def test_foreign_processing_state_is_rejected(processor, store, client) -> None:
    store.set_state("email_001", S.PROCESSING)

    with pytest.raises(AlreadyProcessingError):
        await processor.process(make_item("email_001"))

    assert client.calls == []


@pytest.mark.asyncio
async def test_unregistered_item_is_rejected(processor, client) -> None:
    with pytest.raises(UnknownItemError):
        await processor.process(make_item("email_404"))

    assert client.calls == []


@pytest.mark.asyncio
async def test_on_focus_starts_only_from_idle_or_error(processor, store, client) -> None:
    item = make_item("email_001")

    task = processor.on_focus(item)
    assert task is not None
    await task

    assert processor.on_focus(item) is None
    assert len(client.calls) == 1

    store.set_error("email_001", "Timeout")
    task = processor.on_focus(item)
    assert task is not None
    await task
    assert store.state("email_001") is S.DONE


@pytest.mark.asyncio
async def test_on_focus_while_processing_does_nothing(processor, client) -> None:
    client.gate = asyncio.Event()
    item = make_item("email_001")

    task = processor.on_focus(item)
    assert processor.on_focus(item) is None

    client.gate.set()
    await task
    assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_on_focus_ignores_unknown_item(processor, client) -> None:
    assert processor.on_focus(make_item("email_404")) is None
    assert client.calls == []


@pytest.mark.asyncio
async def test_late_result_for_removed_item_is_dropped(processor, store, client) -> None:
    client.gate = asyncio.Event()
    item = make_item("email_001")

    task = processor.on_focus(item)
    await asyncio.sleep(0)
    store.remove("email_001")
    client.gate.set()
    await task

    assert "email_001" not in store
    assert len(store) == 0


@pytest.mark.asyncio
async def test_cancelled_analysis_returns_to_idle(processor, store, client) -> None:
    client.gate = asyncio.Event()
    task = processor.on_focus(make_item("email_001"))
    await asyncio.sleep(0)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert store.state("email_001") is S.IDLE
    assert not processor.in_flight("email_001")


@pytest.mark.asyncio
async def test_cancelling_a_waiter_keeps_shared_analysis_running(processor, store, client) -> None:
    client.gate = asyncio.Event()
    waiter = asyncio.create_task(processor.process(make_item("email_001")))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    assert processor.in_flight("email_001")
    client.gate.set()
    await processor.drain()
    assert store.state("email_001") is S.DONE
