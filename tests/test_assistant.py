import pytest

from conftest import FakeEmbedder, FakeGenerator
from src.core.assistant import Assistant
from src.core.errors import UnknownTenant
from src.core.models import ChunkMetadata
from src.services.session_store import SessionStore

HOURS = "Our hours are 9 to 5. We are closed Sundays."


def make_assistant(store, tenants, sessions, embedder=None, generator=None):
    return Assistant(
        vector_store=store,
        embedder=embedder or FakeEmbedder(vectors={"When are you open?": [1.0, 0.0, 0.0]}),
        generator=generator or FakeGenerator(reply="We are open 9 to 5."),
        sessions=sessions,
        tenants=tenants,
    )


async def seed(store):
    await store.upsert("acme", [1.0, 0.0, 0.0], ChunkMetadata(source="hours.txt", text=HOURS))
    await store.upsert("acme", [0.0, 1.0, 0.0], ChunkMetadata(source="pricing.txt", text="Cleanings cost $90."))
    await store.upsert("acme", [0.0, 0.0, 1.0], ChunkMetadata(source="parking.txt", text="Parking is free."))


def test_start_call_returns_greeting(local_store, tenants, sessions):
    assistant = make_assistant(local_store, tenants, sessions)
    assert assistant.start_call("acme", "CA1") == "Hello, Acme Dental. How can I help?"
    assert len(sessions) == 1


def test_unknown_tenant(local_store, tenants, sessions):
    assistant = make_assistant(local_store, tenants, sessions)
    with pytest.raises(UnknownTenant):
        assistant.start_call("globex", "CA1")


@pytest.mark.asyncio
async def test_turn_is_grounded_in_top_k_context(local_store, tenants, sessions):
    await seed(local_store)
    generator = FakeGenerator(reply="We are open 9 to 5.")
    assistant = make_assistant(local_store, tenants, sessions, generator=generator)

    result = await assistant.handle_turn("acme", "CA1", "When are you open?")

    assert result.reply == "We are open 9 to 5."
    assert result.grounded
    assert len(result.sources) == 2
    assert result.sources[0].chunk.text == HOURS

    messages = generator.calls[0]
    assert messages[0] == {"role": "system", "content": "You are the receptionist for Acme Dental."}
    assert messages[1]["role"] == "system"
    assert messages[1]["content"].startswith(f"Use context:\nContext 1: {HOURS}")
    assert messages[-1] == {"role": "user", "content": "When are you open?"}


@pytest.mark.asyncio
async def test_history_is_carried_between_turns(local_store, tenants, sessions):
    await seed(local_store)
    generator = FakeGenerator(reply="Sure.")
    assistant = make_assistant(local_store, tenants, sessions, generator=generator)

    await assistant.handle_turn("acme", "CA1", "When are you open?")
    await assistant.handle_turn("acme", "CA1", "And on Sunday?")

    second = generator.calls[1]
    assert {"role": "user", "content": "When are you open?"} in second
    assert {"role": "assistant", "content": "Sure."} in second
    assert second[-1] == {"role": "user", "content": "And on Sunday?"}


@pytest.mark.asyncio
async def test_empty_index_answers_without_context(local_store, tenants, sessions):
    generator = FakeGenerator()
    assistant = make_assistant(local_store, tenants, sessions, generator=generator)

    result = await assistant.handle_turn("acme", "CA1", "When are you open?")

    assert not result.grounded
    assert result.sources == []
    assert len(generator.calls[0]) == 2


@pytest.mark.asyncio
async def test_retrieval_failure_degrades_to_ungrounded_reply(local_store, tenants, sessions):
    await seed(local_store)
    embedder = FakeEmbedder(fail_on={"open"})
    generator = FakeGenerator(reply="Let me check on that.")
    assistant = make_assistant(local_store, tenants, sessions, embedder=embedder, generator=generator)

    result = await assistant.handle_turn("acme", "CA1", "When are you open?")

    assert result.reply == "Let me check on that."
    assert not result.grounded


@pytest.mark.asyncio
async def test_dimension_mismatch_degrades_to_ungrounded_reply(local_store, tenants, sessions):
    await seed(local_store)
    embedder = FakeEmbedder(default=[1.0, 0.0])
    assistant = make_assistant(local_store, tenants, sessions, embedder=embedder)

    result = await assistant.handle_turn("acme", "CA1", "Anything?")

    assert not result.grounded
    assert result.reply == "We are open 9 to 5."


@pytest.mark.asyncio
async def test_generation_failure_returns_fallback(local_store, tenants, sessions):
    assistant = make_assistant(local_store, tenants, sessions, generator=FakeGenerator(fail=True))

    result = await assistant.handle_turn("acme", "CA1", "When are you open?")

    assert result.reply == "Sorry, could you say that again?"
    assert sessions.get("CA1", "acme").history == []


@pytest.mark.asyncio
async def test_blank_transcript_skips_providers(local_store, tenants, sessions):
    embedder = FakeEmbedder()
    generator = FakeGenerator()
    assistant = make_assistant(local_store, tenants, sessions, embedder=embedder, generator=generator)

    result = await assistant.handle_turn("acme", "CA1", "   ")

    assert result.reply == "Sorry, could you say that again?"
    assert embedder.calls == [] and generator.calls == []


@pytest.mark.asyncio
async def test_end_call_drops_history(local_store, tenants):
    sessions = SessionStore(ttl_seconds=60, max_entries=10)
    assistant = make_assistant(local_store, tenants, sessions)
    await assistant.handle_turn("acme", "CA1", "When are you open?")

    assistant.end_call("CA1")

    assert len(sessions) == 0