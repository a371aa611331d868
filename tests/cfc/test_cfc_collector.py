from __future__ import annotations

import asyncio

import discord
import pytest

from modules.cfc.collector import CFCModal, FormCollector, FormSubmission, correlation_id
from modules.cfc.errors import FormParseError, FormSuperseded, TransportError
from modules.cfc.submission import FIELD_LABELS, Submission, encode_submission


def _submission_for(env, submitter_id: int, values):
    return FormSubmission(
        correlation_id=correlation_id(submitter_id),
        fields=list(zip(FIELD_LABELS, values)),
        interaction=env.make_interaction(),
    )


def test_correlation_id_is_derived_from_submitter():
    assert correlation_id(42) == "42_cfc"


def test_collect_returns_matching_submission(cfc_env):
    async def runner():
        collector = FormCollector(timeout=5)
        interaction = cfc_env.make_interaction()
        task = asyncio.create_task(collector.collect(interaction, 42))
        await cfc_env.wait_until(lambda: collector.is_pending("42_cfc"))

        modal = interaction.response.send_modal.await_args.args[0]
        assert isinstance(modal, CFCModal)
        assert modal.custom_id == "42_cfc"

        other = _submission_for(cfc_env, 43, ("u/x", "X", "not mine"))
        assert collector.deliver(other) is False
        assert not task.done()

        mine = _submission_for(cfc_env, 42, ("u/alice", "Reform", "I will serve."))
        assert collector.deliver(mine) is True
        result = await task

        assert result == Submission(handle="u/alice", party="Reform", statement="I will serve.")
        mine.interaction.response.defer.assert_awaited_once()
        assert collector.pending_ids() == []

    asyncio.run(runner())


def test_collect_prefills_modal_from_prior_payload(cfc_env):
    async def runner():
        collector = FormCollector(timeout=5)
        interaction = cfc_env.make_interaction()
        prior = encode_submission(Submission(handle=None, party="Reform", statement="Old text"))
        task = asyncio.create_task(collector.collect(interaction, 42, prior))
        await cfc_env.wait_until(lambda: collector.is_pending("42_cfc"))

        modal = interaction.response.send_modal.await_args.args[0]
        assert modal.handle.default is None
        assert modal.party.default == "Reform"
        assert modal.statement.default == "Old text"
        assert modal.statement.style is discord.TextStyle.long
        assert [child.label for child in modal.children] == list(FIELD_LABELS)

        collector.deliver(_submission_for(cfc_env, 42, ("", "Reform", "New text")))
        assert (await task).statement == "New text"

    asyncio.run(runner())


def test_collect_times_out_without_acknowledging(cfc_env):
    async def runner():
        collector = FormCollector(timeout=5)
        interaction = cfc_env.make_interaction()
        result = await collector.collect(interaction, 42, timeout=0.01)
        assert result is None
        assert collector.pending_ids() == []
        interaction.response.defer.assert_not_awaited()

        late = _submission_for(cfc_env, 42, ("u/a", "p", "s"))
        assert collector.deliver(late) is False

    asyncio.run(runner())


def test_collect_treats_empty_form_as_no_response(cfc_env):
    async def runner():
        collector = FormCollector(timeout=5)
        task = asyncio.create_task(collector.collect(cfc_env.make_interaction(), 42))
        await cfc_env.wait_until(lambda: collector.is_pending("42_cfc"))
        empty = _submission_for(cfc_env, 42, ("", "", ""))
        collector.deliver(empty)
        assert await task is None
        empty.interaction.response.defer.assert_awaited_once()

    asyncio.run(runner())


def test_collect_propagates_parse_errors(cfc_env):
    async def runner():
        collector = FormCollector(timeout=5)
        task = asyncio.create_task(collector.collect(cfc_env.make_interaction(), 42))
        await cfc_env.wait_until(lambda: collector.is_pending("42_cfc"))
        broken = FormSubmission(
            correlation_id="42_cfc",
            fields=[(FIELD_LABELS[0], "u/a")],
            interaction=cfc_env.make_interaction(),
        )
        collector.deliver(broken)
        with pytest.raises(FormParseError):
            await task

    asyncio.run(runner())


def test_newer_collector_supersedes_older_one(cfc_env):
    async def runner():
        collector = FormCollector(timeout=5)
        first = asyncio.create_task(collector.collect(cfc_env.make_interaction(), 42))
        await cfc_env.wait_until(lambda: collector.is_pending("42_cfc"))
        second = asyncio.create_task(collector.collect(cfc_env.make_interaction(), 42))

        with pytest.raises(FormSuperseded):
            await first
        assert collector.is_pending("42_cfc")

        collector.deliver(_submission_for(cfc_env, 42, ("u/a", "p", "s")))
        assert (await second).party == "p"
        assert collector.pending_ids() == []

    asyncio.run(runner())


def test_cancelled_collector_releases_registration(cfc_env):
    async def runner():
        collector = FormCollector(timeout=5)
        task = asyncio.create_task(collector.collect(cfc_env.make_interaction(), 42))
        await cfc_env.wait_until(lambda: collector.is_pending("42_cfc"))
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert collector.pending_ids() == []

    asyncio.run(runner())


def test_modal_send_failure_is_a_transport_error(cfc_env):
    async def runner():
        collector = FormCollector(timeout=5)
        interaction = cfc_env.make_interaction()
        interaction.response.send_modal.side_effect = discord.InteractionResponded(interaction)
        with pytest.raises(TransportError):
            await collector.collect(interaction, 42)
        assert collector.pending_ids() == []

    asyncio.run(runner())


def test_modal_on_submit_forwards_fields(cfc_env):
    async def runner():
        received: list[FormSubmission] = []
        modal = CFCModal(custom_id="42_cfc", on_submit=received.append)
        submit = cfc_env.make_interaction()
        await modal.on_submit(submit)

        assert len(received) == 1
        assert received[0].correlation_id == "42_cfc"
        assert received[0].interaction is submit
        assert [label for label, _ in received[0].fields] == list(FIELD_LABELS)

    asyncio.run(runner())
