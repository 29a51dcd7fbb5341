"""End-to-end client flows: two wallets playing against one in-memory ledger."""

import asyncio

import pytest

from conftest import ALICE, BOB, CAROL, HARDHAT, ONE_ETHER, FakeBackend
from rps_client import GameClient, Notifier
from rps_client.model import Choice, GameState, ResolverPhase


def make_client(ledger, account, block_poll_interval=0, poll_interval=None):
    return GameClient(
        ledger.for_account(account),
        FakeBackend(),
        notifier=Notifier(),
        poll_interval=poll_interval,
        block_poll_interval=block_poll_interval,
    )


async def play(ledger, choice1, choice2):
    """Create, join and submit both moves; returns the two connected clients."""
    alice = make_client(ledger, ALICE)
    bob = make_client(ledger, BOB)
    assert await alice.connect(HARDHAT, ALICE)

    assert await alice.create_game("1.0")
    assert await bob.connect(HARDHAT, BOB)
    assert await bob.join_game(0)

    await alice.directory.refresh_all()
    assert alice.view.phase == ResolverPhase.IN_GAME
    assert bob.view.phase == ResolverPhase.IN_GAME

    assert await alice.submit_move(choice1)
    await bob.directory.refresh_all()
    assert bob.opponent_submitted()
    assert await bob.submit_move(choice2)
    return alice, bob


@pytest.mark.asyncio
async def test_full_game_with_a_winner(ledger):
    alice, bob = await play(ledger, Choice.ROCK, Choice.SCISSORS)

    await alice.directory.refresh_all()
    assert alice.view.game.state is GameState.WAITING_FOR_REVEAL
    assert alice.can_reveal()
    assert await alice.reveal_winner()

    await bob.directory.refresh_all()

    assert alice.view.phase == ResolverPhase.SHOWING_RESULT
    assert alice.resolver.result.is_winner is True
    assert bob.view.phase == ResolverPhase.SHOWING_RESULT
    assert bob.resolver.result.is_winner is False
    assert bob.resolver.result.is_draw is False
    assert alice.view.game.prize_amount == 2 * ONE_ETHER
    assert "Game result revealed and prizes distributed!" in alice.notifier.messages("success")

    await alice.close()
    await bob.close()


@pytest.mark.asyncio
async def test_full_game_ending_in_draw(ledger):
    alice, bob = await play(ledger, Choice.PAPER, Choice.PAPER)

    # The second mover settles this time
    assert await bob.reveal_winner()
    await alice.directory.refresh_all()

    for client in (alice, bob):
        assert client.view.phase == ResolverPhase.SHOWING_RESULT
        assert client.resolver.result.is_draw is True
        assert client.resolver.result.is_winner is False

    await alice.close()
    await bob.close()


@pytest.mark.asyncio
async def test_result_stays_until_dismissed(ledger):
    alice, bob = await play(ledger, Choice.ROCK, Choice.PAPER)
    await alice.directory.refresh_all()
    assert await alice.reveal_winner()
    assert alice.resolver.result.is_winner is False

    await alice.create_game("0.1")
    assert alice.view.phase == ResolverPhase.SHOWING_RESULT

    view = alice.return_to_list()
    assert view.phase == ResolverPhase.IDLE
    await alice.close()
    await bob.close()


@pytest.mark.asyncio
async def test_non_participant_cannot_open_or_reveal(ledger):
    alice, bob = await play(ledger, Choice.ROCK, Choice.PAPER)
    carol = make_client(ledger, CAROL)
    await carol.connect(HARDHAT, CAROL)

    assert carol.open_game_by_id(0, GameState.WAITING_FOR_REVEAL) is None
    assert carol.view.phase == ResolverPhase.IDLE
    assert "You can only view games you're playing in!" in carol.notifier.messages("info")

    assert carol.can_reveal(0) is False
    assert await carol.reveal_winner(0) is False
    assert ledger.games[0]["state"] == GameState.WAITING_FOR_REVEAL.code

    for client in (alice, bob, carol):
        await client.close()


@pytest.mark.asyncio
async def test_cannot_join_own_game(ledger):
    alice = make_client(ledger, ALICE)
    await alice.connect(HARDHAT, ALICE)
    await alice.create_game(ONE_ETHER)

    assert await alice.join_game(0) is None
    assert "You cannot join your own game" in alice.notifier.messages("info")
    await alice.close()


@pytest.mark.asyncio
async def test_invalid_bet_is_reported(ledger):
    alice = make_client(ledger, ALICE)
    await alice.connect(HARDHAT, ALICE)

    assert await alice.create_game("") is None
    assert "Please enter a valid bet amount" in alice.notifier.messages("error")
    assert ledger.write_calls == []
    await alice.close()


@pytest.mark.asyncio
async def test_encrypt_failure_is_reported_without_writing(ledger):
    alice = make_client(ledger, ALICE)
    bob = make_client(ledger, BOB)
    await alice.connect(HARDHAT, ALICE)
    await alice.create_game(ONE_ETHER)
    await bob.connect(HARDHAT, BOB)
    await bob.join_game(0)

    bob.session.backend.fail_encrypt = True
    assert await bob.submit_move(Choice.ROCK) is False

    assert any(m.startswith("Failed to encrypt choice") for m in bob.notifier.messages("error"))
    assert not [c for c in ledger.write_calls if c[0] == "submitMove"]
    assert bob.context.submitted is False
    await alice.close()
    await bob.close()


@pytest.mark.asyncio
async def test_submit_without_game(ledger):
    alice = make_client(ledger, ALICE)
    await alice.connect(HARDHAT, ALICE)
    assert await alice.submit_move(Choice.ROCK) is False
    assert "No active game" in alice.notifier.messages("error")
    await alice.close()


@pytest.mark.asyncio
async def test_unsupported_chain_leaves_session_not_ready(ledger):
    alice = make_client(ledger, ALICE)
    assert await alice.connect(1, ALICE) is False
    assert not alice.session.is_ready
    await alice.close()


@pytest.mark.asyncio
async def test_switching_wallet_resets_view(ledger):
    alice, bob = await play(ledger, Choice.ROCK, Choice.PAPER)
    assert alice.view.phase == ResolverPhase.IN_GAME

    await alice.connect(HARDHAT, CAROL)

    assert alice.view.phase == ResolverPhase.IDLE
    assert alice.context is None
    assert alice.session.account == CAROL
    await alice.close()
    await bob.close()


@pytest.mark.asyncio
async def test_read_failure_keeps_lists(ledger):
    alice = make_client(ledger, ALICE)
    await alice.connect(HARDHAT, ALICE)
    await alice.create_game(ONE_ETHER)

    ledger.fail_reads = True
    await alice.directory.refresh_all()

    assert [g.game_id for g in alice.games(GameState.WAITING_FOR_PLAYERS)] == [0]
    assert alice.directory.partitions[GameState.WAITING_FOR_PLAYERS].stale
    await alice.close()


@pytest.mark.asyncio
async def test_switch_to_unsupported_chain_drops_previous_session(ledger):
    client = make_client(ledger, ALICE)
    assert await client.connect(HARDHAT, ALICE)

    assert await client.connect(1, BOB) is False

    assert client.identity == BOB
    assert not client.session.is_ready
    assert client.session.account is None
    await client.close()


async def start_pending_submit(ledger):
    """Bob's move is encrypted and waiting for a block that never comes."""
    alice = make_client(ledger, ALICE, block_poll_interval=5)
    bob = make_client(ledger, BOB, block_poll_interval=5)
    await alice.connect(HARDHAT, ALICE)
    await alice.create_game(ONE_ETHER)
    await bob.connect(HARDHAT, BOB)
    await bob.join_game(0)

    ledger.auto_mine = False
    context = bob.context
    task = asyncio.create_task(bob.submit_move(Choice.ROCK))
    await asyncio.sleep(0.01)
    assert context.encrypting is True
    return alice, bob, context, task


@pytest.mark.asyncio
async def test_wallet_switch_during_finality_wait_writes_nothing(ledger):
    alice, bob, context, task = await start_pending_submit(ledger)

    await bob.connect(HARDHAT, CAROL)

    assert await task is False
    assert not [c for c in ledger.write_calls if c[0] == "submitMove"]
    assert context.submitted is False
    assert "Move submission cancelled" in bob.notifier.messages("info")
    await alice.close()
    await bob.close()


@pytest.mark.asyncio
async def test_close_during_finality_wait_writes_nothing(ledger):
    alice, bob, context, task = await start_pending_submit(ledger)

    await bob.close()

    assert await task is False
    assert not [c for c in ledger.write_calls if c[0] == "submitMove"]
    assert context.submitted is False
    await alice.close()


@pytest.mark.asyncio
async def test_poll_loop_survives_unexpected_error(ledger):
    alice = make_client(ledger, ALICE, poll_interval=0.01)
    await alice.connect(HARDHAT, ALICE)
    reads = []
    original = alice.gateway.get_games_by_state

    async def flaky(code):
        reads.append(code)
        if len(reads) == 1:
            raise RuntimeError("unexpected decode failure")
        return await original(code)

    alice.gateway.get_games_by_state = flaky
    alice.start()
    for _ in range(200):
        await asyncio.sleep(0.01)
        if len(reads) > 8:
            break

    assert len(reads) > 8
    assert not alice._poll_task.done()
    await alice.close()


@pytest.mark.asyncio
async def test_permit_failure_is_reported_once(ledger):
    alice = make_client(ledger, ALICE)
    await alice.connect(HARDHAT, ALICE)
    alice.session.backend.fail_permit = True

    assert await alice.create_permit() is None

    errors = alice.notifier.messages("error")
    assert len(errors) == 1
    assert "signer rejected permit" in errors[0]
    await alice.close()
