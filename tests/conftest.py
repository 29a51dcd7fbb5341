"""Shared fakes: an in-memory ledger with real game rules and a fake FHE backend."""

import pytest

from rps_client.errors import EncryptError, InitError, ReadError, WriteError
from rps_client.model import GameState, LedgerEvent, LedgerEventKind, NO_WINNER
from rps_client.notifications import Notifier
from rps_client.service.fhe_session import BackendState, Permit, compute_permit_hash

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20

HARDHAT = 31337
SEPOLIA = 11155111

ONE_ETHER = 10 ** 18

# rock=1 paper=2 scissors=3; key beats value
BEATS = {1: 3, 2: 1, 3: 2}


class FakeLedger:
    """In-memory stand-in for the game contract, shared by several accounts."""

    def __init__(self):
        self.games = {}
        self.next_id = 0
        self.block_number = 100
        self.auto_mine = True
        self.events = []
        self.fail_reads = False
        self.fail_writes = set()
        self.write_calls = []
        self.read_calls = []

    def for_account(self, account):
        return FakeGateway(self, account)

    def _mine(self):
        self.block_number += 1

    def _emit(self, kind, **args):
        self.events.append(LedgerEvent(kind, args, self.block_number))

    def _record(self, game):
        return dict(game)


class FakeGateway:
    """Per-account view of a FakeLedger implementing the gateway boundary."""

    def __init__(self, ledger, account):
        self.ledger = ledger
        self.account = account
        self.pending_events = []

    async def get_games_by_state(self, code):
        self.ledger.read_calls.append(("getGamesByState", code))
        if self.ledger.fail_reads:
            raise ReadError("getGamesByState", "node unavailable")
        return [
            self.ledger._record(g) for g in self.ledger.games.values()
            if g["state"] == code
        ]

    async def get_game(self, game_id):
        self.ledger.read_calls.append(("getGame", game_id))
        if self.ledger.fail_reads:
            raise ReadError("getGame", "node unavailable")
        return self.ledger._record(self.ledger.games[game_id])

    async def get_block_number(self):
        current = self.ledger.block_number
        if self.ledger.auto_mine:
            self.ledger._mine()
        return current

    def _check(self, name):
        self.ledger.write_calls.append((name, self.account))
        if name in self.ledger.fail_writes:
            raise WriteError(name, "execution reverted")

    async def create_game(self, value):
        self._check("createGame")
        game_id = self.ledger.next_id
        self.ledger.next_id += 1
        self.ledger.games[game_id] = {
            "gameId": game_id,
            "player1": self.account,
            "player2": NO_WINNER,
            "betAmount": value,
            "state": GameState.WAITING_FOR_PLAYERS.code,
            "winner": NO_WINNER,
            "player1ChoiceReady": False,
            "player2ChoiceReady": False,
            "choices": {},
        }
        self.ledger._mine()
        self.ledger._emit(LedgerEventKind.GAME_CREATED, gameId=game_id)
        return {"status": "success", "gameId": game_id}

    async def join_game(self, game_id, value):
        self._check("joinGame")
        game = self.ledger.games[game_id]
        if value != game["betAmount"] or game["state"] != GameState.WAITING_FOR_PLAYERS.code:
            raise WriteError("joinGame", "execution reverted")
        game["player2"] = self.account
        game["state"] = GameState.WAITING_FOR_MOVES.code
        self.ledger._mine()
        self.ledger._emit(LedgerEventKind.PLAYER_JOINED, gameId=game_id, player2=self.account)
        return {"status": "success"}

    async def submit_move(self, game_id, ciphertext):
        self._check("submitMove")
        game = self.ledger.games[game_id]
        choice = int(ciphertext["data"].split(":")[1])
        if self.account == game["player1"]:
            game["player1ChoiceReady"] = True
        elif self.account == game["player2"]:
            game["player2ChoiceReady"] = True
        else:
            raise WriteError("submitMove", "not a player")
        game["choices"][self.account] = choice
        self.ledger._mine()
        self.ledger._emit(LedgerEventKind.MOVE_SUBMITTED, gameId=game_id)
        if game["player1ChoiceReady"] and game["player2ChoiceReady"]:
            game["state"] = GameState.WAITING_FOR_REVEAL.code
            self.ledger._emit(LedgerEventKind.GAME_WAITING_FOR_DECRYPTION, gameId=game_id)
        return {"status": "success"}

    async def safely_reveal_winner(self, game_id):
        self._check("safelyRevealWinner")
        game = self.ledger.games[game_id]
        if game["state"] != GameState.WAITING_FOR_REVEAL.code:
            raise WriteError("safelyRevealWinner", "not ready")
        c1 = game["choices"][game["player1"]]
        c2 = game["choices"][game["player2"]]
        if c1 == c2:
            game["winner"] = NO_WINNER
            self.ledger._emit(LedgerEventKind.GAME_DRAWN, gameId=game_id)
        else:
            game["winner"] = game["player1"] if BEATS[c1] == c2 else game["player2"]
            self.ledger._emit(LedgerEventKind.GAME_FINISHED, gameId=game_id, winner=game["winner"])
        game["state"] = GameState.FINISHED.code
        self.ledger._mine()
        return {"status": "success"}

    async def subscribe(self):
        for event in self.pending_events:
            yield event

    async def close(self):
        pass


class FakeBackend:
    """FHE backend double; ciphertexts are tagged strings the fake ledger can read."""

    def __init__(self):
        self.init_calls = []
        self.encrypt_calls = []
        self.fail_init = False
        self.fail_encrypt = False
        self.incomplete = False
        self.fail_permit = False
        self.counter = 0

    async def initialize(self, config):
        self.init_calls.append(config)
        if self.fail_init:
            raise RuntimeError("rpc unreachable")
        if self.incomplete:
            return BackendState(True, True, False)
        return BackendState.ready()

    async def encrypt(self, value, utype):
        self.encrypt_calls.append((value, utype))
        if self.fail_encrypt:
            raise EncryptError("zk verifier rejected input")
        self.counter += 1
        return {"data": f"enc:{value}:{self.counter}", "utype": utype}

    async def create_permit(self, chain_id, account, options=None):
        if self.fail_permit:
            raise RuntimeError("signer rejected permit")
        options = options or {}
        name = options.get("name", "default")
        expiration = options.get("expiration", 4102444800)
        return Permit(
            hash=compute_permit_hash(account, chain_id, expiration, name),
            issuer=account,
            chain_id=chain_id,
            expiration=expiration,
            name=name,
        )


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def notifier():
    return Notifier()


def game_record(game_id, player1=ALICE, player2=None, state=GameState.WAITING_FOR_MOVES,
                bet=ONE_ETHER, winner=None, p1_ready=False, p2_ready=False):
    """Ledger-shaped record for hand-built directory snapshots."""
    return {
        "gameId": game_id,
        "player1": player1,
        "player2": player2 or NO_WINNER,
        "betAmount": bet,
        "state": state.code,
        "winner": winner or NO_WINNER,
        "player1ChoiceReady": p1_ready,
        "player2ChoiceReady": p2_ready,
    }
