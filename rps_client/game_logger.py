"""
Game Logger - Records resolved game outcomes to file, plus logging setup

Only outcomes read back from the ledger are written; moves stay encrypted
and never reach this file.
"""
import logging
import os
import sys
from datetime import datetime
from typing import Optional

from rps_client.config import GAME_CONFIG
from rps_client.model import CHOICE_LABELS, format_ether


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None):
    """
    Configure the package logger: console output plus an optional file.
    """
    package_logger = logging.getLogger("rps_client")
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s", "%H:%M:%S")

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    package_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    package_logger.propagate = False


class GameLogger:
    """Logs finished game outcomes to file"""

    def __init__(self, identity: Optional[str], log_dir: Optional[str] = None):
        self.identity = identity
        self.log_dir = log_dir or GAME_CONFIG["log_dir"]
        self.log_file = os.path.join(self.log_dir, "game.log")

        os.makedirs(self.log_dir, exist_ok=True)

        with open(self.log_file, 'w', encoding='utf-8') as f:
            f.write("=== FHE Rock Paper Scissors Log ===\n")
            f.write(f"Player: {identity}\n")
            f.write(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
            f.write("=" * 50 + "\n\n")

    def log(self, message: str):
        """Write a log message with timestamp"""
        timestamp = datetime.now().strftime('%H:%M:%S')
        with open(self.log_file, 'a', encoding='utf-8') as f:
            f.write(f"[{timestamp}] {message}\n")

    def log_section(self, title: str):
        with open(self.log_file, 'a', encoding='utf-8') as f:
            f.write("\n" + "=" * 50 + "\n")
            f.write(f"{title}\n")
            f.write("=" * 50 + "\n")

    def log_submission(self, game_id: int, choice):
        """Only the label of our own choice is logged, never an opponent's."""
        self.log(f"Game #{game_id}: submitted encrypted {CHOICE_LABELS.get(choice, choice)}")

    def log_result(self, result, identity: Optional[str] = None):
        game = result.game
        self.log_section(f"Game #{game.game_id} - Result")
        self.log(f"Player 1: {game.player1}")
        self.log(f"Player 2: {game.player2}")
        self.log(f"Bet: {format_ether(game.bet_amount)} ETH")
        if result.is_draw:
            self.log("  → Draw, bets returned")
        elif result.is_winner:
            self.log(f"  → {identity or self.identity} WON {format_ether(game.prize_amount)} ETH")
        else:
            self.log(f"  → Lost, winner {game.winner}")
