"""Runtime configuration, read from the environment (a local .env file is loaded first)."""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    database_url: str = "sqlite:///sudoku.db"
    echo_sql: bool = False
    peer_id: int = 0
    host: str = "127.0.0.1"
    base_port: int = 4000
    min_nickname_length: int = 3
    max_nickname_length: int = 7
    empty_cells: int = 40
    write_attempts: int = 3
    log_level: str = "INFO"

    @property
    def address(self) -> str:
        """Network locator other peers use to reach this one."""
        return f"{self.host}:{self.base_port + self.peer_id}"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("SUDOKU_DATABASE_URL", cls.database_url),
            echo_sql=_env_bool("SUDOKU_ECHO_SQL", cls.echo_sql),
            peer_id=int(os.getenv("SUDOKU_PEER_ID", cls.peer_id)),
            host=os.getenv("SUDOKU_HOST", cls.host),
            base_port=int(os.getenv("SUDOKU_BASE_PORT", cls.base_port)),
            min_nickname_length=int(
                os.getenv("SUDOKU_MIN_NICKNAME", cls.min_nickname_length)
            ),
            max_nickname_length=int(
                os.getenv("SUDOKU_MAX_NICKNAME", cls.max_nickname_length)
            ),
            empty_cells=int(os.getenv("SUDOKU_EMPTY_CELLS", cls.empty_cells)),
            write_attempts=int(os.getenv("SUDOKU_WRITE_ATTEMPTS", cls.write_attempts)),
            log_level=os.getenv("SUDOKU_LOG_LEVEL", cls.log_level).upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
