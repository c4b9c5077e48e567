from .env import load_env_file
from .json_utils import iter_jsonl, read_json, write_json
from .logging import quiet_loggers, setup_logger

__all__ = [
    "load_env_file",
    "iter_jsonl",
    "read_json",
    "write_json",
    "quiet_loggers",
    "setup_logger",
]
