"""
Notify hook entry point.

Configure the assistant to run ``promptvc-notify`` (or ``python main.py``)
as its notify command.
"""
import os
import sys

# Report a missing git binary at capture time instead of at import
os.environ.setdefault("GIT_PYTHON_REFRESH", "quiet")

from hook import run_hook  # noqa: E402
from hook.logging_config import setup_logging  # noqa: E402


def main() -> int:
    setup_logging()
    return run_hook()


if __name__ == "__main__":
    sys.exit(main())
