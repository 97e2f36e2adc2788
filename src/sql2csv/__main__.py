"""Entry point for running sql2csv as a module."""

import asyncio
import sys

from sql2csv.cli import main

if __name__ == "__main__":
    # Windows-specific event loop policy
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())  # type: ignore[attr-defined]

    sys.exit(main())
