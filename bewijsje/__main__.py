"""
Run the Discord host:      python -m bewijsje
Render one summary file:   python -m bewijsje render summary.json [out_dir]
"""

import asyncio
import json
import logging
import sys

from . import config
from .session import DirectoryDownload, finish_session


def _render(path: str, out_dir: str | None = None):
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    result = asyncio.run(finish_session(raw, download=DirectoryDownload(out_dir)))
    print(f"✅ {result.filename}")


def main(argv: list[str]):
    logging.basicConfig(level=config.LOG_LEVEL,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if argv[:1] == ["render"] and len(argv) >= 2:
        _render(argv[1], argv[2] if len(argv) > 2 else None)
        return

    if config.TOKEN == "YOUR_TOKEN_HERE":
        print("=" * 60)
        print("ERROR: Set your bot token!")
        print("  export DISCORD_BOT_TOKEN='your-token-here'")
        print("=" * 60)
        sys.exit(1)

    from .bot import bot
    bot.run(config.TOKEN, log_handler=None)


def _entry():
    main(sys.argv[1:])


if __name__ == "__main__":
    _entry()
