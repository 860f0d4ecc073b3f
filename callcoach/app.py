"""Console runner for a live coaching session.

Commands (type and press Enter):
  u  - I said the current suggestion
  r  - reset the call
  q  - end the call and quit
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from callcoach.config import Config
from callcoach.errors import PermissionDenied, Unsupported
from callcoach.logging_utils import setup_logging
from callcoach.models import STYLE_KEYS, CallSettings
from callcoach.session import CallSession
from callcoach.speech.deepgram import DeepgramSpeechProvider
from callcoach.suggestion_client import SuggestionClient


def print_update(event: str, session: CallSession) -> None:
    if event == "suggestion":
        s = session.suggestion
        print(f"\n>>> {s.text}\n    tip: {s.tip} | caller: {s.sentiment}")
    elif event == "stage":
        print(f"[STAGE] {session.current_stage} ({session.stage_index + 1}/7)")
    elif event == "transcript" and len(session.log):
        last = session.log.entries[-1]
        print(f"[{last.role.upper()}] {last.text}")
    elif event == "notice":
        print(f"[NOTICE] {session.last_notice}")
    elif event == "error":
        print(f"[ERROR] {session.last_error}")


async def run(args: argparse.Namespace) -> int:
    settings = CallSettings(goal=args.goal, style_key=args.style, custom_style_text=args.custom_style)
    provider = DeepgramSpeechProvider(device=args.device)
    client = SuggestionClient(args.advice_url)
    session = CallSession(provider, client, settings)
    session.subscribe(print_update)

    try:
        await session.start()
    except Unsupported:
        print("Speech recognition is not available. Set DEEPGRAM_API_KEY in your .env file.")
        return 2
    except PermissionDenied as e:
        print(f"Microphone access denied: {e}")
        return 2

    print("Call started. Listening to the caller. Commands: u=used, r=reset, q=quit")
    print(f"\n>>> {session.suggestion.text}")

    loop = asyncio.get_running_loop()
    try:
        while session.is_active:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            cmd = line.strip().lower()
            if not line or cmd == "q":
                break
            if cmd == "u":
                session.mark_used()
            elif cmd == "r":
                session.reset()
                print(f"\n>>> {session.suggestion.text}")
    finally:
        session.end()
        await session.join()

    print(f"Call ended. {len(session.log)} exchanges recorded.")
    return 0


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Real-time cold-call coach")
    p.add_argument("--goal", default=CallSettings().goal)
    p.add_argument("--style", choices=STYLE_KEYS, default="warm")
    p.add_argument("--custom-style", default="")
    p.add_argument("--device", default=None, help="Input device index or name")
    p.add_argument("--advice-url", default=Config.ADVICE_URL)
    args = p.parse_args(argv)

    if args.device is not None and args.device.isdigit():
        args.device = int(args.device)

    setup_logging(Config.LOG_LEVEL)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
