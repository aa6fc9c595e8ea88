#!/usr/bin/env python3
"""
Interactive local chat harness (no HTTP, no WhatsApp).

Usage:
  python3 scripts/chat_local.py [website|whatsapp]

What it does:
- Starts a conversation through the same HandleIncomingMessageUseCase the API uses
- Prints every assistant message plus the phase and language after each turn
- Reminders fire in-process and are printed by the logging platform
"""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from barberai.domain.entities.channel import Channel  # noqa: E402
from barberai.wiring.dependencies import get_container  # noqa: E402


def _print_header(conversation_id: str, channel: Channel) -> None:
    print("\nLocal Chat Harness")
    print("-" * 60)
    print(f"conversation_id: {conversation_id}")
    print(f"channel: {channel.value}")
    print("Type your message and press Enter.")
    print("Commands: /new (new conversation), /history, /quit, /help")
    print("-" * 60)


def _print_reply(reply) -> None:
    for message in reply.messages:
        print(f"(assistant) {message.text}")
    print(f"\n[phase={reply.next.phase.value} language={reply.next.language}]")
    if reply.reminder_delay_ms:
        print(f"[reminder armed in {reply.reminder_delay_ms // 1000}s]")


def main() -> None:
    channel = Channel(sys.argv[1]) if len(sys.argv) > 1 else Channel.WEBSITE
    container = get_container()
    use_case = container.use_case
    container.reminders.rearm_pending()

    conversation_id, reply = use_case.start_conversation(channel=channel)
    _print_header(conversation_id, channel)
    _print_reply(reply)

    while True:
        try:
            user_text = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nBye!")
            break

        if not user_text:
            continue

        cmd = user_text.lower()
        if cmd in ("/quit", "/exit"):
            print("Bye!")
            break
        if cmd == "/help":
            print("Commands:")
            print("  /new     -> start a new conversation")
            print("  /history -> show last 10 messages")
            print("  /quit    -> exit")
            continue
        if cmd == "/new":
            conversation_id, reply = use_case.start_conversation(channel=channel)
            print(f"New conversation_id: {conversation_id}")
            _print_reply(reply)
            continue
        if cmd == "/history":
            print("\n--- History (last 10) ---")
            for message in use_case.history(conversation_id)[-10:]:
                print(f"{message.role.value}: {message.text}")
            continue

        _print_reply(use_case.handle(conversation_id, user_text))
        print("-" * 60)

    container.reminders.shutdown()


if __name__ == "__main__":
    main()
