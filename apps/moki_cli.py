# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Moki Contributors
# Part of mokichat — see LICENSE
# Refs: see REFERENCES.md

"""
Moki Chat CLI

Role
- Talks to a Moki JSON-RPC relay with a local secp256k1 key.
- Sends encrypted messages, prints chat history and follows a chat live.

Commands
keygen          : Print a fresh private key and its address.
identity NAME   : Resolve a username (or 0x address) to its identity record.
send NAME TEXT  : Encrypt and send TEXT to NAME.
history NAME    : Print the latest chat page with NAME.
watch NAME      : Poll for new messages until Ctrl+C.

Keys
--key / MOKI_PRIVATE_KEY            : main account key.
--delegate-key / MOKI_DELEGATE_KEY  : delegate key used for signing and ECDH.
--use-account-as-delegate           : sign with the main key (no delegate).
"""

import argparse, colorama, json, os, sys, time
from datetime import datetime

# ---------------- Local Project ----------------
from mokichat.accounts.account import generate_account, private_key_to_account
from mokichat.errors import MokiError
from mokichat.messaging.client import MessageClient
from mokichat.provider.http import HttpProvider
from mokichat.storage import kv
from mokichat.storage.persistor import make_identity_persistor
from mokichat.utils import config as CFG

from mokichat.utils.moki_logging import setup_logging

colorama.init()
RESET  = "\033[0m"
BLUE   = "\033[34m"
YELLOW = "\033[33m"
GREEN  = "\033[32m"
RED    = "\033[31m"
CYAN   = "\033[36m"
DIM    = "\033[2m"

def _stamp() -> str:
    now = datetime.now()
    d = f"{now.year:04d}.{now.month:02d}.{now.day:02d}"
    t = f"{now.hour:02d}.{now.minute:02d}.{now.second:02d}"
    return f"[{BLUE}{d}{RESET}] - [{YELLOW}{t}{RESET}]"

def clog(message: str, color: str = GREEN):
    print(f"{_stamp()} : {color}{message}{RESET}")

def _fmt_ts(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000.0).strftime("%Y.%m.%d %H:%M:%S")

def print_message(msg, me: str):
    who = "me" if msg.sender == me.lower() else msg.sender
    color = CYAN if who == "me" else GREEN
    body = msg.payload.message if msg.payload.message else f"{DIM}<undecryptable>{RESET}"
    print(f"[{BLUE}{_fmt_ts(msg.timestamp)}{RESET}] {color}{who}{RESET}: {body}")


def build_client(args) -> MessageClient:
    key = args.key or os.environ.get("MOKI_PRIVATE_KEY")
    if not key:
        clog("No private key: pass --key or set MOKI_PRIVATE_KEY.", color=RED)
        sys.exit(2)
    account = private_key_to_account(key)

    delegate = None
    delegate_key = args.delegate_key or os.environ.get("MOKI_DELEGATE_KEY")
    if delegate_key:
        delegate = private_key_to_account(delegate_key)

    if args.cache:
        CFG.IDENTITY_CACHE_BACKEND = args.cache

    provider = HttpProvider(url=args.rpc, timeout=args.timeout)
    return MessageClient(
        provider,
        account,
        delegate_account=delegate,
        dangerously_use_account_as_delegate=args.use_account_as_delegate,
        persistor=make_identity_persistor(),
    )


def cmd_keygen(args) -> int:
    priv, account = generate_account()
    clog(f"Address    : {account.address}")
    clog(f"Public key : {account.public_key}")
    clog(f"Private key: {priv}", color=YELLOW)
    clog("Store the private key safely; it is not saved anywhere.", color=DIM)
    return 0


def cmd_identity(args) -> int:
    client = build_client(args)
    name = args.name
    if name.startswith("0x"):
        record = client.get_identity_from_address(name)
    else:
        record = client.get_identity_from_username(name)
    print(json.dumps(record.to_dict(), indent=2))
    return 0


def cmd_send(args) -> int:
    client = build_client(args)
    sent = client.send_message(args.name, args.text)
    clog(f"Sent id={sent.id} receipt={sent.receipt}")
    return 0


def cmd_history(args) -> int:
    client = build_client(args)
    page = client.get_latest_chat(args.name)
    for msg in page.data:
        print_message(msg, client.delegate.address)
    if not page.end:
        clog("More history is available on the relay.", color=DIM)
    return 0


def cmd_watch(args) -> int:
    client = build_client(args)
    me = client.delegate.address

    def on_messages(batch):
        for msg in reversed(batch):
            print_message(msg, me)

    watcher = client.watch_chat(args.name, on_messages)
    clog(f"Watching chat with {args.name} (Ctrl+C to stop)", color=YELLOW)
    try:
        while watcher.is_active:
            time.sleep(0.5)
    except KeyboardInterrupt:
        clog("Interrupted by user.", color=YELLOW)
    finally:
        watcher.stop()
        watcher.join(CFG.CHAT_WATCH_JOIN_S)
    return 0


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Moki end-to-end encrypted chat CLI")
    parser.add_argument("--rpc", default=None, help=f"JSON-RPC relay URL (default {CFG.RPC_URL})")
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout per call (seconds)")
    parser.add_argument("--key", default=None, help="Main account private key (0x hex)")
    parser.add_argument("--delegate-key", default=None, help="Delegate private key (0x hex)")
    parser.add_argument("--use-account-as-delegate", action="store_true",
                        help="Sign with the main key instead of a delegate")
    parser.add_argument("--cache", choices=("memory", "lmdb"), default=None, help="Identity cache backend")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("keygen", help="Generate a new key").set_defaults(func=cmd_keygen)

    p = sub.add_parser("identity", help="Resolve a username or address")
    p.add_argument("name")
    p.set_defaults(func=cmd_identity)

    p = sub.add_parser("send", help="Send a message")
    p.add_argument("name")
    p.add_argument("text")
    p.set_defaults(func=cmd_send)

    p = sub.add_parser("history", help="Show the latest chat page")
    p.add_argument("name")
    p.set_defaults(func=cmd_history)

    p = sub.add_parser("watch", help="Follow a chat")
    p.add_argument("name")
    p.set_defaults(func=cmd_watch)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        return args.func(args)
    except MokiError as exc:
        clog(f"{type(exc).__name__}: {exc}", color=RED)
        return 1
    finally:
        kv.close()


if __name__ == "__main__":
    setup_logging(force=True)
    sys.exit(main())
