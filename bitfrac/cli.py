"""
Ledger Operator Tool

Command-line entry point for creating keys and configuration, opening a
ledger database, inspecting it and submitting signed transactions.
"""
import json
import argparse
from pathlib import Path

from bitfrac import errors
from bitfrac.config import Config
from bitfrac.core import Transaction, TX_SCHEMAS
from bitfrac.ledger import AssetLedger
from bitfrac.crypto import (
    generate_key_pair, serialize_public_key, serialize_private_key,
    load_private_key, public_key_to_address,
)


def generate_key(output_path: str) -> bytes:
    """Writes a new private key to `output_path` and returns its address."""
    priv, pub = generate_key_pair()
    pub_pem = serialize_public_key(pub)
    address = public_key_to_address(pub_pem)

    Path(output_path).write_bytes(serialize_private_key(priv))
    print(f"Address: {address.hex()}")
    print(f"Private key saved to: {output_path}")
    print(pub_pem)
    return address


def generate_sample_config(output_path: str, data_dir: str = "./bitfrac_data") -> Config:
    """Generates a sample config with a fresh administrator key beside it."""
    output = Path(output_path)
    key_path = str(output.with_name(output.stem + "_admin.pem"))
    admin_address = generate_key(key_path)

    config = Config.default()
    config.ledger.admin_address = admin_address.hex()
    config.database.path = data_dir
    config.to_file(output_path)

    print(f"\nGenerated sample ledger configuration at: {output_path}")
    print("Please review and edit this file before opening the ledger.")
    return config


def _open_ledger(config_path: str):
    return AssetLedger.from_config(Config.from_file(config_path))


def init_ledger(config_path: str) -> dict:
    ledger = _open_ledger(config_path)
    try:
        status = ledger.status()
    finally:
        ledger.close()
    print(f"Ledger initialized at state root {status['state_root']}")
    return status


def show_status(config_path: str) -> dict:
    ledger = _open_ledger(config_path)
    try:
        status = ledger.status()
    finally:
        ledger.close()
    print(json.dumps(status, indent=2))
    return status


def show_events(config_path: str, since: int = 0, kind: str = None) -> list:
    ledger = _open_ledger(config_path)
    try:
        events = [event.to_json_dict() for event in ledger.get_events(since, kind)]
    finally:
        ledger.close()
    for event in events:
        print(json.dumps(event))
    return events


def submit_transaction(config_path: str, key_path: str, tx_type: str, data: dict,
                       height: int, nonce: int = 0):
    """Signs `data` as a `tx_type` transaction and applies it at `height`."""
    private_key = load_private_key(Path(key_path).read_bytes())
    config = Config.from_file(config_path)
    tx = Transaction(
        sender_public_key=serialize_public_key(private_key.public_key()),
        tx_type=tx_type,
        data=data,
        nonce=nonce,
        chain_id=config.ledger.chain_id,
    )
    tx.sign(private_key)

    ledger = _open_ledger(config_path)
    try:
        result = ledger.apply_transaction(tx, height)
    finally:
        ledger.close()
    print(f"Transaction {tx.id.hex()} applied: {result!r}")
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bitfrac", description="Fractional asset ledger tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parser_keygen = subparsers.add_parser("keygen", help="Generate a new signing key")
    parser_keygen.add_argument("--output", type=str, default="key.pem", help="Private key output path")

    parser_sample = subparsers.add_parser("sample-config", help="Generate a sample bitfrac.json")
    parser_sample.add_argument("--output", type=str, default="bitfrac.json", help="Output file path")
    parser_sample.add_argument("--data-dir", type=str, default="./bitfrac_data", help="Ledger database directory")

    parser_init = subparsers.add_parser("init", help="Create or open the ledger database")
    parser_init.add_argument("--config", type=str, default="bitfrac.json", help="Path to config file")

    parser_status = subparsers.add_parser("status", help="Print ledger status as JSON")
    parser_status.add_argument("--config", type=str, default="bitfrac.json", help="Path to config file")

    parser_events = subparsers.add_parser("events", help="Print emitted events as JSON lines")
    parser_events.add_argument("--config", type=str, default="bitfrac.json", help="Path to config file")
    parser_events.add_argument("--since", type=int, default=0, help="First event sequence number")
    parser_events.add_argument("--kind", type=str, help="Only events of this kind")

    parser_submit = subparsers.add_parser("submit", help="Sign and apply a transaction")
    parser_submit.add_argument("--config", type=str, default="bitfrac.json", help="Path to config file")
    parser_submit.add_argument("--key", type=str, required=True, help="Sender private key (PEM)")
    parser_submit.add_argument("--type", type=str, required=True, choices=sorted(TX_SCHEMAS),
                               dest="tx_type", help="Transaction type")
    parser_submit.add_argument("--data", type=str, required=True, help="Transaction payload as JSON")
    parser_submit.add_argument("--height", type=int, required=True, help="Current block height")
    parser_submit.add_argument("--nonce", type=int, default=0, help="Sender nonce")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        if args.command == "keygen":
            generate_key(args.output)
        elif args.command == "sample-config":
            generate_sample_config(args.output, args.data_dir)
        elif args.command == "init":
            init_ledger(args.config)
        elif args.command == "status":
            show_status(args.config)
        elif args.command == "events":
            show_events(args.config, args.since, args.kind)
        elif args.command == "submit":
            submit_transaction(args.config, args.key, args.tx_type, json.loads(args.data),
                               args.height, args.nonce)
    except errors.LedgerError as e:
        print(f"Error [{e.code}] {e.kind}: {e.message}")
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
