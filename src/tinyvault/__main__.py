# tinyvault: Command Line Entry Point
#
#   tinyvault --mode generate --password <master>
#   tinyvault --mode addpass  --password <master> --extra <site> --user <name> --newpass <secret>
#   tinyvault --mode viewpass --password <master>
#   tinyvault --mode dellpass --idpass <record id>
#
# Missing parameters are a no-op: usage is printed and nothing is touched.

import argparse
import json
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import VaultConfig
from .core import EventSeverity, EventType, configure_audit_logger
from .vault.engine import VaultEngine
from .vault.exceptions import InputError, VaultError
from .vault.storage import VaultFile

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2

# Parameters each mode needs, besides --mode itself
REQUIRED = {
    "generate": ("password",),
    "addpass": ("password", "extra", "user", "newpass"),
    "viewpass": ("password",),
    "dellpass": ("idpass",),
}

USAGE = """\
tinyvault --mode generate --password <master>
tinyvault --mode addpass --password <master> --extra <site> --user <name> --newpass <secret>
tinyvault --mode viewpass --password <master>
tinyvault --mode dellpass --idpass <record id shown by viewpass>"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinyvault",
        description="tinyvault - single-file encrypted password vault",
        epilog=USAGE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--mode", choices=sorted(REQUIRED), help="Operation to run")
    parser.add_argument("--password", help="Master password")
    parser.add_argument("--extra", help="Site, URL or host of the new entry")
    parser.add_argument("--user", help="Username of the new entry")
    parser.add_argument("--newpass", help="Password of the new entry")
    parser.add_argument("--idpass", help="Record id to delete (as printed by viewpass)")

    parser.add_argument("--vault", help="Vault file (default: ./vault.dat or $TINYVAULT_PATH)")
    parser.add_argument("--audit-dir", help="Audit log directory (default: ./audit_logs)")
    parser.add_argument("--iterations", type=int, help="PBKDF2 iterations (default: 100000)")
    parser.add_argument("--key-bits", type=int, choices=[128, 192, 256], help="AES key size")
    parser.add_argument("--cipher", choices=["AES-CBC", "AES-GCM"], help="Vault-wide block mode")
    parser.add_argument("--hash", choices=["SHA-256", "SHA-512"], help="PBKDF2 hash")

    parser.add_argument("--force", action="store_true", help="Let generate overwrite an existing vault")
    parser.add_argument("--json", action="store_true", help="viewpass: print records as one JSON list")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging to stderr")
    parser.add_argument("--version", action="version", version=f"tinyvault v{__version__}")
    return parser


def _missing(args: argparse.Namespace) -> List[str]:
    if not args.mode:
        return ["mode"]
    return [name for name in REQUIRED[args.mode] if getattr(args, name) is None]


def run(args: argparse.Namespace, config: VaultConfig) -> int:
    """Execute one command against the vault file."""
    engine = VaultEngine(config)
    vault_file = VaultFile(config.vault_path)

    if args.mode == "generate":
        if vault_file.exists() and not args.force:
            raise InputError(f"Vault {config.vault_path} already exists (use --force to overwrite)")
        vault_file.save(engine.generate(args.password))
        print("Generated password vault")

    elif args.mode == "addpass":
        vault = vault_file.load()
        vault_file.save(engine.add_pass(args.password, vault, args.extra, args.user, args.newpass))
        print("New pass added")

    elif args.mode == "viewpass":
        records = [record.to_dict() for record in engine.view_pass(args.password, vault_file.load())]
        if args.json:
            print(json.dumps(records, indent=2, ensure_ascii=False))
        else:
            for record in records:
                print(json.dumps(record, ensure_ascii=False))

    elif args.mode == "dellpass":
        vault = vault_file.load()
        updated = engine.dell_pass(args.idpass, vault)
        if updated is vault:
            print(f"No entry with id {args.idpass}")
        else:
            vault_file.save(updated)
            print("Pass removed")

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for tinyvault."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    missing = _missing(args)
    if missing:
        print(f"Missing parameter(s): {', '.join('--' + m for m in missing)}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return EXIT_USAGE

    try:
        config = VaultConfig.from_env().with_overrides(
            iterations=args.iterations,
            key_bits=args.key_bits,
            mode=args.cipher,
            hash_algorithm=args.hash,
            vault_path=args.vault,
            audit_log_dir=args.audit_dir,
        )
        audit = configure_audit_logger(config.audit_log_dir)
        audit.log_event(
            event_type=EventType.SYSTEM_START,
            severity=EventSeverity.INFO,
            message=f"tinyvault {args.mode}",
            details={"version": __version__, "mode": args.mode, **dict(config.describe())},
        )
        return run(args, config)
    except VaultError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except OSError as e:
        print(f"I/O error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
