"""Command line entry point for SealBox.

Usage:
    sealbox seal PUBKEY INPUT CIPHER [-o OUTPUT]     -> INPUT_seal
    sealbox open PRIVKEY SEALED [-o OUTPUT]          -> SEALED_opened
    sealbox ciphers
    sealbox keyring set|delete ACCOUNT [--force]

Exit codes: 0 on success, 2 for usage errors (argparse), and one code per
failure kind, see EXIT_CODES.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import List, Optional

from sealbox.core.exceptions import (
    DecryptionError,
    EncryptionError,
    EnvelopeIOError,
    InvalidCipherError,
    KeyLoadError,
    KeyUnwrapError,
    MalformedHeaderError,
    SealBoxError,
)
from sealbox.frontend.cli.context import build_context
from sealbox.frontend.cli.logging_config import configure_logging
from sealbox.security.ciphers import list_ciphers, resolve
from sealbox.security.envelope import open_file, seal_file
from sealbox.security.keystore import assess_keyring_backend, delete_passphrase, save_passphrase

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_FAILURE = 10

EXIT_CODES = {
    KeyLoadError: 3,
    InvalidCipherError: 4,
    MalformedHeaderError: 5,
    KeyUnwrapError: 6,
    EnvelopeIOError: 7,
    EncryptionError: 8,
    DecryptionError: 9,
}


def exit_code_for(exc: BaseException) -> int:
    for cls, code in EXIT_CODES.items():
        if isinstance(exc, cls):
            return code
    return EXIT_FAILURE


def _cmd_seal(args, ctx) -> int:
    out = seal_file(args.pubkey, args.input, args.cipher, output_path=args.output)
    print(out)
    return EXIT_OK


def _cmd_open(args, ctx) -> int:
    out = open_file(args.privkey, args.sealed, output_path=args.output, passphrase=ctx.passphrase)
    print(out)
    return EXIT_OK


def _cmd_ciphers(args, ctx) -> int:
    for name in list_ciphers():
        spec = resolve(name)
        print(f"{name:<20} id={spec.nid:<5} key={spec.key_length * 8:<4} iv={spec.iv_length}")
    return EXIT_OK


def _cmd_keyring(args, ctx) -> int:
    if args.action == "delete":
        if not delete_passphrase(args.account, service=ctx.keyring_service):
            print(f"No passphrase stored for '{args.account}'.", file=sys.stderr)
            return EXIT_FAILURE
        return EXIT_OK

    secure, msg = assess_keyring_backend()
    if not secure and not args.force:
        print(
            f"Error: refusing to store passphrase: {msg}; pass --force to override",
            file=sys.stderr,
        )
        return EXIT_FAILURE
    passphrase = getpass.getpass(f"Passphrase for '{args.account}': ")
    save_passphrase(args.account, passphrase, service=ctx.keyring_service)
    return EXIT_OK


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sealbox",
        description="Seal files for an RSA recipient and open sealed files.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="More log output (repeat for debug)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_seal = sub.add_parser("seal", help="Encrypt a file for a public key")
    p_seal.add_argument("pubkey", help="Path to the recipient's PEM public key")
    p_seal.add_argument("input", help="File to seal")
    p_seal.add_argument("cipher", help="Cipher name (e.g. aes-256-cbc) or numeric id")
    p_seal.add_argument("-o", "--output", default=None, help="Output path (default: <input>_seal)")
    p_seal.set_defaults(func=_cmd_seal)

    p_open = sub.add_parser("open", help="Decrypt a sealed file with a private key")
    p_open.add_argument("privkey", help="Path to the PEM private key")
    p_open.add_argument("sealed", help="Sealed file to open")
    p_open.add_argument("-o", "--output", default=None, help="Output path (default: <sealed>_opened)")
    p_open.add_argument(
        "--keyring-account",
        default=None,
        help="Read the private key passphrase from the OS keystore under this account",
    )
    p_open.set_defaults(func=_cmd_open)

    p_list = sub.add_parser("ciphers", help="List supported ciphers")
    p_list.set_defaults(func=_cmd_ciphers)

    p_keyring = sub.add_parser("keyring", help="Manage stored private key passphrases")
    p_keyring.add_argument("action", choices=["set", "delete"])
    p_keyring.add_argument("account", help="Name to store the passphrase under")
    p_keyring.add_argument("--force", action="store_true", help="Store even on an insecure backend")
    p_keyring.set_defaults(func=_cmd_keyring)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    try:
        ctx = build_context(
            verbose=args.verbose,
            keyring_account=getattr(args, "keyring_account", None),
        )
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    configure_logging(ctx.log_level)

    try:
        return args.func(args, ctx)
    except SealBoxError as e:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return exit_code_for(e)
    except RuntimeError as e:
        # keyring missing or unusable
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
