"""
Envelope encryption tools - Main Entry Point

Administrative command line around the crypto package:

    python main.py generate-keystore --password secret
    python main.py encrypt-property secret      # value for ENVELOPE_KEYSTORE_PASSWORD
    python main.py encrypt report.pdf report.pdf.enc
    python main.py decrypt report.pdf.enc -
    python main.py sign "hello world"
    python main.py verify "hello world" <hex signature>

Files may be given as "-" for stdin/stdout.
"""

import os
import sys
import getpass
import logging
import argparse
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from config import VERSION, Config, config
from crypto import CryptoContext, CryptoError, PasswordCipherSupplier
from crypto.key_manager import export_certificate, generate_keystore

logger = logging.getLogger("main")


@contextmanager
def open_input(name: str):
    """Open a file for binary reading, treating "-" as stdin."""
    if name == "-":
        yield sys.stdin.buffer
    else:
        with open(name, "rb") as f:
            yield f


@contextmanager
def open_output(name: str):
    """
    Open an output file, treating "-" as stdout.

    Data goes to a ".part" file renamed over ``name`` on success; on any
    error the partial file is removed and ``name`` is left untouched.
    """
    if name == "-":
        yield sys.stdout.buffer
        return
    target = Path(name)
    part = target.with_name(target.name + ".part")
    try:
        with open(part, "wb") as f:
            yield f
    except BaseException:
        part.unlink(missing_ok=True)
        raise
    os.replace(part, target)


# ============================================================================
# Commands
# ============================================================================

def cmd_generate_keystore(args, cfg: Config) -> int:
    path = Path(args.out) if args.out else cfg.KEYSTORE_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    password = args.password or getpass.getpass("Key store password: ")

    cert = generate_keystore(
        path,
        password,
        alias=args.alias,
        key_size=args.key_size,
        common_name=args.common_name,
    )
    cert_path = path.with_suffix(".crt") if args.out else cfg.certificate_path
    export_certificate(cert, cert_path)
    print(f"Key store written to {path}")
    print(f"Certificate written to {cert_path}")

    if args.print_encrypted_password:
        cipher = PasswordCipherSupplier(cfg.SHARED_SECRET_VARIABLE).get()
        print(cipher.encrypt(password, args.charset))
    return 0


def cmd_encrypt_property(args, cfg: Config) -> int:
    cipher = PasswordCipherSupplier(cfg.SHARED_SECRET_VARIABLE).get()
    print(cipher.encrypt(args.value, args.charset))
    return 0


def cmd_decrypt_property(args, cfg: Config) -> int:
    cipher = PasswordCipherSupplier(cfg.SHARED_SECRET_VARIABLE).get()
    print(cipher.decrypt(args.value, args.charset))
    return 0


def cmd_encrypt(args, cfg: Config) -> int:
    encryptor = CryptoContext(cfg).encryptor()
    with open_input(args.input) as src, open_output(args.output) as dst:
        encryptor.encrypt(src, dst)
    return 0


def cmd_decrypt(args, cfg: Config) -> int:
    encryptor = CryptoContext(cfg).encryptor()
    with open_input(args.input) as src, open_output(args.output) as dst:
        encryptor.decrypt(src, dst)
    return 0


def cmd_sign(args, cfg: Config) -> int:
    encryptor = CryptoContext(cfg).encryptor()
    print(encryptor.sign_string(args.data, args.charset))
    return 0


def cmd_verify(args, cfg: Config) -> int:
    encryptor = CryptoContext(cfg).encryptor()
    if encryptor.verify_string(args.data, args.charset, args.signature):
        print("OK")
        return 0
    print("Signature does not match", file=sys.stderr)
    return 1


# ============================================================================
# Main Entry Point
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Envelope encryption tools")
    parser.add_argument("--version", action="version", version=VERSION)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("generate-keystore", help="Create a PKCS#12 key store with a self-signed RSA key")
    p.add_argument("--out", help="Key store path (default: configured key store)")
    p.add_argument("--password", help="Key store password (prompted if omitted)")
    p.add_argument("--alias", default="localhost")
    p.add_argument("--key-size", type=int, default=4096)
    p.add_argument("--common-name", default="localhost")
    p.add_argument("--charset", default="utf-8")
    p.add_argument(
        "--print-encrypted-password",
        action="store_true",
        help="Also print the password encrypted with the shared secret",
    )
    p.set_defaults(func=cmd_generate_keystore)

    for name, func, help_text in (
        ("encrypt-property", cmd_encrypt_property, "Encrypt a configuration value with the shared secret"),
        ("decrypt-property", cmd_decrypt_property, "Decrypt a configuration value with the shared secret"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("value")
        p.add_argument("--charset", default="utf-8")
        p.set_defaults(func=func)

    for name, func in (("encrypt", cmd_encrypt), ("decrypt", cmd_decrypt)):
        p = sub.add_parser(name, help=f"{name.capitalize()} a file with the system key pair")
        p.add_argument("input", help='Input file or "-"')
        p.add_argument("output", help='Output file or "-"')
        p.set_defaults(func=func)

    p = sub.add_parser("sign", help="Sign a string, printing a hex signature")
    p.add_argument("data")
    p.add_argument("--charset", required=True)
    p.set_defaults(func=cmd_sign)

    p = sub.add_parser("verify", help="Verify a hex signature over a string")
    p.add_argument("data")
    p.add_argument("signature")
    p.add_argument("--charset", required=True)
    p.set_defaults(func=cmd_verify)

    return parser


def main(argv: Optional[list[str]] = None, cfg: Optional[Config] = None) -> int:
    cfg = cfg or config
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        stream=sys.stderr,
    )
    try:
        return args.func(args, cfg)
    except CryptoError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
