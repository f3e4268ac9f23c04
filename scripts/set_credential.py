from __future__ import annotations

import argparse
import getpass

from authgate.core.config.manager import ConfigManager
from authgate.core.config.paths import ConfigFsPaths
from authgate.core.credentials.source import remove_credential, set_credential


def main() -> None:
    ap = argparse.ArgumentParser(description="Add, replace or remove an account in the credential table.")
    ap.add_argument("email")
    ap.add_argument("code", nargs="?", default=None, help="Prompted when omitted.")
    ap.add_argument("--root", default=".")
    ap.add_argument("--hashed", action="store_true", help="Store an scrypt hash instead of the plain code.")
    ap.add_argument("--remove", action="store_true")
    args = ap.parse_args()

    email = args.email.strip()
    if not email:
        raise SystemExit("Email cannot be empty.")

    cm = ConfigManager(fs=ConfigFsPaths(args.root), logger=None, read_only=True)
    cfg = cm.load_all()
    path = cm.resolve_path(cfg.credentials.path)

    if args.remove:
        removed = remove_credential(path, email, keep_backups=cfg.app.max_backups_per_file)
        print(f"Removed {email}" if removed else f"No such account: {email}")
        return

    code = args.code if args.code is not None else getpass.getpass(f"Code for {email}: ")
    if not code.strip():
        raise SystemExit("Code cannot be empty.")
    set_credential(path, email, code, hashed=args.hashed, keep_backups=cfg.app.max_backups_per_file)
    print(f"Saved credential for {email} ({'hashed' if args.hashed else 'plain'}) -> {path}")


if __name__ == "__main__":
    main()
