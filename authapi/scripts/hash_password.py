"""
Print a bcrypt hash for a password, e.g. to seed a users row by hand:
  python -m authapi.scripts.hash_password 'Adm1n!Secret' [--rounds 12]
"""
import argparse
import sys

from authapi.core.config import get_settings
from authapi.core.security import HasherConfig, PasswordHasher


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate a bcrypt password hash.")
    parser.add_argument("password", help="Plain-text password to hash")
    parser.add_argument(
        "--rounds",
        type=int,
        default=None,
        help="bcrypt cost factor (default: BCRYPT_ROUNDS setting)",
    )
    args = parser.parse_args(argv)

    rounds = args.rounds if args.rounds is not None else get_settings().BCRYPT_ROUNDS
    if rounds < 4 or rounds > 31:
        print("--rounds must be between 4 and 31.", file=sys.stderr)
        return 1

    hasher = PasswordHasher(HasherConfig(rounds=rounds))
    hashed = hasher.hash(args.password)
    if not hasher.verify(args.password, hashed):
        print("Generated hash failed verification.", file=sys.stderr)
        return 1
    print(hashed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
