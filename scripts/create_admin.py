from __future__ import annotations

import argparse
import secrets
import string

from sqlalchemy import select

from jobboard.cache import Cache, build_cache
from jobboard.cache.keys import APPLICANTS_LIST, JOBS_LIST
from jobboard.config import Settings, get_settings
from jobboard.database import create_db_engine, create_session_factory, init_database
from jobboard.errors import CacheError
from jobboard.models.user import User, UserType
from jobboard.utils.password_hash import MAX_PASSWORD_BYTES, hash_password, password_too_long


def _generate_password(length: int = 20) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _invalidate_user_listings(cache: Cache) -> None:
    # The account leaves the applicant listing and may appear as a job poster.
    for namespace in (APPLICANTS_LIST, JOBS_LIST):
        try:
            cache.bump_generation(namespace)
        except CacheError as exc:
            print(f"warning: could not invalidate cache namespace {namespace}: {exc}")


def main(argv: list[str] | None = None, *, settings: Settings | None = None, cache: Cache | None = None) -> int:
    parser = argparse.ArgumentParser(
        description=(
            "Create an admin account, or promote an existing account to admin. "
            "Cached applicant and job listings are invalidated afterwards."
        )
    )
    parser.add_argument("--email", required=True, help="Admin user email")
    parser.add_argument("--password", default=None, help="Admin user password (generated if omitted)")
    parser.add_argument("--name", default="Admin", help="Display name")
    parser.add_argument("--address", default="", help="Postal address")
    parser.add_argument(
        "--update-password",
        action="store_true",
        help="If the user exists, overwrite their password",
    )

    args = parser.parse_args(argv)
    if args.password is not None and password_too_long(args.password):
        parser.error(f"--password must be at most {MAX_PASSWORD_BYTES} bytes")

    settings = settings or get_settings()
    engine = create_db_engine(settings)
    init_database(engine, settings)
    session_factory = create_session_factory(engine)

    email = args.email.strip().lower()
    password = args.password or _generate_password()

    with session_factory.begin() as db:
        user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if user is None:
            user = User(
                name=args.name,
                email=email,
                address=args.address,
                user_type=UserType.ADMIN,
                password_hash=hash_password(password),
            )
            db.add(user)
            db.flush()
            created = True
        else:
            created = False
            user.user_type = UserType.ADMIN
            if args.update_password:
                user.password_hash = hash_password(password)
        user_id = user.id

    _invalidate_user_listings(cache or build_cache(settings))

    if created:
        # Print the password so the operator can log in immediately.
        print(f"created admin id={user_id} email={email}")
        if args.password is None:
            print(f"generated password: {password}")
    else:
        print(f"promoted existing user id={user_id} email={email} to admin")
        if args.update_password:
            print("password updated")
        elif args.password is None:
            print("(password not changed)")

    engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
