"""Create a business and print a bearer token scoped to it.

Usage:
    python -m reservas.create_business "Barbería Centro" --timezone America/Mexico_City
"""
import argparse
import sys
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from reservas.auth.jwt_handler import create_access_token
from reservas.core import config
from reservas.database import Base, SessionLocal, engine
from reservas.models import appointment, calendar, service  # noqa: F401
from reservas.models.business import Business


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("name")
    parser.add_argument("--timezone", default=config.DEFAULT_BUSINESS_TIMEZONE)
    parser.add_argument("--owner", default="owner@example.com", help="token subject")
    args = parser.parse_args(argv)

    try:
        ZoneInfo(args.timezone)
    except ZoneInfoNotFoundError:
        print(f"Unknown time zone: {args.timezone}", file=sys.stderr)
        sys.exit(1)

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        business = Business(name=args.name.strip(), timezone=args.timezone)
        db.add(business)
        db.commit()
        db.refresh(business)
        business_id = business.id
    finally:
        db.close()

    print(f"business_id={business_id}")
    print(f"token={create_access_token(subject=args.owner, business_id=business_id)}")


if __name__ == "__main__":
    main()
