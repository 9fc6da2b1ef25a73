from __future__ import annotations

import argparse

from rentsafe.cli.seed_demo import seed_demo


def main() -> None:
    p = argparse.ArgumentParser(prog="python -m rentsafe.cli", description="Seed a demo landlord account.")
    p.add_argument("--owner-email", default="demo@rentsafe.local")
    p.add_argument("--display-name", default="Demo Landlord")
    p.add_argument("--no-samples", action="store_true", help="create the owner only")
    args = p.parse_args()

    out = seed_demo(
        owner_email=args.owner_email,
        display_name=args.display_name,
        with_samples=(not args.no_samples),
    )
    print(
        {
            "ok": True,
            "owner_id": out.owner_id,
            "owner_email": out.owner_email,
            "property_ids": out.property_ids,
        }
    )


if __name__ == "__main__":
    main()
