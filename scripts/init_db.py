"""
Seed the admin user (idempotent) and, optionally, a handful of demo customers/invoices.

Usage:
  python scripts/init_db.py            # admin user only
  python scripts/init_db.py --demo     # admin user + demo data (skipped if customers exist)
"""
import argparse
import os
import sys
from datetime import timedelta
from pathlib import Path

from werkzeug.security import generate_password_hash
from sqlalchemy import func, select

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.dashboard.models import Customer, Invoice, User  # noqa: E402
from app.dashboard.utils import utc_today  # noqa: E402
from scripts._db_utils import script_session  # noqa: E402

DEMO_CUSTOMERS = (
    ("Evil Rabbit", "evil@rabbit.com"),
    ("Delba de Oliveira", "delba@oliveira.com"),
    ("Lee Robinson", "lee@robinson.com"),
    ("Michael Novotny", "michael@novotny.com"),
    ("Amy Burns", "amy@burns.com"),
    ("Balazs Orban", "balazs@orban.com"),
)

# (customer index, cents, status, days ago)
DEMO_INVOICES = (
    (0, 15795, "pending", 3),
    (1, 20348, "pending", 8),
    (4, 3040, "paid", 12),
    (3, 44800, "paid", 20),
    (5, 34577, "pending", 31),
    (2, 54246, "pending", 40),
    (0, 666, "pending", 45),
    (3, 32545, "paid", 60),
    (4, 1250, "paid", 75),
    (5, 8546, "paid", 90),
)


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed the admin user in an idempotent way.
    Does NOT overwrite an existing admin user's password.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@example.com").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///dashboard.db").strip()

    with script_session(db_url) as s:
        user = s.execute(select(User).where(User.email == admin_email)).scalar_one_or_none()
        if not user:
            s.add(
                User(
                    name="Admin",
                    email=admin_email,
                    password_hash=generate_password_hash(admin_password),
                    is_active=True,
                )
            )

    print("Initialized database (seed_only).")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def seed_demo(*, database_url: str | None = None, placeholder_url: str | None = None) -> None:
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///dashboard.db").strip()
    image_url = placeholder_url or os.environ.get("PLACEHOLDER_IMAGE_URL") or "/static/customers/default.svg"

    with script_session(db_url) as s:
        if s.execute(select(func.count(Customer.id))).scalar_one():
            print("Customers already present; skipping demo data.")
            return
        customers = [Customer(name=name, email=email, image_url=image_url) for name, email in DEMO_CUSTOMERS]
        s.add_all(customers)
        s.flush()
        today = utc_today()
        s.add_all(
            Invoice(customer_id=customers[idx].id, amount=cents, status=status, date=today - timedelta(days=days_ago))
            for idx, cents, status, days_ago in DEMO_INVOICES
        )

    print(f"Seeded {len(DEMO_CUSTOMERS)} demo customers and {len(DEMO_INVOICES)} invoices.")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--demo", action="store_true", help="also seed demo customers and invoices")
    args = parser.parse_args()

    seed_only(database_url=None)
    if args.demo:
        seed_demo(database_url=None)


if __name__ == "__main__":
    main()
