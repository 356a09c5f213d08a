from nfcpay.core.database import SessionLocal
from nfcpay.core.logging import configure_logging
from nfcpay.services.merchants import seed_default_merchants


def main():
    configure_logging()
    db = SessionLocal()
    try:
        created = seed_default_merchants(db)
        print(f"Seeded {created} merchant(s).")
    finally:
        db.close()


if __name__ == "__main__":
    main()
