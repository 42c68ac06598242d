from loguru import logger
from sqlmodel import Session
from app.core.config import settings
from app.core.security import create_access_token
from app.db.core import engine, create_db_and_tables
from app.db.store import SQLModelStore
from app.services.stakeholder import StakeholderService


# Demo supply chain: principal -> role
DEFAULT_STAKEHOLDERS = {
    "cotton-farm-coop": "Farmer",
    "spinning-mill": "Manufacturer",
    "qa-lab": "Quality Inspector",
    "freight-forwarder": "Distributor",
    "high-street-store": "Retailer",
}


def seed_stakeholders(service: StakeholderService, admin: str):
    """Authorizes the demo stakeholders that are not authorized yet."""
    logger.info("--- Seeding Stakeholders ---")

    for principal, role in DEFAULT_STAKEHOLDERS.items():
        if service.is_authorized(principal):
            logger.info(f"Existing Stakeholder: {principal}")
            continue
        service.authorize(admin, principal, role)
        logger.info(f"Authorized Stakeholder: {principal} ({role})")


def print_tokens(principals):
    logger.info("--- Access Tokens ---")
    for principal in principals:
        logger.info(f"{principal}: {create_access_token(principal)}")


def main():
    create_db_and_tables()
    admin = settings.admin_principal

    with Session(engine) as session:
        service = StakeholderService(SQLModelStore(session))
        try:
            service.initialize(admin)
            seed_stakeholders(service, admin)
            logger.info("Registry seeding completed successfully.")

        except Exception as e:
            logger.error(f"Seeding failed: {e}")
            raise e

    print_tokens([admin, *DEFAULT_STAKEHOLDERS])


if __name__ == "__main__":
    main()
