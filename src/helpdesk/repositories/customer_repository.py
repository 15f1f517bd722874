"""
Customer repository: customers and their email addresses.
"""

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from helpdesk.exceptions.base import DuplicateError
from helpdesk.exceptions.mapper import db_error_handler
from helpdesk.models.customer import Customer, Email
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CustomerRepository(BaseRepository[Customer]):

    def __init__(self, db: AsyncSession):
        super().__init__(Customer, db)

    async def create_customer(
        self,
        first_name: str = "",
        last_name: str = "",
        emails: Iterable[str] = ()
    ) -> Customer:
        """
        Create a customer with the given addresses.

        Addresses are sanitized (see `Email.sanitize_email`); invalid ones are
        dropped and duplicates collapsed.

        Raises:
            DuplicateError: an address already belongs to a customer.
        """
        addresses = list(dict.fromkeys(
            clean for clean in (Email.sanitize_email(e) for e in emails) if clean
        ))

        if addresses:
            async with db_error_handler(self.db, "Email"):
                result = await self.db.execute(select(Email.email).where(Email.email.in_(addresses)))
                taken = sorted(result.scalars().all())
            if taken:
                logger.info("repo.customer.email_taken", extra={"count": len(taken)})
                raise DuplicateError(
                    f"Email already belongs to a customer: {', '.join(taken)}", fields=["email"]
                )

        customer = await self.create(first_name=first_name.strip(), last_name=last_name.strip())

        async with db_error_handler(self.db, "Email"):
            self.db.add_all(Email(customer_id=customer.id, email=address) for address in addresses)
            await self.db.flush()

        logger.info(
            "repo.customer.created",
            extra={"customer_id": str(customer.id), "emails": len(addresses)},
        )
        return customer

    async def get_by_email(self, email: str) -> Customer | None:
        """Customer owning `email` (matched after sanitizing), with emails loaded."""
        address = Email.sanitize_email(email)
        if address is None:
            return None

        async with db_error_handler(self.db, self.model_name):
            result = await self.db.execute(
                select(Customer)
                .join(Email, Email.customer_id == Customer.id)
                .where(Email.email == address)
                .options(selectinload(Customer.emails))
            )
            return result.scalars().first()

    async def get_emails(self, customer_id) -> list[str]:
        async with db_error_handler(self.db, "Email"):
            result = await self.db.execute(
                select(Email.email).where(Email.customer_id == customer_id).order_by(Email.email)
            )
            return list(result.scalars().all())
