import pytest

from helpdesk.exceptions import DuplicateError


@pytest.mark.asyncio
class TestCustomerRepository:

    async def test_create_customer_sanitizes_and_dedupes_emails(self, customer_repository):
        customer = await customer_repository.create_customer(
            first_name=" Jane ",
            last_name="Doe",
            emails=["Jane Doe <Jane@Example.com>", "jane@example.com.", "broken", "j.doe.@work.example"],
        )

        assert customer.full_name == "Jane Doe"
        assert await customer_repository.get_emails(customer.id) == ["j.doe@work.example", "jane@example.com"]

    async def test_create_customer_without_emails(self, customer_repository):
        customer = await customer_repository.create_customer()

        assert customer.full_name == ""
        assert await customer_repository.get_emails(customer.id) == []

    async def test_taken_email_is_rejected(self, customer_repository):
        await customer_repository.create_customer(first_name="A", emails=["shared@example.com"])

        with pytest.raises(DuplicateError) as exc_info:
            await customer_repository.create_customer(first_name="B", emails=["SHARED@example.com"])

        assert exc_info.value.fields == ["email"]
        assert await customer_repository.count() == 1

    async def test_get_by_email(self, customer_repository):
        customer = await customer_repository.create_customer(first_name="Lookup", emails=["look@example.com"])

        found = await customer_repository.get_by_email("<LOOK@example.com>")

        assert found.id == customer.id
        assert [e.email for e in found.emails] == ["look@example.com"]
        assert await customer_repository.get_by_email("nobody@example.com") is None
        assert await customer_repository.get_by_email("not an address") is None
