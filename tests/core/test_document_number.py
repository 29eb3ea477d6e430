from sqlalchemy.ext.asyncio import AsyncSession

from src.core.documents import get_document_number


class TestDocumentNumberGenerator:
    """Tests for voucher number generator."""

    async def test_generate_first_number(self, db_session: AsyncSession):
        number = await get_document_number(db_session, "PXK", year=2026)
        assert number == "PXK-2026-000001"

    async def test_generate_sequential_numbers(self, db_session: AsyncSession):
        num1 = await get_document_number(db_session, "PXK", year=2026)
        num2 = await get_document_number(db_session, "PXK", year=2026)
        num3 = await get_document_number(db_session, "PXK", year=2026)

        assert [num1, num2, num3] == ["PXK-2026-000001", "PXK-2026-000002", "PXK-2026-000003"]

    async def test_different_prefixes(self, db_session: AsyncSession):
        """Issue and receipt notes have independent sequences."""
        gin = await get_document_number(db_session, "PXK", year=2026)
        grn = await get_document_number(db_session, "PNK", year=2026)
        gin2 = await get_document_number(db_session, "PXK", year=2026)

        assert gin == "PXK-2026-000001"
        assert grn == "PNK-2026-000001"
        assert gin2 == "PXK-2026-000002"

    async def test_different_years(self, db_session: AsyncSession):
        num_2026 = await get_document_number(db_session, "PNK", year=2026)
        num_2027 = await get_document_number(db_session, "PNK", year=2027)

        assert num_2026 == "PNK-2026-000001"
        assert num_2027 == "PNK-2027-000001"
