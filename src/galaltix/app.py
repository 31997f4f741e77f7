from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from galaltix.config import Config
from galaltix.core.core import Core
from galaltix.core.modules.invoice.models import Invoice, InvoiceDraft, InvoiceStatus, InvoiceType
from galaltix.core.modules.receipt.models import GoodsReceipt, GoodsReceiptDraft
from galaltix.core.modules.sequence.models import CounterView, DocumentType
from galaltix.core.modules.session.models import AuthToken
from galaltix.core.modules.user.models import UserView
from galaltix.core.pagination import PaginationResult
from galaltix.errors import AuthenticationError


class App:
    """Facade for all application operations, validates permissions before delegating to Core."""

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        return await self._core.services.session.is_auth_token_valid(auth_token)

    async def login(self, username: str, password: str) -> AuthToken:
        """Authenticate user and create session."""
        if not self._core.services.user.verify_password(username, password):
            raise AuthenticationError
        user = self._core.services.user.get_user_by_username(username)
        return await self._core.services.session.create_session(user.id)

    async def logout(self, auth_token: AuthToken) -> None:
        await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.session.invalidate_session(auth_token)

    async def get_current_user(self, auth_token: AuthToken) -> UserView:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return UserView.from_domain(current_user)

    async def change_password(self, auth_token: AuthToken, old_password: str, new_password: str) -> None:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.user.change_password(current_user.id, old_password, new_password)

    async def get_all_users(self, auth_token: AuthToken) -> list[UserView]:
        await self._core.services.access.ensure_authenticated(auth_token)
        return [UserView.from_domain(user) for user in self._core.services.user.get_all_users()]

    async def create_user(self, auth_token: AuthToken, username: str, password: str) -> UserView:
        """Create a new user (admin only)."""
        await self._core.services.access.ensure_admin(auth_token)
        user = await self._core.services.user.create_user(username, password)
        return UserView.from_domain(user)

    # === Reference numbering ===
    async def preview_reference(self, auth_token: AuthToken, document_type: DocumentType) -> str:
        """Next reference code for today, for display only (not reserved)."""
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.sequence.preview(document_type)

    async def get_counter(self, auth_token: AuthToken, document_type: DocumentType, counter_key: str) -> CounterView:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.sequence.get_counter(document_type, counter_key)

    # === Invoices ===
    async def create_invoice(self, auth_token: AuthToken, draft: InvoiceDraft) -> Invoice:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.invoice.create_invoice(draft, current_user.username)

    async def get_invoices(
        self,
        auth_token: AuthToken,
        limit: int = 50,
        offset: int = 0,
        status: InvoiceStatus | None = None,
        invoice_type: InvoiceType | None = None,
    ) -> PaginationResult[Invoice]:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.invoice.list_invoices(limit, offset, status, invoice_type)

    async def get_invoice(self, auth_token: AuthToken, invoice_number: str) -> Invoice:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.invoice.get_invoice_by_number(invoice_number)

    async def update_invoice_status(self, auth_token: AuthToken, invoice_number: str, status: InvoiceStatus) -> Invoice:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.invoice.update_status(invoice_number, status)

    async def record_invoice_payment(self, auth_token: AuthToken, invoice_number: str, amount: float) -> Invoice:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.invoice.record_payment(invoice_number, amount)

    # === Goods receipts ===
    async def create_receipt(self, auth_token: AuthToken, draft: GoodsReceiptDraft) -> GoodsReceipt:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.receipt.create_receipt(draft, current_user.username)

    async def get_receipts(
        self, auth_token: AuthToken, limit: int = 50, offset: int = 0, purchase_contract_number: str | None = None
    ) -> PaginationResult[GoodsReceipt]:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.receipt.list_receipts(limit, offset, purchase_contract_number)

    async def get_receipt(self, auth_token: AuthToken, receipt_number: str) -> GoodsReceipt:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.receipt.get_receipt_by_number(receipt_number)
