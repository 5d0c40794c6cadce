"""Pytest fixtures for testing"""

import asyncio
import pytest
from typing import Callable, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from stuvendor.api.main import create_app
from stuvendor.api.dependencies import get_payment_client, get_token_codec
from stuvendor.domain.models import PaymentVerification, TransferRequest, TransferOutcome
from stuvendor.infrastructure.database.models import Base, Account, VendorProfile, LedgerEntry
from stuvendor.infrastructure.database.session import build_engine, get_db
from stuvendor.infrastructure.security import TokenCodec


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


class FakeProvider:
    """In-memory payment provider recording every transfer request and known charge"""

    def __init__(self):
        self.calls: List[TransferRequest] = []
        self.charges: Dict[str, PaymentVerification] = {}
        self.verify_error: Optional[Exception] = None
        self.outcome: Optional[TransferOutcome] = None
        self.error: Optional[Exception] = None
        self.delay: float = 0.0

    async def transfer(self, request: TransferRequest) -> TransferOutcome:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        else:
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if self.outcome is not None:
            return self.outcome
        return TransferOutcome(succeeded=True, transaction_id=f"txn-{len(self.calls)}", message="Transfer Queued")

    async def list_banks(self, country: str) -> List[Dict]:
        return [{"id": 1, "code": "044", "name": "Access Bank"}]

    async def resolve_account(self, account_number: str, bank_code: str) -> str:
        return "ADA VENDOR"

    def charge(self, transaction_id: str, tx_ref: str, amount: int, currency: str = "NGN", succeeded: bool = True) -> None:
        """Register a customer charge the verify call will report"""
        self.charges[transaction_id] = PaymentVerification(
            succeeded=succeeded,
            transaction_id=transaction_id,
            tx_ref=tx_ref,
            amount=amount,
            currency=currency,
        )

    async def verify_transaction(self, transaction_id: str) -> PaymentVerification:
        if self.verify_error is not None:
            raise self.verify_error
        known = self.charges.get(transaction_id)
        if known is None:
            return PaymentVerification(succeeded=False, transaction_id=transaction_id, message="No transaction was found for this id")
        return known


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session) -> Callable[[], Session]:
    """Extra sessions on the test database (closed after the test)"""
    opened: List[Session] = []

    def factory() -> Session:
        session = TestingSessionLocal()
        opened.append(session)
        return session

    yield factory

    for session in opened:
        session.close()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def codec() -> TokenCodec:
    return get_token_codec()


@pytest.fixture
def client(db: Session, fake_provider: FakeProvider) -> TestClient:
    """Create FastAPI test client with test database and fake payment provider"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_client] = lambda: fake_provider
    return TestClient(app)


@pytest.fixture
def make_account(db: Session) -> Callable[..., Account]:
    counter = {"n": 0}

    def _make(role: str = "customer", name: str = "Test User") -> Account:
        counter["n"] += 1
        account = Account(email=f"user{counter['n']}@example.com", name=name, role=role, verified=True)
        db.add(account)
        db.commit()
        return account

    return _make


@pytest.fixture
def make_vendor(db: Session, make_account) -> Callable[..., VendorProfile]:
    def _make(
        business_name: str = "Campus Books",
        bank_code: Optional[str] = "044",
        bank_account_number: Optional[str] = "0690000031",
    ) -> VendorProfile:
        account = make_account(role="vendor", name=business_name)
        vendor = VendorProfile(
            account_id=account.id,
            business_name=business_name,
            bank_code=bank_code,
            bank_account_number=bank_account_number,
            bank_account_name="ADA VENDOR",
        )
        db.add(vendor)
        db.commit()
        return vendor

    return _make


@pytest.fixture
def add_entry(db: Session) -> Callable[..., LedgerEntry]:
    """Insert a ledger entry directly"""

    def _add(vendor: VendorProfile, amount: int, type: str = "order_split", status: str = "completed", **fields) -> LedgerEntry:
        entry = LedgerEntry(vendor_id=vendor.id, amount=amount, type=type, status=status, **fields)
        db.add(entry)
        db.commit()
        return entry

    return _add


@pytest.fixture
def auth_headers(codec: TokenCodec) -> Callable[..., Dict[str, str]]:
    def _headers(account: Account, role: Optional[str] = None) -> Dict[str, str]:
        token = codec.mint(account.id, role or account.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers
