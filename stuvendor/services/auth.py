"""Identity resolution and role authorization for privileged routes"""

import logging
import uuid
from typing import Optional
from stuvendor.domain.exceptions import UnknownAccount, VendorProfileMissing, Unauthenticated, Forbidden
from stuvendor.domain.models import Principal, AccountPrincipal, VendorPrincipal, ROLE_VENDOR
from stuvendor.infrastructure.database.repositories import AccountRepository, VendorRepository
from stuvendor.infrastructure.security import TokenCodec

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Turns a bearer credential into a request-scoped principal"""

    def __init__(self, codec: TokenCodec, accounts: AccountRepository, vendors: VendorRepository):
        self.codec = codec
        self.accounts = accounts
        self.vendors = vendors

    def resolve(self, token: Optional[str], allow_vendor_without_profile: bool = False) -> Principal:
        """
        Resolve a credential to an AccountPrincipal or VendorPrincipal.

        A vendor role claim resolves to the owning VendorProfile, except on
        the profile-creation operation (allow_vendor_without_profile), where a
        vendor account that has no storefront yet resolves to itself.

        Raises:
            InvalidCredential: Token absent, malformed, expired or badly signed
            UnknownAccount: Subject does not exist
            VendorProfileMissing: Vendor claim without a completed vendor profile
        """
        claims = self.codec.decode(token)

        account = self.accounts.get_by_id(claims.subject_id)
        if account is None:
            raise UnknownAccount(f"No account for credential subject {claims.subject_id}")

        if claims.role != ROLE_VENDOR:
            return AccountPrincipal(account_id=account.id, role_claim=claims.role)

        if allow_vendor_without_profile:
            return AccountPrincipal(account_id=account.id, role_claim=claims.role)

        vendor = self.vendors.get_by_account_id(account.id)
        if vendor is None:
            raise VendorProfileMissing("Vendor profile not found. Please complete vendor registration.")

        return VendorPrincipal(vendor_id=vendor.id, account_id=account.id, role_claim=claims.role)


def owning_account_id(principal: Principal) -> uuid.UUID:
    """Account id behind a principal; storefront ids are never used as account ids"""
    if isinstance(principal, VendorPrincipal):
        return principal.account_id
    if isinstance(principal, AccountPrincipal):
        return principal.account_id
    raise TypeError(f"Unsupported principal type: {type(principal).__name__}")


class RoleGate:
    """Authorizes a principal against the persisted role of its owning account"""

    def __init__(self, accounts: AccountRepository):
        self.accounts = accounts

    def authorize(self, principal: Optional[Principal], role: str) -> None:
        """
        Raises:
            Unauthenticated: No principal resolved for the request
            Forbidden: Persisted account role differs from the required role
        """
        if principal is None:
            raise Unauthenticated("User not authenticated")

        account_id = owning_account_id(principal)
        account = self.accounts.get_by_id(account_id)
        if account is None or account.role != role:
            logger.info(
                "Role check rejected",
                extra={
                    "account_id": str(account_id),
                    "required_role": role,
                    "role_claim": principal.role_claim,
                },
            )
            raise Forbidden(role)
