"""Authentication and role-gate dependencies for privileged routes"""

import logging
from typing import Callable, Optional
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from stuvendor.api.dependencies import get_token_codec
from stuvendor.domain.exceptions import (
    InvalidCredential,
    UnknownAccount,
    VendorProfileMissing,
    Unauthenticated,
    Forbidden,
)
from stuvendor.domain.models import Principal, VendorPrincipal, ROLE_VENDOR
from stuvendor.infrastructure.database.repositories import AccountRepository, VendorRepository
from stuvendor.infrastructure.database.session import get_db
from stuvendor.infrastructure.observability.metrics import auth_rejection_counter
from stuvendor.infrastructure.security import TokenCodec, bearer_token
from stuvendor.services.auth import IdentityResolver, RoleGate

logger = logging.getLogger(__name__)


def _resolve(
    authorization: Optional[str],
    db: Session,
    codec: TokenCodec,
    allow_vendor_without_profile: bool,
) -> Principal:
    resolver = IdentityResolver(codec, AccountRepository(db), VendorRepository(db))
    try:
        return resolver.resolve(
            bearer_token(authorization),
            allow_vendor_without_profile=allow_vendor_without_profile,
        )
    except InvalidCredential as e:
        auth_rejection_counter.labels(reason="invalid_credential").inc()
        raise HTTPException(status_code=401, detail=str(e))
    except UnknownAccount:
        auth_rejection_counter.labels(reason="unknown_account").inc()
        raise HTTPException(status_code=401, detail="Error fetching user")
    except VendorProfileMissing as e:
        auth_rejection_counter.labels(reason="vendor_profile_missing").inc()
        raise HTTPException(status_code=401, detail=str(e))


def get_principal(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> Principal:
    """Resolve the caller; vendor claims resolve to the vendor storefront"""
    return _resolve(authorization, db, codec, allow_vendor_without_profile=False)


def get_onboarding_principal(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> Principal:
    """Resolve the caller for vendor profile creation, where no storefront exists yet"""
    return _resolve(authorization, db, codec, allow_vendor_without_profile=True)


def require_role(role: str, onboarding: bool = False) -> Callable[..., Principal]:
    """Build a dependency admitting only principals whose account has the given role"""
    principal_dependency = get_onboarding_principal if onboarding else get_principal

    def dependency(
        principal: Principal = Depends(principal_dependency),
        db: Session = Depends(get_db),
    ) -> Principal:
        try:
            RoleGate(AccountRepository(db)).authorize(principal, role)
        except Unauthenticated as e:
            auth_rejection_counter.labels(reason="unauthenticated").inc()
            raise HTTPException(status_code=401, detail=str(e))
        except Forbidden as e:
            auth_rejection_counter.labels(reason="forbidden").inc()
            raise HTTPException(status_code=403, detail=str(e))
        return principal

    return dependency


def require_vendor(principal: Principal = Depends(require_role(ROLE_VENDOR))) -> VendorPrincipal:
    """Vendor-role caller with a completed storefront"""
    if not isinstance(principal, VendorPrincipal):
        # Persisted role is vendor but the token claim was not, so no storefront was resolved
        auth_rejection_counter.labels(reason="stale_role_claim").inc()
        raise HTTPException(status_code=401, detail="Token role is out of date, please sign in again")
    return principal
