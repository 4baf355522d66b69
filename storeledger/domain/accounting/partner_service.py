"""Partner directory: resolves customers and suppliers for debt records."""

import logging
import re
import unicodedata
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storeledger.core.config import get_settings
from storeledger.models.accounting import Partner
from storeledger.domain.accounting.enums import PartnerKind
from storeledger.domain.accounting.exceptions import ValidationError

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^[0-9]{10,11}$")

DEFAULT_PARTNERS = {
    PartnerKind.CUSTOMER: ("Default customer", "0900000000"),
    PartnerKind.SUPPLIER: ("Default supplier", "0900000001"),
}


def validate_phone(phone: str | None) -> str | None:
    if phone is None or phone == "":
        return None
    phone = phone.strip()
    if not PHONE_PATTERN.match(phone):
        raise ValidationError("Phone number must be 10-11 digits", phone=phone)
    return phone


def slugify(name: str) -> str:
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode()
    slug = re.sub(r"[^a-z0-9]+", ".", ascii_name.lower()).strip(".")
    return slug or "partner"


class PartnerDirectory:
    """
    Resolve-or-create counterparties.

    Callers should pass a stable ``external_ref`` (e.g. the store's customer
    id); partners are then matched on (kind, external_ref) only. Name-only
    resolution follows the configured deduplication policy:

    - ``name``: case-insensitive name match within the kind; several matches
      are narrowed by phone, and a remaining ambiguity is rejected
    - ``strict``: name-only resolution is refused
    """

    def __init__(
        self,
        db: Session,
        policy: str | None = None,
        max_retries: int | None = None,
    ):
        settings = get_settings()
        self.db = db
        self.policy = policy or settings.partner_dedup_policy
        self.max_retries = settings.partner_max_retries if max_retries is None else max_retries
        self.email_domain = settings.partner_email_domain

    def resolve(
        self,
        kind: PartnerKind,
        name: str,
        phone: str | None = None,
        external_ref: str | None = None,
    ) -> Partner:
        """
        Find or create the partner for a debt record.

        Args:
            kind: Customer or supplier
            name: Display name
            phone: Optional phone; backfilled or updated on match
            external_ref: Optional stable identifier

        Returns:
            Matching or newly created Partner; the shared default partner
            of the direction when creation keeps colliding

        Raises:
            ValidationError: If the name is empty, the phone is malformed,
                or a name-only lookup is ambiguous or refused by policy
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Partner name is required", kind=kind.value)
        phone = validate_phone(phone)

        if external_ref:
            partner = self.find_by_ref(kind, external_ref)
        else:
            partner = self._match_by_name(kind, name, phone)

        if partner:
            if phone and partner.phone != phone:
                logger.info(f"Updating phone of partner {partner.id}")
                partner.phone = phone
                self.db.flush()
            return partner

        return self._create(kind, name, phone, external_ref)

    def find_by_ref(self, kind: PartnerKind, external_ref: str) -> Partner | None:
        return self.db.query(Partner).filter(
            Partner.kind == kind,
            Partner.external_ref == external_ref,
        ).first()

    def find_by_name(self, kind: PartnerKind, name: str) -> List[Partner]:
        return self.db.query(Partner).filter(
            Partner.kind == kind,
            Partner.is_default.is_(False),
            func.lower(Partner.name) == name.lower(),
        ).order_by(Partner.created_at).all()

    def default_partner(self, kind: PartnerKind) -> Partner:
        """Return the shared default partner for a direction, creating it if needed."""
        partner = self.db.query(Partner).filter(
            Partner.kind == kind,
            Partner.is_default.is_(True),
        ).first()
        if partner:
            return partner

        name, phone = DEFAULT_PARTNERS[kind]
        try:
            with self.db.begin_nested():
                partner = Partner(
                    kind=kind,
                    name=name,
                    phone=phone,
                    email=f"default-{kind.value}@{self.email_domain}",
                    is_default=True,
                )
                self.db.add(partner)
                self.db.flush()
        except IntegrityError:
            logger.warning(f"Default {kind.value} partner created concurrently, re-fetching")
            partner = self.db.query(Partner).filter(
                Partner.kind == kind,
                Partner.is_default.is_(True),
            ).first()
            if not partner:
                raise
        return partner

    def _match_by_name(self, kind: PartnerKind, name: str, phone: str | None) -> Partner | None:
        if self.policy == "strict":
            raise ValidationError(
                "A stable partner reference is required to resolve a partner",
                kind=kind.value,
                name=name,
            )

        matches = self.find_by_name(kind, name)
        if len(matches) <= 1:
            return matches[0] if matches else None

        if phone:
            same_phone = [p for p in matches if p.phone == phone]
            if len(same_phone) == 1:
                return same_phone[0]

        raise ValidationError(
            f"{len(matches)} {kind.value}s are named {name!r}; supply a partner reference",
            kind=kind.value,
            name=name,
        )

    def _create(
        self,
        kind: PartnerKind,
        name: str,
        phone: str | None,
        external_ref: str | None,
    ) -> Partner:
        slug = slugify(name)
        for attempt in range(self.max_retries + 1):
            suffix = f"-{attempt}" if attempt else ""
            partner = Partner(
                kind=kind,
                name=name,
                phone=phone,
                email=f"{slug}{suffix}@{self.email_domain}",
                external_ref=external_ref,
            )
            try:
                with self.db.begin_nested():
                    self.db.add(partner)
                    self.db.flush()
            except IntegrityError:
                # Same external ref created by a concurrent request
                if external_ref:
                    existing = self.find_by_ref(kind, external_ref)
                    if existing:
                        return existing
                logger.warning(f"Partner email {partner.email} is taken, retrying with a suffix")
                continue

            logger.info(f"Created {kind.value} partner {partner.id} ({name})")
            return partner

        logger.warning(
            f"Could not create {kind.value} partner {name!r} after {self.max_retries} retries; "
            f"using the default partner"
        )
        return self.default_partner(kind)
