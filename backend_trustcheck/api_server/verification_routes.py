"""
FastAPI router: /verification — search, organization and phone/person checks, admin panel.

Handlers only translate HTTP to service calls; validation and scoring live in
backend_trustcheck.verification. Domain errors are mapped to status codes by
the handlers registered in server.py.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend_trustcheck.api_server.dependencies import get_verification_service
from backend_trustcheck.verification import OrganizationUpdate, VerificationService

router = APIRouter(prefix="/verification", tags=["verification"])


class UpdateOrganizationRequest(BaseModel):
    """PATCH /verification/admin/company/{tax_id} body. Omitted fields stay unchanged."""

    name: str | None = Field(None, min_length=1, max_length=512)
    trust_score: int | None = Field(None, ge=0, description="No upper bound is enforced")
    risk_level: str | None = Field(None, min_length=1, max_length=64)
    vat_status: str | None = Field(None, min_length=1, max_length=64)


class LinkPhoneRequest(BaseModel):
    """POST /verification/admin/link-phone body."""

    tax_id: str = Field(..., description="10-digit tax id (NIP)")
    phone: str = Field(..., min_length=1, max_length=32)


@router.get("/search/{query}")
def search(query: str, service: VerificationService = Depends(get_verification_service)) -> dict[str, Any]:
    """Classify a tax id or phone query; tax ids are verified right away."""
    return service.search(query).to_dict()


@router.get("/company/{tax_id}")
def check_company(
    tax_id: str,
    service: VerificationService = Depends(get_verification_service),
) -> dict[str, Any]:
    """Verify an organization. May refresh the stored copy from the registry."""
    return service.verify_organization(tax_id).to_dict()


@router.get("/phone/{number}")
def check_phone(
    number: str,
    region: str | None = None,
    service: VerificationService = Depends(get_verification_service),
) -> dict[str, Any]:
    """Verify a phone number or a person name."""
    return service.verify_phone_or_person(number, region=region).to_dict()


@router.get("/admin/companies")
def list_companies(service: VerificationService = Depends(get_verification_service)) -> list[dict[str, Any]]:
    return [
        {
            "tax_id": o.tax_id,
            "name": o.name,
            "vat_status": o.vat_status,
            "risk_level": o.risk_level,
        }
        for o in service.list_organizations()
    ]


@router.get("/admin/company/{tax_id}")
def get_company(tax_id: str, service: VerificationService = Depends(get_verification_service)) -> dict[str, Any]:
    return service.get_organization(tax_id).to_dict()


@router.patch("/admin/company/{tax_id}")
def update_company(
    tax_id: str,
    body: UpdateOrganizationRequest,
    service: VerificationService = Depends(get_verification_service),
) -> dict[str, Any]:
    update = OrganizationUpdate(**body.model_dump())
    return service.update_organization(tax_id, update).to_dict()


@router.post("/admin/link-phone")
def link_phone(body: LinkPhoneRequest, service: VerificationService = Depends(get_verification_service)) -> dict[str, Any]:
    return asdict(service.link_phone_to_organization(body.tax_id, body.phone))
