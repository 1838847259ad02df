import logging

from fastapi import APIRouter, Query
from psycopg import errors as pg_errors

from forum import db
from forum.dependencies import AdminGuard, OptionalBus
from forum.errors import ConflictError, NotFoundError
from forum.models.catalog import Company, CompanyCreate, CompanyVerified, Registration, VerificationRequest
from forum.producers import slot_producer

logger = logging.getLogger("forum.companies")
router = APIRouter(tags=["companies"])


def _not_found(company_id: int) -> NotFoundError:
    return NotFoundError("Company not found", resource_type="company", resource_id=str(company_id))


@router.post("/companies", response_model=Company, status_code=201)
async def create_company(req: CompanyCreate) -> Company:
    try:
        company = await db.create_company(req.name, req.email)
    except pg_errors.UniqueViolation as exc:
        raise ConflictError("A company with this name already exists") from exc
    logger.info("Created company id=%s name=%s", company["id"], company["name"])
    return Company(**company)


@router.get("/companies", response_model=list[Company])
async def list_companies(
    status: str | None = Query(None, pattern="^(pending|verified|rejected)$"),
) -> list[Company]:
    return [Company(**c) for c in await db.list_companies(status)]


@router.get("/companies/{company_id}", response_model=Company)
async def get_company(company_id: int) -> Company:
    company = await db.get_company(company_id)
    if company is None:
        raise _not_found(company_id)
    return Company(**company)


@router.get("/companies/{company_id}/registrations", response_model=list[Registration])
async def list_company_registrations(company_id: int) -> list[Registration]:
    return [Registration(**r) for r in await db.list_registrations(company_id=company_id)]


@router.put("/admin/companies/{company_id}/verification", response_model=CompanyVerified)
async def set_verification(
    company_id: int,
    req: VerificationRequest,
    _admin: AdminGuard,
    bus: OptionalBus,
) -> CompanyVerified:
    company = await db.set_company_verification(company_id, req.is_verified)
    if company is None:
        raise _not_found(company_id)
    logger.info("Company %s verification set to %s", company_id, company["verification_status"])
    # Verification moves the company in or out of every event it is approved for.
    regenerations = await db.regenerate_company_events(company_id)
    for result in regenerations:
        await slot_producer.slots_regenerated(bus, result)
    return CompanyVerified(company=Company(**company), regenerations=regenerations)
