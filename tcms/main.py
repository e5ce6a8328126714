"""FastAPI application for the Traditional Council Management System."""

import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from http import HTTPStatus

import logfire
from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from starlette.requests import Request

from . import (
    council,
    directory,
    disputes,
    eligibility,
    events,
    land,
    levy,
    members,
    organizations,
    residents,
    succession,
)
from .database import SessionLocal, get_db, init_db
from .errors import GovernanceError, InvalidStateError, NotFoundError
from .schemas import (
    AdjudicatorAssignment,
    ApiError,
    CaseCreate,
    CaseStatus,
    CouncilAppointment,
    CouncilStandAssignment,
    DefenseSubmission,
    DisputeCaseRead,
    DisqualifyRequest,
    EligibilityResponse,
    EventCreate,
    FamilyCreate,
    FamilyRead,
    LandStandRead,
    LevyPaymentRead,
    LevyStatusResponse,
    MemberCreate,
    MemberRead,
    OrganizationCreate,
    OrganizationNode,
    OrganizationRead,
    OrganizationReparent,
    PaymentCreate,
    ProofOfResidenceResponse,
    ResidentCreate,
    ResidentRead,
    StandCreate,
    StandRequest,
    StandType,
    VillageEventRead,
)

logger = logging.getLogger(__name__)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database and the standard roles on startup."""
    init_db()
    db = SessionLocal()
    try:
        members.ensure_default_roles(db)
        db.commit()
    finally:
        db.close()
    yield


app = FastAPI(
    title="TCMS API",
    description="Traditional Council Management System - councils, succession, disputes and land",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure Logfire for observability (after app creation)
if os.getenv("LOGFIRE_TOKEN"):
    logfire.configure()
    logfire.instrument_fastapi(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Request logging
# =============================================================================


def client_ip(request: Request) -> str:
    """Caller address, preferring proxy headers over the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def log_level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request and its outcome with the elapsed time."""
    ip = client_ip(request)
    logger.info(f"Incoming request: {request.method} {request.url.path} from {ip}")
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (time.perf_counter() - start) * 1000
        logger.error(
            f"Request failed: {request.method} {request.url.path} from {ip} "
            f"after {duration_ms:.0f}ms"
        )
        raise
    duration_ms = (time.perf_counter() - start) * 1000
    logger.log(
        log_level_for_status(response.status_code),
        f"Completed request: {request.method} {request.url.path} - "
        f"status {response.status_code} in {duration_ms:.0f}ms",
    )
    return response


# =============================================================================
# Error mapping
# =============================================================================


def _error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    body = ApiError(
        timestamp=datetime.now(timezone.utc),
        status=status_code,
        error=HTTPStatus(status_code).phrase,
        message=message,
        path=request.url.path,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def status_for_error(exc: GovernanceError) -> int:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, InvalidStateError):
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(GovernanceError)
async def governance_error_handler(request: Request, exc: GovernanceError):
    status_code = status_for_error(exc)
    logger.warning(f"{exc.error_code} at {request.url.path} - {exc.message}")
    return _error_response(request, status_code, exc.message)


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError):
    logger.warning(f"Concurrent modification at {request.url.path} - {exc}")
    return _error_response(
        request, status.HTTP_409_CONFLICT, "The record was modified concurrently; retry the request"
    )


# =============================================================================
# Admin auth
# =============================================================================

# Simple bearer token auth for admin endpoints
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "dev-admin-token")
security = HTTPBearer(auto_error=False)


async def verify_admin(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Verify admin bearer token."""
    if not credentials:
        raise HTTPException(status_code=401, detail="Admin token required")
    if credentials.credentials != ADMIN_TOKEN:
        raise HTTPException(status_code=403, detail="Invalid admin token")
    return True


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "TCMS API"}


# =============================================================================
# Organizations API
# =============================================================================


@app.post("/api/organizations", status_code=201, response_model=OrganizationRead)
def create_organization(body: OrganizationCreate, db: Session = Depends(get_db)):
    return organizations.create_organization(db, body.name, body.org_type, body.parent_id)


@app.get("/api/organizations", response_model=list[OrganizationRead])
def list_organizations(org_type: str | None = None, db: Session = Depends(get_db)):
    return organizations.list_organizations(db, org_type)


@app.get("/api/organizations/{org_id}/hierarchy", response_model=OrganizationNode)
def get_hierarchy(org_id: int, db: Session = Depends(get_db)):
    """Full tree under an organization (e.g. Main Authority → all villages)."""
    return organizations.get_hierarchy(db, org_id)


@app.put(
    "/api/organizations/{org_id}/parent",
    response_model=OrganizationRead,
    dependencies=[Depends(verify_admin)],
)
def reparent_organization(org_id: int, body: OrganizationReparent, db: Session = Depends(get_db)):
    return organizations.reparent_organization(db, org_id, body.parent_id)


@app.get("/api/organizations/{org_id}/members", response_model=list[MemberRead])
def list_members(org_id: int, db: Session = Depends(get_db)):
    directory.get_organization(db, org_id)
    return members.list_members(db, org_id)


@app.post(
    "/api/organizations/{org_id}/council",
    response_model=list[MemberRead],
    dependencies=[Depends(verify_admin)],
)
def appoint_top_council(org_id: int, body: CouncilAppointment, db: Session = Depends(get_db)):
    """Appoint the Top 10 council: 6 FAMILY + 4 other, ranked by lineage then age."""
    return council.appoint_top_council(db, org_id, body.size)


# =============================================================================
# Members API
# =============================================================================


@app.post("/api/members", status_code=201, response_model=MemberRead)
def create_member(body: MemberCreate, db: Session = Depends(get_db)):
    return members.create_member(
        db, body.full_name, body.lineage, body.organization_id, body.birth_date
    )


@app.get("/api/members/{member_id}", response_model=MemberRead)
def get_member(member_id: int, db: Session = Depends(get_db)):
    return directory.get_member(db, member_id)


@app.get("/api/members/{member_id}/eligibility", response_model=EligibilityResponse)
def get_eligibility(member_id: int, db: Session = Depends(get_db)):
    member = directory.get_member(db, member_id)
    return EligibilityResponse(
        member_id=member.id,
        council_eligible=eligibility.is_council_eligible(db, member),
        heir_eligible=eligibility.is_heir_eligible(member),
    )


@app.post(
    "/api/members/{member_id}/roles/{role_name}",
    response_model=MemberRead,
    dependencies=[Depends(verify_admin)],
)
def assign_role(member_id: int, role_name: str, db: Session = Depends(get_db)):
    return members.assign_role(db, member_id, role_name)


@app.post(
    "/api/members/{member_id}/disqualify",
    response_model=MemberRead,
    dependencies=[Depends(verify_admin)],
)
def disqualify_member(member_id: int, body: DisqualifyRequest, db: Session = Depends(get_db)):
    return members.disqualify_member(db, member_id, body.reason)


@app.post(
    "/api/members/{member_id}/council",
    response_model=MemberRead,
    dependencies=[Depends(verify_admin)],
)
def appoint_member_to_council(member_id: int, db: Session = Depends(get_db)):
    return council.appoint_member_to_council(db, member_id)


@app.post(
    "/api/members/{leader_id}/heir/{heir_id}",
    response_model=MemberRead,
    dependencies=[Depends(verify_admin)],
)
def define_heir(leader_id: int, heir_id: int, db: Session = Depends(get_db)):
    return succession.define_heir(db, leader_id, heir_id)


@app.get("/api/members/{leader_id}/heirs", response_model=list[MemberRead])
def list_heirs(leader_id: int, db: Session = Depends(get_db)):
    directory.get_member(db, leader_id)
    return directory.find_heirs(db, leader_id)


# =============================================================================
# Dispute Cases API
# =============================================================================


@app.post("/api/cases", status_code=201, response_model=DisputeCaseRead)
def open_case(body: CaseCreate, db: Session = Depends(get_db)):
    """Open a case, or file it on behalf of a complainant when one is given."""
    if body.complainant_id is not None:
        return disputes.file_case(
            db, body.description, body.complainant_id, body.accused_id, body.organization_id
        )
    return disputes.open_case(db, body.description, body.accused_id, body.organization_id)


@app.get("/api/cases", response_model=list[DisputeCaseRead])
def list_cases(
    org_id: int | None = None,
    case_status: CaseStatus | None = None,
    accused_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return disputes.list_cases(db, org_id, case_status, accused_id, limit, offset)


@app.get("/api/cases/{case_id}", response_model=DisputeCaseRead)
def get_case(case_id: int, db: Session = Depends(get_db)):
    return directory.get_case(db, case_id)


@app.post("/api/cases/{case_id}/notice", response_model=DisputeCaseRead)
def send_notice(case_id: int, db: Session = Depends(get_db)):
    return disputes.send_notice(db, case_id)


@app.post("/api/cases/{case_id}/defense", response_model=DisputeCaseRead)
def submit_defense(case_id: int, body: DefenseSubmission, db: Session = Depends(get_db)):
    return disputes.dispute_case(db, case_id, body.accused_id, body.defense_statement)


@app.put("/api/cases/{case_id}/adjudicators", response_model=DisputeCaseRead)
def assign_adjudicators(case_id: int, body: AdjudicatorAssignment, db: Session = Depends(get_db)):
    return disputes.assign_adjudicators(db, case_id, body.adjudicator_ids)


@app.post("/api/cases/{case_id}/close", response_model=DisputeCaseRead)
def close_case(case_id: int, db: Session = Depends(get_db)):
    return disputes.close_case(db, case_id)


# =============================================================================
# Land Stands API
# =============================================================================


@app.post("/api/stands", status_code=201, response_model=LandStandRead)
def create_stand(body: StandCreate, db: Session = Depends(get_db)):
    return land.create_stand(
        db, body.stand_number, body.stand_type, body.size_in_square_meters, body.organization_id
    )


@app.get("/api/stands", response_model=list[LandStandRead])
def search_stands(
    organization_id: int | None = None,
    allocated: bool | None = None,
    stand_type: StandType | None = None,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return land.search_stands(db, organization_id, allocated, stand_type, limit, offset)


@app.post(
    "/api/stands/{stand_id}/allocate",
    response_model=LandStandRead,
    dependencies=[Depends(verify_admin)],
)
def allocate_stand(stand_id: int, body: StandRequest, db: Session = Depends(get_db)):
    return land.allocate_stand(db, stand_id, body.member_id)


@app.post("/api/stands/{stand_id}/apply", response_model=LandStandRead)
def apply_for_stand(stand_id: int, body: StandRequest, db: Session = Depends(get_db)):
    return land.apply_for_stand(db, stand_id, body.member_id)


@app.post("/api/stands/{stand_id}/council-assign", response_model=LandStandRead)
def assign_stand_by_council(
    stand_id: int, body: CouncilStandAssignment, db: Session = Depends(get_db)
):
    return land.assign_stand_by_council(db, stand_id, body.acting_member_id, body.beneficiary_id)


@app.post("/api/stands/{stand_id}/fee-paid", response_model=LandStandRead)
def mark_stand_fee_paid(stand_id: int, db: Session = Depends(get_db)):
    return land.mark_stand_fee_paid(db, stand_id)


# =============================================================================
# Families, Levies and Residency API
# =============================================================================


@app.post("/api/families", status_code=201, response_model=FamilyRead)
def create_family(body: FamilyCreate, db: Session = Depends(get_db)):
    return residents.create_family(db, body.reference_number, body.address, body.organization_id)


@app.post("/api/families/{family_id}/residents", status_code=201, response_model=ResidentRead)
def add_resident(family_id: int, body: ResidentCreate, db: Session = Depends(get_db)):
    return residents.add_resident(db, family_id, **body.model_dump())


@app.post("/api/levies/{family_id}/payments", status_code=201, response_model=LevyPaymentRead)
def record_payment(family_id: int, body: PaymentCreate, db: Session = Depends(get_db)):
    year = body.year if body.year is not None else date.today().year
    return levy.record_payment(db, family_id, body.amount, year)


@app.get("/api/levies/{family_id}/status", response_model=LevyStatusResponse)
def levy_status(family_id: int, db: Session = Depends(get_db)):
    return LevyStatusResponse(
        family_id=family_id,
        year=date.today().year,
        up_to_date=levy.is_levy_up_to_date(db, family_id),
    )


@app.get("/api/residents/{resident_id}/proof-of-residence", response_model=ProofOfResidenceResponse)
def proof_of_residence(resident_id: int, db: Session = Depends(get_db)):
    return ProofOfResidenceResponse(
        resident_id=resident_id,
        statement=residents.generate_proof_of_residence(db, resident_id),
    )


# =============================================================================
# Village Events API
# =============================================================================


@app.post("/api/events", status_code=201, response_model=VillageEventRead)
def create_event(body: EventCreate, db: Session = Depends(get_db)):
    return events.create_event(db, **body.model_dump())
