"""
Portfolio Routes - JSON API over the Feature Services

All routes under /api/* require an owner session. Requests without one
are redirected to /login with a 303.

Every write answers with the outcome plus the toasts raised while
handling it and, on success, where the client should navigate next:

    {"ok": true, "id": "...", "redirect_to": "...", "toasts": [...]}

Confirmation-gated actions (archive, restore, permanent delete, saving an
incomplete checklist) take a ``confirm`` query parameter naming the kind
of confirmation the user gave. Without it the action is cancelled and the
response (428) describes the dialog the client should show.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from core.errors import (
    DocumentAccessError,
    DocumentNotFoundError,
    DuplicateRecordError,
    LifecycleError,
    TransientStoreError,
)
from core.lifecycle import ConfirmationKind, ConfirmationRequest, MaintenanceStatus, PropertyStatus
from core.mutation import (
    RETRY_SUGGESTION,
    MutationCancelled,
    MutationFailed,
    MutationPipeline,
    MutationRejected,
    MutationResult,
    MutationSuccess,
    RecordingNavigator,
    RecordingNotifier,
    log_access_error,
)
from core.portfolio import PortfolioServices
from core.portfolio.dashboard import portfolio_summary, recent_activity, upcoming_inspections, upcoming_rows
from core.portfolio.finances import tax_categories
from core.session import LOGIN_URL, guard
from core.store.objects import ImageFile
from reporting.inspection_pdf import InspectionReportValidationError
from web.auth import OwnerSession, get_current_owner, session_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["portfolio"])


# =============================================================================
# Request Context
# =============================================================================


class ConfirmationPrompt:
    """Grants exactly the confirmation kind named by the request, if any."""

    def __init__(self, granted: Optional[str]):
        try:
            self.granted = ConfirmationKind(granted) if granted else None
        except ValueError:
            self.granted = None
        self.asked: list[ConfirmationRequest] = []

    def __call__(self, request: ConfirmationRequest) -> bool:
        self.asked.append(request)
        return request.kind == self.granted


@dataclass
class PortfolioContext:
    """Per-request services and the channels their outcomes are recorded on."""

    owner: OwnerSession
    services: PortfolioServices
    notifier: RecordingNotifier
    navigator: RecordingNavigator
    access_errors: list[DocumentAccessError] = field(default_factory=list)

    @property
    def toasts(self) -> list[dict]:
        return [toast.to_dict() for toast in self.notifier.toasts]


def require_owner(request: Request) -> OwnerSession:
    """
    Dependency that requires a valid owner session.

    Raises HTTPException(303) redirecting to the login page otherwise.
    """
    owner = get_current_owner(request, request.app.state.session_secret)
    decision = guard(session_for(owner))
    if not decision.allowed:
        raise HTTPException(
            status_code=303,
            detail="Login required",
            headers={"Location": decision.redirect_to or LOGIN_URL},
        )
    return owner


def portfolio_context(request: Request, owner: OwnerSession = Depends(require_owner)) -> PortfolioContext:
    notifier = RecordingNotifier()
    navigator = RecordingNavigator()
    access_errors: list[DocumentAccessError] = []

    def report_access_error(error: DocumentAccessError) -> None:
        log_access_error(error)
        access_errors.append(error)

    state = request.app.state
    pipeline = MutationPipeline(state.store, notifier, navigator, report_access_error)
    services = PortfolioServices.build(
        state.store, pipeline, owner.owner_id, state.objects, state.config.max_image_bytes
    )
    return PortfolioContext(owner, services, notifier, navigator, access_errors)


# =============================================================================
# Responses
# =============================================================================


def mutation_response(
    ctx: PortfolioContext,
    result: MutationResult,
    prompt: Optional[ConfirmationPrompt] = None,
    created: bool = False,
) -> JSONResponse:
    """Map a mutation outcome onto an HTTP response."""
    if isinstance(result, MutationSuccess):
        return JSONResponse(
            {
                "ok": True,
                "id": result.ref.id if result.ref else None,
                "redirect_to": result.redirect_to,
                "toasts": ctx.toasts,
            },
            status_code=201 if created else 200,
        )

    if isinstance(result, MutationRejected):
        status = 409 if isinstance(result.reason, DuplicateRecordError) else 422
        return JSONResponse(
            {"ok": False, "errors": [e.to_dict() for e in result.errors], "toasts": ctx.toasts},
            status_code=status,
        )

    if isinstance(result, MutationCancelled):
        body: dict[str, Any] = {"ok": False, "cancelled": True, "reason": result.reason}
        if prompt is not None and prompt.asked:
            request = prompt.asked[-1]
            body["confirmation"] = {
                "kind": request.kind.value,
                "title": request.title,
                "description": request.description,
            }
        return JSONResponse(body, status_code=428)

    if isinstance(result, MutationFailed):
        body = {"ok": False, "detail": str(result.error), "toasts": ctx.toasts}
        if result.is_access_error:
            body["access_error"] = result.error.context.to_dict()
            return JSONResponse(body, status_code=403)
        if isinstance(result.error, DocumentNotFoundError):
            return JSONResponse(body, status_code=404)
        if isinstance(result.error, LifecycleError):
            return JSONResponse(body, status_code=409)
        if isinstance(result.error, TransientStoreError):
            body["retry"] = RETRY_SUGGESTION
            return JSONResponse(body, status_code=503)
        return JSONResponse(body, status_code=500)

    raise TypeError(f"Unexpected mutation result: {result!r}")


async def read_images(uploads: list[UploadFile]) -> list[ImageFile]:
    images = []
    for upload in uploads:
        if upload is None or not upload.filename:
            continue
        images.append(ImageFile(upload.filename, await upload.read()))
    return images


def parse_form_json(data: Optional[str]) -> dict:
    if not data:
        return {}
    try:
        values = json.loads(data)
    except json.JSONDecodeError:
        raise HTTPException(status_code=422, detail="Form data must be a JSON object")
    if not isinstance(values, dict):
        raise HTTPException(status_code=422, detail="Form data must be a JSON object")
    return values


# =============================================================================
# Dashboard
# =============================================================================


@router.get("/dashboard")
def dashboard(ctx: PortfolioContext = Depends(portfolio_context)):
    """Headline counts, recent maintenance activity and upcoming inspections."""
    services = ctx.services
    properties = services.properties.list_active()
    logs = services.maintenance.list_all()
    inspections = services.inspections.list_live()
    upcoming = upcoming_inspections(inspections)
    summary = portfolio_summary(properties, services.tenants.list_active(), logs, inspections)
    return {
        "summary": summary.to_dict(),
        "recent_activity": [item.to_dict() for item in recent_activity(logs, properties)],
        "upcoming_inspections": upcoming_rows(upcoming, properties),
    }


# =============================================================================
# Properties
# =============================================================================


@router.get("/properties")
def list_properties(ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.properties.list_active()


@router.get("/properties/deleted")
def list_deleted_properties(ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.properties.list_deleted()


@router.get("/properties/{property_id}")
def get_property(property_id: str, ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.properties.get(property_id)


@router.post("/properties")
def create_property(values: dict = Body(...), ctx: PortfolioContext = Depends(portfolio_context)):
    return mutation_response(ctx, ctx.services.properties.create(values), created=True)


@router.post("/properties/upload")
async def create_property_with_images(
    data: str = Form(...),
    images: list[UploadFile] = File(default=[]),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    """Onboard a property from a multipart form: JSON ``data`` plus image files."""
    values = parse_form_json(data)
    result = ctx.services.properties.create(values, await read_images(images))
    return mutation_response(ctx, result, created=True)


@router.put("/properties/{property_id}")
def update_property(property_id: str, values: dict = Body(...), ctx: PortfolioContext = Depends(portfolio_context)):
    return mutation_response(ctx, ctx.services.properties.update(property_id, values))


@router.post("/properties/{property_id}/images")
async def update_property_with_images(
    property_id: str,
    data: str = Form(...),
    images: list[UploadFile] = File(default=[]),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    values = parse_form_json(data)
    result = ctx.services.properties.update(property_id, values, await read_images(images))
    return mutation_response(ctx, result)


@router.post("/properties/{property_id}/status")
def set_property_status(
    property_id: str,
    status: str = Body(..., embed=True),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    try:
        new_status = PropertyStatus(status)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown property status: {status}")
    if new_status == PropertyStatus.DELETED:
        raise HTTPException(status_code=422, detail="Use DELETE to remove a property")
    return mutation_response(ctx, ctx.services.properties.set_status(property_id, new_status))


@router.delete("/properties/{property_id}")
def delete_property(
    property_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    return mutation_response(ctx, ctx.services.properties.soft_delete(property_id, prompt), prompt)


@router.post("/properties/{property_id}/restore")
def restore_property(
    property_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    return mutation_response(ctx, ctx.services.properties.restore(property_id, prompt), prompt)


@router.delete("/properties/{property_id}/permanent")
def delete_property_permanently(
    property_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    return mutation_response(ctx, ctx.services.properties.delete_permanently(property_id, prompt), prompt)


# =============================================================================
# Tenants
# =============================================================================


@router.get("/tenants")
def list_tenants(
    property_id: Optional[str] = Query(None, alias="propertyId"),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    """Active tenants of one property, or across the whole portfolio."""
    return ctx.services.tenants.list_active(property_id)


@router.get("/tenants/archived")
def list_archived_tenants(
    property_id: Optional[str] = Query(None, alias="propertyId"),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return ctx.services.tenants.list_archived(property_id)


@router.post("/tenants")
def assign_tenant(values: dict = Body(...), ctx: PortfolioContext = Depends(portfolio_context)):
    return mutation_response(ctx, ctx.services.tenants.assign(values), created=True)


@router.get("/properties/{property_id}/tenants/{tenant_id}")
def get_tenant(property_id: str, tenant_id: str, ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.tenants.get(property_id, tenant_id)


@router.put("/properties/{property_id}/tenants/{tenant_id}")
def update_tenant(
    property_id: str,
    tenant_id: str,
    values: dict = Body(...),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return mutation_response(ctx, ctx.services.tenants.update(property_id, tenant_id, values))


@router.delete("/properties/{property_id}/tenants/{tenant_id}")
def archive_tenant(
    property_id: str,
    tenant_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    return mutation_response(ctx, ctx.services.tenants.archive(property_id, tenant_id, prompt), prompt)


@router.post("/properties/{property_id}/tenants/{tenant_id}/restore")
def restore_tenant(
    property_id: str,
    tenant_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    return mutation_response(ctx, ctx.services.tenants.restore(property_id, tenant_id, prompt), prompt)


@router.delete("/properties/{property_id}/tenants/{tenant_id}/permanent")
def delete_tenant_permanently(
    property_id: str,
    tenant_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    result = ctx.services.tenants.delete_permanently(property_id, tenant_id, prompt)
    return mutation_response(ctx, result, prompt)


# =============================================================================
# Contractors
# =============================================================================


@router.get("/contractors")
def list_contractors(ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.contractors.list_active()


@router.get("/contractors/archived")
def list_archived_contractors(ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.contractors.list_archived()


@router.get("/contractors/{contractor_id}")
def get_contractor(contractor_id: str, ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.contractors.get(contractor_id)


@router.post("/contractors")
def create_contractor(values: dict = Body(...), ctx: PortfolioContext = Depends(portfolio_context)):
    return mutation_response(ctx, ctx.services.contractors.create(values), created=True)


@router.put("/contractors/{contractor_id}")
def update_contractor(
    contractor_id: str,
    values: dict = Body(...),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return mutation_response(ctx, ctx.services.contractors.update(contractor_id, values))


@router.delete("/contractors/{contractor_id}")
def archive_contractor(
    contractor_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    return mutation_response(ctx, ctx.services.contractors.archive(contractor_id, prompt), prompt)


@router.post("/contractors/{contractor_id}/restore")
def restore_contractor(
    contractor_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    return mutation_response(ctx, ctx.services.contractors.restore(contractor_id, prompt), prompt)


@router.delete("/contractors/{contractor_id}/permanent")
def delete_contractor_permanently(
    contractor_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    return mutation_response(ctx, ctx.services.contractors.delete_permanently(contractor_id, prompt), prompt)


# =============================================================================
# Checklists
# =============================================================================


@router.get("/properties/{property_id}/checklists")
def list_checklists(
    property_id: str,
    tenant_id: Optional[str] = Query(None, alias="tenantId"),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    if tenant_id:
        return ctx.services.checklists.list_for_tenant(property_id, tenant_id)
    return ctx.services.checklists.list_for_property(property_id)


@router.get("/properties/{property_id}/checklists/{checklist_id}")
def get_checklist(property_id: str, checklist_id: str, ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.checklists.get(property_id, checklist_id)


@router.post("/checklists")
def create_checklist(
    values: dict = Body(...),
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    return mutation_response(ctx, ctx.services.checklists.create(values, prompt), prompt, created=True)


@router.put("/properties/{property_id}/checklists/{checklist_id}")
def update_checklist(
    property_id: str,
    checklist_id: str,
    values: dict = Body(...),
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    result = ctx.services.checklists.update(property_id, checklist_id, values, prompt)
    return mutation_response(ctx, result, prompt)


# =============================================================================
# Inspections
# =============================================================================


@router.get("/inspections")
def list_inspections(
    property_id: Optional[str] = Query(None, alias="propertyId"),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return ctx.services.inspections.list_live(property_id)


@router.get("/inspections/deleted")
def list_deleted_inspections(
    property_id: Optional[str] = Query(None, alias="propertyId"),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return ctx.services.inspections.list_deleted(property_id)


@router.post("/inspections")
def create_inspection(
    values: dict = Body(...),
    inspection_type: str = Query(..., alias="type"),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return mutation_response(ctx, ctx.services.inspections.create(inspection_type, values), created=True)


@router.get("/properties/{property_id}/inspections/{inspection_id}")
def get_inspection(property_id: str, inspection_id: str, ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.inspections.get(property_id, inspection_id)


@router.get("/properties/{property_id}/inspections/{inspection_id}/report.pdf")
def download_inspection_report(
    request: Request,
    property_id: str,
    inspection_id: str,
    ctx: PortfolioContext = Depends(portfolio_context),
):
    """Render the inspection as a PDF attachment."""
    inspection, prop = ctx.services.inspections.report_inputs(property_id, inspection_id)
    result = request.app.state.report_generator.generate(inspection, prop)
    if isinstance(result, InspectionReportValidationError):
        return JSONResponse({"ok": False, "errors": result.errors}, status_code=422)
    return Response(
        content=result.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.put("/properties/{property_id}/inspections/{inspection_id}")
def update_inspection(
    property_id: str,
    inspection_id: str,
    values: dict = Body(...),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return mutation_response(ctx, ctx.services.inspections.update(property_id, inspection_id, values))


@router.delete("/properties/{property_id}/inspections/{inspection_id}")
def delete_inspection(
    property_id: str,
    inspection_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    result = ctx.services.inspections.soft_delete(property_id, inspection_id, prompt)
    return mutation_response(ctx, result, prompt)


@router.post("/properties/{property_id}/inspections/{inspection_id}/restore")
def restore_inspection(
    property_id: str,
    inspection_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    result = ctx.services.inspections.restore(property_id, inspection_id, prompt)
    return mutation_response(ctx, result, prompt)


@router.delete("/properties/{property_id}/inspections/{inspection_id}/permanent")
def delete_inspection_permanently(
    property_id: str,
    inspection_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    result = ctx.services.inspections.delete_permanently(property_id, inspection_id, prompt)
    return mutation_response(ctx, result, prompt)


# =============================================================================
# Maintenance
# =============================================================================


@router.get("/maintenance")
def list_maintenance(ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.maintenance.list_all()


@router.get("/maintenance/open")
def list_open_maintenance(
    property_id: Optional[str] = Query(None, alias="propertyId"),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return ctx.services.maintenance.list_open(property_id)


@router.post("/maintenance")
def create_maintenance_log(values: dict = Body(...), ctx: PortfolioContext = Depends(portfolio_context)):
    return mutation_response(ctx, ctx.services.maintenance.create(values), created=True)


@router.get("/properties/{property_id}/maintenance")
def list_property_maintenance(property_id: str, ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.maintenance.list_for_property(property_id)


@router.get("/properties/{property_id}/maintenance/{log_id}")
def get_maintenance_log(property_id: str, log_id: str, ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.maintenance.get(property_id, log_id)


@router.put("/properties/{property_id}/maintenance/{log_id}")
def update_maintenance_log(
    property_id: str,
    log_id: str,
    values: dict = Body(...),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return mutation_response(ctx, ctx.services.maintenance.update(property_id, log_id, values))


@router.post("/properties/{property_id}/maintenance/{log_id}/status")
def set_maintenance_status(
    property_id: str,
    log_id: str,
    status: str = Body(..., embed=True),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    try:
        new_status = MaintenanceStatus(status)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown maintenance status: {status}")
    return mutation_response(ctx, ctx.services.maintenance.set_status(property_id, log_id, new_status))


# =============================================================================
# Finances
# =============================================================================


def _year(year: Optional[int]) -> int:
    return year if year is not None else date.today().year


@router.get("/expenses")
def list_expenses(
    property_id: Optional[str] = Query(None, alias="propertyId"),
    year: Optional[int] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return ctx.services.finances.list_expenses(property_id, year)


@router.post("/expenses")
def log_expense(values: dict = Body(...), ctx: PortfolioContext = Depends(portfolio_context)):
    return mutation_response(ctx, ctx.services.finances.log_expense(values), created=True)


@router.get("/properties/{property_id}/expenses/{expense_id}")
def get_expense(property_id: str, expense_id: str, ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.finances.get(property_id, expense_id)


@router.put("/properties/{property_id}/expenses/{expense_id}")
def update_expense(
    property_id: str,
    expense_id: str,
    values: dict = Body(...),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return mutation_response(ctx, ctx.services.finances.update_expense(property_id, expense_id, values))


@router.delete("/properties/{property_id}/expenses/{expense_id}")
def delete_expense(
    property_id: str,
    expense_id: str,
    confirm: Optional[str] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    prompt = ConfirmationPrompt(confirm)
    result = ctx.services.finances.delete_expense(property_id, expense_id, prompt)
    return mutation_response(ctx, result, prompt)


@router.get("/properties/{property_id}/rent")
def rent_statement(
    property_id: str,
    year: Optional[int] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return ctx.services.finances.statement(property_id, _year(year))


@router.post("/properties/{property_id}/rent/{year}/{month}")
def record_rent(
    property_id: str,
    year: int,
    month: str,
    status: str = Body(..., embed=True),
    amount_paid: Optional[float] = Body(None, embed=True, alias="amountPaid"),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    result = ctx.services.finances.record_rent(property_id, year, month, status, amount_paid)
    return mutation_response(ctx, result)


@router.get("/financials")
def financial_summary(
    property_id: Optional[str] = Query(None, alias="propertyId"),
    year: Optional[int] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    summary = ctx.services.finances.summary(_year(year), property_id)
    return {
        **summary.to_dict(),
        "tax_categories": [{"category": label, "amount": amount} for label, amount in tax_categories(summary)],
    }


@router.get("/financials/tax-report.pdf")
def download_tax_report(
    request: Request,
    property_id: Optional[str] = Query(None, alias="propertyId"),
    year: Optional[int] = Query(None),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    """The HMRC self-assessment export as a PDF attachment."""
    summary = ctx.services.finances.summary(_year(year), property_id)
    scope = None
    if property_id:
        address = ctx.services.properties.get(property_id).get("address") or {}
        scope = address.get("street")
    result = request.app.state.tax_report_generator.generate(summary, ctx.owner.email, scope)
    return Response(
        content=result.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


# =============================================================================
# Documents & Reminders
# =============================================================================


@router.get("/documents")
def list_documents(
    property_id: Optional[str] = Query(None, alias="propertyId"),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    return ctx.services.documents.list_with_status(property_id)


@router.post("/documents")
def log_document(values: dict = Body(...), ctx: PortfolioContext = Depends(portfolio_context)):
    return mutation_response(ctx, ctx.services.documents.create(values), created=True)


@router.get("/properties/{property_id}/documents/{document_id}")
def get_document(property_id: str, document_id: str, ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.documents.get(property_id, document_id)


@router.get("/reminders")
def list_reminders(ctx: PortfolioContext = Depends(portfolio_context)):
    """Documents needing attention and upcoming inspections, earliest due first."""
    return [reminder.to_dict() for reminder in ctx.services.documents.reminders()]


# =============================================================================
# Screenings
# =============================================================================


@router.post("/screenings")
def create_screening(values: dict = Body(...), ctx: PortfolioContext = Depends(portfolio_context)):
    return mutation_response(ctx, ctx.services.screenings.create(values), created=True)


@router.get("/properties/{property_id}/tenants/{tenant_id}/screenings")
def list_screenings(property_id: str, tenant_id: str, ctx: PortfolioContext = Depends(portfolio_context)):
    return ctx.services.screenings.list_for_tenant(property_id, tenant_id)


@router.get("/properties/{property_id}/tenants/{tenant_id}/screenings/{screening_id}")
def get_screening(
    property_id: str,
    tenant_id: str,
    screening_id: str,
    ctx: PortfolioContext = Depends(portfolio_context),
):
    screening = ctx.services.screenings.get(property_id, tenant_id, screening_id)
    ratio = ctx.services.screenings.affordability_for(property_id, tenant_id, screening_id)
    return {**screening, "affordability": ratio.to_dict() if ratio else None}


@router.put("/properties/{property_id}/tenants/{tenant_id}/screenings/{screening_id}")
def update_screening(
    property_id: str,
    tenant_id: str,
    screening_id: str,
    values: dict = Body(...),
    ctx: PortfolioContext = Depends(portfolio_context),
):
    result = ctx.services.screenings.update(property_id, tenant_id, screening_id, values)
    return mutation_response(ctx, result)
