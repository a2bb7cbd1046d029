"""TCO calculation endpoints: validate, calculate, sensitivity, report, sessions."""
import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from io import BytesIO

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.core.rate_limit import calculation_limiter, report_limiter, sensitivity_limiter
from app.models.calculation_session import CalculationSession
from app.models.database import get_db
from app.schemas.calculation import (
    CalculateRequest,
    CalculationRequest,
    CalculationResponse,
    ReportRequest,
    SensitivityRequest,
    SessionResponse,
    ValidationResponse,
)

from engine.economics.assumptions import DEFAULT_ASSUMPTIONS
from engine.economics.comparison import compare
from engine.economics.sensitivity import sensitivity_analysis
from engine.economics.validation import collect_violations, validate

router = APIRouter()
logger = logging.getLogger(__name__)


def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


@router.post(
    "/validate",
    response_model=ValidationResponse,
    summary="Validate a configuration",
    description="Check every field against its bounds without running the calculation.",
)
async def validate_configuration(body: CalculationRequest) -> ValidationResponse:
    baseline, alternative, financials = body.to_engine()
    violations = collect_violations(baseline, alternative, financials, DEFAULT_ASSUMPTIONS)
    warnings: list[str] = []
    if not violations:
        warnings = list(validate(baseline, alternative, financials, DEFAULT_ASSUMPTIONS).warnings)
    return ValidationResponse(
        valid=not violations,
        violations=[v.as_dict() for v in violations],
        warnings=warnings,
    )


@router.post(
    "/calculate",
    response_model=CalculationResponse,
    summary="Run a TCO comparison",
    description="Compare air cooling (baseline) against immersion cooling (alternative).",
)
async def calculate(
    body: CalculateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> CalculationResponse:
    calculation_limiter.check(request)
    calculation_id = str(uuid.uuid4())
    start = time.perf_counter()

    baseline, alternative, financials = body.to_engine()
    result = compare(baseline, alternative, financials, DEFAULT_ASSUMPTIONS)
    payload = result.as_dict()

    processing_ms = round((time.perf_counter() - start) * 1000, 2)
    logger.info(
        "Calculation %s completed in %.2fms",
        calculation_id,
        processing_ms,
        extra={
            "calculation_id": calculation_id,
            "configuration_hash": result.configuration_hash,
            "processing_time_ms": processing_ms,
        },
    )

    response = CalculationResponse(
        calculation_id=calculation_id,
        calculated_at=datetime.now(timezone.utc),
        processing_time_ms=processing_ms,
        result=payload,
    )

    if body.save_session:
        days = min(
            body.session_expiry_days or settings.session_expiry_days,
            settings.session_max_expiry_days,
        )
        session = CalculationSession(
            configuration=body.model_dump(
                include={"air_cooling", "immersion_cooling", "financial"}
            ),
            results=payload,
            configuration_hash=result.configuration_hash,
            currency=result.currency,
            expires_at=datetime.now(timezone.utc) + timedelta(days=days),
        )
        db.add(session)
        await db.commit()
        await db.refresh(session)
        response.session_id = str(session.id)
        response.share_token = session.share_token
        response.expires_at = _as_utc(session.expires_at)

    return response


@router.get(
    "/sessions/{share_token}",
    response_model=SessionResponse,
    summary="Open a shared calculation",
)
async def get_session(
    share_token: str,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    row = await db.execute(
        select(CalculationSession).where(CalculationSession.share_token == share_token)
    )
    session = row.scalar_one_or_none()
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Calculation session not found",
        )
    if _as_utc(session.expires_at) <= datetime.now(timezone.utc):
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail="Calculation session has expired",
        )

    session.access_count += 1
    await db.commit()
    await db.refresh(session)

    return SessionResponse(
        id=str(session.id),
        share_token=session.share_token,
        configuration=session.configuration,
        results=session.results,
        configuration_hash=session.configuration_hash,
        currency=session.currency,
        access_count=session.access_count,
        created_at=session.created_at,
        expires_at=_as_utc(session.expires_at),
    )


@router.post(
    "/sensitivity",
    summary="Run sensitivity analysis",
    description="One-at-a-time sweep returning spider and tornado data.",
)
async def run_sensitivity(body: SensitivityRequest, request: Request) -> dict:
    sensitivity_limiter.check(request)
    baseline, alternative, financials = body.to_engine()
    variables = [v.model_dump() for v in body.variables]

    try:
        return await run_in_threadpool(
            sensitivity_analysis,
            baseline,
            alternative,
            financials,
            variables,
            DEFAULT_ASSUMPTIONS,
            settings.sensitivity_max_workers,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.post(
    "/report",
    summary="Download a report",
    description="Run the comparison and return it as a PDF or CSV file.",
)
async def download_report(
    body: ReportRequest,
    request: Request,
    format: str = Query(default="pdf", pattern="^(pdf|csv)$"),
) -> StreamingResponse:
    report_limiter.check(request)
    baseline, alternative, financials = body.to_engine()
    payload = compare(baseline, alternative, financials, DEFAULT_ASSUMPTIONS).as_dict()
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d")

    if format == "csv":
        from engine.reporting.csv_export import generate_csv_report

        buffer = BytesIO(generate_csv_report(payload).encode("utf-8"))
        media_type = "text/csv"
    else:
        from engine.reporting.pdf_report import generate_pdf_report

        buffer = await run_in_threadpool(generate_pdf_report, payload, body.title)
        media_type = "application/pdf"

    filename = f"coolcost_tco_{stamp}.{format}"
    return StreamingResponse(
        buffer,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


