"""
FastAPI router module for interplay reports.

Implements POST /reports (create and schedule a report), GET /reports/{id}
(summary plus Director output), GET /reports/{id}/trace (phase-by-phase
debugging view), GET /reports/clients/{client_id}/latest and
GET /reports/clients/{client_id}/exists.

Report generation is fire-and-forget: POST returns 202 with the pending
report id and the run continues as a background task. Callers poll
GET /reports/{id} until the status is completed or failed.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Body, HTTPException
from pydantic import BaseModel, Field

from backend.core.dependencies import PipelineContextDep
from backend.models import (
    ReportCreateRequest,
    ReportCreateResponse,
    ReportSummary,
    ReportTrace,
)
from backend.services.orchestrator import (
    get_latest_report,
    get_report,
    get_report_trace,
    has_existing_reports,
    resolve_date_range,
    trigger_report,
)


# Configure logging
logger = logging.getLogger(__name__)


# =============================================================================
# Local Pydantic Models for API Responses
# =============================================================================

class ReportExistsResponse(BaseModel):
    """Response model for the has-reports check."""
    clientId: str = Field(..., description="Client account UUID")
    hasReports: bool = Field(..., description="Whether any report exists for the client")


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter()


# =============================================================================
# Endpoint Implementations
# =============================================================================

@router.post("/", response_model=ReportCreateResponse, status_code=202)
async def create_report_endpoint(
    background_tasks: BackgroundTasks,
    context: PipelineContextDep,
    request: ReportCreateRequest = Body(...),
) -> ReportCreateResponse:
    """
    Create a report for a client and schedule its pipeline run.

    The date window comes from startDate/endDate when both are given,
    otherwise from `days` (default from settings) ending today.

    Returns:
        ReportCreateResponse with the new report id and its pending status.
    """
    try:
        try:
            date_range = resolve_date_range(
                request.days,
                request.startDate,
                request.endDate,
                default_days=context.settings.default_report_days,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        if await context.clients.get_context(request.clientId) is None:
            raise HTTPException(status_code=404, detail=f"Client {request.clientId} not found")

        report = await trigger_report(
            context,
            request.clientId,
            background_tasks,
            date_range=date_range,
            trigger=request.trigger,
        )

        logger.info(f"Accepted report {report.id} for client {request.clientId}")
        return ReportCreateResponse(reportId=report.id, status=report.status)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error creating report for client {request.clientId}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to create report: {str(e)}"
        )


@router.get("/clients/{client_id}/latest", response_model=ReportSummary)
async def get_latest_report_endpoint(client_id: str, context: PipelineContextDep) -> ReportSummary:
    """Newest report for a client, whatever its status."""
    try:
        summary = await get_latest_report(context, client_id)
        if summary is None:
            raise HTTPException(status_code=404, detail=f"No reports found for client {client_id}")
        return summary

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error fetching latest report for client {client_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch latest report: {str(e)}"
        )


@router.get("/clients/{client_id}/exists", response_model=ReportExistsResponse)
async def report_exists_endpoint(client_id: str, context: PipelineContextDep) -> ReportExistsResponse:
    try:
        exists = await has_existing_reports(context, client_id)
        return ReportExistsResponse(clientId=client_id, hasReports=exists)

    except Exception as e:
        logger.exception(f"Error checking reports for client {client_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to check reports: {str(e)}"
        )


@router.get("/{report_id}", response_model=ReportSummary)
async def get_report_endpoint(report_id: str, context: PipelineContextDep) -> ReportSummary:
    """
    Report summary for polling.

    Returns:
        ReportSummary; executiveSummary and unifiedRecommendations are set
        once the report has completed.
    """
    try:
        summary = await get_report(context, report_id)
        if summary is None:
            raise HTTPException(status_code=404, detail=f"Report {report_id} not found")
        return summary

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error fetching report {report_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch report: {str(e)}"
        )


@router.get("/{report_id}/trace", response_model=ReportTrace)
async def get_report_trace_endpoint(report_id: str, context: PipelineContextDep) -> ReportTrace:
    """
    Every phase output stored for a report.

    Failed reports keep the outputs of the phases that completed, so the
    trace shows where a run stopped.
    """
    try:
        trace = await get_report_trace(context, report_id)
        if trace is None:
            raise HTTPException(status_code=404, detail=f"Report {report_id} not found")
        return trace

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Error fetching trace for report {report_id}")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch report trace: {str(e)}"
        )
