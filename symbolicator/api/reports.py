"""
Report intake endpoints for browser and framework error hooks.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from symbolicator.capture.adapters import capture_framework, capture_global
from symbolicator.models.api_response import ReportAccepted
from symbolicator.models.error_event import FrameworkErrorPayload, GlobalErrorPayload, RawErrorEvent
from symbolicator.services.pipeline import get_report_assembler
from symbolicator.services.report_assembler import ReportAssembler
from symbolicator.utils.logging import get_logger, log_capture

logger = get_logger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


async def submit_event_async(assembler: ReportAssembler, event: RawErrorEvent) -> None:
    """
    Resolve and deliver a captured event after the response is sent.

    Args:
        assembler: Report assembler to use
        event: Captured event
    """
    try:
        await assembler.submit(event)
    except Exception as e:
        logger.error(
            f"Error assembling report asynchronously: {e}",
            extra={"event_id": event.event_id},
            exc_info=True,
        )


def _accept(event: RawErrorEvent, background_tasks: BackgroundTasks, assembler: ReportAssembler) -> ReportAccepted:
    log_capture(
        logger,
        event_id=event.event_id,
        origin=event.origin.value,
        frame_count=len(event.frames),
        malformed_frames=event.malformed_frames,
        degraded=event.degraded,
    )
    background_tasks.add_task(submit_event_async, assembler, event)
    return ReportAccepted(
        status="degraded" if event.degraded else "accepted",
        event_id=event.event_id,
        frame_count=len(event.frames),
        malformed_frames=event.malformed_frames,
    )


@router.post("/global", response_model=ReportAccepted)
async def receive_global_error(
    payload: GlobalErrorPayload,
    background_tasks: BackgroundTasks,
    assembler: ReportAssembler = Depends(get_report_assembler),
) -> ReportAccepted:
    """
    Receive an error from the browser's global error handler.

    The event is captured synchronously and resolved in the background;
    the response is returned immediately.
    """
    try:
        event = capture_global(payload)
    except Exception as e:
        logger.error(f"Error capturing global error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error capturing error report")

    return _accept(event, background_tasks, assembler)


@router.post("/framework", response_model=ReportAccepted)
async def receive_framework_error(
    payload: FrameworkErrorPayload,
    background_tasks: BackgroundTasks,
    assembler: ReportAssembler = Depends(get_report_assembler),
) -> ReportAccepted:
    """
    Receive an error from a framework error hook or error boundary.
    """
    try:
        event = capture_framework(payload)
    except Exception as e:
        logger.error(f"Error capturing framework error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error capturing error report")

    return _accept(event, background_tasks, assembler)
