"""Server-rendered reminder page."""
from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from remindo.api.v1.common import get_reminder_service
from remindo.schemas import ReminderCreate, RepeatKind
from remindo.services.reminders import ReminderNotFoundError, ReminderService

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))

WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

router = APIRouter()


@router.get("/", response_class=HTMLResponse, name="web_reminders")
async def reminders_page(
    request: Request,
    service: ReminderService = Depends(get_reminder_service),
) -> HTMLResponse:
    """Render the reminder form and list."""

    return await _render_page(request, service)


@router.post("/reminders", name="web_create_reminder")
async def create_reminder_from_form(
    request: Request,
    text: str = Form(""),
    time: str = Form(""),
    repeat: str = Form(RepeatKind.NONE.value),
    weekday: list[str] = Form([]),
    date: list[str] = Form([]),
    service: ReminderService = Depends(get_reminder_service),
):
    """Handle the reminder form submission."""

    try:
        payload = ReminderCreate.model_validate(
            {"text": text, "time": time, "repeat": repeat, "weekdays": weekday, "dates": date}
        )
    except ValidationError as exc:
        errors = [_describe_error(error) for error in exc.errors()]
        return await _render_page(
            request,
            service,
            errors=errors,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    await service.create(payload)
    return RedirectResponse(
        request.url_for("web_reminders"), status_code=status.HTTP_303_SEE_OTHER
    )


@router.post("/reminders/{reminder_id}/done", name="web_mark_done")
async def mark_done_from_form(
    request: Request,
    reminder_id: str,
    service: ReminderService = Depends(get_reminder_service),
) -> RedirectResponse:
    """Handle a "Mark Done" button press."""

    try:
        await service.mark_done(reminder_id)
    except ReminderNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Reminder not found"
        ) from exc
    return RedirectResponse(
        request.url_for("web_reminders"), status_code=status.HTTP_303_SEE_OTHER
    )


async def _render_page(
    request: Request,
    service: ReminderService,
    *,
    errors: list[str] | None = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    reminders = await service.list_reminders()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "reminders": reminders,
            "errors": errors or [],
            "repeat_kinds": [kind.value for kind in RepeatKind],
            "weekday_labels": list(enumerate(WEEKDAY_LABELS)),
            "month_days": list(range(1, 32)),
        },
        status_code=status_code,
    )


def _describe_error(error: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message
