from io import BytesIO
from typing import List

from fastapi.responses import StreamingResponse
from openpyxl import Workbook  # type: ignore
from openpyxl.styles import Font  # type: ignore
from openpyxl.utils import get_column_letter  # type: ignore

from campus_connect.models.appointment_model import Appointment
from campus_connect.services.service_helper import utcnow

HEADERS = [
    "No.",
    "Appointment ID",
    "Date & time (UTC)",
    "Duration (min)",
    "Status",
    "Student",
    "Student email",
    "Staff",
    "Staff email",
    "Meeting type",
    "Location",
    "Reason",
    "Priority",
]


def export_appointments(appointments: List[Appointment]) -> StreamingResponse:
    """
    Write the given appointments to an .xlsx workbook:
    - A1: title with generation time
    - row 3: header
    - one row per appointment from row 4
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Appointments"

    ws["A1"] = f"Appointments export ({utcnow().strftime('%Y-%m-%d %H:%M')} UTC)"
    ws["A1"].font = Font(bold=True)

    for col, header in enumerate(HEADERS, start=1):
        cell = ws.cell(row=3, column=col, value=header)
        cell.font = Font(bold=True)

    for idx, appt in enumerate(appointments, start=1):
        requester, appointee = appt.requester, appt.appointee
        row = [
            idx,
            appt.id,
            appt.appointment_time.strftime("%d/%m/%Y %H:%M") if appt.appointment_time else "",
            appt.duration_minutes,
            appt.status.value if appt.status else "",
            requester.name if requester else "",
            requester.email if requester else "",
            appointee.name if appointee else "",
            appointee.email if appointee else "",
            appt.meeting_type or "",
            appt.location or "",
            appt.reason or "",
            appt.priority or "",
        ]
        for col, value in enumerate(row, start=1):
            ws.cell(row=3 + idx, column=col, value=value)

    # Fit column width to content
    for col in range(1, ws.max_column + 1):
        col_letter = get_column_letter(col)
        max_length = max((len(str(cell.value)) for cell in ws[col_letter][2:] if cell.value is not None), default=0)
        ws.column_dimensions[col_letter].width = min(max_length + 2, 60)

    stream = BytesIO()
    wb.save(stream)
    stream.seek(0)

    filename = f"appointments_{utcnow().strftime('%Y%m%d_%H%M')}.xlsx"
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return StreamingResponse(
        stream,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers=headers,
    )
