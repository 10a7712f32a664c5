from fastapi import APIRouter, Depends, Request, status

from app.api.v1.dependencies_auth import get_current_user
from app.schemas.report import ReportView
from app.services.report_service import CirculationReportSession

router = APIRouter(
    prefix="/api/v1/reports",
    tags=["reports"],
    dependencies=[Depends(get_current_user)],
)


def get_report_session(request: Request) -> CirculationReportSession:
    return request.app.state.circulation_report


@router.post("/circulation", response_model=ReportView)
async def open_circulation_report(
    session: CirculationReportSession = Depends(get_report_session),
):
    """
    Abre (o reabre) el panel de reportes: recalcula los libros más leídos,
    los socios más activos y los préstamos emitidos a partir de un snapshot
    nuevo. Si falla la lectura de circulación el estado queda en `failed`
    con un único aviso en `error`.
    """
    return await session.activate()


@router.get("/circulation", response_model=ReportView)
def read_circulation_report(
    session: CirculationReportSession = Depends(get_report_session),
):
    return session.view()


@router.delete("/circulation", status_code=status.HTTP_204_NO_CONTENT)
def close_circulation_report(
    session: CirculationReportSession = Depends(get_report_session),
):
    session.dismiss()
