from typing import List, Sequence

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.search import SearchOption

logger = get_logger("services.search")


def search_records(
    db: Session,
    model,
    label_field: str,
    search_fields: Sequence[str],
    query_text: str,
) -> List[SearchOption]:
    """
    Búsqueda del selector de registros (autocompletado).

    Menos de SEARCH_MIN_CHARS caracteres no consulta la base. Si no, hace un
    ILIKE '%texto%' sobre cada campo de búsqueda y devuelve como máximo
    SEARCH_RESULT_LIMIT opciones {value, label, data}. Un error de la base
    deja el selector vacío.
    """
    query_text = (query_text or "").strip()
    if len(query_text) < settings.SEARCH_MIN_CHARS:
        return []

    pattern = f"%{query_text}%"
    filters = [getattr(model, field).ilike(pattern) for field in search_fields]

    try:
        rows = (
            db.query(model)
            .filter(or_(*filters))
            .order_by(getattr(model, label_field))
            .limit(settings.SEARCH_RESULT_LIMIT)
            .all()
        )
    except SQLAlchemyError:
        logger.warning(
            "search_failed",
            extra={"operation": "search", "resource": model.__tablename__, "query": query_text},
            exc_info=True,
        )
        return []

    return [
        SearchOption(
            value=row.id,
            label=getattr(row, label_field),
            data={"id": row.id, label_field: getattr(row, label_field)},
        )
        for row in rows
    ]
