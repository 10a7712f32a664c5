from typing import Any, Dict

from pydantic import BaseModel


class SearchOption(BaseModel):
    value: str
    label: str
    data: Dict[str, Any]
