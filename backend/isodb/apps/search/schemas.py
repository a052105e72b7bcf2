from __future__ import annotations

from typing import List

from pydantic import BaseModel

from isodb.apps.documents.schemas import DocumentListItem
from isodb.apps.manuals.schemas import ManualRead, SectionRead
from isodb.apps.procedures.schemas import ProcedureListItem
from isodb.schemas import ManualBrief


class SectionHit(SectionRead):
    manual: ManualBrief


class GlobalSearchResult(BaseModel):
    manuals: List[ManualRead] = []
    sections: List[SectionHit] = []
    procedures: List[ProcedureListItem] = []
    documents: List[DocumentListItem] = []
