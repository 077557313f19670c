"""Pydantic result models handed to downstream collaborators."""

from pydantic import BaseModel, Field

from models.pto import EmployeeImportInfo, ImportedAcknowledgement, ImportedPtoEntry


class SheetImportResult(BaseModel):
    """Everything recovered from one employee worksheet."""

    employee: EmployeeImportInfo
    pto_entries: list[ImportedPtoEntry] = []
    acknowledgements: list[ImportedAcknowledgement] = []
    warnings: list[str] = []
    errors: list[str] = []  # conditions that make the sheet's output unusable
    resolved: list[str] = []  # anomalies recovered without ambiguity


class WorkbookImportResult(BaseModel):
    """Results for every employee sheet in a workbook."""

    sheets: list[SheetImportResult] = []
    skipped_sheets: list[str] = []
    warnings: list[str] = []
    errors: list[str] = []
    sheet_names: list[str] = Field(default_factory=list)

    @property
    def pto_entry_count(self) -> int:
        return sum(len(s.pto_entries) for s in self.sheets)
