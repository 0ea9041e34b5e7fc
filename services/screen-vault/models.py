"""Pydantic models for OCR results, structured tables and API payloads."""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator

PatternTag = Literal["fitness_data", "dynamic_data", "steps", "numbered_list", "labeled_data"]


class OcrDocument(BaseModel):
    """Text of one successfully OCR'd image, as consumed by the pattern analyzer."""

    model_config = ConfigDict(frozen=True)

    source_file: StrictStr = Field(min_length=1)
    text: StrictStr
    confidence: float = 0.0


class OcrResult(BaseModel):
    id: str
    filename: str
    original_name: str
    extracted_text: str
    confidence: float
    word_count: int
    processed_at: datetime

    def to_document(self) -> OcrDocument:
        return OcrDocument(
            source_file=self.original_name,
            text=self.extracted_text,
            confidence=self.confidence,
        )


class StructuredTable(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str
    columns: list[str]
    rows: list[list[str]]
    detected_pattern: PatternTag
    source_files: list[str]

    @model_validator(mode="after")
    def _check_shape(self) -> "StructuredTable":
        if len(self.columns) < 2:
            raise ValueError("a structured table needs the file column and at least one data column")
        if not self.rows:
            raise ValueError("a structured table needs at least one row")
        if len(self.rows) != len(self.source_files):
            raise ValueError("rows and source_files must have the same length")
        width = len(self.columns)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(f"row {index} has {len(row)} cells, expected {width}")
        return self


class ProcessFilesResponse(BaseModel):
    message: str
    results: list[OcrResult]
    structured_data: list[StructuredTable]
    total_files: int
    processed_files: int


class AnalyzeRequest(BaseModel):
    documents: list[OcrDocument]


class AnalyzeResponse(BaseModel):
    structured_data: list[StructuredTable]


class ResultsExportRequest(BaseModel):
    results: list[OcrResult]


class StructuredExportRequest(BaseModel):
    structured_data: StructuredTable
