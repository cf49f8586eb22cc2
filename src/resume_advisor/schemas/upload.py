from resume_advisor.schemas.common import CamelModel


class UploadResult(CamelModel):
    file_id: str
    file_name: str
    file_size_bytes: int


class ExtractedContent(CamelModel):
    text: str
    detected_sections: list[str] = []
    page_count: int = 0
