from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from certbatch.core.formatting import percentage


class JobState(BaseModel):
    """Progress snapshot of the single in-flight certificate batch."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    progress: int = Field(default=0, ge=0, le=100)
    total_certificates: int = Field(default=0, ge=0, alias="totalCertificates")
    generated_count: int = Field(default=0, ge=0, alias="generatedCount")
    generating: bool = False

    @classmethod
    def idle(cls) -> "JobState":
        return cls()

    @classmethod
    def started(cls, total: int) -> "JobState":
        return cls(progress=0, total_certificates=total, generated_count=0, generating=True)

    @classmethod
    def running(cls, completed: int, total: int) -> "JobState":
        return cls(
            progress=percentage(completed, total),
            total_certificates=total,
            generated_count=completed,
            generating=True,
        )

    @classmethod
    def finished(cls, total: int) -> "JobState":
        return cls(progress=100, total_certificates=total, generated_count=total, generating=False)

    def to_payload(self) -> dict[str, int | bool]:
        return self.model_dump(by_alias=True)
