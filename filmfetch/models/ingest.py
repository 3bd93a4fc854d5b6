from pydantic import BaseModel, Field, model_validator


class YearRange(BaseModel):
    start_year: int = Field(ge=1874, le=2100)
    end_year: int = Field(ge=1874, le=2100)

    @model_validator(mode="after")
    def check_order(self) -> "YearRange":
        if self.start_year > self.end_year:
            raise ValueError("start_year must not be after end_year")
        return self

    @property
    def years(self) -> range:
        return range(self.start_year, self.end_year + 1)


class IngestReport(BaseModel):
    start_year: int
    end_year: int
    movies: int
    enriched: int
    genres: int
    duration_ms: int
