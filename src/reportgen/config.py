"""Configuration management for the report export pipeline."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Paper geometry (A4)
    page_width_mm: float = Field(default=210.0, gt=0)
    page_height_mm: float = Field(default=297.0, gt=0)
    slice_height_mm: float = Field(
        default=295.0, gt=0, description="Height of the band advanced per output page"
    )

    # Rasterization
    raster_scale: float = Field(default=2.0, ge=2.0, description="Oversampling factor")
    surface_max_height_mm: float = Field(default=5000.0, gt=0)

    # Pagination boundary behavior
    drop_trailing_blank_page: bool = False

    # Layout
    observation_rows: int = Field(default=6, ge=1)

    # Output
    output_dir: str = "./exports"
    filename_prefix: str = "ASCOMP"

    # Letterhead
    company_name: str = "ASCOMP INC."
    company_address: str = "9, Community Centre, 2nd Floor, Phase I, Mayapuri, New Delhi, 110064"
    company_desk: str = "011-45501226"
    company_mobile: str = "8882475207"
    company_email: str = "helpdesk@ascompinc.in"
    company_website: str = "WWW.ASCOMPINC.IN"

    # Logging
    log_level: str = "INFO"

    @property
    def surface_width_pt(self) -> float:
        """Logical layout width in PDF points."""
        return mm_to_pt(self.page_width_mm)

    class Config:
        env_prefix = "REPORTGEN_"
        env_file = ".env"
        env_file_encoding = "utf-8"


def mm_to_pt(value_mm: float) -> float:
    """Convert millimetres to PDF points (1/72 inch)."""
    return value_mm * 72.0 / 25.4


settings = Settings()
