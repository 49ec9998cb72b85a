from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for the CSV import pipeline.
    """

    raw_data_dir: Path = Path("lesson_scheduler/data/raw")
    processed_data_dir: Path = Path("lesson_scheduler/data/processed")

    def processed_path(self, data_type: str) -> Path:
        return self.processed_data_dir / f"{data_type}.csv"


DEFAULT_INGESTION_CONFIG = IngestionConfig()
