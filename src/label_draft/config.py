from __future__ import annotations

from dataclasses import dataclass, field

from arbitration.config import ArbitrationConfig
from dose_parsing.config import UnitVocabulary
from grouping.config import ClusterConfig
from table_pipeline.config import TableConfig
from text_pipeline.config import TextConfig
from validation.config import ValidationConfig


@dataclass(frozen=True, slots=True)
class ExtractionConfig:
    """
    Every tunable of one extraction run.

    All parts are immutable and safe to share between concurrent runs.
    """

    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    units: UnitVocabulary = field(default_factory=UnitVocabulary)
    table: TableConfig = field(default_factory=TableConfig)
    text: TextConfig = field(default_factory=TextConfig)
    arbitration: ArbitrationConfig = field(default_factory=ArbitrationConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)

    def validate(self) -> None:
        self.cluster.validate()
        self.units.validate()
        self.table.validate()
        self.text.validate()
        self.arbitration.validate()
        self.validation.validate()

    def __post_init__(self) -> None:
        self.validate()
