"""Write the store snapshot."""

from pathlib import Path
from typing import Any, Optional

from ..models import Phase
from ..step import PipelineStep


class ExportDatabaseStep(PipelineStep):
    name = "export-database"
    description = "Export database snapshot to file"
    phase = Phase.UPLOAD

    def __init__(self, output_path: Optional[Path] = None) -> None:
        super().__init__()
        self.output_path = output_path

    async def execute(self, data: Any) -> Path:
        output_path = self.output_path or Path(self.config.export.output_path)
        path = self.store.dump_to_file(output_path)

        self.stats["path"] = str(path)
        self.stats["bytes"] = path.stat().st_size
        self.log(f"Exported database to {path}")
        return path
