"""JSON snapshot exporter."""
import json
from pathlib import Path
from typing import List

from clientgen.pipeline.service_processor import ServiceResult


class SchemaExporter:
    """Export inferred field trees to JSON, for reviewing generator diffs."""

    def export(self, output_file: Path, results: List[ServiceResult]) -> None:
        """Export to JSON file."""
        output_file.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "services": [
                result.to_dict()
                for result in sorted(results, key=lambda r: r.endpoint)
                if not result.skipped
            ],
        }

        with open(output_file, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.write("\n")
