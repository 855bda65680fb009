"""Export the lifecycle impact record JSON Schema."""

from __future__ import annotations

import json
from pathlib import Path

from carbon_lifecycle.schemas import AIServiceLifecycleImpact


def main() -> None:
    """Write the record JSON Schema to the repository root."""

    schema = AIServiceLifecycleImpact.model_json_schema(by_alias=True)
    output_path = Path(__file__).resolve().parent.parent / "cgsaem.schema.json"
    output_path.write_text(json.dumps(schema, indent=2), encoding="utf-8")


if __name__ == "__main__":
    main()
