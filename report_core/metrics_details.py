from __future__ import annotations

from typing import Any, Dict, Optional

from report_core.data import Record


def compute_entry_details(entry: Optional[Record]) -> Dict[str, Any]:
    if entry is None:
        return {"details": []}
    details = []
    for key, value in entry.items():
        if value is None:
            continue
        text = str(value).strip()
        if text in {"", "-"}:
            continue
        details.append({"key": key, "label": key.replace("_", " "), "value": value})
    return {"details": details}
