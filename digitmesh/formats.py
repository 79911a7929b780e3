import json
from typing import Dict, Tuple


FORMATS = ("txt", "json", "ndjson", "csv")


def serialize_result(value: str, fmt: str, meta: Dict) -> Tuple[bytes, str]:
    fmt = fmt.lower().strip()
    if fmt == "txt":
        return (value + "\n").encode("utf-8"), "text/plain"
    if fmt in {"json", "ndjson"}:
        payload = dict(meta)
        payload["value"] = value
        out = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        if fmt == "json":
            return out.encode("utf-8"), "application/json"
        return (out + "\n").encode("utf-8"), "application/x-ndjson"
    if fmt == "csv":
        header = ["digits", "workers", "terms", "working_bits", "value"]
        row = [str(meta.get("digits")), str(meta.get("workers")), str(meta.get("terms")), str(meta.get("working_bits")), value]
        out = ",".join(header) + "\n" + ",".join(row) + "\n"
        return out.encode("utf-8"), "text/csv"
    raise ValueError("unsupported format")
