"""JSON-lines sink for HTTP audit entries"""

import json
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Union

from cashdesk.client.http_client import HttpAuditEntry


class AuditLogWriter:
    """
    Appends each ``HttpAuditEntry`` as one JSON object per line

    Register with ``HttpClient.set_audit_log_callback(writer)``.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def __call__(self, entry: HttpAuditEntry) -> None:
        line = json.dumps(asdict(entry), default=str, ensure_ascii=False)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
