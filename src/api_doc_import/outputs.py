"""File-backed session and environment stores used by the CLI.

Each replay session becomes one JSON file inside a collection directory;
each environment becomes one JSON file of variables.
"""

import asyncio
import json
import re
from pathlib import Path

from api_doc_import.parser.base import CanonicalRequest
from api_doc_import.replay.environment import StoreVariable
from api_doc_import.replay.spec import RequestSpec


def _slugify(text: str) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "_", text).strip("_").lower()
    return slug or "session"


class JsonSessionWriter:
    """Writes each session as <output>/<collection>/<nnn>_<name>.json."""

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self._count = 0

    async def create_session(
        self,
        spec: RequestSpec,
        request: CanonicalRequest,
        session_name: str,
        collection_name: str,
    ) -> str:
        self._count += 1
        session_id = f"{self._count:03d}_{_slugify(session_name)}"
        payload = {
            "name": session_name,
            "collection": collection_name,
            "source_id": request.id,
            "spec": spec.model_dump(),
        }
        path = self.output_dir / _slugify(collection_name) / f"{session_id}.json"
        await asyncio.to_thread(_write_json, path, payload)
        return session_id


class JsonEnvironmentStore:
    """Keeps one <output>/<environment>.json file per environment."""

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir

    def existing_names(self) -> set[str]:
        if not self.output_dir.exists():
            return set()
        return {p.stem for p in self.output_dir.glob("*.json")}

    async def set_variable(self, environment_name: str, variable: StoreVariable) -> None:
        path = self.output_dir / f"{environment_name}.json"
        await asyncio.to_thread(_append_variable, path, environment_name, variable.model_dump(by_alias=True))


def _write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def _append_variable(path: Path, environment_name: str, variable: dict) -> None:
    data = json.loads(path.read_text(encoding="utf-8")) if path.exists() else {"name": environment_name, "variables": []}
    data["variables"].append(variable)
    _write_json(path, data)
