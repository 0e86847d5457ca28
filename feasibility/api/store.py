from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
import json
import logging
import re
import shutil
import threading
import time
import uuid
from pathlib import Path

from feasibility.config.env import get_store_config
from feasibility.forecasting.assumptions import result_errors, validate_configuration
from feasibility.forecasting.scenarios import run_scenarios, scenario_rows
from feasibility.forecasting.sensitivity import sensitivity_table
from feasibility.exports.charts import cash_flow_projection
from feasibility.exports.reports import analysis_context, assumptions_md, feasibility_report_md
from feasibility.exports.writers import write_cash_flow, write_scenarios, write_sensitivity, write_study
from feasibility.study.calculator import calculate_detailed
from feasibility.study.model import EngineDefaults, PlantConfiguration

logger = logging.getLogger(__name__)

# Descriptive fields stored with a study but never read by the engine
META_FIELDS = ("study_name", "location", "country", "plant_type", "notes", "lead_id", "lead_type")
STUDY_ID_RE = re.compile(r"s_[0-9a-f]{8}")


def _now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass
class Study:
    id: str
    record: Dict[str, Any] = field(default_factory=dict)  # configuration + results, flat
    artifacts: Dict[str, str] = field(default_factory=dict)  # filename -> content
    created_at: str = ""
    updated_at: str = ""

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            **self.record,
            "artifacts": list(self.artifacts.keys()),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def build_study_record(payload: Mapping[str, Any], defaults: Optional[EngineDefaults] = None) -> Tuple[Dict[str, Any], Dict[str, str]]:
    """Validate and calculate a submitted form.

    Returns (record, artifacts). Raises ValueError listing every range
    violation when the configuration is unusable, or every result that
    overflowed.
    """
    config = PlantConfiguration.from_record(payload, defaults)
    validate_configuration(config)
    calc = calculate_detailed(config)
    overflow = result_errors(calc.results)
    if overflow:
        raise ValueError("; ".join(overflow))
    scenarios = run_scenarios(config)

    record: Dict[str, Any] = {k: payload.get(k) for k in META_FIELDS if payload.get(k) is not None}
    record.update(config.to_record())
    record.update(calc.results.to_record())
    record["net_profit"] = calc.net_profit

    sens = sensitivity_table(calc.results.roi_percentage)
    artifacts = {
        "study.csv": write_study([{**record, "annual_tonnage": calc.annual_tonnage}]),
        "scenarios.csv": write_scenarios(scenario_rows(scenarios)),
        "sensitivity.csv": write_sensitivity([asdict(r) for r in sens]),
        "cash_flow.csv": write_cash_flow(cash_flow_projection(calc.results.total_investment, calc.net_profit)),
        "report.md": feasibility_report_md(record, calc, scenarios),
        "assumptions.md": assumptions_md(
            {k: v for k, v in config.to_record().items() if k not in ("output_streams",)},
            warnings=None if calc.irr.viable else ["IRR not computable for this configuration"],
        ),
        "analysis_context.json": json.dumps(analysis_context(record), indent=2),
    }
    return record, artifacts


class StudyStore:
    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else get_store_config().studies_root
        self._studies: Dict[str, Study] = {}
        self._lock = threading.Lock()

    def _persist(self, study: Study) -> None:
        """Write artifacts and the study JSON under root/<id>/."""
        study_dir = self.root / study.id
        study_dir.mkdir(parents=True, exist_ok=True)
        for name, body in (study.artifacts or {}).items():
            (study_dir / name).write_text(body)
        meta = {
            "id": study.id,
            "record": study.record,
            "artifacts": list(study.artifacts.keys()),
            "created_at": study.created_at,
            "updated_at": study.updated_at,
        }
        (study_dir / "study.json").write_text(json.dumps(meta, indent=2))

    def _load(self, sid: str) -> Optional[Study]:
        if not STUDY_ID_RE.fullmatch(sid):
            return None
        study_dir = self.root / sid
        meta_path = study_dir / "study.json"
        if not meta_path.exists():
            return None
        meta = json.loads(meta_path.read_text())
        artifacts = {}
        for name in meta.get("artifacts", []):
            p = study_dir / name
            if p.is_file():
                artifacts[name] = p.read_text()
        return Study(
            id=meta.get("id") or sid,
            record=meta.get("record") or {},
            artifacts=artifacts,
            created_at=meta.get("created_at", ""),
            updated_at=meta.get("updated_at", ""),
        )

    def create(self, payload: Mapping[str, Any]) -> Study:
        record, artifacts = build_study_record(payload)
        sid = f"s_{uuid.uuid4().hex[:8]}"
        now = _now()
        study = Study(id=sid, record=record, artifacts=artifacts, created_at=now, updated_at=now)
        with self._lock:
            self._studies[sid] = study
        self._persist(study)
        logger.info("created study %s (%s)", sid, record.get("study_name") or "unnamed")
        return study

    def get(self, sid: str) -> Optional[Study]:
        with self._lock:
            study = self._studies.get(sid)
        if study is not None:
            return study
        study = self._load(sid)
        if study is not None:
            with self._lock:
                self._studies[sid] = study
        return study

    def update(self, sid: str, payload: Mapping[str, Any]) -> Optional[Study]:
        """Re-validate and recalculate; fields absent from payload keep their stored value."""
        current = self.get(sid)
        if current is None:
            return None
        merged = {**current.record, **payload}
        record, artifacts = build_study_record(merged)
        study = Study(id=sid, record=record, artifacts=artifacts, created_at=current.created_at, updated_at=_now())
        with self._lock:
            self._studies[sid] = study
        self._persist(study)
        logger.info("updated study %s", sid)
        return study

    def delete(self, sid: str) -> bool:
        if not STUDY_ID_RE.fullmatch(sid):
            return False
        with self._lock:
            found = self._studies.pop(sid, None) is not None
        study_dir = self.root / sid
        if study_dir.exists():
            shutil.rmtree(study_dir)
            found = True
        if found:
            logger.info("deleted study %s", sid)
        return found

    def list(self) -> List[Dict[str, Any]]:
        """Persisted studies read from disk; unreadable entries are skipped."""
        out: List[Dict[str, Any]] = []
        if not self.root.exists():
            return out
        for p in sorted(self.root.iterdir()):
            if not (p.is_dir() and (p / "study.json").exists()):
                continue
            try:
                meta = json.loads((p / "study.json").read_text())
            except (OSError, ValueError):
                logger.warning("skipping unreadable study %s", p.name)
                continue
            out.append({
                "id": meta.get("id") or p.name,
                **(meta.get("record") or {}),
                "created_at": meta.get("created_at"),
                "updated_at": meta.get("updated_at"),
            })
        return out
