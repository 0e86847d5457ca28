from __future__ import annotations
from typing import Any
from flask import Flask, request, jsonify, Response
from feasibility.api.store import StudyStore
from feasibility.config.env import get_api_config
from feasibility.exports.charts import chart_datasets
from feasibility.forecasting.assumptions import ScenarioSettings, SensitivitySettings, configuration_errors, result_errors
from feasibility.forecasting.scenarios import run_scenarios
from feasibility.forecasting.sensitivity import analyze
from feasibility.study.calculator import calculate_detailed
from feasibility.study.comparison import compare_studies
from feasibility.study.model import PlantConfiguration
from feasibility.study.partnership import partnership_terms
from feasibility.study.templates import get_template, list_templates
from feasibility.valuation.irr import describe_irr
from feasibility.valuation.payback import describe_payback

import io
import zipfile
import logging

import time
import json
import math
from dataclasses import asdict, fields
from pathlib import Path
from collections import deque, defaultdict
try:
    from flask_sock import Sock
except Exception:  # pragma: no cover
    Sock = None  # Optional dependency for WS

logger = logging.getLogger(__name__)

app = Flask(__name__)

STORE = StudyStore()

OPENAPI_PATH = Path(__file__).with_name("openapi.json")

# Configuration helpers (overridable via app.config in tests)

def _get_api_key() -> str | None:
    if 'API_KEY' in app.config:
        return app.config.get('API_KEY')
    return get_api_config().api_key


def _get_rate_limit() -> tuple[int, float]:
    n = app.config.get('RATE_LIMIT_N')
    w = app.config.get('RATE_LIMIT_WINDOW_SEC')
    if n is None or w is None:
        cfg = get_api_config()
        n = cfg.rate_limit_n if n is None else n
        w = cfg.rate_limit_window_sec if w is None else w
    return int(n), float(w)


def _get_store() -> StudyStore:
    return app.config.get('STUDY_STORE') or STORE


_recent: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=100))

# Optional WebSocket support
if Sock is not None:
    sock = Sock(app)
else:
    sock = None


def _client_ip() -> str:
    xff = request.headers.get('X-Forwarded-For')
    if xff:
        return xff.split(',')[0].strip()
    return request.remote_addr or 'anon'


def _check_api_key():
    api_key = _get_api_key()
    if api_key:
        provided = request.headers.get('X-API-Key')
        if provided != api_key:
            return jsonify({'error': 'unauthorized'}), 401
    return None


def _check_rate_limit(ip: str):
    # Allow if rate limiting disabled or N <= 0
    n, window = _get_rate_limit()
    if n <= 0:
        return None
    now = time.time()
    dq = _recent[ip]
    # Drop old entries outside window
    while dq and now - dq[0] > window:
        dq.popleft()
    if len(dq) >= n:
        retry = max(0.0, window - (now - dq[0]))
        resp = jsonify({'error': 'rate_limited'})
        resp.status_code = 429
        resp.headers['Retry-After'] = f"{retry:.2f}"
        return resp
    dq.append(now)
    return None


@app.before_request
def _auth_and_rate_limit():
    # Stored studies need the key; the stateless calculators stay open for the editor
    if request.path.startswith('/studies'):
        unauthorized = _check_api_key()
        if unauthorized is not None:
            return unauthorized
        # Rate limit only study creation
        if request.method == 'POST' and request.path == '/studies':
            rl = _check_rate_limit(_client_ip())
            if rl is not None:
                return rl
    return None


def _payload() -> dict[str, Any]:
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


def _invalid(details: list[str]):
    return jsonify({'error': 'invalid_configuration', 'details': details}), 400


def _json_safe(obj: Any) -> Any:
    # Overflowed floats go out as null; bare Infinity/NaN is not JSON
    if isinstance(obj, float) and not math.isfinite(obj):
        return None
    if isinstance(obj, dict):
        return {k: _json_safe(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_json_safe(v) for v in obj]
    return obj


def _settings(cls, raw: Any):
    if not raw:
        return cls()
    if not isinstance(raw, dict):
        raise ValueError("settings must be an object")
    known = {f.name for f in fields(cls)}
    kwargs = {}
    for k, v in raw.items():
        if k not in known:
            raise ValueError(f"unknown setting '{k}'")
        kwargs[k] = tuple(v) if isinstance(v, list) else v
    return cls(**kwargs)


def _calculation_body(payload: dict[str, Any]) -> dict[str, Any]:
    config = PlantConfiguration.from_record(payload)
    calc = calculate_detailed(config)
    r = calc.results
    return {
        'results': r.to_record(),
        'breakdown': calc.breakdown(),
        'payback_label': describe_payback(r.payback_months),
        'irr_label': describe_irr(calc.irr),
        'partnership': asdict(partnership_terms(config, r)),
        'warnings': configuration_errors(config) + result_errors(r),
    }


@app.post('/calculate')
def post_calculate():
    # Live preview: partially filled forms still get a full result
    return jsonify(_json_safe(_calculation_body(_payload())))


@app.post('/charts')
def post_charts():
    config = PlantConfiguration.from_record(_payload())
    return jsonify(_json_safe(chart_datasets(config, calculate_detailed(config))))


@app.post('/scenarios')
def post_scenarios():
    payload = _payload()
    try:
        settings = _settings(ScenarioSettings, payload.get('settings'))
        scenarios = run_scenarios(PlantConfiguration.from_record(payload), settings)
    except (TypeError, ValueError) as e:
        return _invalid([str(e)])
    return jsonify(_json_safe({'scenarios': {k: v.to_record() for k, v in scenarios.items()}}))


@app.post('/sensitivity')
def post_sensitivity():
    payload = _payload()
    try:
        settings = _settings(SensitivitySettings, payload.get('settings'))
        body = analyze(PlantConfiguration.from_record(payload), settings)
    except (TypeError, ValueError) as e:
        return _invalid([str(e)])
    return jsonify(_json_safe(body))


@app.get('/templates')
def get_templates():
    return jsonify({'templates': [asdict(t) for t in list_templates()]})


@app.get('/templates/<tid>')
def get_template_by_id(tid: str):
    try:
        t = get_template(tid)
    except KeyError:
        return jsonify({'error': 'not_found'}), 404
    return jsonify({**asdict(t), 'record': t.record()})


@app.post('/studies')
def post_studies():
    payload = _payload()
    errors = configuration_errors(PlantConfiguration.from_record(payload))
    if errors:
        return _invalid(errors)
    try:
        study = _get_store().create(payload)
    except ValueError as e:
        return _invalid(str(e).split("; "))
    return jsonify(study.to_json()), 201


@app.get('/studies')
def list_studies():
    return jsonify({'studies': _get_store().list()})


@app.post('/studies/compare')
def post_compare():
    ids = _payload().get('ids') or []
    store = _get_store()
    records = []
    for sid in ids:
        s = store.get(str(sid))
        if s is None:
            return jsonify({'error': 'not_found', 'id': sid}), 404
        records.append({'id': s.id, **s.record})
    try:
        return jsonify(compare_studies(records))
    except ValueError as e:
        return jsonify({'error': 'invalid_comparison', 'details': [str(e)]}), 400


@app.get('/studies/<sid>')
def get_study(sid: str):
    s = _get_store().get(sid)
    if not s:
        return jsonify({'error': 'not_found'}), 404
    return jsonify(s.to_json())


@app.put('/studies/<sid>')
def put_study(sid: str):
    store = _get_store()
    current = store.get(sid)
    if current is None:
        return jsonify({'error': 'not_found'}), 404
    merged = {**current.record, **_payload()}
    errors = configuration_errors(PlantConfiguration.from_record(merged))
    if errors:
        return _invalid(errors)
    try:
        study = store.update(sid, merged)
    except ValueError as e:
        return _invalid(str(e).split("; "))
    return jsonify(study.to_json())


@app.delete('/studies/<sid>')
def delete_study(sid: str):
    if not _get_store().delete(sid):
        return jsonify({'error': 'not_found'}), 404
    return jsonify({'deleted': sid})


@app.get('/studies/<sid>/artifacts/<name>')
def get_artifact(sid: str, name: str):
    s = _get_store().get(sid)
    if not s:
        return jsonify({'error': 'not_found'}), 404
    body = s.artifacts.get(name)
    if body is None:
        return jsonify({'error': 'artifact_not_found'}), 404
    if name.endswith('.csv'):
        mimetype = 'text/csv'
    elif name.endswith('.md'):
        mimetype = 'text/markdown'
    elif name.endswith('.json'):
        mimetype = 'application/json'
    else:
        mimetype = 'application/octet-stream'
    return Response(body, mimetype=mimetype)


@app.get('/studies/<sid>/download.zip')
def download_zip(sid: str):
    s = _get_store().get(sid)
    if not s:
        return jsonify({'error': 'not_found'}), 404
    # Build zip in memory
    mem = io.BytesIO()
    with zipfile.ZipFile(mem, mode='w', compression=zipfile.ZIP_DEFLATED) as zf:
        for name, body in s.artifacts.items():
            zf.writestr(name, body)
    mem.seek(0)
    return Response(mem.getvalue(), mimetype='application/zip', headers={
        'Content-Disposition': f'attachment; filename="{sid}.zip"'
    })


@app.get('/openapi.json')
def get_openapi():
    try:
        spec = json.loads(OPENAPI_PATH.read_text())
    except (OSError, ValueError):
        logger.exception("could not load %s", OPENAPI_PATH)
        return jsonify({'error': 'openapi_not_found'}), 404
    return jsonify(spec)


# Optional: live recalculation over WebSocket (if flask-sock installed)
if sock is not None:
    @sock.route('/ws/calculate')
    def ws_calculate(ws):  # pragma: no cover (basic smoke only)
        # One reply per message; a client that typed ahead keeps only the latest answer
        while True:
            raw = ws.receive()
            if raw is None:
                break
            try:
                payload = json.loads(raw)
            except ValueError:
                ws.send(json.dumps({'error': 'invalid_json'}))
                continue
            if not isinstance(payload, dict):
                ws.send(json.dumps({'error': 'invalid_json'}))
                continue
            ws.send(json.dumps(_json_safe(_calculation_body(payload))))


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    app.run(host='0.0.0.0', port=8000)
