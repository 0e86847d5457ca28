import json
import unittest
import tempfile
import shutil
from pathlib import Path

import feasibility.api.server as server
from feasibility.api.server import app
from feasibility.api.store import StudyStore

PLANT = {
    "study_name": "Para Pilot",
    "country": "Brasil",
    "equipment_cost": 2_400_000,
    "installation_cost": 400_000,
    "infrastructure_cost": 900_000,
    "labor_cost": 28_000,
    "energy_cost": 18_000,
}


class TestAPIStudies(unittest.TestCase):
    def setUp(self):
        app.testing = True
        self.root = Path(tempfile.mkdtemp())
        app.config['STUDY_STORE'] = StudyStore(self.root)
        app.config['API_KEY'] = None
        app.config['RATE_LIMIT_N'] = 0
        server._recent.clear()
        self.client = app.test_client()

    def tearDown(self):
        app.config.pop('STUDY_STORE', None)
        shutil.rmtree(self.root, ignore_errors=True)

    def _create(self, **overrides) -> dict:
        rv = self.client.post("/studies", json={**PLANT, **overrides})
        self.assertEqual(rv.status_code, 201)
        return rv.get_json()

    def test_calculate_live_preview(self):
        rv = self.client.post("/calculate", json={"equipment_cost": 1_000_000, "utilization_rate": "85"})
        self.assertEqual(rv.status_code, 200)
        body = rv.get_json()
        for k in ("total_investment", "annual_revenue", "annual_opex", "annual_ebitda",
                  "payback_months", "roi_percentage", "npv_10_years", "irr_percentage"):
            self.assertIn(k, body["results"])
        self.assertEqual(body["results"]["total_investment"], 1_000_000)
        self.assertEqual(len(body["breakdown"]["streams"]), 4)
        self.assertEqual(body["warnings"], [])
        self.assertIn("annual_royalties", body["partnership"])

    def test_calculate_never_rejects_partial_forms(self):
        rv = self.client.post("/calculate", json={"utilization_rate": 150, "labor_cost": None})
        self.assertEqual(rv.status_code, 200)
        self.assertTrue(rv.get_json()["warnings"])
        rv2 = self.client.post("/calculate", data="not json")
        self.assertEqual(rv2.status_code, 200)

    def test_calculate_body_is_strict_json(self):
        def reject(token):
            raise ValueError(token)

        rv = self.client.post("/calculate", json={"daily_capacity_tons": "1e400", "equipment_cost": 1_000_000})
        body = json.loads(rv.get_data(as_text=True), parse_constant=reject)
        self.assertEqual(body["warnings"], [])
        self.assertGreater(body["results"]["annual_revenue"], 0)

        rv = self.client.post("/calculate", json={"daily_capacity_tons": 1e308, "equipment_cost": 1_000_000})
        self.assertEqual(rv.status_code, 200)
        body = json.loads(rv.get_data(as_text=True), parse_constant=reject)
        self.assertIsNone(body["results"]["annual_revenue"])
        self.assertIn("annual_revenue is not a finite number", body["warnings"])

    def test_calculate_ignores_malformed_extra_streams(self):
        rv = self.client.post("/calculate", json={"output_streams": 5})
        self.assertEqual(rv.status_code, 200)
        self.assertEqual(len(rv.get_json()["breakdown"]["streams"]), 4)

    def test_create_rejects_overflowing_configuration(self):
        rv = self.client.post("/studies", json={**PLANT, "daily_capacity_tons": 1e308})
        self.assertEqual(rv.status_code, 400)
        self.assertIn("annual_revenue is not a finite number", rv.get_json()["details"])
        self.assertEqual(self.client.get("/studies").get_json()["studies"], [])
        sid = self._create()["id"]
        rv = self.client.put(f"/studies/{sid}", json={"daily_capacity_tons": 1e308})
        self.assertEqual(rv.status_code, 400)
        self.assertEqual(self.client.get(f"/studies/{sid}").get_json()["daily_capacity_tons"], 85.0)

    def test_create_rejects_invalid_configuration(self):
        rv = self.client.post("/studies", json={**PLANT, "daily_capacity_tons": 0, "tax_rate": 140})
        self.assertEqual(rv.status_code, 400)
        body = rv.get_json()
        self.assertEqual(body["error"], "invalid_configuration")
        self.assertEqual(len(body["details"]), 2)

    def test_study_lifecycle(self):
        created = self._create()
        sid = created["id"]
        self.assertTrue(sid.startswith("s_"))
        self.assertEqual(created["study_name"], "Para Pilot")
        self.assertEqual(created["total_investment"], 3_700_000)
        self.assertIn("report.md", created["artifacts"])

        rv = self.client.get(f"/studies/{sid}")
        self.assertEqual(rv.status_code, 200)
        self.assertEqual(rv.get_json()["annual_revenue"], created["annual_revenue"])

        listed = self.client.get("/studies").get_json()["studies"]
        self.assertTrue(any(s["id"] == sid for s in listed))

        rv_put = self.client.put(f"/studies/{sid}", json={"utilization_rate": 50})
        self.assertEqual(rv_put.status_code, 200)
        updated = rv_put.get_json()
        self.assertEqual(updated["utilization_rate"], 50)
        self.assertEqual(updated["study_name"], "Para Pilot")
        self.assertLess(updated["annual_revenue"], created["annual_revenue"])

        rv_bad = self.client.put(f"/studies/{sid}", json={"utilization_rate": 101})
        self.assertEqual(rv_bad.status_code, 400)

        rv_del = self.client.delete(f"/studies/{sid}")
        self.assertEqual(rv_del.status_code, 200)
        self.assertEqual(self.client.get(f"/studies/{sid}").status_code, 404)

    def test_artifacts(self):
        sid = self._create()["id"]
        rv = self.client.get(f"/studies/{sid}/artifacts/study.csv")
        self.assertEqual(rv.status_code, 200)
        self.assertEqual(rv.mimetype, "text/csv")
        self.assertTrue(rv.get_data(as_text=True).startswith("study_name,country"))
        rv_md = self.client.get(f"/studies/{sid}/artifacts/report.md")
        self.assertIn("# Para Pilot", rv_md.get_data(as_text=True))
        ctx = self.client.get(f"/studies/{sid}/artifacts/analysis_context.json").get_json()
        self.assertEqual(ctx["study_name"], "Para Pilot")
        rv_zip = self.client.get(f"/studies/{sid}/download.zip")
        self.assertEqual(rv_zip.status_code, 200)
        self.assertEqual(rv_zip.mimetype, "application/zip")

    def test_compare(self):
        a = self._create()["id"]
        b = self._create(study_name="Atacama", daily_capacity_tons=90, labor_cost=38_000)["id"]
        rv = self.client.post("/studies/compare", json={"ids": [a, b]})
        self.assertEqual(rv.status_code, 200)
        body = rv.get_json()
        self.assertEqual(body["studies"], ["Para Pilot", "Atacama"])
        self.assertIn(body["best"]["study"], ("Para Pilot", "Atacama"))
        self.assertEqual(self.client.post("/studies/compare", json={"ids": [a]}).status_code, 400)
        self.assertEqual(self.client.post("/studies/compare", json={"ids": [a, "s_00000000"]}).status_code, 404)

    def test_compare_studies_with_the_same_name(self):
        a = self._create()["id"]
        b = self._create(daily_capacity_tons=90)["id"]
        body = self.client.post("/studies/compare", json={"ids": [a, b]}).get_json()
        self.assertEqual(body["studies"], [f"Para Pilot ({a})", f"Para Pilot ({b})"])
        self.assertEqual(body["ids"], [a, b])
        self.assertEqual(len(body["indicators"]["roi_percentage"]), 2)

    def test_404s(self):
        self.assertEqual(self.client.get("/studies/does-not-exist").status_code, 404)
        self.assertEqual(self.client.get("/studies/does-not-exist/artifacts/study.csv").status_code, 404)
        sid = self._create()["id"]
        self.assertEqual(self.client.get(f"/studies/{sid}/artifacts/missing.txt").status_code, 404)


class TestAPIAnalysis(unittest.TestCase):
    def setUp(self):
        app.testing = True
        self.client = app.test_client()

    def test_scenarios(self):
        rv = self.client.post("/scenarios", json=PLANT)
        self.assertEqual(rv.status_code, 200)
        sc = rv.get_json()["scenarios"]
        self.assertEqual(set(sc), {"pessimistic", "probable", "optimistic"})
        self.assertLessEqual(sc["pessimistic"]["annual_revenue"], sc["optimistic"]["annual_revenue"])
        self.assertEqual(len(sc["probable"]["projections"]), 4)

    def test_scenario_settings(self):
        rv = self.client.post("/scenarios", json={**PLANT, "settings": {"probable": 80, "projection_years": [2]}})
        self.assertEqual(rv.status_code, 200)
        self.assertEqual(rv.get_json()["scenarios"]["probable"]["utilization_rate"], 80)
        self.assertEqual(self.client.post("/scenarios", json={"settings": {"probable": 150}}).status_code, 400)
        self.assertEqual(self.client.post("/scenarios", json={"settings": {"bogus": 1}}).status_code, 400)
        self.assertEqual(self.client.post("/scenarios", json={"settings": {"projection_years": [2.5]}}).status_code, 400)

    def test_sensitivity(self):
        rv = self.client.post("/sensitivity", json=PLANT)
        self.assertEqual(rv.status_code, 200)
        body = rv.get_json()
        self.assertEqual(len(body["table"]), 5)
        self.assertEqual(len(body["heatmap"]), 5)
        self.assertEqual(len(body["tornado"]), 3)
        zero = next(r for r in body["table"] if r["variation"] == 0)
        self.assertAlmostEqual(zero["price"], body["base_roi"])
        rv2 = self.client.post("/sensitivity", json={**PLANT, "settings": {"variations": [-5, 0, 5]}})
        self.assertEqual(len(rv2.get_json()["table"]), 3)

    def test_templates(self):
        body = self.client.get("/templates").get_json()
        self.assertEqual(len(body["templates"]), 7)
        rv = self.client.get("/templates/chile-mining")
        self.assertEqual(rv.status_code, 200)
        self.assertEqual(rv.get_json()["record"]["daily_capacity_tons"], 90)
        self.assertEqual(self.client.get("/templates/atlantis").status_code, 404)

    def test_charts(self):
        body = self.client.post("/charts", json=PLANT).get_json()
        self.assertEqual(len(body["cash_flow"]), 11)
        self.assertEqual(len(body["esg"]), 6)


if __name__ == "__main__":
    unittest.main()
