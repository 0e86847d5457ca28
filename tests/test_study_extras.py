import unittest
from feasibility.study.calculator import calculate, calculate_record
from feasibility.study.comparison import compare_studies
from feasibility.study.model import PAYBACK_SENTINEL, PlantConfiguration
from feasibility.study.partnership import partnership_terms
from feasibility.study.templates import apply_template, get_template, list_templates
from feasibility.production.revenue import annual_tonnage


class TestTemplates(unittest.TestCase):
    def test_catalogue(self):
        ids = [t.id for t in list_templates()]
        self.assertEqual(len(ids), 7)
        self.assertIn("mexico-mining", ids)
        self.assertEqual(get_template("brazil-north").values["daily_capacity_tons"], 85)
        with self.assertRaises(KeyError):
            get_template("atlantis")

    def test_apply_merges_without_mutating(self):
        original = {"study_name": "Pilot", "discount_rate": 10}
        rec = apply_template("europe-germany", original)
        self.assertEqual(original, {"study_name": "Pilot", "discount_rate": 10})
        self.assertEqual(rec["study_name"], "Pilot")
        self.assertEqual(rec["discount_rate"], 10)
        self.assertEqual(rec["tax_rate"], 30)
        self.assertEqual(rec["rubber_granules_yield"], 74.7)
        self.assertEqual(rec["rcb_price"], 1000.0)
        self.assertEqual(apply_template("australia")["study_name"], get_template("australia").name)

    def test_templates_calculate(self):
        for t in list_templates():
            r = calculate_record(apply_template(t.id)).results
            self.assertGreater(r.total_investment, 0)
            self.assertGreater(r.annual_revenue, 0)


class TestComparison(unittest.TestCase):
    def setUp(self):
        self.a = {"study_name": "A", "daily_capacity_tons": 85, "total_investment": 10e6, "annual_revenue": 5e6,
                  "annual_ebitda": 2e6, "roi_percentage": 20, "irr_percentage": 25, "npv_10_years": 1e6,
                  "payback_months": 60}
        self.b = {"study_name": "B", "daily_capacity_tons": 100, "total_investment": 8e6, "annual_revenue": 3e6,
                  "annual_ebitda": 1e6, "roi_percentage": 10, "irr_percentage": 12, "npv_10_years": -5e5,
                  "payback_months": PAYBACK_SENTINEL}

    def test_radar_normalisation(self):
        out = compare_studies([self.a, self.b])
        radar = {row["metric"]: row for row in out["radar"]}
        self.assertAlmostEqual(radar["roi"]["A"], 100.0)
        self.assertAlmostEqual(radar["roi"]["B"], 50.0)
        self.assertAlmostEqual(radar["npv"]["B"], 0.0)
        self.assertAlmostEqual(radar["payback"]["A"], 100.0)
        self.assertAlmostEqual(radar["payback"]["B"], 0.0)
        self.assertAlmostEqual(radar["capacity"]["A"], 85.0)

    def test_indicators_and_best(self):
        out = compare_studies([self.a, self.b])
        self.assertEqual(out["indicators"]["payback_months"], {"A": "best", "B": "worst"})
        self.assertEqual(out["indicators"]["total_investment"], {"A": "worst", "B": "best"})
        self.assertEqual(out["best"]["study"], "A")
        self.assertEqual(out["metrics"][0]["metric"], "total_investment")

    def test_studies_sharing_a_name_keep_their_own_columns(self):
        name = get_template("brazil-north").name
        a = {**self.a, "study_name": name, "id": "s_0000000a"}
        b = {**self.a, "study_name": name, "id": "s_0000000b", "roi_percentage": 35}
        out = compare_studies([a, b])
        first, second = f"{name} (s_0000000a)", f"{name} (s_0000000b)"
        self.assertEqual(out["studies"], [first, second])
        self.assertEqual(out["ids"], ["s_0000000a", "s_0000000b"])
        self.assertEqual(out["indicators"]["roi_percentage"], {first: "worst", second: "best"})
        self.assertEqual(set(out["metrics"][0]) - {"metric"}, {first, second})
        self.assertEqual(out["best"]["study"], second)

    def test_same_record_compared_twice(self):
        out = compare_studies([self.a, self.a])
        self.assertEqual(len(set(out["studies"])), 2)
        self.assertEqual(len(out["indicators"]["roi_percentage"]), 2)
        twice = {**self.a, "id": "s_0000000a"}
        self.assertEqual(compare_studies([twice, twice])["studies"], ["A (s_0000000a) #1", "A (s_0000000a) #2"])

    def test_study_count_bounds(self):
        with self.assertRaises(ValueError):
            compare_studies([self.a])
        with self.assertRaises(ValueError):
            compare_studies([self.a] * 6)


class TestPartnership(unittest.TestCase):
    def test_terms(self):
        c = PlantConfiguration.from_record({
            "equipment_cost": 3_000_000, "labor_cost": 25_000,
            "government_royalties_percent": 20, "environmental_bonus_per_ton": 5,
            "collection_model": "government",
        })
        r = calculate(c)
        t = partnership_terms(c, r)
        self.assertAlmostEqual(t.annual_royalties, r.annual_revenue * 0.2)
        self.assertAlmostEqual(t.revenue_after_royalties, r.annual_revenue * 0.8)
        self.assertAlmostEqual(t.annual_environmental_bonus, annual_tonnage(c) * 5)
        self.assertAlmostEqual(t.adjusted_roi_percentage, r.annual_ebitda * 0.8 / 3_000_000 * 100)
        self.assertEqual(t.collection_model, "government")
        # the study's own results are untouched
        self.assertEqual(calculate(c), r)

    def test_no_investment_divides_by_one(self):
        c = PlantConfiguration.from_record({"government_royalties_percent": 10})
        r = calculate(c)
        self.assertAlmostEqual(partnership_terms(c, r).adjusted_roi_percentage, r.annual_ebitda * 0.9 * 100)


if __name__ == "__main__":
    unittest.main()
