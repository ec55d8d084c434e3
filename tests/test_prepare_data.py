import json

import pytest

from prepare_data import CaseCatalog, CaseVignette, CatalogError, build_case_catalog, load_case_catalog
from trial_states import Step


class TestCaseCatalog:
    def test_order_and_length(self, catalog):
        assert len(catalog) == 3
        assert catalog.ids == ("baseline_pna", "conflict_ptx", "overconf_normfail")
        assert [v.id for v in catalog] == list(catalog.ids)

    def test_optional_image_fields(self, catalog):
        assert catalog[0].image_url == "https://example.org/pna.jpeg"
        assert catalog[1].image_url is None
        assert catalog[1].image_alt is None

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_index_bounded(self, catalog, index):
        with pytest.raises(IndexError):
            catalog[index]

    def test_vignettes_are_immutable(self, catalog):
        with pytest.raises(AttributeError):
            catalog[0].ai_text = "changed"

    def test_empty_catalog_rejected(self):
        with pytest.raises(CatalogError):
            CaseCatalog([])

    @pytest.mark.parametrize("n", [1, 2, 5])
    def test_progress_fraction(self, n):
        cat = CaseCatalog([CaseVignette(f"c{i}", "t", "a", 50) for i in range(n)])
        for i in range(n):
            assert cat.progress_fraction(Step.TRIAL, i) == i / n
        for step in (Step.CONSENT, Step.ONBOARDING, Step.DONE):
            assert cat.progress_fraction(step, n - 1) == 0


class TestBuildCaseCatalog:
    def test_missing_field(self, case_entries):
        del case_entries[1]["aiText"]
        with pytest.raises(CatalogError, match="aiText"):
            build_case_catalog(case_entries)

    @pytest.mark.parametrize("bad", [-1, 101, 94.5, "94", True])
    def test_confidence_range(self, case_entries, bad):
        case_entries[0]["aiConfidence"] = bad
        with pytest.raises(CatalogError, match="aiConfidence"):
            build_case_catalog(case_entries)

    def test_duplicate_ids(self, case_entries):
        case_entries[2]["id"] = "baseline_pna"
        with pytest.raises(CatalogError, match="Duplicate"):
            build_case_catalog(case_entries)

    def test_blank_image_url_is_none(self, case_entries):
        case_entries[0]["imageUrl"] = ""
        assert build_case_catalog(case_entries)[0].image_url is None

    def test_non_object_entry(self):
        with pytest.raises(CatalogError):
            build_case_catalog(["not a case"])


class TestLoadCaseCatalog:
    def test_load_list(self, tmp_path, case_entries):
        path = tmp_path / "cases.json"
        path.write_text(json.dumps(case_entries))
        assert len(load_case_catalog(path)) == 3

    def test_load_wrapped(self, tmp_path, case_entries):
        path = tmp_path / "cases.json"
        path.write_text(json.dumps({"cases": case_entries}))
        assert load_case_catalog(path).ids[0] == "baseline_pna"

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError, match="Could not read"):
            load_case_catalog(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "cases.json"
        path.write_text("{not json")
        with pytest.raises(CatalogError):
            load_case_catalog(path)

    def test_bundled_cases_file(self):
        from pathlib import Path
        cat = load_case_catalog(Path(__file__).resolve().parent.parent / "cases.json")
        assert cat.ids == ("baseline_pna", "conflict_ptx", "overconf_normfail")
