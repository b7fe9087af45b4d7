"""
Unit Tests for the Case Report Generator
"""
import os

import pytest

from mear.core.reports import CaseReportGenerator
from mear.utils.exceptions import ReportGenerationError


@pytest.fixture
def generator(tmp_path) -> CaseReportGenerator:
    return CaseReportGenerator(output_dir=str(tmp_path / "reports"))


@pytest.fixture
def payload(store, complete_snapshot):
    store.set_data(complete_snapshot)
    store.set_data({
        "preInductionVitals": {"heartRate": "130", "systolicBP": "80", "spo2": "85"},
        "intubationAttempts": [
            {"attemptNumber": 1, "yearsExperience": ">3", "laryngoscopeType": "video", "bladeSize": "4"},
        ],
        "monitoringTable": {"post5": {"heartRate": "110", "systolicBP": "95", "spo2": "96"}},
    })
    return store.report_payload()


class TestCaseReportGenerator:
    """PDF output."""

    def test_generate_writes_pdf(self, generator, payload):
        report = generator.generate(payload, report_id="MEAR-TEST")

        assert report.report_id == "MEAR-TEST"
        assert report.hospital_no == "HN-1001"
        assert report.critical_count >= 1
        assert report.alert_count == len(payload["alerts"])
        assert os.path.exists(report.pdf_path)
        with open(report.pdf_path, "rb") as f:
            assert f.read(4) == b"%PDF"

    def test_render_returns_bytes(self, generator, payload):
        assert generator.render(payload).startswith(b"%PDF")

    def test_empty_payload(self, generator):
        report = generator.generate({})
        assert report.hospital_no == "UNKNOWN"
        assert report.report_id.startswith("MEAR-")
        assert report.to_dict()["alert_count"] == 0

    def test_markup_in_free_text_is_escaped(self, generator):
        pdf = generator.render({"demographics": {"hospitalNo": "<b>HN"}, "comorbidities": {"others": True, "othersText": "a & b <c>"}})
        assert pdf.startswith(b"%PDF")

    def test_failure_is_wrapped(self, generator, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("layout failed")

        monkeypatch.setattr(generator, "_build", broken)
        with pytest.raises(ReportGenerationError) as exc_info:
            generator.render({})
        assert exc_info.value.code == "REPORT_ERROR"
