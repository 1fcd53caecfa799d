"""
Tests for ui.export data generation.
"""
import io

import pandas as pd

from config import settings
from models.case import Abatement, CostDetails, Property
from ui.export import (
    generate_abatement_dataframe,
    generate_cases_dataframe,
    generate_csv_export,
    generate_excel_export,
    generate_summary_data,
)


class TestExcelExport:
    def test_sheets(self, make_case, today):
        cases = [make_case(abatement=Abatement(cost=CostDetails(employees=1, hours=1, rate=25.0)))]
        properties = [Property(id="p", street_address="100 Main St")]
        data = generate_excel_export(cases, properties, today=today)
        sheets = pd.read_excel(io.BytesIO(data), sheet_name=None)
        assert set(sheets) == {'Summary', 'Cases', 'Properties', 'Abatement Costs'}
        assert sheets['Abatement Costs'].iloc[0]['Total'] == 75.0

    def test_abatement_sheet_skipped_when_nothing_costed(self, make_case, today):
        data = generate_excel_export([make_case()], [], today=today)
        sheets = pd.read_excel(io.BytesIO(data), sheet_name=None)
        assert 'Abatement Costs' not in sheets


class TestCsvExport:
    def test_closed_cases_last(self, make_case, today):
        cases = [
            make_case(street="1 Main St", case_id="C-1", status=settings.STATUS_CLOSED),
            make_case(street="1 Vine St", case_id="O-1"),
        ]
        data = generate_csv_export(cases, today)
        assert data.decode('utf-8').startswith("Case Number,Street")
        df = pd.read_csv(io.BytesIO(data))
        assert list(df['Case Number']) == ["O-1", "C-1"]
        # multi-line mailing addresses survive quoting
        assert df.iloc[0]['Mailing Address'] == "PO Box 12\nCommerce, OK 74339"


class TestFrames:
    def test_cases_dataframe(self, make_case, today):
        df = generate_cases_dataframe([make_case(deadline="October 1, 2026")], today)
        assert df.iloc[0]['Time Status'] == settings.TIME_OVERDUE

    def test_abatement_dataframe_costed_only(self, make_case):
        cases = [make_case(abatement=Abatement()), make_case()]
        assert generate_abatement_dataframe(cases).empty

    def test_summary(self, make_case, today):
        cases = [make_case(), make_case(status=settings.STATUS_CLOSED)]
        summary = {row['Metric']: row['Value'] for row in generate_summary_data(cases, [], today) if row['Metric']}
        assert summary['Total Cases'] == 2
        assert summary['Closed Cases'] == 1
        assert summary['Abatement Billed'] == "$0.00"
