'''
Field KPIs Test Suite

Test Modules:
-------------
- test_normalization.py: currency/percent/boolean/date/time parsing and
  technician + keyword normalization
- test_parsers.py: row and workbook parsing for the four reports
- test_cleaning.py: per-type acceptance rules
- test_integrator.py: concurrent parsing, error wrapping, data summary
- test_validation.py: presence, type, size and structure checks
- test_kpi_calculator.py: KPI formulas, thresholds, performance score
- test_weeks_formatting.py: week boundaries and display formatters
- test_jobs.py: the weekly scorecard run end to end

Running Tests:
--------------
    pip install -e .[test]
    pytest field_kpis/tests/ -v

Configuration:
--------------
See conftest.py for shared fixtures and the sample workbooks.
'''

__all__ = []
