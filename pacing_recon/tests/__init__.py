'''
Pacing Reconciliation Backend Test Suite

Test Modules:
-------------
- test_normalizer.py: Header aliases, number and date parsing, row normalization
- test_aggregation.py: Derived metrics, date filtering, daily/campaign/period rollups
- test_severity.py: Severity bands, pacing status thresholds, pacing summary
- test_contract_terms.py: Contract key extraction, missing-contract detection, CSV export
- test_trend.py: Period-over-period change and per-period comparisons
- test_ingestion.py: Feed detection, required columns, CSV parsing and rejection
- test_reconciliation.py: End-to-end report building
- test_auth.py: Login, fixed session expiry, logout
- test_api.py: HTTP endpoints through the ASGI app

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

__all__ = []
