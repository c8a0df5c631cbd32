# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the GovContract API:
# - test_scoring.py / test_analysis.py / test_checklist.py: rule-based logic
# - test_*_service.py / test_services.py / test_billing.py / test_email.py:
#   services against FakeSupabase and mocked SDKs
# - test_gov_data.py: government API clients on httpx.MockTransport
# - test_agents.py: OpenAI analyst with a mocked client
# - test_workers.py: Celery task bodies
# - test_api.py: routes through TestClient
#
# Run tests with: pytest
# =============================================================================
