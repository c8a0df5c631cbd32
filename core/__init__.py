# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the domain logic behind the API:
# - models/: Pydantic schemas for data validation
# - scoring.py: opportunity match score and win probability
# - analysis.py: rule-based opportunity/company/application analysis
# - checklist.py: bidding checklist catalog and grading
# - services/: Supabase-backed services (one class per resource)
# - templates/email/: Jinja2 email templates
#
# Code in this package should NOT import from FastAPI routers or Celery.
# Services raise app.exceptions errors, which the API turns into responses.
# =============================================================================
