"""
Tests for the MarchéConnect application service

Tests are organized by functionality:
- test_pricing.py, test_lifecycle.py, test_stats.py: pure domain rules
- test_geocoding.py: throttled geocoding pipeline and Nominatim client
- test_email_notifier.py, test_justification_generator.py: outbound text
- test_repositories.py, test_workflow_service.py: persistence and orchestration
- api/: HTTP endpoints end to end
"""
