"""
Speech Clinic Application.

- backend/: REST API, database models, services, assistant agent, configuration
"""
