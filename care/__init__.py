"""Care application for the clinic backend.

This package holds the appointment lifecycle: models, the services
layer driving status transitions and patient status, plus the REST
views, websocket consumers and management commands built on top.
"""
