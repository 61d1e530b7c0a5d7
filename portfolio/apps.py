"""
Portfolio App Configuration - Empire Command Center Backend
Django app configuration for the portfolio application.

Registers the system check that validates the static per-kind descriptors.
"""

from django.apps import AppConfig
from django.core.checks import Error, Tags, register


class PortfolioConfig(AppConfig):
    """
    Configuration for the Portfolio app.

    This app manages:
    - Value contracts for required backend fields
    - Field projection and entity relation resolution
    - Card composition and list table rendering
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'portfolio'
    verbose_name = 'Portfolio Cards & Lists'

    def ready(self):
        register(check_descriptors, Tags.compatibility)


# =============================================================================
# CUSTOM APP CHECKS
# =============================================================================

def check_descriptors(app_configs, **kwargs):
    """
    Django system check for the per-kind descriptor configuration.

    Every kind needs columns, fields, relations and a link label, and every
    relation must point at a known kind.
    """
    from .descriptors import validate_descriptors

    return [
        Error(
            problem,
            hint='Fix the declaration in portfolio/descriptors.py.',
            obj='portfolio.descriptors',
            id='portfolio.E001',
        )
        for problem in validate_descriptors()
    ]
