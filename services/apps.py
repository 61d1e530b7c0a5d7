"""
Django application configuration for the services app.

The services app provides the backend API client for the Empire Command
Center, together with its exception hierarchy and configuration checks.
"""

from django.apps import AppConfig
from django.core.checks import Tags, Warning, register


class ServicesConfig(AppConfig):
    """
    Application configuration for the services app.

    This app provides integrations with external systems that are shared
    across other Django apps in the Empire Command Center.
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'services'
    verbose_name = 'Services'

    def ready(self):
        """
        Perform application initialization.

        Registers the configuration check for the portfolio API client.
        """
        register(check_required_services, Tags.compatibility)


def check_required_services(app_configs, **kwargs):
    """
    Django system check for required external services.

    Misconfiguration is reported as a warning; requests then fail as
    retryable "could not load" responses rather than at startup.
    """
    from . import validate_service_configuration

    is_valid, errors = validate_service_configuration()
    if is_valid:
        return []

    return [
        Warning(
            error,
            hint='Set the PORTFOLIO_API_* environment variables.',
            obj='services.apps.ServicesConfig',
            id='services.W001',
        )
        for error in errors
    ]
