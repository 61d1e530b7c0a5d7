"""
WSGI config for command_center project.

It exposes the WSGI callable as a module-level variable named ``application``.

Production start command:
    gunicorn command_center.wsgi:application
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'command_center.settings')

application = get_wsgi_application()
