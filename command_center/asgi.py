"""
ASGI config for command_center project.

It exposes the ASGI callable as a module-level variable named ``application``.
The portfolio views are synchronous; Django runs them in a thread under ASGI.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'command_center.settings')

application = get_asgi_application()
